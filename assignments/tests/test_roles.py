from __future__ import annotations

import pytest
from django.contrib.auth.models import AnonymousUser

from accounts.models import Privilege
from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
from assignments.roles import (
    RoleSet,
    coordinator_course_ids,
    deputy_dean_course_ids,
    resolve_coordinator,
    resolve_deputy_dean,
    resolve_roles,
)
from courses.models import Course


def test_roleset_membership_is_typed():
    roles = RoleSet.of([Privilege.COORDINATOR, "DEPUTY_DEAN"])
    assert Privilege.COORDINATOR in roles
    assert "DEPUTY_DEAN" in roles
    assert roles.is_deputy_dean and not roles.is_admin
    assert list(roles) == [Privilege.COORDINATOR, Privilege.DEPUTY_DEAN]
    assert not RoleSet()
    with pytest.raises(ValueError):
        "DEAN" in roles


@pytest.mark.django_db
def test_no_assignment_fails_closed(course, coordinator):
    assert resolve_roles(coordinator, course) == RoleSet()
    assert resolve_roles(AnonymousUser(), course) == RoleSet()
    assert resolve_coordinator(course) is None
    assert resolve_deputy_dean(course) is None


@pytest.mark.django_db
def test_admin_is_global(administrator, course):
    assert resolve_roles(administrator, course).is_admin
    assert resolve_roles(administrator, None).is_admin


@pytest.mark.django_db
def test_course_assignment_roles(wired_course, coordinator, dean, lecturer):
    assert resolve_roles(coordinator, wired_course) == RoleSet.of([Privilege.COORDINATOR])
    assert resolve_roles(dean, wired_course) == RoleSet.of([Privilege.DEPUTY_DEAN])
    assert resolve_roles(lecturer, wired_course) == RoleSet()


@pytest.mark.django_db
def test_inactive_course_assignment_grants_nothing(wired_course, coordinator, dean):
    CourseRoleAssignment.objects.filter(course=wired_course).update(active=False)
    assert not resolve_roles(coordinator, wired_course)
    assert not resolve_roles(dean, wired_course)
    assert coordinator_course_ids(coordinator) == set()


@pytest.mark.django_db
def test_faculty_fallback_only_without_course_deputy_dean(course, coordinator, dean, make_user):
    faculty_dean = make_user("fdean", Privilege.DEPUTY_DEAN)
    FacultyRoleAssignment.objects.create(school=course.school, deputy_dean=faculty_dean)
    sibling = Course.objects.create(code="CS102", name="Programming II", school=course.school)

    # Course assignment without a deputy dean: fallback applies
    CourseRoleAssignment.objects.create(course=course, coordinator=coordinator, deputy_dean=None)
    assert resolve_deputy_dean(course) == faculty_dean
    assert resolve_roles(faculty_dean, course).is_deputy_dean
    assert deputy_dean_course_ids(faculty_dean) == {course.pk, sibling.pk}

    # A course-level deputy dean overrides the faculty one
    CourseRoleAssignment.objects.filter(course=course).update(deputy_dean=dean)
    assert resolve_deputy_dean(course) == dean
    assert not resolve_roles(faculty_dean, course)
    assert deputy_dean_course_ids(faculty_dean) == {sibling.pk}
    assert deputy_dean_course_ids(dean) == {course.pk}


@pytest.mark.django_db
def test_faculty_never_supplies_coordinator(course, dean):
    FacultyRoleAssignment.objects.create(school=course.school, deputy_dean=dean)
    assert resolve_coordinator(course) is None
    assert coordinator_course_ids(dean) == set()


@pytest.mark.django_db
def test_faculty_dean_who_coordinates_the_course_is_skipped(course, make_user):
    both = make_user("both", Privilege.COORDINATOR, Privilege.DEPUTY_DEAN)
    FacultyRoleAssignment.objects.create(school=course.school, deputy_dean=both)
    CourseRoleAssignment.objects.create(course=course, coordinator=both)
    sibling = Course.objects.create(code="CS102", name="Programming II", school=course.school)

    roles = resolve_roles(both, course)
    assert roles.is_coordinator and not roles.is_deputy_dean
    assert resolve_deputy_dean(course) is None
    assert deputy_dean_course_ids(both) == {sibling.pk}
    assert resolve_roles(both, sibling).is_deputy_dean
