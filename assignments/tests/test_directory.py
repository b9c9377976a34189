from __future__ import annotations

import pytest

from accounts.models import Privilege
from accounts.services import revoke_privilege
from assignments import services
from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
from audit import ledger
from audit.models import AuditAction
from core.exceptions import ForbiddenError, NotFoundError, WorkflowValidationError


@pytest.mark.django_db
def test_set_creates_then_updates_single_row(administrator, course, coordinator, dean, make_user):
    a = services.set_course_assignment(administrator, course, coordinator, dean)
    other = make_user("coord2", Privilege.COORDINATOR)
    b = services.set_course_assignment(administrator, course, other, dean)
    assert a.pk == b.pk
    assert CourseRoleAssignment.objects.filter(course=course).count() == 1

    updated, created = list(ledger.entries(action=AuditAction.COURSE_ASSIGNMENT_CHANGED))
    assert created.details["operation"] == "CREATED"
    assert created.details["before"] is None
    assert updated.details["operation"] == "UPDATED"
    assert updated.details["before"]["coordinator_id"] == coordinator.pk
    assert updated.details["after"]["coordinator_id"] == other.pk
    assert updated.details["after"]["deputy_dean_id"] == dean.pk


@pytest.mark.django_db
def test_set_rejects_same_user_for_both_roles(administrator, course, make_user):
    both = make_user("both", Privilege.COORDINATOR, Privilege.DEPUTY_DEAN)
    with pytest.raises(WorkflowValidationError):
        services.set_course_assignment(administrator, course, both, both)
    assert not CourseRoleAssignment.objects.exists()
    assert not ledger.entries().exists()


@pytest.mark.django_db
def test_set_rejects_missing_privileges(administrator, course, coordinator, dean, lecturer):
    with pytest.raises(WorkflowValidationError):
        services.set_course_assignment(administrator, course, lecturer, dean)
    with pytest.raises(WorkflowValidationError):
        services.set_course_assignment(administrator, course, coordinator, lecturer)
    # Roles swapped: each lacks the matching privilege
    with pytest.raises(WorkflowValidationError):
        services.set_course_assignment(administrator, course, dean, coordinator)
    # Either side may be omitted
    services.set_course_assignment(administrator, course, coordinator, None)
    services.set_course_assignment(administrator, course, None, dean)


@pytest.mark.django_db
def test_directory_requires_admin(course, coordinator, dean):
    with pytest.raises(ForbiddenError):
        services.set_course_assignment(coordinator, course, coordinator, dean)


@pytest.mark.django_db
def test_toggle_and_reactivation_rechecks_privileges(administrator, course, coordinator, dean):
    services.set_course_assignment(administrator, course, coordinator, dean)
    a = services.toggle_course_assignment(administrator, course)
    assert a.active is False
    # Revocation is allowed once the assignment is inactive
    revoke_privilege(administrator, coordinator, Privilege.COORDINATOR)
    with pytest.raises(WorkflowValidationError):
        services.toggle_course_assignment(administrator, course)
    a.refresh_from_db()
    assert a.active is False
    toggles = ledger.entries(action=AuditAction.COURSE_ASSIGNMENT_TOGGLED)
    assert [e.details["active"] for e in toggles] == [False]


@pytest.mark.django_db
def test_delete_captures_removed_values(administrator, course, coordinator, dean):
    a = services.set_course_assignment(administrator, course, coordinator, dean)
    services.delete_course_assignment(administrator, course)
    assert not CourseRoleAssignment.objects.exists()
    entry = ledger.entries(action=AuditAction.COURSE_ASSIGNMENT_DELETED).get()
    assert entry.subject_id == str(a.pk)
    assert entry.details["removed"] == {"coordinator_id": coordinator.pk, "deputy_dean_id": dean.pk, "active": True}
    with pytest.raises(NotFoundError):
        services.delete_course_assignment(administrator, course)
    with pytest.raises(NotFoundError):
        services.toggle_course_assignment(administrator, course)


@pytest.mark.django_db
def test_faculty_assignment_lifecycle(administrator, school, dean, coordinator):
    with pytest.raises(WorkflowValidationError):
        services.set_faculty_assignment(administrator, school, coordinator)
    fa = services.set_faculty_assignment(administrator, school, dean)
    assert fa.active
    assert services.toggle_faculty_assignment(administrator, school).active is False
    assert services.toggle_faculty_assignment(administrator, school).active is True
    services.delete_faculty_assignment(administrator, school)
    assert not FacultyRoleAssignment.objects.exists()
    actions = [e.action for e in ledger.entries(subject_type=ledger.SUBJECT_FACULTY_ASSIGNMENT)]
    assert actions == [
        AuditAction.FACULTY_ASSIGNMENT_DELETED,
        AuditAction.FACULTY_ASSIGNMENT_TOGGLED,
        AuditAction.FACULTY_ASSIGNMENT_TOGGLED,
        AuditAction.FACULTY_ASSIGNMENT_CHANGED,
    ]
