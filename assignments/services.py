"""Assignment directory: who reviews which course.

Each operation validates privileges, writes the assignment row, records
one ledger entry with before/after ids, then realigns the assignee of any
in-flight submission of the affected courses.
"""
from __future__ import annotations

import logging

from django.db import transaction

from accounts.models import Privilege, has_privilege
from accounts.services import ensure_admin
from audit import ledger
from audit.models import AuditAction
from core.exceptions import NotFoundError, WorkflowValidationError
from courses.models import Course, School

from .models import CourseRoleAssignment, FacultyRoleAssignment

logger = logging.getLogger(__name__)


def _check_holder(user, privilege: Privilege, label: str) -> None:
    if user is not None and not has_privilege(user, privilege):
        raise WorkflowValidationError(f"{label} must hold the {privilege.label} privilege.")


def _check_pair(coordinator, deputy_dean) -> None:
    _check_holder(coordinator, Privilege.COORDINATOR, "Coordinator")
    _check_holder(deputy_dean, Privilege.DEPUTY_DEAN, "Deputy dean")
    if coordinator is not None and deputy_dean is not None and coordinator.pk == deputy_dean.pk:
        raise WorkflowValidationError("Coordinator and deputy dean must be different users.")


def _realign(actor, course_ids) -> None:
    from submissions.workflow import realign_assignees

    realign_assignees(actor, course_ids)


@transaction.atomic
def set_course_assignment(actor, course: Course, coordinator=None, deputy_dean=None) -> CourseRoleAssignment:
    """Create or replace the course's single active assignment."""
    ensure_admin(actor)
    _check_pair(coordinator, deputy_dean)

    existing = CourseRoleAssignment.objects.select_for_update().filter(course=course).first()
    before = existing.snapshot() if existing else None
    if existing is None:
        assignment = CourseRoleAssignment.objects.create(
            course=course, coordinator=coordinator, deputy_dean=deputy_dean, active=True
        )
        operation = "CREATED"
    else:
        assignment = existing
        assignment.coordinator = coordinator
        assignment.deputy_dean = deputy_dean
        assignment.active = True
        assignment.save()
        operation = "UPDATED"

    ledger.record(
        AuditAction.COURSE_ASSIGNMENT_CHANGED,
        actor,
        ledger.SUBJECT_COURSE_ASSIGNMENT,
        assignment.pk,
        {"operation": operation, "course_id": course.pk, "before": before, "after": assignment.snapshot()},
    )
    logger.info("course %s assignment %s", course.code, operation.lower())
    _realign(actor, [course.pk])
    return assignment


@transaction.atomic
def toggle_course_assignment(actor, course: Course) -> CourseRoleAssignment:
    """Flip `active`; re-activation re-checks the named users' privileges."""
    ensure_admin(actor)
    try:
        assignment = CourseRoleAssignment.objects.select_for_update().get(course=course)
    except CourseRoleAssignment.DoesNotExist:
        raise NotFoundError("Course has no role assignment.")
    if not assignment.active:
        _check_pair(assignment.coordinator, assignment.deputy_dean)
    assignment.active = not assignment.active
    assignment.save(update_fields=["active", "updated_at"])
    ledger.record(
        AuditAction.COURSE_ASSIGNMENT_TOGGLED,
        actor,
        ledger.SUBJECT_COURSE_ASSIGNMENT,
        assignment.pk,
        {"course_id": course.pk, "active": assignment.active},
    )
    _realign(actor, [course.pk])
    return assignment


@transaction.atomic
def delete_course_assignment(actor, course: Course) -> None:
    ensure_admin(actor)
    try:
        assignment = CourseRoleAssignment.objects.select_for_update().get(course=course)
    except CourseRoleAssignment.DoesNotExist:
        raise NotFoundError("Course has no role assignment.")
    removed = assignment.snapshot()
    assignment_id = assignment.pk
    ledger.record(
        AuditAction.COURSE_ASSIGNMENT_DELETED,
        actor,
        ledger.SUBJECT_COURSE_ASSIGNMENT,
        assignment_id,
        {"course_id": course.pk, "removed": removed},
    )
    assignment.delete()
    _realign(actor, [course.pk])


# Faculty-level fallback


def _school_course_ids(school: School) -> list[int]:
    return list(school.courses.values_list("pk", flat=True))


@transaction.atomic
def set_faculty_assignment(actor, school: School, deputy_dean=None) -> FacultyRoleAssignment:
    ensure_admin(actor)
    _check_holder(deputy_dean, Privilege.DEPUTY_DEAN, "Deputy dean")

    existing = FacultyRoleAssignment.objects.select_for_update().filter(school=school).first()
    before = existing.snapshot() if existing else None
    if existing is None:
        assignment = FacultyRoleAssignment.objects.create(school=school, deputy_dean=deputy_dean, active=True)
        operation = "CREATED"
    else:
        assignment = existing
        assignment.deputy_dean = deputy_dean
        assignment.active = True
        assignment.save()
        operation = "UPDATED"

    ledger.record(
        AuditAction.FACULTY_ASSIGNMENT_CHANGED,
        actor,
        ledger.SUBJECT_FACULTY_ASSIGNMENT,
        assignment.pk,
        {"operation": operation, "school_id": school.pk, "before": before, "after": assignment.snapshot()},
    )
    _realign(actor, _school_course_ids(school))
    return assignment


@transaction.atomic
def toggle_faculty_assignment(actor, school: School) -> FacultyRoleAssignment:
    ensure_admin(actor)
    try:
        assignment = FacultyRoleAssignment.objects.select_for_update().get(school=school)
    except FacultyRoleAssignment.DoesNotExist:
        raise NotFoundError("School has no faculty assignment.")
    if not assignment.active:
        _check_holder(assignment.deputy_dean, Privilege.DEPUTY_DEAN, "Deputy dean")
    assignment.active = not assignment.active
    assignment.save(update_fields=["active", "updated_at"])
    ledger.record(
        AuditAction.FACULTY_ASSIGNMENT_TOGGLED,
        actor,
        ledger.SUBJECT_FACULTY_ASSIGNMENT,
        assignment.pk,
        {"school_id": school.pk, "active": assignment.active},
    )
    _realign(actor, _school_course_ids(school))
    return assignment


@transaction.atomic
def delete_faculty_assignment(actor, school: School) -> None:
    ensure_admin(actor)
    try:
        assignment = FacultyRoleAssignment.objects.select_for_update().get(school=school)
    except FacultyRoleAssignment.DoesNotExist:
        raise NotFoundError("School has no faculty assignment.")
    ledger.record(
        AuditAction.FACULTY_ASSIGNMENT_DELETED,
        actor,
        ledger.SUBJECT_FACULTY_ASSIGNMENT,
        assignment.pk,
        {"school_id": school.pk, "removed": assignment.snapshot()},
    )
    assignment.delete()
    _realign(actor, _school_course_ids(school))
