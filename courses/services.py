"""Administration of schools, academic sessions and courses.

Codes are unique and case-insensitively compared; a duplicate surfaces
as ConflictError. Deletions refuse while dependants exist, except for a
course's role assignment, which is removed first as its own ledger
entry.
"""
from __future__ import annotations

import logging

from django.db import transaction

from accounts.services import ensure_admin
from audit import ledger
from audit.models import AuditAction
from core.exceptions import ConflictError, WorkflowValidationError

from .models import AcademicSession, Course, School

logger = logging.getLogger(__name__)


def _clean_code(code) -> str:
    code = (code or "").strip().upper()
    if not code:
        raise WorkflowValidationError("Code is required.")
    return code


def _ensure_unique(model, code: str, exclude_pk=None) -> None:
    qs = model.objects.filter(code__iexact=code)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise ConflictError(f"{model._meta.verbose_name.title()} code '{code}' already exists.")


def _apply(instance, fields: dict) -> list[str]:
    changed = []
    for name, value in fields.items():
        if value is not None and getattr(instance, name) != value:
            setattr(instance, name, value)
            changed.append(name)
    return changed


# Schools


@transaction.atomic
def create_school(actor, *, code: str, name: str, active: bool = True) -> School:
    ensure_admin(actor)
    code = _clean_code(code)
    if not (name or "").strip():
        raise WorkflowValidationError("School name is required.")
    _ensure_unique(School, code)
    school = School.objects.create(code=code, name=name.strip(), active=active)
    ledger.record(AuditAction.SCHOOL_CREATED, actor, ledger.SUBJECT_SCHOOL, school.pk, {"code": code})
    return school


@transaction.atomic
def update_school(actor, school: School, *, code=None, name=None, active=None) -> School:
    ensure_admin(actor)
    if code is not None:
        code = _clean_code(code)
        _ensure_unique(School, code, exclude_pk=school.pk)
    changed = _apply(school, {"code": code, "name": name, "active": active})
    if changed:
        school.save()
        ledger.record(AuditAction.SCHOOL_UPDATED, actor, ledger.SUBJECT_SCHOOL, school.pk, {"fields": changed})
    return school


@transaction.atomic
def delete_school(actor, school: School) -> None:
    from assignments.services import delete_faculty_assignment

    ensure_admin(actor)
    if school.courses.exists():
        raise ConflictError("School still has courses and cannot be deleted.")
    if hasattr(school, "faculty_assignment"):
        delete_faculty_assignment(actor, school)
    school_id, code = school.pk, school.code
    school.delete()
    ledger.record(AuditAction.SCHOOL_DELETED, actor, ledger.SUBJECT_SCHOOL, school_id, {"code": code})


# Academic sessions


@transaction.atomic
def create_session(actor, *, code: str, name: str = "", active: bool = True) -> AcademicSession:
    ensure_admin(actor)
    code = _clean_code(code)
    _ensure_unique(AcademicSession, code)
    session = AcademicSession.objects.create(code=code, name=(name or "").strip(), active=active)
    ledger.record(AuditAction.SESSION_CREATED, actor, ledger.SUBJECT_SESSION, session.pk, {"code": code})
    return session


@transaction.atomic
def update_session(actor, session: AcademicSession, *, code=None, name=None, active=None) -> AcademicSession:
    ensure_admin(actor)
    if code is not None:
        code = _clean_code(code)
        _ensure_unique(AcademicSession, code, exclude_pk=session.pk)
    changed = _apply(session, {"code": code, "name": name, "active": active})
    if changed:
        session.save()
        ledger.record(AuditAction.SESSION_UPDATED, actor, ledger.SUBJECT_SESSION, session.pk, {"fields": changed})
    return session


@transaction.atomic
def delete_session(actor, session: AcademicSession) -> None:
    ensure_admin(actor)
    if session.submissions.exists():
        raise ConflictError("Session is referenced by submissions and cannot be deleted.")
    session_id, code = session.pk, session.code
    session.delete()
    ledger.record(AuditAction.SESSION_DELETED, actor, ledger.SUBJECT_SESSION, session_id, {"code": code})


# Courses


@transaction.atomic
def create_course(actor, *, code: str, name: str, school: School, active: bool = True) -> Course:
    ensure_admin(actor)
    code = _clean_code(code)
    if not (name or "").strip():
        raise WorkflowValidationError("Course name is required.")
    if school is None:
        raise WorkflowValidationError("A course must belong to a school.")
    _ensure_unique(Course, code)
    course = Course.objects.create(code=code, name=name.strip(), school=school, active=active)
    ledger.record(
        AuditAction.COURSE_CREATED,
        actor,
        ledger.SUBJECT_COURSE,
        course.pk,
        {"code": code, "school_id": school.pk},
    )
    return course


@transaction.atomic
def update_course(actor, course: Course, *, code=None, name=None, school=None, active=None) -> Course:
    ensure_admin(actor)
    if code is not None:
        code = _clean_code(code)
        _ensure_unique(Course, code, exclude_pk=course.pk)
    changed = _apply(course, {"code": code, "name": name, "school": school, "active": active})
    if changed:
        course.save()
        ledger.record(AuditAction.COURSE_UPDATED, actor, ledger.SUBJECT_COURSE, course.pk, {"fields": changed})
    if "school" in changed:
        # The school-level deputy dean may differ now.
        from submissions.workflow import realign_assignees

        realign_assignees(actor, [course.pk])
    return course


@transaction.atomic
def delete_course(actor, course: Course) -> None:
    """Delete a course, removing its role assignment first.

    The assignment removal is logged by the directory before the course
    deletion entry, so the trail shows both in causal order.
    """
    from assignments.services import delete_course_assignment

    ensure_admin(actor)
    if course.submissions.exists():
        raise ConflictError("Course is referenced by submissions and cannot be deleted.")
    if hasattr(course, "role_assignment"):
        delete_course_assignment(actor, course)
    course_id, code = course.pk, course.code
    course.delete()
    logger.info("course %s deleted by %s", code, getattr(actor, "username", "system"))
    ledger.record(AuditAction.COURSE_DELETED, actor, ledger.SUBJECT_COURSE, course_id, {"code": code})
