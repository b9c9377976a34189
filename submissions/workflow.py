"""Submission workflow operations.

Each public function is one atomic unit: it loads the submission row
under `select_for_update`, runs the guards in a fixed order, applies the
change, and writes exactly one ledger entry for it.

Guard order:
1. visibility: unknown or invisible submission -> NotFoundError
2. capacity: caller lacks the role the step needs -> ForbiddenError
3. status: the step is not allowed from the current status -> InvalidStateError
4. inputs and configuration -> WorkflowValidationError / InvalidStateError

A submission is visible to its owner, its current assignee, an
administrator, and the coordinator or deputy dean of its course.
"""
from __future__ import annotations

import logging
import mimetypes
from typing import Any

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django_fsm import ConcurrentTransition, can_proceed

from assignments.roles import RoleSet, resolve_coordinator, resolve_deputy_dean, resolve_roles
from audit import ledger
from audit.models import AuditAction
from core.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    WorkflowValidationError,
)
from courses.models import AcademicSession, Course

from . import storage
from .models import Document, DocumentType, Submission, SubmissionStatus, TypeOfStudy, validate_upload

logger = logging.getLogger(__name__)


# Loading and guards


def _load(submission_id, *, lock: bool = True) -> Submission:
    qs = Submission.objects.select_related("course", "owner")
    if lock:
        qs = qs.select_for_update()
    try:
        return qs.get(pk=submission_id)
    except (Submission.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Submission not found.")


def _roles(submission: Submission, user) -> RoleSet:
    return resolve_roles(user, submission.course)


def _is_visible(submission: Submission, user, roles: RoleSet) -> bool:
    if not getattr(user, "is_authenticated", False):
        return False
    if submission.owner_id == user.pk or submission.current_assignee_id == user.pk:
        return True
    return bool(roles)


def _visible(submission_id, actor, *, lock: bool = True) -> tuple[Submission, RoleSet]:
    submission = _load(submission_id, lock=lock)
    roles = _roles(submission, actor)
    if not _is_visible(submission, actor, roles):
        raise NotFoundError("Submission not found.")
    return submission, roles


def _commit(submission: Submission) -> None:
    """Save under the status guard; a lost race becomes ConflictError."""
    try:
        submission.save()
    except ConcurrentTransition:
        logger.warning("concurrent transition on submission %s", submission.pk)
        raise ConflictError("The submission was changed by someone else; reload and retry.")


def _require(condition: bool, message: str, exc=ForbiddenError) -> None:
    if not condition:
        raise exc(message)


def _is_owner(submission: Submission, actor) -> bool:
    return submission.owner_id == actor.pk


def _check_editor(submission: Submission, actor, roles: RoleSet) -> None:
    """Owner while editable, admin at any status."""
    _require(_is_owner(submission, actor) or roles.is_admin, "Only the owner or an administrator may edit this submission.")
    if not roles.is_admin and submission.status not in Submission.OWNER_EDITABLE:
        raise InvalidStateError(f"A {submission.get_status_display().lower()} submission cannot be edited.")


def _reset_if_rejected(submission: Submission, actor) -> dict[str, Any]:
    """Owner edits to a rejected submission send it back to DRAFT.

    This holds for an owner who is also an administrator; edits by any
    other administrator keep the status.
    """
    if not _is_owner(submission, actor) or submission.status != SubmissionStatus.REJECTED:
        return {}
    submission.reopen()
    return {
        "status_before": SubmissionStatus.REJECTED.value,
        "status_after": SubmissionStatus.DRAFT.value,
        "previous_rejection_reason": submission.rejection_reason,
    }


def _resolve(model, value, label: str):
    if value is None or value == "":
        raise WorkflowValidationError(f"{label} is required.")
    if isinstance(value, model):
        return value
    try:
        return model.objects.get(pk=value)
    except (model.DoesNotExist, ValueError, TypeError):
        raise NotFoundError(f"{label} not found.")


def _check_type_of_study(value) -> str:
    if value not in TypeOfStudy.values:
        raise WorkflowValidationError(f"Type of study must be one of {', '.join(TypeOfStudy.values)}.")
    return value


def _check_document_type(value) -> str:
    if value not in DocumentType.values:
        raise WorkflowValidationError(f"Unknown document type '{value}'.")
    return value


def _check_reason(reason) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise WorkflowValidationError("A rejection reason is required.")
    return reason


# Lecturer operations


@transaction.atomic
def create_submission(actor, *, course, session, type_of_study, title: str = "") -> Submission:
    _require(getattr(actor, "is_authenticated", False), "Authentication required.")
    course = _resolve(Course, course, "Course")
    session = _resolve(AcademicSession, session, "Academic session")
    if not course.active:
        raise WorkflowValidationError("Course is not active.")
    if not session.active:
        raise WorkflowValidationError("Academic session is not active.")
    submission = Submission.objects.create(
        owner=actor,
        course=course,
        session=session,
        type_of_study=_check_type_of_study(type_of_study),
        title=(title or "").strip(),
    )
    ledger.record(
        AuditAction.SUBMISSION_CREATED,
        actor,
        ledger.SUBJECT_SUBMISSION,
        submission.pk,
        {"course_id": course.pk, "session_id": session.pk, "type_of_study": submission.type_of_study},
    )
    return submission


@transaction.atomic
def update_submission(actor, submission_id, *, course=None, session=None, type_of_study=None, title=None) -> Submission:
    """Edit metadata. Owner edits of a rejected submission reset it to DRAFT."""
    submission, roles = _visible(submission_id, actor)
    _check_editor(submission, actor, roles)

    changed: list[str] = []
    if course is not None:
        course = _resolve(Course, course, "Course")
        if course.pk != submission.course_id:
            if submission.status not in (SubmissionStatus.DRAFT, SubmissionStatus.REJECTED):
                raise InvalidStateError("The course can only be changed before review starts.")
            if not course.active:
                raise WorkflowValidationError("Course is not active.")
            submission.course = course
            changed.append("course")
    if session is not None:
        session = _resolve(AcademicSession, session, "Academic session")
        if session.pk != submission.session_id:
            submission.session = session
            changed.append("session")
    if type_of_study is not None and type_of_study != submission.type_of_study:
        submission.type_of_study = _check_type_of_study(type_of_study)
        changed.append("type_of_study")
    if title is not None and title.strip() != submission.title:
        submission.title = title.strip()
        changed.append("title")
    if not changed:
        return submission

    details: dict[str, Any] = {"fields": changed}
    details.update(_reset_if_rejected(submission, actor))
    _commit(submission)
    ledger.record(AuditAction.SUBMISSION_UPDATED, actor, ledger.SUBJECT_SUBMISSION, submission.pk, details)
    return submission


@transaction.atomic
def submit_for_review(actor, submission_id) -> Submission:
    submission, roles = _visible(submission_id, actor)
    _require(_is_owner(submission, actor), "Only the owner may submit for review.")
    if not can_proceed(submission.submit):
        if submission.status == SubmissionStatus.REJECTED:
            raise InvalidStateError("Edit the rejected submission before resubmitting it.")
        raise InvalidStateError("Only draft submissions can be submitted.")

    if settings.WORKFLOW_ENFORCE_REQUIRED_DOCUMENTS:
        missing = submission.missing_required_types()
        if missing:
            raise WorkflowValidationError({"missing_documents": missing})
    coordinator = resolve_coordinator(submission.course)
    if coordinator is None and settings.WORKFLOW_REQUIRE_COORDINATOR:
        raise InvalidStateError("No active coordinator is assigned to this course; contact the administrator.")

    resubmission = submission.rejected_at is not None
    submission.submit(coordinator=coordinator)
    _commit(submission)
    details: dict[str, Any] = {"coordinator_id": getattr(coordinator, "pk", None), "resubmission": resubmission}
    if resubmission:
        details["previous_rejection_reason"] = submission.rejection_reason
    ledger.record(AuditAction.SUBMISSION_SUBMITTED, actor, ledger.SUBJECT_SUBMISSION, submission.pk, details)
    return submission


@transaction.atomic
def delete_submission(actor, submission_id) -> None:
    """Delete a draft with its documents; stored files go after commit."""
    submission, roles = _visible(submission_id, actor)
    _require(_is_owner(submission, actor), "Only the owner may delete a submission.")
    if submission.status != SubmissionStatus.DRAFT:
        raise InvalidStateError("Only draft submissions can be deleted.")
    files = [n for n in submission.documents.values_list("file", flat=True) if n]
    details = {"course_id": submission.course_id, "documents": submission.documents.count()}
    pk = submission.pk
    submission.delete()
    ledger.record(AuditAction.SUBMISSION_DELETED, actor, ledger.SUBJECT_SUBMISSION, pk, details)
    transaction.on_commit(lambda: storage.discard(files))


# Documents


@transaction.atomic
def upload_document(actor, submission_id, document_type, uploaded) -> Document:
    """Store `uploaded` then upsert the (submission, type) row.

    The file is written before the row; if anything after that fails the
    new file is removed again. A replaced file is removed after commit.
    """
    submission, roles = _visible(submission_id, actor)
    _check_editor(submission, actor, roles)
    document_type = _check_document_type(document_type)
    if uploaded is None:
        raise WorkflowValidationError("A file is required.")
    try:
        validate_upload(uploaded)
    except DjangoValidationError as exc:
        raise WorkflowValidationError({"file": list(exc.messages)})

    stored = storage.store(submission.pk, document_type, uploaded)
    try:
        doc, created = Document.objects.select_for_update().get_or_create(
            submission=submission, document_type=document_type
        )
        replaced = doc.clear_file()
        doc.file.name = stored
        doc.file_name = uploaded.name
        doc.size_bytes = getattr(uploaded, "size", 0) or 0
        doc.mime = getattr(uploaded, "content_type", "") or mimetypes.guess_type(uploaded.name)[0] or ""
        doc.not_applicable = False
        doc.uploaded_by = actor
        doc.save()
        details: dict[str, Any] = {
            "document_type": document_type,
            "file_name": doc.file_name,
            "size_bytes": doc.size_bytes,
            "replaced": bool(replaced) or not created,
        }
        details.update(_reset_if_rejected(submission, actor))
        _commit(submission)
        ledger.record(AuditAction.DOCUMENT_UPLOADED, actor, ledger.SUBJECT_SUBMISSION, submission.pk, details)
    except Exception:
        storage.discard([stored])
        raise
    if replaced:
        transaction.on_commit(lambda: storage.discard([replaced]))
    return doc


@transaction.atomic
def mark_document_not_applicable(actor, submission_id, document_type) -> Document:
    """Flag a slot as not applicable, clearing any stored file for it."""
    submission, roles = _visible(submission_id, actor)
    _check_editor(submission, actor, roles)
    document_type = _check_document_type(document_type)

    doc, _ = Document.objects.select_for_update().get_or_create(submission=submission, document_type=document_type)
    cleared = doc.clear_file()
    doc.not_applicable = True
    doc.uploaded_by = actor
    doc.save()
    details: dict[str, Any] = {"document_type": document_type, "cleared_file": bool(cleared)}
    details.update(_reset_if_rejected(submission, actor))
    _commit(submission)
    ledger.record(AuditAction.DOCUMENT_NOT_APPLICABLE, actor, ledger.SUBJECT_SUBMISSION, submission.pk, details)
    if cleared:
        transaction.on_commit(lambda: storage.discard([cleared]))
    return doc


@transaction.atomic
def remove_document(actor, submission_id, document_type) -> None:
    submission, roles = _visible(submission_id, actor)
    _check_editor(submission, actor, roles)
    document_type = _check_document_type(document_type)
    try:
        doc = Document.objects.select_for_update().get(submission=submission, document_type=document_type)
    except Document.DoesNotExist:
        raise NotFoundError("Document not found.")
    old = doc.file.name or ""
    doc.delete()
    details: dict[str, Any] = {"document_type": document_type, "had_file": bool(old)}
    details.update(_reset_if_rejected(submission, actor))
    _commit(submission)
    ledger.record(AuditAction.DOCUMENT_DELETED, actor, ledger.SUBJECT_SUBMISSION, submission.pk, details)
    if old:
        transaction.on_commit(lambda: storage.discard([old]))


# Review steps


@transaction.atomic
def coordinator_approve(actor, submission_id) -> Submission:
    submission, roles = _visible(submission_id, actor)
    _require(roles.is_coordinator, "Only the course coordinator may approve.")
    if not can_proceed(submission.coordinator_approve):
        raise InvalidStateError("Only submitted submissions can be approved by the coordinator.")
    dean = resolve_deputy_dean(submission.course)
    if dean is None:
        raise InvalidStateError("No deputy dean is assigned to this course; contact the administrator.")
    previous = submission.current_assignee_id
    submission.coordinator_approve(deputy_dean=dean)
    _commit(submission)
    ledger.record(
        AuditAction.COORDINATOR_APPROVED,
        actor,
        ledger.SUBJECT_SUBMISSION,
        submission.pk,
        {"assignee_before": previous, "assignee_after": dean.pk},
    )
    return submission


@transaction.atomic
def coordinator_reject(actor, submission_id, reason) -> Submission:
    submission, roles = _visible(submission_id, actor)
    _require(roles.is_coordinator, "Only the course coordinator may reject.")
    if not can_proceed(submission.coordinator_reject):
        raise InvalidStateError("Only submitted submissions can be rejected by the coordinator.")
    reason = _check_reason(reason)
    previous = submission.current_assignee_id
    submission.coordinator_reject(reason=reason)
    _commit(submission)
    ledger.record(
        AuditAction.COORDINATOR_REJECTED,
        actor,
        ledger.SUBJECT_SUBMISSION,
        submission.pk,
        {"reason": reason, "assignee_before": previous},
    )
    return submission


@transaction.atomic
def deputy_dean_endorse(actor, submission_id) -> Submission:
    submission, roles = _visible(submission_id, actor)
    _require(roles.is_deputy_dean, "Only the course's deputy dean may endorse.")
    if not can_proceed(submission.dean_endorse):
        raise InvalidStateError("Only coordinator-approved submissions can be endorsed.")
    previous = submission.current_assignee_id
    submission.dean_endorse()
    _commit(submission)
    ledger.record(
        AuditAction.DEAN_ENDORSED,
        actor,
        ledger.SUBJECT_SUBMISSION,
        submission.pk,
        {"assignee_before": previous},
    )
    return submission


@transaction.atomic
def deputy_dean_reject(actor, submission_id, reason) -> Submission:
    submission, roles = _visible(submission_id, actor)
    _require(roles.is_deputy_dean, "Only the course's deputy dean may reject.")
    if not can_proceed(submission.dean_reject):
        raise InvalidStateError("Only coordinator-approved submissions can be rejected by the deputy dean.")
    reason = _check_reason(reason)
    previous = submission.current_assignee_id
    submission.dean_reject(reason=reason)
    _commit(submission)
    ledger.record(
        AuditAction.DEPUTY_DEAN_REJECTED,
        actor,
        ledger.SUBJECT_SUBMISSION,
        submission.pk,
        {"reason": reason, "assignee_before": previous},
    )
    return submission


# Reads


def get_submission(actor, submission_id) -> Submission:
    submission, _ = _visible(submission_id, actor, lock=False)
    return submission


def list_own_submissions(actor, status: str | None = None):
    qs = Submission.objects.filter(owner=actor).select_related("course", "session", "current_assignee")
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at", "-id")


def open_document(actor, document_id):
    """Return `(document, file handle)` for a visible, stored document."""
    try:
        doc = Document.objects.select_related("submission").get(pk=document_id)
    except (Document.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Document not found.")
    try:
        _visible(doc.submission_id, actor, lock=False)
    except NotFoundError:
        raise NotFoundError("Document not found.")
    if doc.not_applicable or not doc.file:
        raise NotFoundError("Document has no stored file.")
    return doc, storage.retrieve(doc.file.name)


# Directory changes


def realign_assignees(actor, course_ids) -> int:
    """Point in-flight submissions of `course_ids` at their current reviewer.

    Called by the assignment directory inside its transaction. Each
    submission whose assignee changes gets its own ledger entry.
    """
    moved = 0
    in_flight = (
        Submission.objects.select_for_update()
        .select_related("course")
        .filter(
            course_id__in=list(course_ids),
            status__in=[SubmissionStatus.SUBMITTED, SubmissionStatus.COORDINATOR_APPROVED],
        )
        .order_by("id")
    )
    for submission in in_flight:
        if submission.status == SubmissionStatus.SUBMITTED:
            reviewer = resolve_coordinator(submission.course)
        else:
            reviewer = resolve_deputy_dean(submission.course)
        new_id = getattr(reviewer, "pk", None)
        if new_id == submission.current_assignee_id:
            continue
        previous = submission.current_assignee_id
        submission.current_assignee = reviewer
        _commit(submission)
        ledger.record(
            AuditAction.SUBMISSION_REASSIGNED,
            actor,
            ledger.SUBJECT_SUBMISSION,
            submission.pk,
            {"assignee_before": previous, "assignee_after": new_id, "status": submission.status},
        )
        moved += 1
    if moved:
        logger.info("reassigned %d in-flight submissions", moved)
    return moved
