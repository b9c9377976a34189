"""Submission and document models.

`Submission.status` is a django-fsm field; each review step is a
transition declared below with its source, target and permission.
`ConcurrentTransitionMixin` turns every save into
`UPDATE ... WHERE status = <status when loaded>`, so two callers racing
the same step cannot both succeed.
"""
from __future__ import annotations

import mimetypes
from pathlib import Path

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone
from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from courses.models import AcademicSession, Course

from . import permissions


ALLOWED_MIME = {
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "application/vnd.ms-excel",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
    "text/plain",
    "image/jpeg",
    "image/png",
}
ALLOWED_EXT = {".pdf", ".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".txt", ".jpg", ".jpeg", ".png"}


def validate_upload(file) -> None:
    """Validate size against DOCUMENT_UPLOAD_MAX_BYTES plus extension/MIME.

    The MIME type is guessed from the filename; content sniffing is left
    to the storage layer.
    """
    max_bytes = settings.DOCUMENT_UPLOAD_MAX_BYTES
    size = getattr(file, "size", None)
    if size is not None and size > max_bytes:
        raise ValidationError(f"File too large (max {max_bytes // (1024 * 1024)} MB)")
    name = getattr(file, "name", "") or ""
    ext = Path(name).suffix.lower()
    if ext not in ALLOWED_EXT:
        raise ValidationError("Unsupported file type. Allowed: PDF, DOC(X), XLS(X), PPT(X), TXT, JPG, PNG.")
    guessed, _ = mimetypes.guess_type(name)
    if guessed and guessed not in ALLOWED_MIME:
        raise ValidationError("Unsupported MIME type")


class SubmissionStatus(models.TextChoices):
    DRAFT = "DRAFT", "Draft"
    SUBMITTED = "SUBMITTED", "Submitted"
    COORDINATOR_APPROVED = "COORDINATOR_APPROVED", "Approved by coordinator"
    DEAN_ENDORSED = "DEAN_ENDORSED", "Endorsed by deputy dean"
    REJECTED = "REJECTED", "Rejected"


class TypeOfStudy(models.TextChoices):
    UNDERGRADUATE = "UNDERGRADUATE", "Undergraduate"
    POSTGRADUATE = "POSTGRADUATE", "Postgraduate"


class DocumentType(models.TextChoices):
    """QP004 (examination) and QP005 (course file) document slots."""

    QP004_TEST_SPEC = "QP004_TEST_SPEC", "Test specification table"
    QP004_FINAL_QUESTION = "QP004_FINAL_QUESTION", "Final examination question paper"
    QP004_FINAL_ANSWER = "QP004_FINAL_ANSWER", "Final examination answer scheme"
    QP005_APPOINTMENT = "QP005_APPOINTMENT", "Appointment letter"
    QP005_SCHEDULE = "QP005_SCHEDULE", "Teaching schedule"
    QP005_SYLLABUS = "QP005_SYLLABUS", "Syllabus"
    QP005_SOW = "QP005_SOW", "Scheme of work"
    QP005_MIDSEM_QUESTION = "QP005_MIDSEM_QUESTION", "Mid-semester question paper"
    QP005_MIDSEM_ANSWER = "QP005_MIDSEM_ANSWER", "Mid-semester answer scheme"
    QP005_ASSIGNMENT = "QP005_ASSIGNMENT", "Assignment"
    QP005_TUTORIAL = "QP005_TUTORIAL", "Tutorial"
    QP005_QUIZ = "QP005_QUIZ", "Quiz"
    QP005_AOL = "QP005_AOL", "Assurance of learning"


REQUIRED_DOCUMENT_TYPES = (
    DocumentType.QP004_TEST_SPEC,
    DocumentType.QP004_FINAL_QUESTION,
    DocumentType.QP004_FINAL_ANSWER,
    DocumentType.QP005_APPOINTMENT,
    DocumentType.QP005_SCHEDULE,
    DocumentType.QP005_SYLLABUS,
    DocumentType.QP005_SOW,
    DocumentType.QP005_MIDSEM_QUESTION,
    DocumentType.QP005_MIDSEM_ANSWER,
)


class Submission(ConcurrentTransitionMixin, models.Model):
    """A lecturer's course-file submission moving through review."""

    OWNER_EDITABLE = (SubmissionStatus.DRAFT, SubmissionStatus.REJECTED, SubmissionStatus.SUBMITTED)
    UNASSIGNED = (SubmissionStatus.DRAFT, SubmissionStatus.DEAN_ENDORSED, SubmissionStatus.REJECTED)

    owner = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="submissions")
    course = models.ForeignKey(Course, on_delete=models.PROTECT, related_name="submissions")
    session = models.ForeignKey(AcademicSession, on_delete=models.PROTECT, related_name="submissions")
    type_of_study = models.CharField(max_length=16, choices=TypeOfStudy.choices)
    title = models.CharField(max_length=200, blank=True)
    status = FSMField(default=SubmissionStatus.DRAFT, choices=SubmissionStatus.choices, db_index=True)
    current_assignee = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="assigned_submissions",
    )
    rejection_reason = models.TextField(blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    coordinator_approved_at = models.DateTimeField(null=True, blank=True)
    dean_endorsed_at = models.DateTimeField(null=True, blank=True)
    rejected_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["course", "status"], name="submission_course_status_idx")]

    def __str__(self) -> str:  # pragma: no cover
        return f"#{self.pk} {self.course_id} [{self.status}]"

    # Transitions. Bodies only set fields; the workflow saves and logs.

    @transition(field=status, source=SubmissionStatus.DRAFT, target=SubmissionStatus.SUBMITTED, permission=permissions.is_owner)
    def submit(self, coordinator=None):
        self.current_assignee = coordinator
        self.submitted_at = timezone.now()

    @transition(
        field=status,
        source=SubmissionStatus.SUBMITTED,
        target=SubmissionStatus.COORDINATOR_APPROVED,
        permission=permissions.is_course_coordinator,
    )
    def coordinator_approve(self, deputy_dean=None):
        self.current_assignee = deputy_dean
        self.coordinator_approved_at = timezone.now()

    @transition(
        field=status,
        source=SubmissionStatus.SUBMITTED,
        target=SubmissionStatus.REJECTED,
        permission=permissions.is_course_coordinator,
    )
    def coordinator_reject(self, reason: str = ""):
        self._reject(reason)

    @transition(
        field=status,
        source=SubmissionStatus.COORDINATOR_APPROVED,
        target=SubmissionStatus.DEAN_ENDORSED,
        permission=permissions.is_course_deputy_dean,
    )
    def dean_endorse(self):
        self.current_assignee = None
        self.dean_endorsed_at = timezone.now()

    @transition(
        field=status,
        source=SubmissionStatus.COORDINATOR_APPROVED,
        target=SubmissionStatus.REJECTED,
        permission=permissions.is_course_deputy_dean,
    )
    def dean_reject(self, reason: str = ""):
        self._reject(reason)

    @transition(field=status, source=SubmissionStatus.REJECTED, target=SubmissionStatus.DRAFT, permission=permissions.is_owner)
    def reopen(self):
        self.current_assignee = None

    def _reject(self, reason: str) -> None:
        self.current_assignee = None
        self.rejected_at = timezone.now()
        self.rejection_reason = reason

    def missing_required_types(self) -> list[str]:
        present = set(self.documents.values_list("document_type", flat=True))
        return [t.value for t in REQUIRED_DOCUMENT_TYPES if t.value not in present]


def document_upload_to(instance: "Document", filename: str) -> str:
    return f"submissions/{instance.submission_id}/{instance.document_type}_{filename}"


class Document(models.Model):
    """One slot of a submission: a stored file or a not-applicable marker."""

    submission = models.ForeignKey(Submission, on_delete=models.CASCADE, related_name="documents")
    document_type = models.CharField(max_length=32, choices=DocumentType.choices)
    file = models.FileField(upload_to=document_upload_to, blank=True)
    file_name = models.CharField(max_length=255, blank=True)
    size_bytes = models.PositiveBigIntegerField(default=0)
    mime = models.CharField(max_length=100, blank=True)
    not_applicable = models.BooleanField(default=False)
    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name="+"
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("submission", "document_type")
        ordering = ["submission_id", "document_type"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.submission_id}:{self.document_type}"

    @property
    def is_required(self) -> bool:
        return self.document_type in REQUIRED_DOCUMENT_TYPES

    def clear_file(self) -> str:
        """Drop the file reference and metadata; return the old storage name."""
        old = self.file.name or ""
        self.file = ""
        self.file_name = ""
        self.size_bytes = 0
        self.mime = ""
        return old
