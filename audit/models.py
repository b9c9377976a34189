"""Audit ledger model: one immutable row per state-changing action.

Entries reference their subject by type and id rather than by foreign
key so that they outlive the entity they describe (deleted submissions,
removed assignments, and so on).
"""
from __future__ import annotations

from django.conf import settings
from django.db import models
from django.utils import timezone


class ImmutableEntryError(Exception):
    """Raised on any attempt to modify or delete a written ledger entry."""


class AuditAction(models.TextChoices):
    SUBMISSION_CREATED = "SUBMISSION_CREATED", "Submission created"
    SUBMISSION_UPDATED = "SUBMISSION_UPDATED", "Submission updated"
    SUBMISSION_SUBMITTED = "SUBMISSION_SUBMITTED", "Submission submitted for review"
    SUBMISSION_DELETED = "SUBMISSION_DELETED", "Submission deleted"
    SUBMISSION_REASSIGNED = "SUBMISSION_REASSIGNED", "Submission reassigned"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED", "Document uploaded"
    DOCUMENT_NOT_APPLICABLE = "DOCUMENT_NOT_APPLICABLE", "Document marked not applicable"
    DOCUMENT_DELETED = "DOCUMENT_DELETED", "Document deleted"
    COORDINATOR_APPROVED = "COORDINATOR_APPROVED", "Coordinator approved"
    COORDINATOR_REJECTED = "COORDINATOR_REJECTED", "Coordinator rejected"
    DEAN_ENDORSED = "DEAN_ENDORSED", "Deputy dean endorsed"
    DEPUTY_DEAN_REJECTED = "DEPUTY_DEAN_REJECTED", "Deputy dean rejected"
    COURSE_ASSIGNMENT_CHANGED = "COURSE_ASSIGNMENT_CHANGED", "Course assignment changed"
    COURSE_ASSIGNMENT_TOGGLED = "COURSE_ASSIGNMENT_TOGGLED", "Course assignment toggled"
    COURSE_ASSIGNMENT_DELETED = "COURSE_ASSIGNMENT_DELETED", "Course assignment deleted"
    FACULTY_ASSIGNMENT_CHANGED = "FACULTY_ASSIGNMENT_CHANGED", "Faculty assignment changed"
    FACULTY_ASSIGNMENT_TOGGLED = "FACULTY_ASSIGNMENT_TOGGLED", "Faculty assignment toggled"
    FACULTY_ASSIGNMENT_DELETED = "FACULTY_ASSIGNMENT_DELETED", "Faculty assignment deleted"
    PRIVILEGE_GRANTED = "PRIVILEGE_GRANTED", "Privilege granted"
    PRIVILEGE_REVOKED = "PRIVILEGE_REVOKED", "Privilege revoked"
    USER_CREATED = "USER_CREATED", "User created"
    USER_UPDATED = "USER_UPDATED", "User updated"
    USER_DELETED = "USER_DELETED", "User deleted"
    SCHOOL_CREATED = "SCHOOL_CREATED", "School created"
    SCHOOL_UPDATED = "SCHOOL_UPDATED", "School updated"
    SCHOOL_DELETED = "SCHOOL_DELETED", "School deleted"
    SESSION_CREATED = "SESSION_CREATED", "Session created"
    SESSION_UPDATED = "SESSION_UPDATED", "Session updated"
    SESSION_DELETED = "SESSION_DELETED", "Session deleted"
    COURSE_CREATED = "COURSE_CREATED", "Course created"
    COURSE_UPDATED = "COURSE_UPDATED", "Course updated"
    COURSE_DELETED = "COURSE_DELETED", "Course deleted"


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):
        raise ImmutableEntryError("Audit log entries cannot be updated.")

    def newest_first(self):
        return self.order_by("-created_at", "-id")


class AuditLogEntry(models.Model):
    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=64, choices=AuditAction.choices, db_index=True)
    subject_type = models.CharField(max_length=64, db_index=True)
    subject_id = models.CharField(max_length=64, blank=True)
    # Kept alongside the FK so the trail survives user deletion.
    actor_username = models.CharField(max_length=150, blank=True)
    details = models.JSONField(default=dict, blank=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [models.Index(fields=["subject_type", "subject_id"], name="audit_subject_idx")]
        verbose_name_plural = "audit log entries"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ImmutableEntryError("Audit log entries are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ImmutableEntryError("Audit log entries cannot be deleted individually.")

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.created_at:%Y-%m-%d %H:%M} {self.action} {self.subject_type}:{self.subject_id}"
