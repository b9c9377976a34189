"""Course and faculty reviewer assignments.

A course has at most one `CourseRoleAssignment` naming its coordinator
and deputy dean. A school has at most one `FacultyRoleAssignment` whose
deputy dean covers the school's courses when no course-level deputy
dean is active. Rows are toggled rather than rewritten, and every change
is traced in the audit ledger, not here.
"""
from __future__ import annotations

from django.conf import settings
from django.db import models

from courses.models import Course, School


class CourseRoleAssignment(models.Model):
    course = models.OneToOneField(Course, on_delete=models.CASCADE, related_name="role_assignment")
    coordinator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="coordinated_courses",
    )
    deputy_dean = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="deputy_dean_courses",
    )
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["course__code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.course_id}: C={self.coordinator_id} DD={self.deputy_dean_id}"

    def snapshot(self) -> dict:
        """Ids captured in ledger payloads."""
        return {
            "coordinator_id": self.coordinator_id,
            "deputy_dean_id": self.deputy_dean_id,
            "active": self.active,
        }


class FacultyRoleAssignment(models.Model):
    """School-level deputy dean, used only as a fallback for course review."""

    school = models.OneToOneField(School, on_delete=models.CASCADE, related_name="faculty_assignment")
    deputy_dean = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="faculty_assignments",
    )
    active = models.BooleanField(default=True, db_index=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["school__code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.school_id}: DD={self.deputy_dean_id}"

    def snapshot(self) -> dict:
        return {"deputy_dean_id": self.deputy_dean_id, "active": self.active}
