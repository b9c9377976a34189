"""Reference data: schools, academic sessions and courses.

A `Course` always belongs to an existing `School`; schools with courses
cannot be removed (enforced with `PROTECT` and surfaced by the services
as a conflict).
"""
from __future__ import annotations

from django.db import models


class School(models.Model):
    """A school, department or faculty owning courses."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} {self.name}"


class AcademicSession(models.Model):
    """Teaching session a submission is filed against, e.g. `2024/2025-1`."""

    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200, blank=True)
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-code"]

    def __str__(self) -> str:  # pragma: no cover
        return self.code


class Course(models.Model):
    code = models.CharField(max_length=32, unique=True)
    name = models.CharField(max_length=200)
    school = models.ForeignKey(School, on_delete=models.PROTECT, related_name="courses")
    active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.code} {self.name}"
