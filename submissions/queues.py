"""Reviewer queues and dashboard.

Queues are FIFO on the timestamp that put the submission in front of
the reviewer; ties are broken by id so repeated reads return the same
order.
"""
from __future__ import annotations

from django.db.models import Q, QuerySet

from accounts.models import Privilege, has_privilege
from assignments.roles import coordinator_course_ids, deputy_dean_course_ids

from .models import Submission, SubmissionStatus

DEAN_VISIBLE = (SubmissionStatus.COORDINATOR_APPROVED, SubmissionStatus.DEAN_ENDORSED)


def _base() -> QuerySet[Submission]:
    return Submission.objects.select_related("owner", "course", "session", "current_assignee")


def coordinator_queue(user) -> QuerySet[Submission]:
    """Submitted work for the courses `user` coordinates, oldest first."""
    return _base().filter(
        status=SubmissionStatus.SUBMITTED,
        course_id__in=coordinator_course_ids(user),
    ).order_by("submitted_at", "id")


def deputy_dean_queue(user) -> QuerySet[Submission]:
    """Coordinator-approved work awaiting `user`, oldest approval first.

    Includes courses covered through the school-level fallback.
    """
    return _base().filter(
        status=SubmissionStatus.COORDINATOR_APPROVED,
        course_id__in=deputy_dean_course_ids(user),
    ).order_by("coordinator_approved_at", "id")


def dashboard(user) -> QuerySet[Submission]:
    """Everything `user` may oversee, as the union of their roles.

    - ADMIN: every non-draft submission
    - coordinator: non-draft submissions of coordinated courses
    - deputy dean: approved or endorsed submissions of their courses
    """
    qs = _base().order_by("-submitted_at", "-id")
    if not getattr(user, "is_authenticated", False):
        return qs.none()
    if has_privilege(user, Privilege.ADMIN):
        return qs.exclude(status=SubmissionStatus.DRAFT)

    scope = Q()
    coordinated = coordinator_course_ids(user)
    if coordinated:
        scope |= Q(course_id__in=coordinated) & ~Q(status=SubmissionStatus.DRAFT)
    deaned = deputy_dean_course_ids(user)
    if deaned:
        scope |= Q(course_id__in=deaned, status__in=DEAN_VISIBLE)
    if not (coordinated or deaned):
        return qs.none()
    return qs.filter(scope)
