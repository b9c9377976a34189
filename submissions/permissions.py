"""Transition permission callables.

django-fsm calls each of these as `permission(instance, user)` when
listing the transitions a user may take (`available_actions` in the
API). The workflow itself checks roles through `RoleSet` before it
calls a transition.
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from assignments.roles import resolve_roles

if TYPE_CHECKING:
    from .models import Submission


def is_owner(submission: "Submission", user) -> bool:
    return bool(getattr(user, "is_authenticated", False) and submission.owner_id == user.pk)


def is_course_coordinator(submission: "Submission", user) -> bool:
    return resolve_roles(user, submission.course).is_coordinator


def is_course_deputy_dean(submission: "Submission", user) -> bool:
    return resolve_roles(user, submission.course).is_deputy_dean
