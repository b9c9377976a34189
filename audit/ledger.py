"""Append-only audit ledger.

`record()` is the only write path. It is called inside the same
transaction as the state change it describes, so a rolled-back change
never leaves an entry behind. Retention is bounded by
`AUDIT_LOG_MAX_ENTRIES`; trimming always removes the oldest entries.
"""
from __future__ import annotations

import logging
from typing import Any

from django.conf import settings
from django.db.models import QuerySet

from .models import AuditAction, AuditLogEntry

logger = logging.getLogger(__name__)

SUBJECT_SUBMISSION = "submission"
SUBJECT_DOCUMENT = "document"
SUBJECT_COURSE_ASSIGNMENT = "course_role_assignment"
SUBJECT_FACULTY_ASSIGNMENT = "faculty_role_assignment"
SUBJECT_USER = "user"
SUBJECT_SCHOOL = "school"
SUBJECT_SESSION = "session"
SUBJECT_COURSE = "course"


def record(
    action: AuditAction | str,
    actor,
    subject_type: str,
    subject_id: Any,
    details: dict[str, Any] | None = None,
) -> AuditLogEntry:
    """Append one entry and trim the ledger if it exceeds its bound."""
    is_user = actor is not None and getattr(actor, "pk", None) is not None
    entry = AuditLogEntry.objects.create(
        actor=actor if is_user else None,
        actor_username=actor.get_username() if is_user else "",
        action=action,
        subject_type=subject_type,
        subject_id="" if subject_id is None else str(subject_id),
        details=details or {},
    )
    logger.info(
        "audit %s by %s on %s:%s",
        entry.action,
        entry.actor_username or "system",
        subject_type,
        entry.subject_id,
    )
    bound = getattr(settings, "AUDIT_LOG_MAX_ENTRIES", None)
    if bound:
        prune(bound)
    return entry


def entries(
    *,
    action: str | None = None,
    subject_type: str | None = None,
    subject_id: Any = None,
    actor=None,
) -> QuerySet[AuditLogEntry]:
    """Return ledger entries newest-first, optionally filtered."""
    qs = AuditLogEntry.objects.select_related("actor")
    if action:
        qs = qs.filter(action=action)
    if subject_type:
        qs = qs.filter(subject_type=subject_type)
    if subject_id is not None:
        qs = qs.filter(subject_id=str(subject_id))
    if actor is not None:
        qs = qs.filter(actor=actor)
    return qs.newest_first()


def prune(max_entries: int) -> int:
    """Delete the oldest entries beyond `max_entries`; return how many went.

    Insertion order is id order, so everything older than the
    `max_entries`-th newest id is removed and the survivors keep their
    relative order.
    """
    if max_entries <= 0:
        return 0
    newest_ids = AuditLogEntry.objects.order_by("-id").values_list("id", flat=True)
    cutoff = list(newest_ids[max_entries - 1 : max_entries])
    if not cutoff:
        return 0
    deleted, _ = AuditLogEntry.objects.filter(id__lt=cutoff[0]).delete()
    if deleted:
        logger.debug("pruned %d audit entries older than id %d", deleted, cutoff[0])
    return deleted
