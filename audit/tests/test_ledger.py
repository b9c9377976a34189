from __future__ import annotations

import pytest
from django.contrib.auth import get_user_model
from freezegun import freeze_time

from audit import ledger
from audit.models import AuditAction, AuditLogEntry, ImmutableEntryError


User = get_user_model()


@pytest.mark.django_db
def test_entries_are_newest_first_and_filterable():
    u = User.objects.create_user(username="clerk", password="x")
    with freeze_time("2025-01-01 10:00:00"):
        ledger.record(AuditAction.SCHOOL_CREATED, u, ledger.SUBJECT_SCHOOL, 1, {"code": "FSKTM"})
    with freeze_time("2025-01-01 11:00:00"):
        ledger.record(AuditAction.COURSE_CREATED, u, ledger.SUBJECT_COURSE, 7)
    with freeze_time("2025-01-01 12:00:00"):
        ledger.record(AuditAction.COURSE_UPDATED, None, ledger.SUBJECT_COURSE, 7)

    actions = [e.action for e in ledger.entries()]
    assert actions == [AuditAction.COURSE_UPDATED, AuditAction.COURSE_CREATED, AuditAction.SCHOOL_CREATED]

    course_entries = ledger.entries(subject_type=ledger.SUBJECT_COURSE, subject_id=7)
    assert course_entries.count() == 2
    assert ledger.entries(actor=u).count() == 2
    assert ledger.entries(action=AuditAction.SCHOOL_CREATED).get().details == {"code": "FSKTM"}


@pytest.mark.django_db
def test_system_actor_is_recorded_without_user():
    e = ledger.record(AuditAction.USER_CREATED, None, ledger.SUBJECT_USER, 3)
    assert e.actor is None
    assert e.actor_username == ""
    assert e.subject_id == "3"


@pytest.mark.django_db
def test_entries_survive_actor_deletion():
    u = User.objects.create_user(username="temp", password="x")
    ledger.record(AuditAction.SCHOOL_CREATED, u, ledger.SUBJECT_SCHOOL, 1)
    u.delete()
    e = AuditLogEntry.objects.get()
    assert e.actor is None
    assert e.actor_username == "temp"


@pytest.mark.django_db
def test_entries_cannot_be_modified_or_deleted():
    e = ledger.record(AuditAction.SCHOOL_CREATED, None, ledger.SUBJECT_SCHOOL, 1)
    e.details = {"tampered": True}
    with pytest.raises(ImmutableEntryError):
        e.save()
    with pytest.raises(ImmutableEntryError):
        e.delete()
    with pytest.raises(ImmutableEntryError):
        AuditLogEntry.objects.filter(pk=e.pk).update(action=AuditAction.SCHOOL_DELETED)
    assert AuditLogEntry.objects.get(pk=e.pk).details == {}


@pytest.mark.django_db
def test_prune_drops_oldest_and_keeps_order():
    for i in range(6):
        ledger.record(AuditAction.COURSE_UPDATED, None, ledger.SUBJECT_COURSE, i)
    removed = ledger.prune(4)
    assert removed == 2
    assert [e.subject_id for e in ledger.entries()] == ["5", "4", "3", "2"]
    # Already within bound: nothing to do
    assert ledger.prune(4) == 0
    assert ledger.prune(0) == 0


@pytest.mark.django_db
def test_record_enforces_configured_bound(settings):
    settings.AUDIT_LOG_MAX_ENTRIES = 3
    for i in range(5):
        ledger.record(AuditAction.COURSE_UPDATED, None, ledger.SUBJECT_COURSE, i)
    assert AuditLogEntry.objects.count() == 3
    assert [e.subject_id for e in ledger.entries()] == ["4", "3", "2"]
