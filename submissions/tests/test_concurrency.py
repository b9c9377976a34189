"""Two callers racing the same step: exactly one wins."""
import pytest
from django.db import transaction
from django_fsm import ConcurrentTransition

from audit import ledger
from audit.models import AuditAction
from core.exceptions import ConflictError
from submissions import workflow
from submissions.models import Submission, SubmissionStatus


@pytest.mark.django_db
def test_stale_instance_cannot_overwrite_transition(submitted, dean):
    s = submitted()
    first = Submission.objects.get(pk=s.pk)
    second = Submission.objects.get(pk=s.pk)

    first.coordinator_approve(deputy_dean=dean)
    first.save()

    second.coordinator_reject(reason="late")
    with pytest.raises(ConcurrentTransition), transaction.atomic():
        second.save()
    assert Submission.objects.get(pk=s.pk).status == SubmissionStatus.COORDINATOR_APPROVED


@pytest.mark.django_db
def test_lost_race_surfaces_as_conflict(monkeypatch, submitted, coordinator):
    s = submitted()
    stale = Submission.objects.get(pk=s.pk)
    workflow.coordinator_approve(coordinator, s.pk)

    monkeypatch.setattr(workflow, "_load", lambda submission_id, lock=True: stale)
    with pytest.raises(ConflictError):
        workflow.coordinator_reject(coordinator, s.pk, "too late")

    fresh = Submission.objects.get(pk=s.pk)
    assert fresh.status == SubmissionStatus.COORDINATOR_APPROVED
    assert fresh.rejection_reason == ""
    assert not ledger.entries(action=AuditAction.COORDINATOR_REJECTED).exists()
