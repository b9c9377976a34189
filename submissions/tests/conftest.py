import pytest

from submissions import workflow
from submissions.models import REQUIRED_DOCUMENT_TYPES, Document, TypeOfStudy


@pytest.fixture(autouse=True)
def media(settings, tmp_path):
    settings.MEDIA_ROOT = str(tmp_path)
    return tmp_path


@pytest.fixture
def draft(lecturer, wired_course, session):
    """Factory for a DRAFT submission whose required slots are all filled."""

    def _make(owner=None, course=None, complete=True):
        s = workflow.create_submission(
            owner or lecturer,
            course=course or wired_course,
            session=session,
            type_of_study=TypeOfStudy.UNDERGRADUATE,
            title="Course file",
        )
        if complete:
            Document.objects.bulk_create(
                Document(submission=s, document_type=t, not_applicable=True) for t in REQUIRED_DOCUMENT_TYPES
            )
        return s

    return _make


@pytest.fixture
def submitted(draft, lecturer):
    def _make(**kwargs):
        s = draft(**kwargs)
        return workflow.submit_for_review(kwargs.get("owner") or lecturer, s.pk)

    return _make


@pytest.fixture
def approved(submitted, coordinator):
    def _make(**kwargs):
        s = submitted(**kwargs)
        return workflow.coordinator_approve(coordinator, s.pk)

    return _make
