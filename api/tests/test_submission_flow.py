from __future__ import annotations

import pytest

from submissions.models import REQUIRED_DOCUMENT_TYPES, Submission

BASE = "/api/v1/submissions/"


def _create(client, course, session, **extra):
    payload = {"course": course.pk, "session": session.pk, "type_of_study": "UNDERGRADUATE", "title": "Course file"}
    payload.update(extra)
    return client.post(BASE, payload, format="json")


def _fill_required(client, pk):
    for t in REQUIRED_DOCUMENT_TYPES:
        r = client.post(f"{BASE}{pk}/documents/", {"document_type": t.value, "not_applicable": True}, format="json")
        assert r.status_code == 200, r.content


@pytest.mark.django_db
def test_anonymous_is_refused(api):
    assert api().get(BASE).status_code == 403
    assert api().get("/api/v1/reviews/coordinator/queue/").status_code == 403


@pytest.mark.django_db
def test_full_review_cycle_over_http(api, lecturer, coordinator, dean, wired_course, session, pdf):
    owner = api(lecturer)
    r = _create(owner, wired_course, session)
    assert r.status_code == 201, r.content
    body = r.json()
    pk = body["id"]
    assert body["status"] == "DRAFT"
    assert len(body["missing_documents"]) == len(REQUIRED_DOCUMENT_TYPES)
    assert body["available_actions"] == ["submit"]

    r = owner.post(f"{BASE}{pk}/documents/", {"document_type": "QP005_SYLLABUS", "file": pdf()}, format="multipart")
    assert r.status_code == 200, r.content
    assert r.json()["download_url"].endswith(f"/api/v1/documents/{r.json()['id']}/download/")
    _fill_required(owner, pk)

    r = owner.post(f"{BASE}{pk}/submit/")
    assert r.status_code == 200
    assert r.json()["status"] == "SUBMITTED"
    assert r.json()["current_assignee"]["username"] == "coord1"

    reviewer = api(coordinator)
    queue = reviewer.get("/api/v1/reviews/coordinator/queue/").json()
    assert [row["id"] for row in queue["results"]] == [pk]
    detail = reviewer.get(f"{BASE}{pk}/").json()
    assert detail["available_actions"] == ["coordinator_approve", "coordinator_reject"]

    r = reviewer.post(f"/api/v1/reviews/coordinator/{pk}/approve/")
    assert r.status_code == 200
    assert r.json()["current_assignee"]["username"] == "dean1"

    deputy = api(dean)
    assert [row["id"] for row in deputy.get("/api/v1/reviews/dean/queue/").json()["results"]] == [pk]
    r = deputy.post(f"/api/v1/reviews/dean/{pk}/reject/", {"reason": "incomplete syllabus"}, format="json")
    assert r.status_code == 200
    assert r.json()["status"] == "REJECTED"
    assert r.json()["rejection_reason"] == "incomplete syllabus"

    r = owner.patch(f"{BASE}{pk}/", {"title": "Revised"}, format="json")
    assert r.json()["status"] == "DRAFT"
    assert owner.post(f"{BASE}{pk}/submit/").json()["status"] == "SUBMITTED"
    reviewer.post(f"/api/v1/reviews/coordinator/{pk}/approve/")
    r = deputy.post(f"/api/v1/reviews/dean/{pk}/endorse/")
    assert r.json()["status"] == "DEAN_ENDORSED"
    assert r.json()["current_assignee"] is None


@pytest.mark.django_db
def test_error_kinds_map_to_status_codes(api, lecturer, coordinator, administrator, make_user, wired_course, session):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]

    # 404: invisible to an unrelated user
    r = api(make_user("stranger")).post(f"/api/v1/reviews/coordinator/{pk}/approve/")
    assert r.status_code == 404
    # 403: visible but lacking the role
    r = api(administrator).post(f"/api/v1/reviews/coordinator/{pk}/approve/")
    assert r.status_code == 403
    # 400 invalid state: the coordinator cannot approve a draft
    r = api(coordinator).post(f"/api/v1/reviews/coordinator/{pk}/approve/")
    assert r.status_code == 400
    assert "detail" in r.json()
    # 400 validation: missing required documents
    r = owner.post(f"{BASE}{pk}/submit/")
    assert r.status_code == 400
    assert "missing_documents" in r.json()
    assert Submission.objects.get(pk=pk).status == "DRAFT"


@pytest.mark.django_db
def test_reject_requires_reason(api, lecturer, coordinator, wired_course, session):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]
    _fill_required(owner, pk)
    owner.post(f"{BASE}{pk}/submit/")
    r = api(coordinator).post(f"/api/v1/reviews/coordinator/{pk}/reject/", {"reason": "  "}, format="json")
    assert r.status_code == 400
    assert Submission.objects.get(pk=pk).status == "SUBMITTED"


@pytest.mark.django_db
def test_document_upload_requires_exactly_one_of_file_or_flag(api, lecturer, wired_course, session, pdf):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]
    r = owner.post(f"{BASE}{pk}/documents/", {"document_type": "QP005_QUIZ"}, format="multipart")
    assert r.status_code == 400
    r = owner.post(
        f"{BASE}{pk}/documents/",
        {"document_type": "QP005_QUIZ", "file": pdf(), "not_applicable": "true"},
        format="multipart",
    )
    assert r.status_code == 400


@pytest.mark.django_db
def test_document_download_and_removal(api, lecturer, coordinator, make_user, wired_course, session, pdf):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]
    doc = owner.post(
        f"{BASE}{pk}/documents/", {"document_type": "QP005_SOW", "file": pdf("sow.pdf", b"%PDF-1.4 sow")}, format="multipart"
    ).json()

    r = owner.get(f"/api/v1/documents/{doc['id']}/download/")
    assert r.status_code == 200
    assert b"".join(r.streaming_content) == b"%PDF-1.4 sow"
    assert 'filename="sow.pdf"' in r.headers["Content-Disposition"]
    r.close()
    assert api(coordinator).get(f"/api/v1/documents/{doc['id']}/download/").status_code == 200
    assert api(make_user("outsider")).get(f"/api/v1/documents/{doc['id']}/download/").status_code == 404

    assert owner.delete(f"{BASE}{pk}/documents/QP005_SOW/").status_code == 204
    assert owner.delete(f"{BASE}{pk}/documents/QP005_SOW/").status_code == 404


@pytest.mark.django_db
def test_list_shows_only_own_submissions_and_filters(api, lecturer, make_user, wired_course, session):
    owner = api(lecturer)
    _create(owner, wired_course, session, title="Mine")
    _create(api(make_user("lect2")), wired_course, session, title="Theirs")
    rows = owner.get(BASE).json()["results"]
    assert [row["title"] for row in rows] == ["Mine"]
    assert owner.get(BASE, {"status": "SUBMITTED"}).json()["count"] == 0
    assert owner.get(BASE, {"search": "mine"}).json()["count"] == 1


@pytest.mark.django_db
def test_delete_draft(api, lecturer, wired_course, session):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]
    assert owner.delete(f"{BASE}{pk}/").status_code == 204
    assert owner.get(f"{BASE}{pk}/").status_code == 404


@pytest.mark.django_db
def test_dashboard_and_me(api, lecturer, coordinator, administrator, wired_course, session):
    owner = api(lecturer)
    pk = _create(owner, wired_course, session).json()["id"]
    _fill_required(owner, pk)
    owner.post(f"{BASE}{pk}/submit/")

    dash = api(administrator).get("/api/v1/reviews/dashboard/", {"status": "SUBMITTED"}).json()
    assert [row["id"] for row in dash["results"]] == [pk]
    assert api(lecturer).get("/api/v1/reviews/dashboard/").json()["count"] == 0

    me = api(coordinator).get("/api/v1/auth/me").json()
    assert me["username"] == "coord1"
    assert me["privileges"] == ["COORDINATOR"]
    assert me["coordinator_course_ids"] == [wired_course.pk]
    assert me["deputy_dean_course_ids"] == []
