from __future__ import annotations

import pytest
from django.contrib.auth.models import User
from django.test import Client


@pytest.mark.django_db
@pytest.mark.security
def test_session_post_without_csrf_is_rejected():
    User.objects.create_user(username="csrfu", password="pw")
    c = Client(enforce_csrf_checks=True)
    assert c.login(username="csrfu", password="pw")
    r = c.post("/api/v1/submissions/", {"course": 1, "session": 1, "type_of_study": "UNDERGRADUATE"})
    assert r.status_code == 403
    assert "CSRF" in r.json()["detail"]


@pytest.mark.django_db
@pytest.mark.security
def test_anonymous_cannot_reach_workflow_endpoints():
    c = Client()
    assert c.get("/api/v1/submissions/").status_code == 403
    assert c.get("/api/v1/reviews/coordinator/queue/").status_code == 403
    assert c.get("/api/v1/admin/audit-log/").status_code == 403
