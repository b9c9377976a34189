from __future__ import annotations

import pytest

from courses.models import Course
from submissions.models import DocumentType, REQUIRED_DOCUMENT_TYPES


@pytest.mark.django_db
def test_course_list_pagination_caps_page_size(api, lecturer, school):
    Course.objects.bulk_create(Course(code=f"C{i:03d}", name=f"Course {i}", school=school) for i in range(120))
    client = api(lecturer)
    data = client.get("/api/v1/courses/", {"page_size": 500}).json()
    assert data["count"] == 120
    assert len(data["results"]) == 100
    assert {"count", "next", "previous"} <= set(data)
    assert len(client.get("/api/v1/courses/", {"page_size": 5}).json()["results"]) == 5


@pytest.mark.django_db
def test_course_list_filters_and_search(api, lecturer, school, course):
    Course.objects.create(code="MA101", name="Calculus", school=school, active=False)
    client = api(lecturer)
    assert [c["code"] for c in client.get("/api/v1/courses/", {"active": "true"}).json()["results"]] == ["CS101"]
    assert [c["code"] for c in client.get("/api/v1/courses/", {"search": "calc"}).json()["results"]] == ["MA101"]
    assert client.get("/api/v1/courses/", {"school": school.pk}).json()["count"] == 2


@pytest.mark.django_db
def test_document_types_lists_taxonomy(api, lecturer):
    data = api(lecturer).get("/api/v1/document-types").json()
    assert data["count"] == len(DocumentType)
    required = {row["code"] for row in data["results"] if row["required"]}
    assert required == {t.value for t in REQUIRED_DOCUMENT_TYPES}
