"""Shared pytest fixtures: people, reference data and a wired course.

`wired_course` is the usual starting point for workflow tests: a course
in a school with an active coordinator and deputy dean, an open session
and a lecturer who owns nothing yet.
"""
import logging

import pytest
from django.contrib.auth import get_user_model
from django.core.files.uploadedfile import SimpleUploadedFile
from rest_framework.test import APIClient

from accounts.models import Privilege, UserPrivilege
from assignments.models import CourseRoleAssignment
from courses.models import AcademicSession, Course, School

User = get_user_model()


@pytest.fixture(autouse=True)
def silence_django_request_logger():
    """Reduce noise from expected 4xx in passing tests.

    Many tests intentionally exercise 400/403/404/409 paths. Django logs
    these at WARNING via 'django.request'. Lower that logger to ERROR
    during tests to avoid clutter.
    """
    logger = logging.getLogger("django.request")
    old = logger.level
    logger.setLevel(logging.ERROR)
    try:
        yield
    finally:
        logger.setLevel(old)


def _user(username, *privileges):
    u = User.objects.create_user(username=username, password="pw", email=f"{username}@example.edu")
    for p in privileges:
        UserPrivilege.objects.create(user=u, privilege=p)
    return u


@pytest.fixture
def make_user(db):
    return _user


@pytest.fixture
def administrator(db):
    return _user("admin1", Privilege.ADMIN)


@pytest.fixture
def lecturer(db):
    return _user("lect1")


@pytest.fixture
def coordinator(db):
    return _user("coord1", Privilege.COORDINATOR)


@pytest.fixture
def dean(db):
    return _user("dean1", Privilege.DEPUTY_DEAN)


@pytest.fixture
def school(db):
    return School.objects.create(code="FSKTM", name="Computer Science")


@pytest.fixture
def session(db):
    return AcademicSession.objects.create(code="2024/2025-1", name="Semester 1")


@pytest.fixture
def course(school):
    return Course.objects.create(code="CS101", name="Programming I", school=school)


@pytest.fixture
def wired_course(course, coordinator, dean):
    CourseRoleAssignment.objects.create(course=course, coordinator=coordinator, deputy_dean=dean)
    return course


@pytest.fixture
def pdf():
    def _make(name="paper.pdf", body=b"%PDF-1.4 test"):
        return SimpleUploadedFile(name, body, content_type="application/pdf")

    return _make


@pytest.fixture
def api():
    """APIClient factory authenticated as the given user."""

    def _client(user=None):
        c = APIClient()
        if user is not None:
            c.force_authenticate(user=user)
        return c

    return _client
