from __future__ import annotations

import pytest

from accounts.models import Privilege
from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
from audit import ledger
from audit.models import AuditAction
from core.exceptions import ConflictError, ForbiddenError, WorkflowValidationError
from courses import services
from courses.models import AcademicSession, Course, School
from submissions.models import Submission, TypeOfStudy


@pytest.mark.django_db
def test_create_school_and_course_normalises_codes(administrator):
    school = services.create_school(administrator, code=" fsktm ", name="Computing")
    course = services.create_course(administrator, code="cs300", name="Compilers", school=school)
    assert school.code == "FSKTM"
    assert course.code == "CS300"
    assert ledger.entries(action=AuditAction.COURSE_CREATED).get().details == {"code": "CS300", "school_id": school.pk}


@pytest.mark.django_db
def test_duplicate_codes_conflict(administrator, school, session, course):
    with pytest.raises(ConflictError):
        services.create_school(administrator, code=school.code.lower(), name="Again")
    with pytest.raises(ConflictError):
        services.create_session(administrator, code=session.code)
    with pytest.raises(ConflictError):
        services.create_course(administrator, code="cs101", name="Again", school=school)
    other = services.create_course(administrator, code="CS102", name="Programming II", school=school)
    with pytest.raises(ConflictError):
        services.update_course(administrator, other, code="CS101")


@pytest.mark.django_db
def test_inputs_validated_and_admin_required(administrator, lecturer, school):
    with pytest.raises(WorkflowValidationError):
        services.create_course(administrator, code="", name="Nameless", school=school)
    with pytest.raises(WorkflowValidationError):
        services.create_course(administrator, code="CS9", name="No school", school=None)
    with pytest.raises(ForbiddenError):
        services.create_school(lecturer, code="X", name="X")


@pytest.mark.django_db
def test_update_logs_changed_fields_only(administrator, course):
    services.update_course(administrator, course, name=course.name)
    assert not ledger.entries(action=AuditAction.COURSE_UPDATED).exists()
    services.update_course(administrator, course, name="Programming One", active=False)
    course.refresh_from_db()
    assert course.active is False
    assert ledger.entries(action=AuditAction.COURSE_UPDATED).get().details == {"fields": ["name", "active"]}


@pytest.mark.django_db
def test_school_with_courses_cannot_be_deleted(administrator, course):
    with pytest.raises(ConflictError):
        services.delete_school(administrator, course.school)
    assert School.objects.filter(pk=course.school_id).exists()


@pytest.mark.django_db
def test_delete_school_removes_faculty_assignment_first(administrator, dean):
    school = School.objects.create(code="FEP", name="Economics")
    FacultyRoleAssignment.objects.create(school=school, deputy_dean=dean)
    services.delete_school(administrator, school)
    actions = [e.action for e in ledger.entries()]
    assert actions == [AuditAction.SCHOOL_DELETED, AuditAction.FACULTY_ASSIGNMENT_DELETED]


@pytest.mark.django_db
def test_delete_course_cascades_assignment_with_separate_entry(administrator, wired_course, coordinator, dean):
    assignment_id = wired_course.role_assignment.pk
    course_id = wired_course.pk
    services.delete_course(administrator, wired_course)

    assert not Course.objects.filter(pk=course_id).exists()
    assert not CourseRoleAssignment.objects.filter(pk=assignment_id).exists()
    removed, deleted = list(ledger.entries())[1], list(ledger.entries())[0]
    assert deleted.action == AuditAction.COURSE_DELETED
    assert deleted.subject_id == str(course_id)
    assert removed.action == AuditAction.COURSE_ASSIGNMENT_DELETED
    assert removed.subject_id == str(assignment_id)
    assert removed.details["removed"] == {"coordinator_id": coordinator.pk, "deputy_dean_id": dean.pk, "active": True}


@pytest.mark.django_db
def test_course_or_session_in_use_conflicts(administrator, course, session, lecturer):
    Submission.objects.create(owner=lecturer, course=course, session=session, type_of_study=TypeOfStudy.UNDERGRADUATE)
    with pytest.raises(ConflictError):
        services.delete_course(administrator, course)
    with pytest.raises(ConflictError):
        services.delete_session(administrator, session)
    assert AcademicSession.objects.filter(pk=session.pk).exists()


@pytest.mark.django_db
def test_moving_course_to_another_school_reassigns_dean_work(administrator, course, coordinator, session, lecturer, make_user):
    from submissions import workflow
    from submissions.models import SubmissionStatus

    old_dean = make_user("dean_old", Privilege.DEPUTY_DEAN)
    new_dean = make_user("dean_new", Privilege.DEPUTY_DEAN)
    other = School.objects.create(code="FEP", name="Economics")
    FacultyRoleAssignment.objects.create(school=course.school, deputy_dean=old_dean)
    FacultyRoleAssignment.objects.create(school=other, deputy_dean=new_dean)
    CourseRoleAssignment.objects.create(course=course, coordinator=coordinator)
    s = Submission.objects.create(
        owner=lecturer,
        course=course,
        session=session,
        type_of_study=TypeOfStudy.UNDERGRADUATE,
        status=SubmissionStatus.COORDINATOR_APPROVED,
        current_assignee=old_dean,
    )

    services.update_course(administrator, course, school=other)

    s.refresh_from_db()
    assert s.current_assignee == new_dean
    moved = ledger.entries(action=AuditAction.SUBMISSION_REASSIGNED).get()
    assert moved.details["assignee_before"] == old_dean.pk
    assert workflow.deputy_dean_endorse(new_dean, s.pk).status == SubmissionStatus.DEAN_ENDORSED
