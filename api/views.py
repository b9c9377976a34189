"""REST API v1 viewsets and endpoints.

Views translate HTTP into calls on the workflow and admin services and
serialize what they return. Service errors are DRF exceptions and are
rendered by DRF directly.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.http import FileResponse
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts import services as account_services
from assignments import services as directory
from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
from assignments.roles import coordinator_course_ids, deputy_dean_course_ids
from audit import ledger
from courses import services as course_services
from courses.models import AcademicSession, Course, School
from submissions import queues, workflow
from submissions.models import REQUIRED_DOCUMENT_TYPES, DocumentType

from .filters import AuditLogFilter, SubmissionFilter
from .pagination import DefaultPagination
from .permissions import IsAdmin, IsAdminOrReadOnly
from .serializers import (
    AcademicSessionSerializer,
    AuditLogEntrySerializer,
    CourseAssignmentSerializer,
    CourseSerializer,
    DocumentSerializer,
    DocumentUploadSerializer,
    FacultyAssignmentSerializer,
    PrivilegeSerializer,
    ReasonSerializer,
    SchoolSerializer,
    SubmissionListSerializer,
    SubmissionSerializer,
    SubmissionWriteSerializer,
    UserCreateSerializer,
    UserSerializer,
    UserUpdateSerializer,
)

User = get_user_model()


def _detail(request, submission, code=status.HTTP_200_OK) -> Response:
    return Response(SubmissionSerializer(submission, context={"request": request}).data, status=code)


# Lecturer side


class SubmissionViewSet(viewsets.GenericViewSet):
    """The caller's own submissions plus any submission they may see by id."""

    permission_classes = [IsAuthenticated]
    pagination_class = DefaultPagination
    filterset_class = SubmissionFilter
    search_fields = ["title", "course__code", "course__name"]
    ordering_fields = ["created_at", "updated_at", "submitted_at"]

    def get_queryset(self):
        return workflow.list_own_submissions(self.request.user)

    def get_serializer_class(self):
        if self.action == "list":
            return SubmissionListSerializer
        if self.action in ("create", "update", "partial_update"):
            return SubmissionWriteSerializer
        if self.action == "documents":
            return DocumentUploadSerializer
        return SubmissionSerializer

    def list(self, request):
        qs = self.filter_queryset(self.get_queryset())
        page = self.paginate_queryset(qs)
        ser = SubmissionListSerializer(page, many=True, context={"request": request})
        return self.get_paginated_response(ser.data)

    def retrieve(self, request, pk=None):
        return _detail(request, workflow.get_submission(request.user, pk))

    def create(self, request):
        ser = SubmissionWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        submission = workflow.create_submission(request.user, **ser.validated_data)
        return _detail(request, submission, status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        ser = SubmissionWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        return _detail(request, workflow.update_submission(request.user, pk, **ser.validated_data))

    def update(self, request, pk=None):
        return self.partial_update(request, pk)

    def destroy(self, request, pk=None):
        workflow.delete_submission(request.user, pk)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def submit(self, request, pk=None):
        return _detail(request, workflow.submit_for_review(request.user, pk))

    @action(detail=True, methods=["post"])
    def documents(self, request, pk=None):
        """Upload a file for a document type, or mark it not applicable."""
        ser = DocumentUploadSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        if data.get("not_applicable"):
            doc = workflow.mark_document_not_applicable(request.user, pk, data["document_type"])
        else:
            doc = workflow.upload_document(request.user, pk, data["document_type"], data["file"])
        return Response(DocumentSerializer(doc, context={"request": request}).data, status=status.HTTP_200_OK)

    @action(detail=True, methods=["delete"], url_path=r"documents/(?P<document_type>[A-Z0-9_]+)")
    def remove_document(self, request, pk=None, document_type=None):
        workflow.remove_document(request.user, pk, document_type)
        return Response(status=status.HTTP_204_NO_CONTENT)


class DocumentViewSet(viewsets.GenericViewSet):
    permission_classes = [IsAuthenticated]

    @action(detail=True, methods=["get"])
    def download(self, request, pk=None):
        doc, handle = workflow.open_document(request.user, pk)
        return FileResponse(
            handle,
            as_attachment=True,
            filename=doc.file_name or handle.name.rsplit("/", 1)[-1],
            content_type=doc.mime or None,
        )


# Reviewer side


class ReviewViewSet(viewsets.GenericViewSet):
    """Coordinator and deputy dean queues and decisions."""

    permission_classes = [IsAuthenticated]
    pagination_class = DefaultPagination
    serializer_class = SubmissionListSerializer

    def _page(self, request, qs):
        page = self.paginate_queryset(qs)
        ser = SubmissionListSerializer(page, many=True, context={"request": request})
        return self.get_paginated_response(ser.data)

    @action(detail=False, methods=["get"], url_path="coordinator/queue")
    def coordinator_queue(self, request):
        return self._page(request, queues.coordinator_queue(request.user))

    @action(detail=False, methods=["post"], url_path=r"coordinator/(?P<submission_id>\d+)/approve")
    def coordinator_approve(self, request, submission_id=None):
        return _detail(request, workflow.coordinator_approve(request.user, submission_id))

    @action(detail=False, methods=["post"], url_path=r"coordinator/(?P<submission_id>\d+)/reject", serializer_class=ReasonSerializer)
    def coordinator_reject(self, request, submission_id=None):
        ser = ReasonSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(request, workflow.coordinator_reject(request.user, submission_id, ser.validated_data["reason"]))

    @action(detail=False, methods=["get"], url_path="dean/queue")
    def dean_queue(self, request):
        return self._page(request, queues.deputy_dean_queue(request.user))

    @action(detail=False, methods=["post"], url_path=r"dean/(?P<submission_id>\d+)/endorse")
    def dean_endorse(self, request, submission_id=None):
        return _detail(request, workflow.deputy_dean_endorse(request.user, submission_id))

    @action(detail=False, methods=["post"], url_path=r"dean/(?P<submission_id>\d+)/reject", serializer_class=ReasonSerializer)
    def dean_reject(self, request, submission_id=None):
        ser = ReasonSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        return _detail(request, workflow.deputy_dean_reject(request.user, submission_id, ser.validated_data["reason"]))

    @action(detail=False, methods=["get"])
    def dashboard(self, request):
        qs = SubmissionFilter(request.query_params, queryset=queues.dashboard(request.user)).qs
        return self._page(request, qs)


# Reference data


class _ServiceBackedViewSet(viewsets.ModelViewSet):
    """ModelViewSet whose writes go through an admin service module."""

    permission_classes = [IsAdminOrReadOnly]
    create_service = update_service = delete_service = None

    def perform_create(self, serializer):
        serializer.instance = self.create_service(self.request.user, **serializer.validated_data)

    def perform_update(self, serializer):
        serializer.instance = self.update_service(self.request.user, serializer.instance, **serializer.validated_data)

    def perform_destroy(self, instance):
        self.delete_service(self.request.user, instance)


class SchoolViewSet(_ServiceBackedViewSet):
    queryset = School.objects.all()
    serializer_class = SchoolSerializer
    search_fields = ["code", "name"]
    ordering_fields = ["code", "name"]
    filterset_fields = ["active"]
    create_service = staticmethod(course_services.create_school)
    update_service = staticmethod(course_services.update_school)
    delete_service = staticmethod(course_services.delete_school)


class AcademicSessionViewSet(_ServiceBackedViewSet):
    queryset = AcademicSession.objects.all()
    serializer_class = AcademicSessionSerializer
    search_fields = ["code", "name"]
    ordering_fields = ["code"]
    filterset_fields = ["active"]
    create_service = staticmethod(course_services.create_session)
    update_service = staticmethod(course_services.update_session)
    delete_service = staticmethod(course_services.delete_session)


class CourseViewSet(_ServiceBackedViewSet):
    queryset = Course.objects.select_related("school").all()
    serializer_class = CourseSerializer
    search_fields = ["code", "name", "school__code"]
    ordering_fields = ["code", "name"]
    filterset_fields = ["school", "active"]
    create_service = staticmethod(course_services.create_course)
    update_service = staticmethod(course_services.update_course)
    delete_service = staticmethod(course_services.delete_course)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def document_types(request):
    """The document taxonomy with the required flag per type."""
    data = [
        {"code": t.value, "label": t.label, "required": t in REQUIRED_DOCUMENT_TYPES}
        for t in DocumentType
    ]
    return Response({"count": len(data), "results": data})


# Administration


class UserAdminViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    queryset = User.objects.select_related("profile").order_by("username")
    serializer_class = UserSerializer
    permission_classes = [IsAdmin]
    search_fields = ["username", "email", "profile__full_name", "profile__staff_number"]
    ordering_fields = ["username", "id", "date_joined"]
    filterset_fields = ["is_active"]

    def create(self, request):
        ser = UserCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = account_services.create_user(request.user, **ser.validated_data)
        return Response(UserSerializer(user).data, status=status.HTTP_201_CREATED)

    def partial_update(self, request, pk=None):
        user = self.get_object()
        ser = UserUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        user = account_services.update_user(request.user, user, **ser.validated_data)
        return Response(UserSerializer(user).data)

    def destroy(self, request, pk=None):
        account_services.delete_user(request.user, self.get_object())
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"], serializer_class=PrivilegeSerializer)
    def grant(self, request, pk=None):
        user = self.get_object()
        ser = PrivilegeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        account_services.grant_privilege(request.user, user, ser.validated_data["privilege"])
        return Response(UserSerializer(user).data)

    @action(detail=True, methods=["post"], serializer_class=PrivilegeSerializer)
    def revoke(self, request, pk=None):
        user = self.get_object()
        ser = PrivilegeSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        account_services.revoke_privilege(request.user, user, ser.validated_data["privilege"])
        return Response(UserSerializer(user).data)


class CourseAssignmentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Course -> (coordinator, deputy dean), addressed by course id."""

    queryset = CourseRoleAssignment.objects.select_related("course", "coordinator", "deputy_dean")
    serializer_class = CourseAssignmentSerializer
    permission_classes = [IsAdmin]
    lookup_field = "course"
    filterset_fields = ["active", "coordinator", "deputy_dean"]
    ordering_fields = ["course__code", "updated_at"]

    def create(self, request):
        ser = CourseAssignmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        assignment = directory.set_course_assignment(
            request.user, data["course"], data.get("coordinator"), data.get("deputy_dean")
        )
        return Response(CourseAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, course=None):
        directory.delete_course_assignment(request.user, self.get_object().course)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def toggle(self, request, course=None):
        assignment = directory.toggle_course_assignment(request.user, self.get_object().course)
        return Response(CourseAssignmentSerializer(assignment).data)


class FacultyAssignmentViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """School -> fallback deputy dean, addressed by school id."""

    queryset = FacultyRoleAssignment.objects.select_related("school", "deputy_dean")
    serializer_class = FacultyAssignmentSerializer
    permission_classes = [IsAdmin]
    lookup_field = "school"
    filterset_fields = ["active", "deputy_dean"]

    def create(self, request):
        ser = FacultyAssignmentSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data
        assignment = directory.set_faculty_assignment(request.user, data["school"], data.get("deputy_dean"))
        return Response(FacultyAssignmentSerializer(assignment).data, status=status.HTTP_201_CREATED)

    def destroy(self, request, school=None):
        directory.delete_faculty_assignment(request.user, self.get_object().school)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @action(detail=True, methods=["post"])
    def toggle(self, request, school=None):
        assignment = directory.toggle_faculty_assignment(request.user, self.get_object().school)
        return Response(FacultyAssignmentSerializer(assignment).data)


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = AuditLogEntrySerializer
    permission_classes = [IsAdmin]
    filterset_class = AuditLogFilter
    ordering_fields = ["created_at", "id"]

    def get_queryset(self):
        return ledger.entries()


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def me(request):
    """The caller's identity, privileges and reviewer scope."""
    data = UserSerializer(request.user).data
    data["coordinator_course_ids"] = sorted(coordinator_course_ids(request.user))
    data["deputy_dean_course_ids"] = sorted(deputy_dean_course_ids(request.user))
    return Response(data)
