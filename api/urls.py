"""API routes for QP Repository.

Versioned REST endpoints under /api/v1/ plus the OpenAPI schema and
interactive documentation.
"""
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView, SpectacularSwaggerView
from rest_framework.routers import DefaultRouter

from .views import (
    AcademicSessionViewSet,
    AuditLogViewSet,
    CourseAssignmentViewSet,
    CourseViewSet,
    DocumentViewSet,
    FacultyAssignmentViewSet,
    ReviewViewSet,
    SchoolViewSet,
    SubmissionViewSet,
    UserAdminViewSet,
    document_types,
    me,
)

router = DefaultRouter()
router.register(r"api/v1/submissions", SubmissionViewSet, basename="submission")
router.register(r"api/v1/documents", DocumentViewSet, basename="document")
router.register(r"api/v1/reviews", ReviewViewSet, basename="review")
router.register(r"api/v1/schools", SchoolViewSet, basename="school")
router.register(r"api/v1/sessions", AcademicSessionViewSet, basename="session")
router.register(r"api/v1/courses", CourseViewSet, basename="course")
router.register(r"api/v1/admin/users", UserAdminViewSet, basename="admin-user")
router.register(r"api/v1/admin/course-assignments", CourseAssignmentViewSet, basename="course-assignment")
router.register(r"api/v1/admin/faculty-assignments", FacultyAssignmentViewSet, basename="faculty-assignment")
router.register(r"api/v1/admin/audit-log", AuditLogViewSet, basename="audit-log")

urlpatterns = [
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("api/v1/auth/me", me, name="auth-me"),
    path("api/v1/document-types", document_types, name="document-types"),
    path("", include(router.urls)),
]
