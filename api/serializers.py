"""Serializers for REST API v1.

Write serializers only validate shape; all rules live in the services,
which the views call with `validated_data`.
"""
from __future__ import annotations

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import serializers

from accounts.models import Privilege, privileges_for
from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
from audit.models import AuditLogEntry
from courses.models import AcademicSession, Course, School
from submissions.models import Document, DocumentType, Submission, TypeOfStudy

User = get_user_model()


class UserBriefSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source="profile.display_name", read_only=True)

    class Meta:
        model = User
        fields = ("id", "username", "full_name")


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.CharField(source="profile.full_name", read_only=True)
    staff_number = serializers.CharField(source="profile.staff_number", read_only=True)
    privileges = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ("id", "username", "email", "full_name", "staff_number", "is_active", "privileges", "date_joined")

    def get_privileges(self, obj) -> list[str]:
        return sorted(p.value for p in privileges_for(obj))


class UserCreateSerializer(serializers.Serializer):
    username = serializers.CharField(max_length=150)
    password = serializers.CharField(write_only=True, style={"input_type": "password"})
    email = serializers.EmailField(required=False, allow_blank=True, default="")
    full_name = serializers.CharField(required=False, allow_blank=True, default="")
    privileges = serializers.ListField(
        child=serializers.ChoiceField(choices=Privilege.choices), required=False, default=list
    )


class UserUpdateSerializer(serializers.Serializer):
    email = serializers.EmailField(required=False, allow_blank=True)
    full_name = serializers.CharField(required=False, allow_blank=True)
    is_active = serializers.BooleanField(required=False)
    password = serializers.CharField(required=False, write_only=True, style={"input_type": "password"})


class PrivilegeSerializer(serializers.Serializer):
    privilege = serializers.ChoiceField(choices=Privilege.choices)


class SchoolSerializer(serializers.ModelSerializer):
    class Meta:
        model = School
        fields = ("id", "code", "name", "active", "created_at", "updated_at")
        read_only_fields = ("created_at", "updated_at")
        # Uniqueness is reported by the service as a 409 conflict.
        extra_kwargs = {"code": {"validators": []}}


class AcademicSessionSerializer(serializers.ModelSerializer):
    class Meta:
        model = AcademicSession
        fields = ("id", "code", "name", "active", "created_at", "updated_at")
        read_only_fields = ("created_at", "updated_at")
        extra_kwargs = {"code": {"validators": []}}


class CourseSerializer(serializers.ModelSerializer):
    school = serializers.PrimaryKeyRelatedField(queryset=School.objects.all())
    school_code = serializers.CharField(source="school.code", read_only=True)

    class Meta:
        model = Course
        fields = ("id", "code", "name", "school", "school_code", "active", "created_at", "updated_at")
        read_only_fields = ("created_at", "updated_at")
        extra_kwargs = {"code": {"validators": []}}


class CourseAssignmentSerializer(serializers.ModelSerializer):
    course = serializers.PrimaryKeyRelatedField(queryset=Course.objects.all())
    course_code = serializers.CharField(source="course.code", read_only=True)
    coordinator = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True, required=False)
    deputy_dean = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True, required=False)

    class Meta:
        model = CourseRoleAssignment
        fields = ("id", "course", "course_code", "coordinator", "deputy_dean", "active", "created_at", "updated_at")
        read_only_fields = ("active", "created_at", "updated_at")
        validators = []


class FacultyAssignmentSerializer(serializers.ModelSerializer):
    school = serializers.PrimaryKeyRelatedField(queryset=School.objects.all())
    school_code = serializers.CharField(source="school.code", read_only=True)
    deputy_dean = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), allow_null=True, required=False)

    class Meta:
        model = FacultyRoleAssignment
        fields = ("id", "school", "school_code", "deputy_dean", "active", "created_at", "updated_at")
        read_only_fields = ("active", "created_at", "updated_at")
        validators = []


class DocumentSerializer(serializers.ModelSerializer):
    required = serializers.BooleanField(source="is_required", read_only=True)
    download_url = serializers.SerializerMethodField()

    class Meta:
        model = Document
        fields = (
            "id",
            "document_type",
            "required",
            "file_name",
            "size_bytes",
            "mime",
            "not_applicable",
            "download_url",
            "updated_at",
        )
        read_only_fields = fields

    def get_download_url(self, obj) -> str | None:
        if obj.not_applicable or not obj.file:
            return None
        url = reverse("document-download", args=[obj.pk])
        request = self.context.get("request")
        return request.build_absolute_uri(url) if request else url


class SubmissionSerializer(serializers.ModelSerializer):
    owner = UserBriefSerializer(read_only=True)
    current_assignee = UserBriefSerializer(read_only=True)
    course_code = serializers.CharField(source="course.code", read_only=True)
    session_code = serializers.CharField(source="session.code", read_only=True)
    documents = DocumentSerializer(many=True, read_only=True)
    missing_documents = serializers.SerializerMethodField()
    available_actions = serializers.SerializerMethodField()

    class Meta:
        model = Submission
        fields = (
            "id",
            "owner",
            "course",
            "course_code",
            "session",
            "session_code",
            "type_of_study",
            "title",
            "status",
            "current_assignee",
            "rejection_reason",
            "created_at",
            "updated_at",
            "submitted_at",
            "coordinator_approved_at",
            "dean_endorsed_at",
            "rejected_at",
            "documents",
            "missing_documents",
            "available_actions",
        )
        read_only_fields = fields

    def get_missing_documents(self, obj) -> list[str]:
        return obj.missing_required_types()

    def get_available_actions(self, obj) -> list[str]:
        request = self.context.get("request")
        if request is None:
            return []
        return sorted(t.name for t in obj.get_available_user_status_transitions(request.user))


class SubmissionListSerializer(serializers.ModelSerializer):
    owner = UserBriefSerializer(read_only=True)
    current_assignee = UserBriefSerializer(read_only=True)
    course_code = serializers.CharField(source="course.code", read_only=True)
    session_code = serializers.CharField(source="session.code", read_only=True)

    class Meta:
        model = Submission
        fields = (
            "id",
            "owner",
            "course",
            "course_code",
            "session_code",
            "type_of_study",
            "title",
            "status",
            "current_assignee",
            "submitted_at",
            "coordinator_approved_at",
            "updated_at",
        )
        read_only_fields = fields


class SubmissionWriteSerializer(serializers.Serializer):
    course = serializers.IntegerField()
    session = serializers.IntegerField()
    type_of_study = serializers.ChoiceField(choices=TypeOfStudy.choices)
    title = serializers.CharField(max_length=200, required=False, allow_blank=True)


class DocumentUploadSerializer(serializers.Serializer):
    document_type = serializers.ChoiceField(choices=DocumentType.choices)
    file = serializers.FileField(required=False, allow_empty_file=False)
    not_applicable = serializers.BooleanField(required=False, default=False)

    def validate(self, attrs):
        has_file = attrs.get("file") is not None
        if has_file == bool(attrs.get("not_applicable")):
            raise serializers.ValidationError("Provide either a file or not_applicable=true, not both.")
        return attrs


class ReasonSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class AuditLogEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLogEntry
        fields = ("id", "created_at", "actor", "actor_username", "action", "subject_type", "subject_id", "details")
        read_only_fields = fields
