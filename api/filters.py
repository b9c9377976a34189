"""django-filter filter sets for the API list endpoints."""
from __future__ import annotations

import django_filters

from audit.models import AuditAction, AuditLogEntry
from submissions.models import Submission, SubmissionStatus


class AuditLogFilter(django_filters.FilterSet):
    action = django_filters.ChoiceFilter(choices=AuditAction.choices)
    subject_type = django_filters.CharFilter()
    subject_id = django_filters.CharFilter()
    actor = django_filters.NumberFilter(field_name="actor_id")
    since = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="gte")
    until = django_filters.IsoDateTimeFilter(field_name="created_at", lookup_expr="lt")

    class Meta:
        model = AuditLogEntry
        fields = ["action", "subject_type", "subject_id", "actor"]


class SubmissionFilter(django_filters.FilterSet):
    status = django_filters.ChoiceFilter(choices=SubmissionStatus.choices)
    course = django_filters.NumberFilter(field_name="course_id")
    session = django_filters.NumberFilter(field_name="session_id")

    class Meta:
        model = Submission
        fields = ["status", "course", "session", "type_of_study"]
