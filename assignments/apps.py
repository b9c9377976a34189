from django.apps import AppConfig


class AssignmentsConfig(AppConfig):
    """App configuration for course and faculty reviewer assignments."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "assignments"
