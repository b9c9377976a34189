from django.apps import AppConfig


class SubmissionsConfig(AppConfig):
    """App configuration for submissions, documents and the review workflow."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "submissions"
