from django.apps import AppConfig


class CoursesConfig(AppConfig):
    """App configuration for schools, sessions and courses."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "courses"
