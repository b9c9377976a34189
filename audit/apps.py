from django.apps import AppConfig


class AuditConfig(AppConfig):
    """App configuration for the append-only audit ledger."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "audit"
