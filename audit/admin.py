from django.contrib import admin

from .models import AuditLogEntry


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    list_display = ("created_at", "action", "actor_username", "subject_type", "subject_id")
    list_filter = ("action", "subject_type")
    search_fields = ("actor_username", "subject_id")
    readonly_fields = ("created_at", "actor", "actor_username", "action", "subject_type", "subject_id", "details")

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
