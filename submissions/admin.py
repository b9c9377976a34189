from django.contrib import admin

from .models import Document, Submission


class DocumentInline(admin.TabularInline):
    model = Document
    extra = 0
    fields = ("document_type", "file", "file_name", "size_bytes", "not_applicable")
    readonly_fields = ("file_name", "size_bytes")


@admin.register(Submission)
class SubmissionAdmin(admin.ModelAdmin):
    list_display = ("id", "course", "owner", "session", "status", "current_assignee", "submitted_at")
    list_filter = ("status", "type_of_study", "session", "course__school")
    search_fields = ("course__code", "owner__username", "title")
    # Status moves only through the workflow so every change is logged.
    readonly_fields = ("status", "current_assignee", "submitted_at", "coordinator_approved_at", "dean_endorsed_at", "rejected_at")
    inlines = [DocumentInline]


@admin.register(Document)
class DocumentAdmin(admin.ModelAdmin):
    list_display = ("submission", "document_type", "file_name", "not_applicable", "updated_at")
    list_filter = ("document_type", "not_applicable")
