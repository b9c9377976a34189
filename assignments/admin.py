from django.contrib import admin

from .models import CourseRoleAssignment, FacultyRoleAssignment


@admin.register(CourseRoleAssignment)
class CourseRoleAssignmentAdmin(admin.ModelAdmin):
    list_display = ("course", "coordinator", "deputy_dean", "active", "updated_at")
    list_filter = ("active", "course__school")
    search_fields = ("course__code", "coordinator__username", "deputy_dean__username")


@admin.register(FacultyRoleAssignment)
class FacultyRoleAssignmentAdmin(admin.ModelAdmin):
    list_display = ("school", "deputy_dean", "active", "updated_at")
    list_filter = ("active",)
    search_fields = ("school__code", "deputy_dean__username")
