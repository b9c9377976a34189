from django.contrib import admin

from .models import UserPrivilege, UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "full_name", "staff_number", "created_at")
    search_fields = ("user__username", "full_name", "staff_number")


@admin.register(UserPrivilege)
class UserPrivilegeAdmin(admin.ModelAdmin):
    list_display = ("user", "privilege", "active", "updated_at")
    list_filter = ("privilege", "active")
    search_fields = ("user__username",)
