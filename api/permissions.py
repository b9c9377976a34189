"""Custom permissions for REST API v1.

These are coarse request-level gates; course-scoped decisions are made
by the workflow services, which raise their own Forbidden/NotFound.
"""
from __future__ import annotations

from rest_framework.permissions import SAFE_METHODS, BasePermission

from accounts.models import Privilege, has_privilege


class IsAdmin(BasePermission):
    message = "Administrator privilege required."

    def has_permission(self, request, view):  # noqa: D401
        return has_privilege(request.user, Privilege.ADMIN)


class IsAdminOrReadOnly(BasePermission):
    """Any signed-in user may read; only administrators may write."""

    message = "Administrator privilege required."

    def has_permission(self, request, view):  # noqa: D401
        if not (request.user and request.user.is_authenticated):
            return False
        return request.method in SAFE_METHODS or has_privilege(request.user, Privilege.ADMIN)
