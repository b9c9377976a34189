"""Accounts models: user profile and global privileges.

A `UserProfile` is created automatically for every auth user and carries
the lecturer-facing display fields. `UserPrivilege` rows record which
global capabilities a user holds; they gate what kind of reviewer a user
may ever be assigned as, not which course they review.
"""
from __future__ import annotations

from django.conf import settings
from django.db import models


class Privilege(models.TextChoices):
    """Global capability grants.

    Course-scoped roles are resolved separately from these, see
    `assignments.roles.resolve_roles`.
    """

    ADMIN = "ADMIN", "Administrator"
    COORDINATOR = "COORDINATOR", "Course Coordinator"
    DEPUTY_DEAN = "DEPUTY_DEAN", "Deputy Dean"


class UserProfile(models.Model):
    """Profile linked to a Django auth user.

    - `full_name`: shown on submissions and in reviewer queues
    - `staff_number`: deterministic `L`-prefixed id assigned on creation
    """

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    full_name = models.CharField(max_length=200, blank=True)
    staff_number = models.CharField(max_length=50, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:  # pragma: no cover (string repr convenience)
        return f"Profile<{self.user.username}:{self.staff_number}>"

    @property
    def display_name(self) -> str:
        return self.full_name or self.user.get_full_name() or self.user.username


class UserPrivilege(models.Model):
    """A privilege held by a user; revocation flips `active` instead of deleting."""

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="privileges")
    privilege = models.CharField(max_length=16, choices=Privilege.choices)
    active = models.BooleanField(default=True, db_index=True)
    granted_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("user", "privilege")
        ordering = ["user_id", "privilege"]

    def __str__(self) -> str:  # pragma: no cover
        return f"{self.user_id}:{self.privilege}{'' if self.active else ' (revoked)'}"


def privileges_for(user) -> frozenset[Privilege]:
    """Return the active global privileges of `user` (empty for anonymous)."""
    if not getattr(user, "is_authenticated", False):
        return frozenset()
    values = UserPrivilege.objects.filter(user=user, active=True).values_list("privilege", flat=True)
    return frozenset(Privilege(v) for v in values)


def has_privilege(user, privilege: Privilege) -> bool:
    if not getattr(user, "is_authenticated", False):
        return False
    return UserPrivilege.objects.filter(user=user, privilege=privilege, active=True).exists()
