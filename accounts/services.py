"""User and privilege administration.

Every mutation here is attributed to an acting user (or `None` for
system/bootstrap actions such as the `grant_privilege` command) and is
recorded in the audit ledger inside the same transaction.
"""
from __future__ import annotations

import logging

from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from audit import ledger
from audit.models import AuditAction
from core.exceptions import ConflictError, ForbiddenError, NotFoundError, WorkflowValidationError

from .models import Privilege, UserPrivilege, has_privilege

logger = logging.getLogger(__name__)

User = get_user_model()


def ensure_admin(actor) -> None:
    """Raise ForbiddenError unless `actor` holds ADMIN; `None` is the system."""
    if actor is None:
        return
    if not has_privilege(actor, Privilege.ADMIN):
        raise ForbiddenError("Administrator privilege required.")


def _check_password(password: str, user=None) -> None:
    try:
        validate_password(password, user=user)
    except DjangoValidationError as exc:
        raise WorkflowValidationError({"password": list(exc.messages)})


@transaction.atomic
def create_user(
    actor,
    *,
    username: str,
    password: str,
    email: str = "",
    full_name: str = "",
    privileges=(),
):
    ensure_admin(actor)
    username = (username or "").strip()
    if not username:
        raise WorkflowValidationError("Username is required.")
    if User.objects.filter(username__iexact=username).exists():
        raise ConflictError(f"Username '{username}' is already taken.")
    if email and User.objects.filter(email__iexact=email).exists():
        raise ConflictError(f"Email '{email}' is already registered.")
    _check_password(password)

    user = User.objects.create_user(username=username, email=email, password=password)
    if full_name:
        user.profile.full_name = full_name
        user.profile.save(update_fields=["full_name", "updated_at"])
    ledger.record(
        AuditAction.USER_CREATED,
        actor,
        ledger.SUBJECT_USER,
        user.pk,
        {"username": user.username, "staff_number": user.profile.staff_number},
    )
    for p in privileges:
        grant_privilege(actor, user, p)
    return user


@transaction.atomic
def update_user(actor, user, *, email=None, full_name=None, is_active=None, password=None):
    """Update profile fields; the ledger records which fields changed, never values of secrets."""
    ensure_admin(actor)
    changed: list[str] = []
    if email is not None and email != user.email:
        if email and User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise ConflictError(f"Email '{email}' is already registered.")
        user.email = email
        changed.append("email")
    if is_active is not None and bool(is_active) != user.is_active:
        if not is_active and actor is not None and actor.pk == user.pk:
            raise WorkflowValidationError("You cannot deactivate your own account.")
        user.is_active = bool(is_active)
        changed.append("is_active")
    if password:
        _check_password(password, user=user)
        user.set_password(password)
        changed.append("password")
    if changed:
        user.save()
    if full_name is not None and full_name != user.profile.full_name:
        user.profile.full_name = full_name
        user.profile.save(update_fields=["full_name", "updated_at"])
        changed.append("full_name")
    if changed:
        ledger.record(AuditAction.USER_UPDATED, actor, ledger.SUBJECT_USER, user.pk, {"fields": changed})
    return user


@transaction.atomic
def delete_user(actor, user) -> None:
    """Delete a user who owns no submissions and is named in no assignment."""
    from assignments.models import CourseRoleAssignment, FacultyRoleAssignment
    from submissions.models import Submission

    ensure_admin(actor)
    if actor is not None and actor.pk == user.pk:
        raise WorkflowValidationError("You cannot delete your own account.")
    if Submission.objects.filter(owner=user).exists() or Submission.objects.filter(current_assignee=user).exists():
        raise ConflictError("User is referenced by submissions; deactivate the account instead.")
    named = (
        CourseRoleAssignment.objects.filter(coordinator=user).exists()
        or CourseRoleAssignment.objects.filter(deputy_dean=user).exists()
        or FacultyRoleAssignment.objects.filter(deputy_dean=user).exists()
    )
    if named:
        raise ConflictError("User is named in a role assignment; reassign it first.")
    details = {"username": user.username}
    user_id = user.pk
    user.delete()
    ledger.record(AuditAction.USER_DELETED, actor, ledger.SUBJECT_USER, user_id, details)


@transaction.atomic
def grant_privilege(actor, user, privilege) -> UserPrivilege:
    """Grant (or re-activate) a privilege. Granting a held privilege is a no-op."""
    ensure_admin(actor)
    privilege = _coerce(privilege)
    row, created = UserPrivilege.objects.select_for_update().get_or_create(
        user=user, privilege=privilege, defaults={"active": True}
    )
    if not created:
        if row.active:
            return row
        row.active = True
        row.save(update_fields=["active", "updated_at"])
    ledger.record(
        AuditAction.PRIVILEGE_GRANTED,
        actor,
        ledger.SUBJECT_USER,
        user.pk,
        {"privilege": privilege.value},
    )
    return row


@transaction.atomic
def revoke_privilege(actor, user, privilege) -> UserPrivilege:
    """Revoke a privilege, refusing while an active assignment depends on it."""
    from assignments.models import CourseRoleAssignment, FacultyRoleAssignment

    ensure_admin(actor)
    privilege = _coerce(privilege)
    try:
        row = UserPrivilege.objects.select_for_update().get(user=user, privilege=privilege, active=True)
    except UserPrivilege.DoesNotExist:
        raise NotFoundError(f"User does not hold {privilege.label}.")

    if privilege == Privilege.COORDINATOR:
        if CourseRoleAssignment.objects.filter(coordinator=user, active=True).exists():
            raise ConflictError("User coordinates courses; reassign them before revoking.")
    elif privilege == Privilege.DEPUTY_DEAN:
        in_use = (
            CourseRoleAssignment.objects.filter(deputy_dean=user, active=True).exists()
            or FacultyRoleAssignment.objects.filter(deputy_dean=user, active=True).exists()
        )
        if in_use:
            raise ConflictError("User is an active deputy dean; reassign before revoking.")
    elif privilege == Privilege.ADMIN:
        others = UserPrivilege.objects.filter(privilege=Privilege.ADMIN, active=True).exclude(user=user)
        if not others.exists():
            raise ConflictError("Cannot revoke the last administrator.")

    row.active = False
    row.save(update_fields=["active", "updated_at"])
    ledger.record(
        AuditAction.PRIVILEGE_REVOKED,
        actor,
        ledger.SUBJECT_USER,
        user.pk,
        {"privilege": privilege.value},
    )
    return row


def _coerce(privilege) -> Privilege:
    try:
        return Privilege(str(privilege).upper())
    except ValueError:
        raise WorkflowValidationError(f"Unknown privilege '{privilege}'.")
