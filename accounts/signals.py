"""Signals for automatic profile management.

On user creation, create a `UserProfile` with a deterministic staff
number derived from the user id.
"""
from django.contrib.auth.models import User
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver

from .models import UserProfile


@receiver(post_save, sender=User)
def create_user_profile(sender, instance: User, created: bool, **kwargs):  # noqa: D401
    """Create a profile for new users."""
    if created:
        UserProfile.objects.create(
            user=instance,
            full_name=instance.get_full_name(),
            staff_number=f"L{instance.id:07d}",
        )


@receiver(pre_save, sender=UserProfile)
def ensure_staff_number(sender, instance: UserProfile, **kwargs):  # noqa: D401
    """Backfill an empty staff number from the user id."""
    if not instance.staff_number and getattr(instance, "user_id", None):
        instance.staff_number = f"L{instance.user_id:07d}"
