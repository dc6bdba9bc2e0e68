import logging

from django.contrib.auth.models import User
from django.contrib.auth.signals import user_logged_in, user_login_failed
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import UserProfile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=User)
def create_user_profile(sender, instance, created, **kwargs):
    """Ensure each user has an associated fleet profile."""
    if created and not UserProfile.objects.filter(user=instance).exists():
        if instance.is_superuser:
            UserProfile.objects.create(
                user=instance,
                role=UserProfile.ROLE_ADMIN,
                **{name: True for name in UserProfile.PERMISSION_FIELDS},
            )
        else:
            UserProfile.objects.create(user=instance)


@receiver(user_logged_in)
def log_login(sender, request, user, **kwargs):
    logger.info("User %s logged in", user.username)


@receiver(user_login_failed)
def log_login_failed(sender, credentials, request=None, **kwargs):
    identifier = credentials.get("username") or credentials.get("email")
    logger.warning("Failed login for %s", identifier)
