import logging
import secrets
from datetime import timedelta

from django.conf import settings
from django.core.mail import send_mail
from django.db import transaction
from django.utils import timezone

from .models import MagicLink

logger = logging.getLogger(__name__)


class MagicLinkService:
    """Issue and consume single-use email login links"""

    @staticmethod
    def create(user):
        ttl = timedelta(minutes=getattr(settings, "MAGIC_LINK_TTL_MINUTES", 15))
        return MagicLink.objects.create(
            token=secrets.token_hex(32),
            user=user,
            expires_at=timezone.now() + ttl,
        )

    @staticmethod
    def build_url(link):
        return f"{settings.APP_URL}/login/magic?token={link.token}"

    @staticmethod
    def send(link):
        minutes = getattr(settings, "MAGIC_LINK_TTL_MINUTES", 15)
        url = MagicLinkService.build_url(link)
        message = f"""Use the link below to sign in:

{url}

This link expires in {minutes} minutes and can only be used once.

If you didn't request this link, please ignore this email.
"""
        send_mail(
            "Your sign-in link",
            message,
            settings.DEFAULT_FROM_EMAIL,
            [link.user.email],
            fail_silently=False,
        )
        logger.info("Sent magic link to user=%s", link.user_id)

    @staticmethod
    def consume(token):
        """Mark the link used and return its user, or None if unusable."""
        with transaction.atomic():
            link = (
                MagicLink.objects.select_for_update()
                .select_related("user")
                .filter(token=token)
                .first()
            )
            if link is None or not link.is_usable():
                return None
            link.used_at = timezone.now()
            link.save(update_fields=["used_at"])
        return link.user
