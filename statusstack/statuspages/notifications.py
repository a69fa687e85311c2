"""Subscriber emails: confirmation links and incident update notices."""
from __future__ import annotations

import logging
from typing import Iterable, List

from django.conf import settings
from django.core.mail import EmailMessage, get_connection, send_mail

from .models import IncidentUpdate, Subscriber, SubscriberConfirmation

logger = logging.getLogger(__name__)


def page_url(page) -> str:
    scheme = "https" if getattr(settings, "ENVIRONMENT", "") == "production" else "http"
    return f"{scheme}://{page.subdomain}.{settings.STATUSPAGE_ROOT_DOMAIN}"


def confirmation_url(confirmation: SubscriberConfirmation) -> str:
    return f"{page_url(confirmation.subscriber.page)}/subscribe/confirm?token={confirmation.token}"


def unsubscribe_url(subscriber: Subscriber) -> str:
    return f"{page_url(subscriber.page)}/unsubscribe?subscriber={subscriber.pk}"


def send_confirmation(confirmation: SubscriberConfirmation) -> None:
    subscriber = confirmation.subscriber
    page = subscriber.page
    hours = getattr(settings, "SUBSCRIBER_CONFIRMATION_TTL_HOURS", 48)
    message = f"""You asked to receive status updates from {page.name}.

Confirm your subscription:

{confirmation_url(confirmation)}

This link expires in {hours} hours. If you didn't subscribe, ignore this email.
"""
    send_mail(
        f"Confirm your subscription to {page.name} status",
        message,
        settings.DEFAULT_FROM_EMAIL,
        [subscriber.email],
        fail_silently=False,
    )
    logger.info("Sent subscription confirmation subscriber=%s page=%s", subscriber.pk, page.pk)


def recipients_for(update: IncidentUpdate) -> List[Subscriber]:
    """Active subscribers of the incident's page that follow an affected component."""
    incident = update.incident
    affected = [str(pk) for pk in incident.affected.values_list("component_id", flat=True)]
    qs = Subscriber.objects.filter(
        page_id=incident.page_id,
        confirmed_at__isnull=False,
        quarantined_at__isnull=True,
        unsubscribed_at__isnull=True,
    ).select_related("page")
    return [s for s in qs if s.wants(affected)]


def _incident_message(update: IncidentUpdate, subscriber: Subscriber) -> str:
    incident = update.incident
    return f"""{incident.name}

{update.get_status_display()}: {update.body}

Impact: {incident.get_impact_display()}
Posted: {update.display_at:%Y-%m-%d %H:%M} UTC

View the status page: {page_url(subscriber.page)}
Unsubscribe: {unsubscribe_url(subscriber)}
"""


class DeliveryFailed(Exception):
    """No message of a fan-out went out, so the whole fan-out can be retried."""


def send_incident_update(update: IncidentUpdate, subscribers: Iterable[Subscriber]) -> int:
    """Email each subscriber separately; one refused address does not stop the rest."""
    incident = update.incident
    subscribers = list(subscribers)
    if not subscribers:
        return 0
    subject = f"[{incident.page.name}] {incident.name}"
    connection = get_connection(fail_silently=False)
    try:
        connection.open()
    except Exception as exc:
        raise DeliveryFailed(f"Mail backend unavailable: {exc}") from exc

    sent = failed = 0
    try:
        for s in subscribers:
            message = EmailMessage(
                subject, _incident_message(update, s), settings.DEFAULT_FROM_EMAIL, [s.email], connection=connection
            )
            try:
                sent += message.send()
            except Exception as exc:  # noqa: BLE001
                failed += 1
                logger.warning("Notify subscriber=%s update=%s send FAILED: %s", s.pk, update.pk, exc)
    finally:
        connection.close()

    logger.info(
        "Notified %s subscriber(s) of update=%s incident=%s (failed=%s)", sent, update.pk, incident.pk, failed
    )
    if failed and not sent:
        raise DeliveryFailed(f"All {failed} notification(s) for update {update.pk} failed")
    return sent
