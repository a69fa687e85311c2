from __future__ import annotations
import logging

from celery import shared_task

from .models import IncidentUpdate, SubscriberConfirmation
from . import notifications

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={"max_retries": 3})
def send_subscriber_confirmation(self, token: str) -> bool:
    confirmation = (
        SubscriberConfirmation.objects.select_related("subscriber", "subscriber__page")
        .filter(token=token)
        .first()
    )
    # Already confirmed (row deleted) or expired before the worker picked it up
    if confirmation is None or confirmation.is_expired():
        return False
    notifications.send_confirmation(confirmation)
    return True


# Only retried when nothing went out; a partial fan-out is never resent
@shared_task(bind=True, autoretry_for=(notifications.DeliveryFailed,), retry_backoff=True, retry_kwargs={"max_retries": 3})
def notify_subscribers(self, update_id: str) -> int:
    update = (
        IncidentUpdate.objects.select_related("incident", "incident__page")
        .filter(pk=update_id)
        .first()
    )
    if update is None:
        logger.warning("Incident update %s vanished before notification", update_id)
        return 0
    return notifications.send_incident_update(update, notifications.recipients_for(update))
