from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Dict, Optional, Tuple

from django.conf import settings
from django.db import transaction
from django.db.models import Max
from django.utils import timezone

from .models import (
    Component,
    Incident,
    IncidentComponent,
    IncidentUpdate,
    Subscriber,
    SubscriberConfirmation,
)
from . import tasks

logger = logging.getLogger(__name__)


def next_position(queryset) -> int:
    """max(position) + 1, or 0 for an empty set."""
    current = queryset.aggregate(m=Max("position"))["m"]
    return 0 if current is None else current + 1


def reorder_components(page, component_ids) -> int:
    """Assign positions 0..n-1 in the given order. Returns rows touched."""
    with transaction.atomic():
        for position, component_id in enumerate(component_ids):
            Component.objects.filter(page=page, pk=component_id).update(position=position)
    return len(component_ids)


class IncidentService:
    """Incident lifecycle: open, post updates, and fan out notifications."""

    @staticmethod
    def _apply_components(incident: Incident, mapping: Dict[str, str]) -> None:
        components = Component.objects.select_for_update().filter(page=incident.page, pk__in=list(mapping.keys()))
        for component in components:
            new_status = mapping[str(component.pk)]
            IncidentComponent.objects.update_or_create(
                incident=incident,
                component=component,
                defaults={"old_status": component.status, "new_status": new_status},
            )
            if component.status != new_status:
                component.status = new_status
                component.save(update_fields=["status", "updated_at"])

    @staticmethod
    def _queue_notification(update: IncidentUpdate) -> None:
        update_id = str(update.pk)
        transaction.on_commit(lambda: tasks.notify_subscribers.delay(update_id))

    @classmethod
    def open(cls, page, name, status=Incident.STATUS_INVESTIGATING, impact="none",
             message="", components: Optional[Dict[str, str]] = None, **extra) -> Incident:
        with transaction.atomic():
            incident = Incident(page=page, name=name, impact=impact, **extra)
            incident.apply_status(status)
            incident.save()
            if components:
                cls._apply_components(incident, components)
            message = (message or "").strip()
            if message:
                update = IncidentUpdate.objects.create(incident=incident, status=incident.status, body=message)
                cls._queue_notification(update)
        logger.info("Opened incident=%s page=%s status=%s", incident.pk, page.pk, incident.status)
        return incident

    @classmethod
    def post_update(cls, incident: Incident, status, body, display_at=None) -> IncidentUpdate:
        with transaction.atomic():
            update = IncidentUpdate.objects.create(
                incident=incident,
                status=status,
                body=body,
                display_at=display_at or timezone.now(),
            )
            incident.apply_status(status)
            incident.save(update_fields=["status", "resolved_at", "updated_at"])
            cls._queue_notification(update)
        logger.info("Posted update=%s incident=%s status=%s", update.pk, incident.pk, status)
        return update


class SubscriberService:

    @staticmethod
    def subscribe(page_id, email, component_ids=None) -> Tuple[Subscriber, SubscriberConfirmation]:
        """Create or reuse the page's subscriber for email and queue a confirmation.

        An existing subscriber is left untouched; the requested component
        filter rides on the confirmation and only takes effect once the
        emailed link is used.
        """
        with transaction.atomic():
            subscriber = (
                Subscriber.objects.select_for_update()
                .filter(page_id=page_id, email=email)
                .first()
            )
            if subscriber is None:
                subscriber = Subscriber.objects.create(page_id=page_id, email=email, component_ids=component_ids or [])

            ttl = timedelta(hours=getattr(settings, "SUBSCRIBER_CONFIRMATION_TTL_HOURS", 48))
            confirmation = SubscriberConfirmation.objects.create(
                token=secrets.token_hex(32),
                subscriber=subscriber,
                component_ids=component_ids or [],
                expires_at=timezone.now() + ttl,
            )
            token = confirmation.token
            transaction.on_commit(lambda: tasks.send_subscriber_confirmation.delay(token))
        return subscriber, confirmation

    @staticmethod
    def confirm(token, page_id) -> Optional[Subscriber]:
        with transaction.atomic():
            confirmation = (
                SubscriberConfirmation.objects.select_for_update()
                .select_related("subscriber")
                .filter(token=token, subscriber__page_id=page_id)
                .first()
            )
            if confirmation is None:
                return None
            subscriber = confirmation.subscriber
            expired = confirmation.is_expired()
            confirmation.delete()
            if expired:
                return None
            if confirmation.component_ids is not None:
                subscriber.component_ids = confirmation.component_ids
            subscriber.confirmed_at = timezone.now()
            subscriber.unsubscribed_at = None
            subscriber.save(update_fields=["component_ids", "confirmed_at", "unsubscribed_at"])
        logger.info("Confirmed subscriber=%s page=%s", subscriber.pk, subscriber.page_id)
        return subscriber

    @staticmethod
    def unsubscribe(page_id, subscriber_id) -> bool:
        updated = Subscriber.objects.filter(
            page_id=page_id, pk=subscriber_id, unsubscribed_at__isnull=True
        ).update(unsubscribed_at=timezone.now())
        return updated > 0

    @staticmethod
    def quarantine(subscriber: Subscriber) -> Subscriber:
        if subscriber.quarantined_at is None:
            subscriber.quarantined_at = timezone.now()
            subscriber.save(update_fields=["quarantined_at"])
        return subscriber
