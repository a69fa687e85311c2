"""Public read model shared by the status page template and /api/public/summary/."""
from __future__ import annotations

from typing import Any, Dict, List

from django.db.models import Prefetch
from django.utils import timezone

from .models import Component, ComponentGroup, Incident, IncidentUpdate


def _iso(value):
    return value.isoformat() if value else None


def _component(c: Component) -> Dict[str, Any]:
    return {
        "id": str(c.pk),
        "name": c.name,
        "description": c.description,
        "status": c.status,
        "status_label": c.get_status_display(),
        "position": c.position,
    }


def _incident(i: Incident) -> Dict[str, Any]:
    return {
        "id": str(i.pk),
        "name": i.name,
        "status": i.status,
        "status_label": i.get_status_display(),
        "impact": i.impact,
        "scheduled_for": _iso(i.scheduled_for),
        "scheduled_until": _iso(i.scheduled_until),
        "created_at": _iso(i.created_at),
        "updates": [
            {
                "status": u.status,
                "status_label": u.get_status_display(),
                "body": u.body,
                "display_at": _iso(u.display_at),
            }
            for u in i.updates.all()
        ],
    }


def build_summary(page: Dict[str, Any]) -> Dict[str, Any]:
    """Public snapshot of a page given its cached projection.

    Components hidden from the showcase are left out. Ungrouped components
    come first, then each group in position order; empty groups are dropped.
    """
    page_id = page["id"]
    components = list(Component.objects.filter(page_id=page_id, showcase=True).order_by("position", "created_at"))
    groups = list(ComponentGroup.objects.filter(page_id=page_id).order_by("position", "created_at"))

    by_group: Dict[Any, List[Component]] = {}
    for c in components:
        by_group.setdefault(c.group_id, []).append(c)

    grouped = [
        {"id": str(g.pk), "name": g.name, "components": [_component(c) for c in by_group[g.pk]]}
        for g in groups
        if by_group.get(g.pk)
    ]

    updates = Prefetch("updates", queryset=IncidentUpdate.objects.order_by("-display_at", "-created_at"))
    active = (
        Incident.objects.filter(page_id=page_id, resolved_at__isnull=True)
        .exclude(status=Incident.STATUS_SCHEDULED)
        .prefetch_related(updates)
        .order_by("-created_at")
    )
    upcoming = (
        Incident.objects.filter(
            page_id=page_id,
            status=Incident.STATUS_SCHEDULED,
            scheduled_for__isnull=False,
            scheduled_for__gte=timezone.now(),
        )
        .prefetch_related(updates)
        .order_by("scheduled_for")
    )

    return {
        "page": {
            "id": page_id,
            "name": page.get("name"),
            "subdomain": page.get("subdomain"),
            "status_indicator": page.get("status_indicator"),
            "status_description": page.get("status_description"),
        },
        "components": [_component(c) for c in by_group.get(None, [])],
        "groups": grouped,
        "incidents": [_incident(i) for i in active],
        "scheduled_maintenances": [_incident(i) for i in upcoming],
    }
