"""Administrator facing activity trail."""
from __future__ import annotations

import logging

from django.db import DatabaseError

from .models import ActivityLog

logger = logging.getLogger(__name__)


def log_event(action: str, actor: str = "", details: dict | None = None, level: str = ActivityLog.Level.INFO):
    """Record an activity entry; a failed write is logged and ignored."""
    try:
        return ActivityLog.objects.create(
            action=action,
            actor=str(actor or ""),
            details=details or {},
            level=level,
        )
    except DatabaseError:
        logger.exception("Could not write activity entry %r", action)
        return None


def recent_events(limit: int = 100) -> list[ActivityLog]:
    return list(ActivityLog.objects.order_by("-timestamp")[:limit])
