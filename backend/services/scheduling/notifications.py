"""
Point-in-time alerts for scheduled rides.

The scheduler knows nothing about rides: it fires a payload at a given time,
returns a handle that can cancel it, and can push a payload right away.
Delivery is best effort, so a reminder is never the only thing that books a ride.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, Optional

from django.utils import timezone

logger = logging.getLogger(__name__)


class NotificationScheduler(ABC):

    @abstractmethod
    def schedule(self, fire_at: datetime, payload: Dict[str, Any]) -> Optional[str]:
        """Arrange an alert at fire_at. Returns None when fire_at is already past."""
        raise NotImplementedError

    @abstractmethod
    def cancel(self, handle: str):
        raise NotImplementedError

    @abstractmethod
    def notify_now(self, payload: Dict[str, Any]):
        raise NotImplementedError


class CeleryNotificationScheduler(NotificationScheduler):
    """
    Schedules reminders as Celery tasks with an ETA.

    The handle is the Celery task id; cancelling revokes the task. Immediate
    notifications go straight to the user's channel group.
    """

    def schedule(self, fire_at: datetime, payload: Dict[str, Any]) -> Optional[str]:
        if fire_at <= timezone.now():
            return None

        from scheduled_rides.tasks import deliver_scheduled_ride_notification

        result = deliver_scheduled_ride_notification.apply_async(
            kwargs={"payload": payload},
            eta=fire_at,
        )
        logger.debug("Scheduled %s for ride %s at %s", payload.get("kind"), payload.get("ride_id"), fire_at)
        return result.id

    def cancel(self, handle: str):
        from celery import current_app

        current_app.control.revoke(handle)

    def notify_now(self, payload: Dict[str, Any]):
        from realtime.notifications import notify_scheduled_ride_event

        notify_scheduled_ride_event(payload)
