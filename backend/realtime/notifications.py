"""
Notification helpers for pushing scheduled ride events to connected clients.

Events go to the passenger's personal group (user_<id>) and are handled by
ScheduledRideConsumer. A user with no open connection simply misses the push;
the ride status is still available from the API.
"""

from __future__ import annotations

import logging
from typing import Dict, Any

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

EVENT_TYPES = {
    "scheduled_ride_reminder",
    "scheduled_ride_booked",
}


def user_group(owner_id) -> str:
    return f"user_{owner_id}"


def notify_scheduled_ride_event(payload: Dict[str, Any]) -> bool:
    """
    Send a scheduled ride event to its owner through: user_<owner_id>

    Args:
        payload: Notification payload; must carry event, ride_id and owner_id.
            Optional keys: kind, title, body, booking_id, scheduled_time

    Returns:
        True if sent, False if there was nobody to send it to
    """
    owner_id = payload.get("owner_id")
    event_type = payload.get("event")
    if not owner_id or event_type not in EVENT_TYPES:
        logger.warning("Dropping scheduled ride notification with bad payload: %s", payload)
        return False

    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False

    message = {**payload, "type": event_type}

    logger.debug("WS -> user_%s: %s", owner_id, message)
    async_to_sync(channel_layer.group_send)(user_group(owner_id), message)

    return True
