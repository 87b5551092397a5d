"""Passenger WebSocket consumer for scheduled ride events."""

import logging
from typing import Dict, Any

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from realtime.notifications import user_group

logger = logging.getLogger(__name__)


class ScheduledRideConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for a passenger's scheduled rides.

    The connection joins the passenger's personal group (user_<id>), which is
    where reminder and booking confirmation events are pushed.

    Client messages:
        - "app_resumed": the app came to the foreground, queue a reconciliation
          pass and reply with the passenger's rides
        - "list_scheduled_rides": reply with the passenger's rides
    """

    async def connect(self):
        self.user = self.scope["user"]

        if self.user.is_anonymous:
            await self.close()
            return

        self.user_id = self.user.id
        self.group_name = user_group(self.user_id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)

        await self.accept()
        await self.send_json({
            "type": "connection_established",
            "user_id": self.user_id,
        })

    async def disconnect(self, close_code):
        group_name = getattr(self, "group_name", None)
        if group_name:
            await self.channel_layer.group_discard(group_name, self.channel_name)

    async def receive_json(self, data: Dict[str, Any]):
        msg_type = data.get("type")

        try:
            if msg_type == "app_resumed":
                await self._handle_app_resumed()
            elif msg_type == "list_scheduled_rides":
                await self._send_rides(include_history=bool(data.get("include_history")))
            elif not msg_type:
                await self.send_error("Message type is required")
            else:
                await self.send_error(f"Unknown message type: {msg_type}")
        except Exception:
            logger.exception("Error handling %s for user %s", msg_type, self.user_id)
            await self.send_error(f"Error processing {msg_type}")

    # ---------------------- Message Handlers ----------------------

    async def _handle_app_resumed(self):
        from scheduled_rides.tasks import reconcile_scheduled_rides_task

        await database_sync_to_async(reconcile_scheduled_rides_task.delay)()
        logger.debug("App resumed for user %s; reconciliation queued", self.user_id)
        await self._send_rides(include_history=True, queued=True)

    async def _send_rides(self, include_history: bool, **extra):
        rides = await database_sync_to_async(self._load_rides)(include_history)
        await self.send_json({
            "type": "scheduled_rides",
            "rides": rides,
            **extra,
        })

    def _load_rides(self, include_history: bool):
        from services.scheduling import get_ride_manager
        from scheduled_rides.serializers import ScheduledRideSerializer

        rides = get_ride_manager().get_rides_for_owner(self.user_id, include_history=include_history)
        return ScheduledRideSerializer(rides, many=True).data

    async def send_error(self, message: str):
        await self.send_json({"type": "error", "message": message})

    # ---------------------- Server Event Handlers ----------------------

    async def scheduled_ride_reminder(self, event):
        """Sent when a reminder fires ahead of a scheduled ride."""
        await self.send_json({
            "type": "scheduled_ride_reminder",
            "ride_id": event.get("ride_id"),
            "kind": event.get("kind"),
            "title": event.get("title"),
            "message": event.get("body", ""),
            "scheduled_time": event.get("scheduled_time"),
        })

    async def scheduled_ride_booked(self, event):
        """Sent when a scheduled ride has been turned into a booking."""
        await self.send_json({
            "type": "scheduled_ride_booked",
            "ride_id": event.get("ride_id"),
            "booking_id": event.get("booking_id"),
            "title": event.get("title"),
            "message": event.get("body", ""),
        })
