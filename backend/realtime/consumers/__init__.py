"""Realtime consumers for WebSocket communication."""

from .scheduled_ride_consumer import ScheduledRideConsumer

__all__ = [
    "ScheduledRideConsumer",
]
