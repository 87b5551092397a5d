"""WebSocket URL routing for the realtime app."""

from django.urls import re_path

from .consumers.scheduled_ride_consumer import ScheduledRideConsumer

websocket_urlpatterns = [
    # Passenger scheduled ride events
    # URL: ws://localhost:8000/ws/scheduled-rides/?token=<jwt>
    re_path(
        r"ws/scheduled-rides/$",
        ScheduledRideConsumer.as_asgi(),
        name="scheduled-rides-ws"
    ),
]
