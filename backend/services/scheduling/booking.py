"""
Booking executor: turns a scheduled ride into a live booking request.

Executors report failure through BookingResult rather than raising, so a
failed attempt simply leaves the scheduled ride pending for the next pass.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests

from .records import Location

logger = logging.getLogger(__name__)


@dataclass
class BookingResult:
    """Outcome of a booking submission."""
    success: bool
    booking_id: Optional[str] = None
    reason: str = ""


class BookingExecutor(ABC):

    @abstractmethod
    def submit(
        self,
        pickup: Location,
        drop: Location,
        vehicle_type: str,
        preferences: Dict[str, Any],
        owner_id: Optional[str] = None,
    ) -> BookingResult:
        raise NotImplementedError


class HttpBookingExecutor(BookingExecutor):
    """Submits bookings to the booking API over HTTP with a bounded timeout."""

    def __init__(self, url: str, timeout: float = 10, token: Optional[str] = None, session=None):
        self.url = url
        self.timeout = timeout
        self.token = token
        self.session = session or requests.Session()

    def submit(self, pickup, drop, vehicle_type, preferences, owner_id=None) -> BookingResult:
        if not self.url:
            return BookingResult(success=False, reason="Booking API is not configured")

        body = {
            "passenger_id": owner_id,
            "pickup_location": pickup.address,
            "pickup_lat": pickup.latitude,
            "pickup_lng": pickup.longitude,
            "drop_location": drop.address,
            "drop_lat": drop.latitude,
            "drop_lng": drop.longitude,
            "vehicle_type": vehicle_type,
            "preferences": preferences or {},
        }
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}

        try:
            response = self.session.post(self.url, json=body, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("Booking request failed: %s", exc)
            return BookingResult(success=False, reason=f"Booking request failed: {exc}")

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.ok:
            reason = data.get("error") or data.get("detail") or f"HTTP {response.status_code}"
            return BookingResult(success=False, reason=str(reason))

        if data.get("success") is False:
            return BookingResult(success=False, reason=str(data.get("error") or "Booking rejected"))

        booking_id = data.get("booking_id") or data.get("id")
        if not booking_id:
            return BookingResult(success=False, reason="Booking API returned no booking id")

        return BookingResult(success=True, booking_id=str(booking_id))
