"""
Scheduled ride record and its local store serialization.

A ScheduledRideRecord is the device-side copy of a ride booked for a future
time. It is only ever mutated by the lifecycle manager.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from django.utils.dateparse import parse_datetime

from .exceptions import SchedulingValidationError


def _parse_timestamp(value: str) -> datetime:
    parsed = parse_datetime(value)
    if parsed is None:
        raise ValueError(f"Not an ISO-8601 timestamp: {value!r}")
    return parsed


# ---------------------- Status & Vehicle Types ----------------------

PENDING = "pending"
BOOKED = "booked"
CANCELLED = "cancelled"
EXPIRED = "expired"

STATUSES = (PENDING, BOOKED, CANCELLED, EXPIRED)
TERMINAL_STATUSES = frozenset({BOOKED, CANCELLED, EXPIRED})

VEHICLE_TYPES = {
    "bike": "Bike",
    "auto": "Auto Rickshaw",
    "car": "Car",
}


# ---------------------- Records ----------------------

@dataclass
class Location:
    """A pickup or drop point."""
    latitude: float
    longitude: float
    address: str = ""

    def validate(self, field_name: str):
        if not -90 <= float(self.latitude) <= 90:
            raise SchedulingValidationError(f"{field_name} latitude is out of range", field=field_name)
        if not -180 <= float(self.longitude) <= 180:
            raise SchedulingValidationError(f"{field_name} longitude is out of range", field=field_name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "address": self.address,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        return cls(
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            address=data.get("address") or "",
        )


@dataclass
class ScheduledRideRecord:
    """A ride booked for a future time, as kept in the local store."""
    id: str
    owner_id: str
    pickup: Location
    drop: Location
    scheduled_time: datetime
    vehicle_type: str
    created_at: datetime
    preferences: Dict[str, Any] = field(default_factory=dict)
    notification_handles: List[str] = field(default_factory=list)
    status: str = PENDING
    booking_id: Optional[str] = None
    updated_at: Optional[datetime] = None
    mirror_synced: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def mark_booked(self, booking_id: str, now: datetime):
        if not booking_id:
            raise ValueError("A booked ride needs a booking id")
        self.status = BOOKED
        self.booking_id = str(booking_id)
        self._touch(now)

    def mark_cancelled(self, now: datetime):
        self.status = CANCELLED
        self.booking_id = None
        self._touch(now)

    def mark_expired(self, now: datetime):
        self.status = EXPIRED
        self.booking_id = None
        self._touch(now)

    def adopt(self, status: str, booking_id: Optional[str], now: datetime):
        """Take over a state decided elsewhere (another device, the mirror)."""
        self.status = status
        self.booking_id = booking_id if status == BOOKED else None
        self._touch(now)

    def _touch(self, now: datetime):
        self.updated_at = now
        self.mirror_synced = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "pickup": self.pickup.to_dict(),
            "drop": self.drop.to_dict(),
            "scheduled_time": self.scheduled_time.isoformat(),
            "vehicle_type": self.vehicle_type,
            "preferences": self.preferences,
            "notification_handles": list(self.notification_handles),
            "status": self.status,
            "booking_id": self.booking_id,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "mirror_synced": self.mirror_synced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ScheduledRideRecord":
        updated_at = data.get("updated_at")
        return cls(
            id=data["id"],
            owner_id=str(data["owner_id"]),
            pickup=Location.from_dict(data["pickup"]),
            drop=Location.from_dict(data["drop"]),
            scheduled_time=_parse_timestamp(data["scheduled_time"]),
            vehicle_type=data["vehicle_type"],
            preferences=data.get("preferences") or {},
            notification_handles=list(data.get("notification_handles") or []),
            status=data.get("status", PENDING),
            booking_id=data.get("booking_id"),
            created_at=_parse_timestamp(data["created_at"]),
            updated_at=_parse_timestamp(updated_at) if updated_at else None,
            mirror_synced=bool(data.get("mirror_synced", False)),
        )
