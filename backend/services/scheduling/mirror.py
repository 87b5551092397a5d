"""
Remote mirror of scheduled rides.

The mirror is the server-side table that keeps scheduled rides visible across
devices and to operators. It is written once on creation and then only has its
status (and booking id) updated. When two devices race, the first terminal
transition wins and later conflicting updates are rejected.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from django.db import DatabaseError, IntegrityError, transaction
from django.utils import timezone

from .exceptions import MirrorConflictError, MirrorRecordMissingError, MirrorWriteError
from .records import BOOKED, PENDING, ScheduledRideRecord

logger = logging.getLogger(__name__)


class RemoteMirror(ABC):

    @abstractmethod
    def insert(self, record: ScheduledRideRecord):
        raise NotImplementedError

    @abstractmethod
    def update_status(self, ride_id: str, status: str, booking_id: Optional[str] = None):
        raise NotImplementedError


class DjangoRemoteMirror(RemoteMirror):
    """Mirror backed by the scheduled_rides table."""

    def insert(self, record: ScheduledRideRecord):
        from scheduled_rides.models import ScheduledRide

        try:
            ScheduledRide.objects.create(
                id=record.id,
                user_id=record.owner_id,
                pickup_location=record.pickup.address,
                pickup_lat=record.pickup.latitude,
                pickup_lng=record.pickup.longitude,
                drop_location=record.drop.address,
                drop_lat=record.drop.latitude,
                drop_lng=record.drop.longitude,
                scheduled_time=record.scheduled_time,
                vehicle_type=record.vehicle_type,
                preferences=record.preferences,
                status=record.status,
                booking_id=record.booking_id,
            )
        except (DatabaseError, IntegrityError) as exc:
            raise MirrorWriteError(f"Could not insert scheduled ride {record.id}: {exc}") from exc

    @transaction.atomic
    def update_status(self, ride_id: str, status: str, booking_id: Optional[str] = None):
        from scheduled_rides.models import ScheduledRide

        try:
            updated = ScheduledRide.objects.filter(id=ride_id, status=PENDING).update(
                status=status,
                booking_id=booking_id if status == BOOKED else None,
                updated_at=timezone.now(),
            )
            if updated:
                return

            current = (
                ScheduledRide.objects.filter(id=ride_id)
                .values("status", "booking_id")
                .first()
            )
        except DatabaseError as exc:
            raise MirrorWriteError(f"Could not update scheduled ride {ride_id}: {exc}") from exc

        if current is None:
            raise MirrorRecordMissingError(f"Scheduled ride {ride_id} is not in the remote mirror")

        # Same outcome already recorded (retry of an earlier push)
        if current["status"] == status and (status != BOOKED or current["booking_id"] == booking_id):
            return

        raise MirrorConflictError(ride_id, current["status"], current["booking_id"])
