"""
Scheduled ride lifecycle operations.

A scheduled ride moves through:

    pending -> booked     promotion inside the trigger window
    pending -> cancelled  user cancellation
    pending -> expired    still pending stale_after past the scheduled time

booked, cancelled and expired are terminal; only cleanup() removes them.

The local store is authoritative for scheduling decisions. The remote mirror
and the notification scheduler are collaborators whose failures never roll
back a local change.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional, Tuple

from django.core.cache import cache
from django.utils import timezone

from .booking import BookingExecutor, BookingResult
from .config import SchedulingConfig
from .exceptions import (
    MirrorConflictError,
    MirrorRecordMissingError,
    ScheduledRideNotFoundError,
    SchedulingValidationError,
)
from .mirror import RemoteMirror
from .notifications import NotificationScheduler
from .records import (
    CANCELLED,
    PENDING,
    VEHICLE_TYPES,
    Location,
    ScheduledRideRecord,
)
from .stores import ScheduledRideStore

logger = logging.getLogger(__name__)

BOOKING_CLAIM_KEY = "scheduled_rides:booking:{}"


@dataclass
class ScheduleResult:
    """Result object for scheduled ride operations."""
    success: bool
    ride: Optional[ScheduledRideRecord] = None
    message: str = ""
    warnings: List[str] = field(default_factory=list)


@dataclass
class ReconcileSummary:
    """What one reconciliation pass did."""
    booked: List[str] = field(default_factory=list)
    expired: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    mirror_synced: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, List[str]]:
        return {
            "booked": self.booked,
            "expired": self.expired,
            "failed": self.failed,
            "skipped": self.skipped,
            "mirror_synced": self.mirror_synced,
        }


def _humanize(offset: timedelta) -> str:
    minutes = int(offset.total_seconds() // 60)
    if minutes and minutes % 60 == 0:
        hours = minutes // 60
        return "1 hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minutes"


class ScheduledRideManager:
    """
    Creates scheduled rides, arranges their reminders and promotes them to live
    bookings when they come due.

    Args:
        store: Local store holding every scheduled ride record
        notifier: Schedules and cancels point-in-time alerts
        mirror: Server-side copy used for cross-device visibility
        executor: Submits the live booking request
        config: Timing knobs (defaults to settings.SCHEDULED_RIDES)
        clock: Returns the current aware datetime
        claims: Cache shared by every worker, holding per-ride booking claims
    """

    def __init__(
        self,
        store: ScheduledRideStore,
        notifier: NotificationScheduler,
        mirror: RemoteMirror,
        executor: BookingExecutor,
        config: Optional[SchedulingConfig] = None,
        clock: Optional[Callable[[], datetime]] = None,
        claims=None,
    ):
        self.store = store
        self.notifier = notifier
        self.mirror = mirror
        self.executor = executor
        self.config = config or SchedulingConfig.from_settings()
        self.clock = clock or timezone.now
        self.claims = claims or cache

    # ===================== Creation =====================

    def create(
        self,
        owner_id,
        pickup: Location,
        drop: Location,
        scheduled_time: datetime,
        vehicle_type: str,
        preferences: Optional[Dict[str, Any]] = None,
    ) -> ScheduleResult:
        """
        Schedule a ride for the future.

        Args:
            owner_id: Identifier of the requesting user
            pickup: Pickup location
            drop: Drop location
            scheduled_time: Aware datetime the ride should start
            vehicle_type: One of VEHICLE_TYPES
            preferences: Ride options passed through to the booking executor

        Returns:
            ScheduleResult with the new record; warnings list collaborator failures

        Raises:
            SchedulingValidationError: If the request is rejected (nothing is written)
        """
        now = self.clock()
        self._validate(pickup, drop, scheduled_time, vehicle_type, now)

        ride = ScheduledRideRecord(
            id=f"scheduled_{uuid.uuid4().hex}",
            owner_id=str(owner_id),
            pickup=pickup,
            drop=drop,
            scheduled_time=scheduled_time,
            vehicle_type=vehicle_type,
            preferences=dict(preferences or {}),
            created_at=now,
            updated_at=now,
        )

        warnings: List[str] = []
        ride.notification_handles = self._schedule_reminders(ride, now, warnings)

        self.store.put(ride)
        logger.info(
            "Scheduled ride %s for user %s at %s (%s reminder(s))",
            ride.id, ride.owner_id, ride.scheduled_time.isoformat(), len(ride.notification_handles),
        )

        try:
            self.mirror.insert(ride)
        except Exception:
            logger.warning("Failed to mirror scheduled ride %s; kept locally", ride.id, exc_info=True)
            warnings.append("Your ride is scheduled on this device but could not be synced yet.")
        else:
            ride.mirror_synced = True
            self.store.put(ride)

        return ScheduleResult(
            success=True,
            ride=ride,
            message="Ride scheduled successfully",
            warnings=warnings,
        )

    def _validate(self, pickup, drop, scheduled_time, vehicle_type, now):
        if not isinstance(scheduled_time, datetime) or timezone.is_naive(scheduled_time):
            raise SchedulingValidationError(
                "Scheduled time must include a timezone", field="scheduled_time"
            )

        if scheduled_time < now + self.config.min_lead_time:
            raise SchedulingValidationError(
                f"Please schedule your ride at least {_humanize(self.config.min_lead_time)} in advance",
                field="scheduled_time",
            )

        if scheduled_time > now + self.config.max_horizon:
            raise SchedulingValidationError(
                f"You can only schedule rides up to {self.config.max_horizon.days} days in advance",
                field="scheduled_time",
            )

        if vehicle_type not in VEHICLE_TYPES:
            raise SchedulingValidationError(
                f"Unknown vehicle type: {vehicle_type}", field="vehicle_type"
            )

        pickup.validate("pickup")
        drop.validate("drop")

    def _schedule_reminders(self, ride, now, warnings) -> List[str]:
        handles = []
        for offset in self.config.reminder_offsets:
            fire_at = ride.scheduled_time - offset
            if fire_at <= now:
                continue
            try:
                handle = self.notifier.schedule(fire_at, self._reminder_payload(ride, offset))
            except Exception:
                logger.exception("Failed to schedule reminder for scheduled ride %s", ride.id)
                warnings.append("A reminder for this ride could not be scheduled.")
                continue
            if handle:
                handles.append(handle)
        return handles

    def _reminder_payload(self, ride, offset: timedelta) -> Dict[str, Any]:
        payload = {
            "event": "scheduled_ride_reminder",
            "ride_id": ride.id,
            "owner_id": ride.owner_id,
            "scheduled_time": ride.scheduled_time.isoformat(),
        }
        if offset <= self.config.trigger_window:
            payload.update(
                kind="booking",
                title="Ride Starting Soon",
                body=f"Your ride will start in {_humanize(offset)}. Booking driver now...",
            )
        else:
            payload.update(
                kind="reminder",
                title="Ride Reminder",
                body=f"Your scheduled ride is in {_humanize(offset)}",
            )
        return payload

    # ===================== Cancellation =====================

    def cancel(self, ride_id: str, owner_id=None) -> ScheduleResult:
        """
        Cancel a scheduled ride.

        Cancelling a ride that is already booked, cancelled or expired succeeds
        without changing it.

        Raises:
            ScheduledRideNotFoundError: If the ride is not in the local store
        """
        ride = self.get_ride(ride_id, owner_id=owner_id)

        self._cancel_reminders(ride)

        # A pass may have booked the ride while its reminders were revoked
        ride = self.get_ride(ride_id, owner_id=owner_id)
        if ride.is_terminal:
            return self._already(ride)

        ride.mark_cancelled(self.clock())
        self._write_back({ride.id: ride}, {ride.id: (PENDING, None)})

        stored = self.store.get(ride.id)
        if stored is not None and stored.status != CANCELLED:
            return self._already(stored)
        logger.info("Cancelled scheduled ride %s", ride.id)

        warnings: List[str] = []
        if self._push_to_mirror(ride, warnings):
            self.store.put(ride)

        return ScheduleResult(
            success=True,
            ride=ride,
            message="Scheduled ride cancelled",
            warnings=warnings,
        )

    @staticmethod
    def _already(ride) -> ScheduleResult:
        return ScheduleResult(
            success=True,
            ride=ride,
            message=f"Scheduled ride is already {ride.status}",
        )

    def _cancel_reminders(self, ride):
        for handle in ride.notification_handles:
            try:
                self.notifier.cancel(handle)
            except Exception:
                logger.warning(
                    "Failed to cancel reminder %s for scheduled ride %s", handle, ride.id, exc_info=True
                )

    # ===================== Reconciliation =====================

    def reconcile(self, heartbeat: Optional[Callable[[], bool]] = None) -> ReconcileSummary:
        """
        Promote due rides to bookings and expire stale ones.

        Each pending ride is handled on its own:
            0 < delta <= trigger_window  -> attempt promotion
            delta <= -stale_after        -> expired
            otherwise                    -> untouched
        where delta = scheduled_time - now. A failed booking leaves the ride
        pending so the next pass retries it.

        Args:
            heartbeat: Called before each booking attempt; returning False
                stops further promotions in this pass
        """
        now = self.clock()
        summary = ReconcileSummary()
        changed: Dict[str, ScheduledRideRecord] = {}

        for ride in self.store.get_all():
            if ride.status != PENDING:
                continue

            delta = ride.scheduled_time - now
            if timedelta(0) < delta <= self.config.trigger_window:
                if heartbeat is not None and not heartbeat():
                    logger.warning("Reconciliation lost its lock; leaving scheduled ride %s for the next pass", ride.id)
                    summary.skipped.append(ride.id)
                    continue
                if self._promote(ride, summary):
                    changed[ride.id] = ride
            elif delta <= -self.config.stale_after:
                ride.mark_expired(now)
                changed[ride.id] = ride
                summary.expired.append(ride.id)
                logger.info("Scheduled ride %s expired without a booking", ride.id)

        if changed:
            self._write_back(changed, {ride_id: (PENDING, None) for ride_id in changed})

        self._sync_mirror(summary)
        return summary

    def _promote(self, ride: ScheduledRideRecord, summary: ReconcileSummary) -> bool:
        # Held while the booking is outstanding, by whichever worker submits it
        claim_key = BOOKING_CLAIM_KEY.format(ride.id)
        if not self.claims.add(claim_key, "claimed", timeout=self.config.reconcile_lock_seconds):
            logger.info("Scheduled ride %s is already being booked; skipping", ride.id)
            summary.skipped.append(ride.id)
            return False

        try:
            # Another pass may have advanced it since this pass read the store
            current = self.store.get(ride.id)
            if current is None or current.status != PENDING:
                logger.info("Scheduled ride %s is no longer pending; skipping booking", ride.id)
                summary.skipped.append(ride.id)
                return False

            result = self._submit_booking(ride)
            if not result.success:
                logger.warning("Booking attempt for scheduled ride %s failed: %s", ride.id, result.reason)
                summary.failed.append(ride.id)
                return False

            current = self.store.get(ride.id)
            if current is None or current.status != PENDING:
                logger.warning(
                    "Scheduled ride %s became %s while booking %s was submitted",
                    ride.id, getattr(current, "status", "missing"), result.booking_id,
                )
                summary.skipped.append(ride.id)
                return False

            ride.mark_booked(result.booking_id, self.clock())
            self._write_back({ride.id: ride}, {ride.id: (PENDING, None)})
            stored = self.store.get(ride.id)
            if stored is None or stored.status != ride.status:
                summary.skipped.append(ride.id)
                return False
        finally:
            self.claims.delete(claim_key)

        summary.booked.append(ride.id)
        logger.info("Scheduled ride %s booked as %s", ride.id, ride.booking_id)
        self._notify_booked(ride)
        return True

    def _submit_booking(self, ride) -> BookingResult:
        try:
            return self.executor.submit(
                ride.pickup,
                ride.drop,
                ride.vehicle_type,
                ride.preferences,
                owner_id=ride.owner_id,
            )
        except Exception as exc:
            logger.exception("Booking executor raised for scheduled ride %s", ride.id)
            return BookingResult(success=False, reason=str(exc))

    def _notify_booked(self, ride):
        try:
            self.notifier.notify_now({
                "event": "scheduled_ride_booked",
                "kind": "booked",
                "ride_id": ride.id,
                "owner_id": ride.owner_id,
                "booking_id": ride.booking_id,
                "title": "Ride Booked!",
                "body": "Your scheduled ride has been booked successfully",
            })
        except Exception:
            logger.exception("Failed to send booking confirmation for scheduled ride %s", ride.id)

    def _write_back(
        self,
        updates: Dict[str, ScheduledRideRecord],
        expected: Dict[str, Tuple[str, Optional[str]]],
    ):
        """
        Save updated records in one write.

        A stored record is only replaced when it still has the state this pass
        started from, or already has the new state. Anything else (a cancel that
        landed mid-pass) is kept.
        """
        records = self.store.get_all()
        for index, stored in enumerate(records):
            update = updates.get(stored.id)
            if update is None:
                continue
            state = (stored.status, stored.booking_id)
            if state in (expected[stored.id], (update.status, update.booking_id)):
                records[index] = update
            else:
                logger.info(
                    "Scheduled ride %s changed to %s during reconciliation; keeping stored copy",
                    stored.id, stored.status,
                )
        self.store.save_all(records)

    # ===================== Remote Mirror =====================

    def _sync_mirror(self, summary: ReconcileSummary):
        """Push every record the mirror has not seen yet."""
        updates: Dict[str, ScheduledRideRecord] = {}
        expected: Dict[str, Tuple[str, Optional[str]]] = {}

        for ride in self.store.get_all():
            if ride.mirror_synced:
                continue
            snapshot = (ride.status, ride.booking_id)
            if self._push_to_mirror(ride):
                updates[ride.id] = ride
                expected[ride.id] = snapshot
                summary.mirror_synced.append(ride.id)

        if updates:
            self._write_back(updates, expected)

    def _push_to_mirror(self, ride: ScheduledRideRecord, warnings: Optional[List[str]] = None) -> bool:
        """
        Bring the mirror row in line with the local record.

        Returns True once the mirror agrees. On a conflict the mirror's terminal
        state won first, and the local record adopts it.
        """
        try:
            self.mirror.update_status(ride.id, ride.status, ride.booking_id)
        except MirrorRecordMissingError:
            try:
                self.mirror.insert(ride)
            except Exception:
                logger.warning("Failed to insert scheduled ride %s into mirror", ride.id, exc_info=True)
                if warnings is not None:
                    warnings.append("This change could not be synced yet; it will be retried.")
                return False
        except MirrorConflictError as exc:
            logger.warning(
                "Scheduled ride %s is already %s in the mirror; local %s (booking %s) loses",
                ride.id, exc.current_status, ride.status, ride.booking_id,
            )
            ride.adopt(exc.current_status, exc.booking_id, self.clock())
        except Exception:
            logger.warning("Failed to push scheduled ride %s to mirror", ride.id, exc_info=True)
            if warnings is not None:
                warnings.append("This change could not be synced yet; it will be retried.")
            return False

        ride.mirror_synced = True
        return True

    # ===================== Retention =====================

    def prunable(self, retention: Optional[timedelta] = None) -> List[ScheduledRideRecord]:
        """Records scheduled more than the retention window ago."""
        cutoff = self.clock() - (retention or self.config.retention)
        return [ride for ride in self.store.get_all() if ride.scheduled_time < cutoff]

    def cleanup(self, retention: Optional[timedelta] = None) -> int:
        """Drop old records from the local store, whatever their status."""
        stale_ids = {ride.id for ride in self.prunable(retention)}
        if not stale_ids:
            return 0

        records = self.store.get_all()
        self.store.save_all([ride for ride in records if ride.id not in stale_ids])
        logger.info("Pruned %s scheduled ride(s) from the local store", len(stale_ids))
        return len(stale_ids)

    # ===================== Queries =====================

    def get_ride(self, ride_id: str, owner_id=None) -> ScheduledRideRecord:
        ride = self.store.get(ride_id)
        if ride is None or (owner_id is not None and ride.owner_id != str(owner_id)):
            raise ScheduledRideNotFoundError("Scheduled ride not found")
        return ride

    def get_rides_for_owner(self, owner_id, include_history: bool = False) -> List[ScheduledRideRecord]:
        """A user's scheduled rides, soonest first. Only pending ones unless include_history."""
        owner_id = str(owner_id)
        rides = [
            ride for ride in self.store.get_all()
            if ride.owner_id == owner_id and (include_history or ride.status == PENDING)
        ]
        return sorted(rides, key=lambda ride: ride.scheduled_time)
