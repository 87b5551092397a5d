"""Timing knobs for scheduled rides, read from settings.SCHEDULED_RIDES."""

from dataclasses import dataclass
from datetime import timedelta
from typing import Tuple

from django.conf import settings


DEFAULTS = {
    "MIN_LEAD_MINUTES": 30,
    "MAX_HORIZON_DAYS": 30,
    "REMINDER_OFFSETS_MINUTES": (60, 15),
    "TRIGGER_WINDOW_MINUTES": 15,
    "STALE_AFTER_MINUTES": 60,
    "RETENTION_DAYS": 30,
    "BOOKING_TIMEOUT_SECONDS": 10,
    "RECONCILE_LOCK_SECONDS": 120,
}


@dataclass(frozen=True)
class SchedulingConfig:
    min_lead_time: timedelta = timedelta(minutes=DEFAULTS["MIN_LEAD_MINUTES"])
    max_horizon: timedelta = timedelta(days=DEFAULTS["MAX_HORIZON_DAYS"])
    reminder_offsets: Tuple[timedelta, ...] = tuple(
        timedelta(minutes=m) for m in DEFAULTS["REMINDER_OFFSETS_MINUTES"]
    )
    trigger_window: timedelta = timedelta(minutes=DEFAULTS["TRIGGER_WINDOW_MINUTES"])
    stale_after: timedelta = timedelta(minutes=DEFAULTS["STALE_AFTER_MINUTES"])
    retention: timedelta = timedelta(days=DEFAULTS["RETENTION_DAYS"])
    booking_timeout: float = DEFAULTS["BOOKING_TIMEOUT_SECONDS"]
    reconcile_lock_seconds: int = DEFAULTS["RECONCILE_LOCK_SECONDS"]

    def __post_init__(self):
        if self.min_lead_time >= self.max_horizon:
            raise ValueError("Minimum lead time must be shorter than the maximum horizon")
        if self.trigger_window <= timedelta(0) or self.stale_after <= timedelta(0):
            raise ValueError("Trigger window and stale threshold must be positive")
        # Locks and booking claims must outlive one booking call
        if self.reconcile_lock_seconds <= self.booking_timeout:
            raise ValueError("Reconcile lock must last longer than the booking timeout")

    @classmethod
    def from_settings(cls) -> "SchedulingConfig":
        conf = {**DEFAULTS, **getattr(settings, "SCHEDULED_RIDES", {})}
        offsets = sorted(
            (int(m) for m in conf["REMINDER_OFFSETS_MINUTES"]),
            reverse=True,
        )
        return cls(
            min_lead_time=timedelta(minutes=int(conf["MIN_LEAD_MINUTES"])),
            max_horizon=timedelta(days=int(conf["MAX_HORIZON_DAYS"])),
            reminder_offsets=tuple(timedelta(minutes=m) for m in offsets),
            trigger_window=timedelta(minutes=int(conf["TRIGGER_WINDOW_MINUTES"])),
            stale_after=timedelta(minutes=int(conf["STALE_AFTER_MINUTES"])),
            retention=timedelta(days=int(conf["RETENTION_DAYS"])),
            booking_timeout=float(conf["BOOKING_TIMEOUT_SECONDS"]),
            reconcile_lock_seconds=int(conf["RECONCILE_LOCK_SECONDS"]),
        )
