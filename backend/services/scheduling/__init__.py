"""
Scheduled ride service - rides booked for a future time.

This module handles:
    - Creating scheduled rides and arranging their reminders
    - Cancelling scheduled rides
    - Reconciliation passes that promote due rides to live bookings
    - Expiring rides that were never booked
    - Pruning old records from the local store
"""

from .lifecycle import ScheduledRideManager, ScheduleResult, ReconcileSummary
from .records import (
    PENDING,
    BOOKED,
    CANCELLED,
    EXPIRED,
    TERMINAL_STATUSES,
    VEHICLE_TYPES,
    Location,
    ScheduledRideRecord,
)
from .config import SchedulingConfig
from .booking import BookingExecutor, BookingResult, HttpBookingExecutor
from .mirror import RemoteMirror, DjangoRemoteMirror
from .notifications import NotificationScheduler, CeleryNotificationScheduler
from .stores import ScheduledRideStore, CacheScheduledRideStore, JsonFileScheduledRideStore
from .factory import get_ride_manager, reset_ride_manager
from .runner import run_reconciliation

from .exceptions import (
    SchedulingError,
    SchedulingValidationError,
    ScheduledRideNotFoundError,
    MirrorWriteError,
    MirrorRecordMissingError,
    MirrorConflictError,
)

__all__ = [
    # Lifecycle
    "ScheduledRideManager",
    "ScheduleResult",
    "ReconcileSummary",
    "get_ride_manager",
    "reset_ride_manager",
    "run_reconciliation",
    "SchedulingConfig",
    # Records
    "PENDING",
    "BOOKED",
    "CANCELLED",
    "EXPIRED",
    "TERMINAL_STATUSES",
    "VEHICLE_TYPES",
    "Location",
    "ScheduledRideRecord",
    # Collaborators
    "BookingExecutor",
    "BookingResult",
    "HttpBookingExecutor",
    "RemoteMirror",
    "DjangoRemoteMirror",
    "NotificationScheduler",
    "CeleryNotificationScheduler",
    "ScheduledRideStore",
    "CacheScheduledRideStore",
    "JsonFileScheduledRideStore",
    # Exceptions
    "SchedulingError",
    "SchedulingValidationError",
    "ScheduledRideNotFoundError",
    "MirrorWriteError",
    "MirrorRecordMissingError",
    "MirrorConflictError",
]
