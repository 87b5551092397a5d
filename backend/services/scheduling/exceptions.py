"""Custom exceptions for scheduled ride management."""


class SchedulingError(Exception):
    """Base class for scheduled ride errors."""
    pass


class SchedulingValidationError(SchedulingError):
    """Raised when a scheduled ride request fails validation."""

    def __init__(self, message: str, field: str = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ScheduledRideNotFoundError(SchedulingError):
    """Raised when a scheduled ride cannot be found in the local store."""
    pass


class MirrorWriteError(SchedulingError):
    """Raised when the remote mirror could not be written."""
    pass


class MirrorRecordMissingError(MirrorWriteError):
    """Raised when the remote mirror has no row for a scheduled ride."""
    pass


class MirrorConflictError(MirrorWriteError):
    """Raised when the remote mirror already holds a different terminal status."""

    def __init__(self, ride_id: str, current_status: str, booking_id: str = None):
        super().__init__(
            f"Scheduled ride {ride_id} is already {current_status} in the remote mirror"
        )
        self.ride_id = ride_id
        self.current_status = current_status
        self.booking_id = booking_id
