"""
Services package - Business logic layer.

This package contains the business logic services that operate on Django models
but are decoupled from the HTTP/WebSocket layer.

Modules:
    - scheduling: Scheduled ride lifecycle (create, cancel, reconcile, cleanup)
"""

from .scheduling import (
    ScheduledRideManager,
    get_ride_manager,
    run_reconciliation,
    SchedulingValidationError,
    ScheduledRideNotFoundError,
)

__all__ = [
    "ScheduledRideManager",
    "get_ride_manager",
    "run_reconciliation",
    "SchedulingValidationError",
    "ScheduledRideNotFoundError",
]
