"""
Runs reconciliation passes on behalf of the trigger sources.

Triggers (periodic beat, reminder delivery, app resume) can overlap across
worker processes, so a pass only runs while holding a cache lock. A trigger
that finds the lock taken is dropped; the next one picks up the work.

The lock value is a token unique to the pass. The pass renews the lock before
every booking attempt and stops promoting once it no longer owns it, and only
the owner releases it.
"""

import logging
import uuid
from typing import Optional

from django.core.cache import cache

from .factory import get_ride_manager
from .lifecycle import ReconcileSummary, ScheduledRideManager

logger = logging.getLogger(__name__)

RECONCILE_LOCK_KEY = "scheduled_rides:reconcile_lock"


def _renew_lock(token: str, timeout: int) -> bool:
    """Extend the lock if this pass still owns it (or retake it if it lapsed)."""
    current = cache.get(RECONCILE_LOCK_KEY)
    if current == token:
        return cache.touch(RECONCILE_LOCK_KEY, timeout)
    if current is None:
        return cache.add(RECONCILE_LOCK_KEY, token, timeout=timeout)
    return False


def _release_lock(token: str):
    if cache.get(RECONCILE_LOCK_KEY) == token:
        cache.delete(RECONCILE_LOCK_KEY)


def run_reconciliation(
    trigger: str,
    manager: Optional[ScheduledRideManager] = None,
    with_cleanup: bool = True,
) -> Optional[ReconcileSummary]:
    """
    Run one reconciliation pass, plus opportunistic cleanup.

    Args:
        trigger: What started the pass (beat, reminder, app_resumed, ...)
        manager: Manager to use (defaults to the process-wide one)
        with_cleanup: Also prune records past the retention window

    Returns:
        ReconcileSummary, or None if another pass holds the lock
    """
    manager = manager or get_ride_manager()
    timeout = manager.config.reconcile_lock_seconds
    token = f"{trigger}:{uuid.uuid4().hex}"

    if not cache.add(RECONCILE_LOCK_KEY, token, timeout=timeout):
        logger.info("Reconciliation already running; dropping %s trigger", trigger)
        return None

    try:
        summary = manager.reconcile(heartbeat=lambda: _renew_lock(token, timeout))
        pruned = manager.cleanup() if with_cleanup else 0
    finally:
        _release_lock(token)

    if summary.booked or summary.expired or summary.failed or pruned:
        logger.info(
            "Reconciliation (%s): booked %s, expired %s, failed %s, pruned %s",
            trigger, len(summary.booked), len(summary.expired), len(summary.failed), pruned,
        )
    return summary
