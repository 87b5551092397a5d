"""Celery tasks for scheduled ride reminders and reconciliation."""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task
def deliver_scheduled_ride_notification(payload: dict):
    """
    Deliver a scheduled ride reminder.

    This task is queued with an ETA when a ride is scheduled and revoked when
    the ride is cancelled. Receiving a reminder is also a reconciliation
    trigger, so the ride can be booked even if the periodic pass is late.
    """
    from realtime.notifications import notify_scheduled_ride_event
    from services.scheduling import run_reconciliation

    ride_id = payload.get("ride_id")
    logger.info(f"Delivering {payload.get('kind')} reminder for scheduled ride {ride_id}")

    try:
        notify_scheduled_ride_event(payload)
    except Exception as e:
        logger.error(f"Error delivering reminder for scheduled ride {ride_id}: {e}")

    run_reconciliation(trigger="reminder")


@shared_task
def reconcile_scheduled_rides_task():
    """
    Periodic reconciliation pass (Celery beat).

    Books pending rides that entered the trigger window, expires stale
    ones, pushes unsynced changes to the mirror, and prunes old records.
    """
    from services.scheduling import run_reconciliation

    summary = run_reconciliation(trigger="beat")
    if summary is None:
        return None
    return summary.as_dict()


@shared_task
def cleanup_scheduled_rides_task():
    """Daily retention sweep of the local store."""
    from services.scheduling import get_ride_manager

    removed = get_ride_manager().cleanup()
    logger.info(f"Scheduled ride cleanup removed {removed} record(s)")
    return removed
