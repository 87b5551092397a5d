"""Builds the process-wide scheduled ride manager from settings."""

import logging
from typing import Optional

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from .booking import HttpBookingExecutor
from .config import SchedulingConfig
from .lifecycle import ScheduledRideManager
from .mirror import DjangoRemoteMirror
from .notifications import CeleryNotificationScheduler
from .stores import (
    SCHEDULED_RIDES_KEY,
    CacheScheduledRideStore,
    JsonFileScheduledRideStore,
    ScheduledRideStore,
)

logger = logging.getLogger(__name__)

_manager_instance: Optional[ScheduledRideManager] = None


def build_local_store() -> ScheduledRideStore:
    conf = getattr(settings, "SCHEDULED_RIDES", {}).get("LOCAL_STORE", {})
    backend = conf.get("BACKEND", "cache")

    if backend == "cache":
        return CacheScheduledRideStore(
            alias=conf.get("CACHE_ALIAS", "default"),
            key=conf.get("KEY", SCHEDULED_RIDES_KEY),
        )
    if backend == "file":
        if not conf.get("PATH"):
            raise ImproperlyConfigured("SCHEDULED_RIDES['LOCAL_STORE']['PATH'] is required for the file store")
        return JsonFileScheduledRideStore(conf["PATH"])

    raise ImproperlyConfigured(f"Unknown scheduled ride store backend: {backend}")


def get_ride_manager() -> ScheduledRideManager:
    global _manager_instance

    if _manager_instance is None:
        conf = getattr(settings, "SCHEDULED_RIDES", {})
        config = SchedulingConfig.from_settings()
        _manager_instance = ScheduledRideManager(
            store=build_local_store(),
            notifier=CeleryNotificationScheduler(),
            mirror=DjangoRemoteMirror(),
            executor=HttpBookingExecutor(
                url=conf.get("BOOKING_API_URL", ""),
                timeout=config.booking_timeout,
                token=conf.get("BOOKING_API_TOKEN") or None,
            ),
            config=config,
        )
        logger.debug("Built scheduled ride manager with %s", type(_manager_instance.store).__name__)
    return _manager_instance


def reset_ride_manager():
    global _manager_instance
    _manager_instance = None
