"""
Local store for scheduled rides.

The whole collection lives under one logical key and is rewritten on every
save. Callers do their own read-modify-write; there is no protection against
concurrent writers.
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

from django.core.cache import caches

from .records import ScheduledRideRecord

logger = logging.getLogger(__name__)

SCHEDULED_RIDES_KEY = "scheduled_rides"


class ScheduledRideStore(ABC):
    """Key-value persistence of scheduled ride records."""

    @abstractmethod
    def get_all(self) -> List[ScheduledRideRecord]:
        raise NotImplementedError

    @abstractmethod
    def save_all(self, records: List[ScheduledRideRecord]):
        raise NotImplementedError

    def get(self, ride_id: str) -> Optional[ScheduledRideRecord]:
        for record in self.get_all():
            if record.id == ride_id:
                return record
        return None

    def put(self, record: ScheduledRideRecord):
        """Insert or replace a record by id."""
        records = self.get_all()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                break
        else:
            records.append(record)
        self.save_all(records)

    def remove(self, ride_id: str) -> bool:
        records = self.get_all()
        remaining = [r for r in records if r.id != ride_id]
        if len(remaining) == len(records):
            return False
        self.save_all(remaining)
        return True

    # ---------------------- Serialization Helpers ----------------------

    @staticmethod
    def _dumps(records: List[ScheduledRideRecord]) -> str:
        return json.dumps([r.to_dict() for r in records])

    @staticmethod
    def _loads(raw: Optional[str]) -> List[ScheduledRideRecord]:
        if not raw:
            return []
        records = []
        for item in json.loads(raw):
            try:
                records.append(ScheduledRideRecord.from_dict(item))
            except (KeyError, TypeError, ValueError):
                logger.warning("Dropping unreadable scheduled ride entry: %r", item)
        return records


class CacheScheduledRideStore(ScheduledRideStore):
    """Stores the serialized list in a Django cache alias (file or redis backed)."""

    def __init__(self, alias: str = "default", key: str = SCHEDULED_RIDES_KEY):
        self.alias = alias
        self.key = key

    @property
    def cache(self):
        return caches[self.alias]

    def get_all(self) -> List[ScheduledRideRecord]:
        return self._loads(self.cache.get(self.key))

    def save_all(self, records: List[ScheduledRideRecord]):
        self.cache.set(self.key, self._dumps(records), timeout=None)


class JsonFileScheduledRideStore(ScheduledRideStore):
    """Stores the serialized list in a single JSON file."""

    def __init__(self, path):
        self.path = Path(path)

    def get_all(self) -> List[ScheduledRideRecord]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        return self._loads(raw)

    def save_all(self, records: List[ScheduledRideRecord]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=".scheduled_rides.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(self._dumps(records))
            os.replace(tmp_path, self.path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
