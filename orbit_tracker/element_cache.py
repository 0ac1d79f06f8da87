"""
Element Cache

Persists the most recently downloaded catalog as a single JSON document
together with its download timestamp, and answers whether that snapshot is
still fresh enough to use.

Persisted format:
    {
        "records": {"<name>": {"name": ..., "line1": ..., "line2": ...}, ...},
        "downloaded_at": <integer epoch seconds>
    }

A snapshot is always replaced as a whole; records are never merged. An
unreadable or malformed file is reported as a cache miss so the caller can
download fresh data instead of failing.
"""

import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from orbit_tracker.tle_parser import ElementRecord

logger = logging.getLogger(__name__)

# How far a snapshot timestamp may lead the local clock before it is distrusted
MAX_CLOCK_SKEW = timedelta(minutes=5)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ElementCacheSnapshot(BaseModel):
    """Catalog records plus the moment they were downloaded."""

    records: Dict[str, ElementRecord]
    downloaded_at: int = Field(ge=0)

    @field_validator("downloaded_at")
    @classmethod
    def check_representable(cls, value: int) -> int:
        try:
            datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise ValueError(f"timestamp {value} is out of range") from e
        return value

    def age(self, now: datetime) -> timedelta:
        """Age in whole seconds, matching the resolution of downloaded_at."""
        return timedelta(seconds=int(now.timestamp()) - self.downloaded_at)

    def is_fresh(self, max_age: timedelta, now: datetime) -> bool:
        return self.age(now) < max_age

    @property
    def downloaded_at_utc(self) -> datetime:
        return datetime.fromtimestamp(self.downloaded_at, tz=timezone.utc)


class ElementCache:
    """
    File-backed, single-entry cache of element records.

    Args:
        path: Location of the JSON document
        now: Clock returning an aware UTC datetime (injectable for tests)
    """

    def __init__(self, path: str, now: Callable[[], datetime] = _utc_now):
        self.path = path
        self.clock = now

    def exists(self) -> bool:
        return os.path.isfile(self.path)

    def load(self, max_age: Optional[timedelta]) -> Optional[ElementCacheSnapshot]:
        """
        Load the persisted snapshot if it is fresh.

        Args:
            max_age: Maximum accepted age. None accepts a snapshot of any age.
                Ages are counted in whole seconds and a snapshot is fresh
                while its age is below max_age, so max_age=0 never hits and
                a load straight after store() is only guaranteed to hit for
                max_age of two seconds or more.

        Returns:
            The snapshot, or None when missing, corrupt, stale or stamped
            further in the future than MAX_CLOCK_SKEW.
        """
        if not self.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                snapshot = ElementCacheSnapshot.model_validate_json(fh.read())
        except (OSError, UnicodeDecodeError, ValidationError) as e:
            logger.warning(f"Element cache {self.path} unreadable or corrupt, ignoring it: {e}")
            return None

        now = self.clock()
        if snapshot.age(now) < -MAX_CLOCK_SKEW:
            logger.warning(
                f"Element cache {self.path} is stamped "
                f"{snapshot.downloaded_at_utc:%Y-%m-%d %H:%M:%S} UTC, in the future; ignoring it"
            )
            return None

        if max_age is not None and not snapshot.is_fresh(max_age, now):
            return None

        return snapshot

    def store(self, records: Dict[str, ElementRecord]) -> ElementCacheSnapshot:
        """
        Persist records as the sole cache entry, stamped with the current time.

        Raises:
            OSError: If the directory or file cannot be written.
        """
        snapshot = ElementCacheSnapshot(
            records=dict(records),
            downloaded_at=int(self.clock().timestamp()),
        )

        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as fh:
            fh.write(snapshot.model_dump_json(indent=2))
        os.replace(tmp_path, self.path)

        logger.info(f"Cached {len(snapshot.records)} element sets to {self.path}")
        return snapshot

    def clear(self) -> None:
        """Remove the persisted snapshot. Safe to call when none exists."""
        try:
            os.remove(self.path)
        except FileNotFoundError:
            return
        logger.info(f"Element cache {self.path} cleared")
