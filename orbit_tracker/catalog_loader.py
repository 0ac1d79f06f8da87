"""
Catalog Loader

Combines an ElementSource with the ElementCache: a fresh cached snapshot is
returned as-is, otherwise the catalog is downloaded, parsed, cached and
returned. A download failure after a cache miss is raised to the caller;
`load_last_good()` is the documented fallback for degraded operation.
"""

import logging
from datetime import timedelta
from typing import Dict

import config
from orbit_tracker.element_cache import ElementCache
from orbit_tracker.element_source import ElementSource
from orbit_tracker.tle_parser import ElementRecord, parse_tle_text

logger = logging.getLogger(__name__)


class CatalogLoader:
    """
    Loads a named catalog with a freshness policy.

    Args:
        source: Provider of raw catalog text
        cache: Persistent element cache
        catalog: Catalog name passed to the source
        max_age: Freshness threshold for cached data
    """

    def __init__(
        self,
        source: ElementSource,
        cache: ElementCache,
        catalog: str = config.DEFAULT_CATALOG,
        max_age: timedelta = timedelta(hours=config.CACHE_MAX_AGE_HOURS),
    ):
        self.source = source
        self.cache = cache
        self.catalog = catalog
        self.max_age = max_age

    def load_catalog(self) -> Dict[str, ElementRecord]:
        """
        Return the catalog, from cache when fresh, otherwise from the source.

        Raises:
            CatalogFetchError: If the cache misses and the source fails.
        """
        snapshot = self.cache.load(self.max_age)
        if snapshot is not None:
            age_hours = snapshot.age(self.cache.clock()).total_seconds() / 3600.0
            logger.info(
                f"Loaded {len(snapshot.records)} objects from cache "
                f"(downloaded at {snapshot.downloaded_at_utc:%Y-%m-%d %H:%M:%S} UTC, "
                f"{age_hours:.1f} h old)"
            )
            return dict(snapshot.records)

        max_age_hours = self.max_age.total_seconds() / 3600.0
        if self.cache.exists():
            logger.info(f"Cache is expired or unusable (limit {max_age_hours:g} hours). Downloading fresh data...")
        else:
            logger.info("No cache found. Downloading TLE data...")

        text = self.source.fetch(self.catalog)
        records = parse_tle_text(text)
        logger.info(f"Downloaded {len(records)} objects from {self.source.describe(self.catalog)}")

        try:
            self.cache.store(records)
        except OSError as e:
            logger.warning(f"Failed to save element cache: {e}")

        return records

    def refresh(self) -> Dict[str, ElementRecord]:
        """Discard the cached snapshot and load the catalog again."""
        self.cache.clear()
        return self.load_catalog()

    def load_last_good(self) -> Dict[str, ElementRecord]:
        """Records of the persisted snapshot regardless of age, or an empty catalog."""
        snapshot = self.cache.load(max_age=None)
        if snapshot is None:
            logger.warning("No cached catalog available; continuing with zero objects")
            return {}

        logger.warning(
            f"Using last good catalog of {len(snapshot.records)} objects "
            f"downloaded at {snapshot.downloaded_at_utc:%Y-%m-%d %H:%M:%S} UTC"
        )
        return dict(snapshot.records)
