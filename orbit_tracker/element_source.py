"""
Element Sources

Where raw catalog text comes from. The loader only needs `fetch(catalog)`;
the HTTP source talks to CelesTrak's GP endpoint and the file source reads a
TLE file from disk (offline runs, fixtures).

Every transport problem surfaces as CatalogFetchError so callers can decide
between retrying, degrading and aborting.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import requests

import config

logger = logging.getLogger(__name__)

# CelesTrak GP groups for the catalogs we know by name
CATALOG_GROUPS = {
    "active": "active",
    "stations": "stations",
    "starlink": "starlink",
    "gps": "gps-ops",
    "gps-ops": "gps-ops",
    "weather": "weather",
    "science": "science",
}


class CatalogFetchError(RuntimeError):
    """Raised when catalog text cannot be obtained from a source."""


class ElementSource(ABC):
    """Abstract provider of raw element-set text for a named catalog."""

    @abstractmethod
    def fetch(self, catalog: str) -> str:
        """Return raw TLE text for `catalog` or raise CatalogFetchError."""

    def describe(self, catalog: str) -> str:
        return f"{type(self).__name__}({catalog})"


def _looks_like_html(text: str) -> bool:
    t = (text or "").lower()
    return ("<html" in t) or ("<!doctype html" in t) or ("</html>" in t)


class CelesTrakSource(ElementSource):
    """
    Downloads catalogs from the CelesTrak GP API in TLE format.

    Args:
        base_url: Service root (default from config)
        timeout: Request timeout in seconds
        session: Optional requests session (connection reuse, tests)
    """

    def __init__(
        self,
        base_url: str = config.CELESTRAK_BASE,
        timeout: float = config.FETCH_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": "OrbitTracker/1.0"})

    def url_for(self, catalog: str) -> str:
        group = CATALOG_GROUPS.get(catalog.lower(), catalog)
        return f"{self.base_url}/NORAD/elements/gp.php?GROUP={group}&FORMAT=tle"

    def describe(self, catalog: str) -> str:
        return self.url_for(catalog)

    def fetch(self, catalog: str) -> str:
        url = self.url_for(catalog)
        logger.info(f"Downloading TLE data from {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise CatalogFetchError(f"Failed to fetch '{catalog}' catalog from CelesTrak: {e}") from e

        content_type = (response.headers.get("Content-Type", "") or "").lower()
        text = response.text or ""

        if "text/html" in content_type or _looks_like_html(text):
            raise CatalogFetchError(
                f"CelesTrak returned non-TLE content for '{catalog}' (HTML/error page)"
            )

        return text


class FileSource(ElementSource):
    """Reads catalog text from a local TLE file; the catalog name is ignored."""

    def __init__(self, path: str):
        self.path = path

    def describe(self, catalog: str) -> str:
        return self.path

    def fetch(self, catalog: str) -> str:
        try:
            with open(self.path, "r", encoding="utf-8") as fh:
                return fh.read()
        except OSError as e:
            raise CatalogFetchError(f"Cannot read TLE file {self.path}: {e}") from e
