"""
Orbit Tracker Configuration and Constants

This module contains the tunable settings and scene constants used throughout
the project. Settings that operators commonly change can be overridden with
environment variables; everything else is a plain module-level constant.

Environment overrides:
    CELESTRAK_API_BASE        Base URL of the catalog endpoint
    TLE_CATALOG               Catalog group to load (default: active)
    TLE_CACHE_FILE            Location of the persisted element cache
    TLE_CACHE_MAX_AGE_HOURS   Freshness threshold for the cache
    TLE_FETCH_TIMEOUT         HTTP timeout for the catalog download (s)
    PROPAGATION_HORIZON_DAYS  Validity window around each element epoch
    MAX_TRACKED_OBJECTS       Upper bound on the tracked population
    TIME_ACCELERATION         Simulated seconds per elapsed wall second
    PROPAGATION_WORKERS       Worker threads used for each tick

Sample TLE Data:
    The ISS element set below is used by the demo and the tests. It is NOT
    current; live tracking always goes through the catalog loader.
"""

import os
from typing import Dict, Tuple

# Catalog acquisition
CELESTRAK_BASE: str = os.getenv("CELESTRAK_API_BASE", "https://celestrak.org")
DEFAULT_CATALOG: str = os.getenv("TLE_CATALOG", "active")
CACHE_FILE: str = os.getenv("TLE_CACHE_FILE", os.path.join("cache", "tle_cache.json"))
CACHE_MAX_AGE_HOURS: float = float(os.getenv("TLE_CACHE_MAX_AGE_HOURS", "24"))
FETCH_TIMEOUT_S: float = float(os.getenv("TLE_FETCH_TIMEOUT", "30"))

# Propagation
PROPAGATION_HORIZON_DAYS: float = float(os.getenv("PROPAGATION_HORIZON_DAYS", "7"))
MAX_TRACKED_OBJECTS: int = int(os.getenv("MAX_TRACKED_OBJECTS", "10000"))
TIME_ACCELERATION: float = float(os.getenv("TIME_ACCELERATION", "1.0"))
PROPAGATION_WORKERS: int = int(os.getenv("PROPAGATION_WORKERS", "8"))

# Scene
SCENE_BODY_RADIUS_KM: float = 6371.0  # Mean Earth radius used for the rendered globe
AXIAL_TILT_DEG: float = 23.44
TERMINATOR_RESOLUTION: int = 128
DEFAULT_VIEWER_POSITION: Tuple[float, float, float] = (0.0, 0.0, 15000.0)

# Sample ISS TLE for demonstrations and testing
SAMPLE_ISS_TLE: Dict[str, str] = {
    "name": "ISS (ZARYA)",
    "line1": "1 25544U 98067A   23259.57580000  .00012022  00000-0  21844-3 0  9995",
    "line2": "2 25544  51.6416 220.9944 0004263 122.0101 312.2755 15.49541986415598",
}
