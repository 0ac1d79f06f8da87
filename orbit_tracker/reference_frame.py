"""
Reference Frames

The scene convention lives here and only here.

Propagation yields TEME coordinates: X toward the vernal equinox, Z through
the north pole, Y completing the right-handed set. The rendering scene is
Y-up, so the inertial polar axis becomes scene "up" and the inertial Y axis
is negated to keep the frame right-handed:

    scene.x =  teme.x
    scene.y =  teme.z
    scene.z = -teme.y

The textured globe puts its 0 degree meridian on scene +X. Anything that
needs a body-fixed direction in the scene (the sun, surface markers) goes
through `geographic_to_scene`, which applies the same matrix, so the two
cannot drift apart.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Dict, Iterable, Tuple

import numpy as np
from sgp4.api import jday

logger = logging.getLogger(__name__)

INERTIAL_TO_SCENE = np.array(
    [
        [1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0],
        [0.0, -1.0, 0.0],
    ]
)

SCENE_UP = INERTIAL_TO_SCENE @ np.array([0.0, 0.0, 1.0])
SCENE_PRIME_MERIDIAN = INERTIAL_TO_SCENE @ np.array([1.0, 0.0, 0.0])

# Vertical span below which a spread of positions looks flattened (km)
MIN_EXPECTED_VERTICAL_SPAN_KM = 100.0

# WGS84 parameters
WGS84_A_KM = 6378.137
WGS84_F = 1.0 / 298.257223563


def as_utc(when: datetime) -> datetime:
    """Aware UTC copy of `when`; naive datetimes are taken to be UTC."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)


def teme_to_scene(position) -> np.ndarray:
    """Map a TEME position (km) into scene coordinates."""
    return INERTIAL_TO_SCENE @ np.asarray(position, dtype=float)


def scene_to_teme(position) -> np.ndarray:
    return INERTIAL_TO_SCENE.T @ np.asarray(position, dtype=float)


def geographic_to_scene(lat_deg: float, lon_deg: float, radius: float = 1.0) -> np.ndarray:
    """
    Scene vector for a body-fixed latitude/longitude.

    Longitude 0 lies on SCENE_PRIME_MERIDIAN, positive longitudes run east.
    """
    lat = math.radians(lat_deg)
    lon = math.radians(lon_deg)
    body = radius * np.array(
        [
            math.cos(lat) * math.cos(lon),
            math.cos(lat) * math.sin(lon),
            math.sin(lat),
        ]
    )
    return INERTIAL_TO_SCENE @ body


def scene_extent(points: Iterable) -> Dict[str, Tuple[float, float, float]]:
    """
    Per-axis (min, max, span) of a set of scene points.

    A population of real orbits covers a wide vertical band; a vertical span
    under MIN_EXPECTED_VERTICAL_SPAN_KM usually means the up axis was mapped
    wrongly, so it is logged as a warning.
    """
    pts = np.asarray(list(points), dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        return {}

    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    extent = {
        axis: (float(lo[i]), float(hi[i]), float(hi[i] - lo[i]))
        for i, axis in enumerate(("x", "y", "z"))
    }

    if len(pts) > 1 and extent["y"][2] < MIN_EXPECTED_VERTICAL_SPAN_KM:
        logger.warning(
            f"Vertical (y) span of {len(pts)} positions is only {extent['y'][2]:.2f} km; "
            "check the inertial-to-scene axis mapping"
        )

    return extent


def greenwich_sidereal_angle(when: datetime) -> float:
    """Greenwich mean sidereal time in radians (IAU 1982 expression)."""
    when = as_utc(when)
    jd, fr = jday(
        when.year, when.month, when.day,
        when.hour, when.minute,
        when.second + when.microsecond * 1e-6,
    )
    t = (jd - 2451545.0 + fr) / 36525.0

    gmst_sec = (
        67310.54841
        + (876600.0 * 3600.0 + 8640184.812866) * t
        + 0.093104 * t * t
        - 6.2e-6 * t * t * t
    )
    return (gmst_sec % 86400.0) * (2.0 * math.pi / 86400.0)


def teme_to_ecef(position, when: datetime) -> np.ndarray:
    """Rotate a TEME position about the polar axis into the Earth-fixed frame."""
    theta = greenwich_sidereal_angle(when)
    c, s = math.cos(theta), math.sin(theta)
    x, y, z = np.asarray(position, dtype=float)
    return np.array([c * x + s * y, -s * x + c * y, z])


def ecef_to_geodetic(position) -> Tuple[float, float, float]:
    """
    Earth-fixed position (km) to WGS84 geodetic coordinates.

    Returns:
        Tuple of (latitude_deg, longitude_deg, altitude_km)
    """
    x, y, z = np.asarray(position, dtype=float)
    e2 = 2.0 * WGS84_F - WGS84_F * WGS84_F

    lon = math.atan2(y, x)
    p = math.hypot(x, y)

    if p < 1e-10:
        b = WGS84_A_KM * (1.0 - WGS84_F)
        lat = math.copysign(math.pi / 2.0, z)
        return math.degrees(lat), math.degrees(lon), abs(z) - b

    lat = math.atan2(z, p * (1.0 - e2))
    for _ in range(5):  # Usually converges quickly
        n = WGS84_A_KM / math.sqrt(1.0 - e2 * math.sin(lat) ** 2)
        h = p / math.cos(lat) - n
        lat = math.atan2(z, p * (1.0 - e2 * n / (n + h)))

    n = WGS84_A_KM / math.sqrt(1.0 - e2 * math.sin(lat) ** 2)
    alt = p / math.cos(lat) - n

    return math.degrees(lat), math.degrees(lon), alt


def subpoint(position_teme, when: datetime) -> Tuple[float, float, float]:
    """Geodetic latitude, longitude and altitude beneath a TEME position."""
    return ecef_to_geodetic(teme_to_ecef(position_teme, when))
