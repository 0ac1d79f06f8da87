"""
Solar Ephemeris and Terminator Geometry

Low-precision sun direction for shading and the day/night boundary.

The sun's position is calculated based on:
- Solar declination: seasonal variation from the axial tilt,
  declination = 23.44 deg * sin(2*pi * (284 + day_of_year) / 365)
- Solar hour angle: daily rotation, zero at 12:00 UTC,
  hour_angle = 15 deg * (hours_since_midnight_utc - 12)

At 12:00 UTC the sun stands over the 0 degree meridian; a positive hour angle
means it has moved west. The direction is placed in the scene through
`geographic_to_scene`, i.e. with the same convention as the textured globe.

The terminator is the great circle where the plane through the body centre
perpendicular to the sun direction cuts the body's surface.
"""

import math
from datetime import datetime
from typing import Tuple

import numpy as np

import config
from orbit_tracker.reference_frame import SCENE_PRIME_MERIDIAN, SCENE_UP, as_utc, geographic_to_scene

# Reference-axis switch threshold for building the terminator basis
NEAR_PARALLEL_DOT = 0.9


def solar_declination(when: datetime, axial_tilt_deg: float = config.AXIAL_TILT_DEG) -> float:
    """Solar declination in degrees."""
    day_of_year = as_utc(when).timetuple().tm_yday
    return axial_tilt_deg * math.sin(2.0 * math.pi * (284.0 + day_of_year) / 365.0)


def solar_hour_angle(when: datetime) -> float:
    """Hour angle of the sun at the 0 degree meridian, degrees."""
    t = as_utc(when)
    hours_since_midnight = t.hour + t.minute / 60.0 + (t.second + t.microsecond * 1e-6) / 3600.0
    return 15.0 * (hours_since_midnight - 12.0)


def subsolar_point(when: datetime) -> Tuple[float, float]:
    """Latitude and longitude (degrees, east positive) directly beneath the sun."""
    lon = -solar_hour_angle(when)
    lon = (lon + 180.0) % 360.0 - 180.0
    return solar_declination(when), lon


def sun_direction(when: datetime) -> np.ndarray:
    """Unit vector from the body centre toward the sun, scene coordinates."""
    lat, lon = subsolar_point(when)
    direction = geographic_to_scene(lat, lon)
    return direction / np.linalg.norm(direction)


class SunState:
    """Sun direction and the angles it was derived from, for one instant."""

    def __init__(self, direction: np.ndarray, declination_deg: float, hour_angle_deg: float):
        self.direction = direction
        self.declination_deg = declination_deg
        self.hour_angle_deg = hour_angle_deg

    @classmethod
    def at(cls, when: datetime) -> "SunState":
        return cls(sun_direction(when), solar_declination(when), solar_hour_angle(when))

    def __repr__(self):
        d = self.direction
        return (
            f"SunState(direction=[{d[0]:.4f}, {d[1]:.4f}, {d[2]:.4f}], "
            f"declination={self.declination_deg:.2f}, hour_angle={self.hour_angle_deg:.2f})"
        )


def terminator_circle(radius: float, sun_dir, resolution: int = config.TERMINATOR_RESOLUTION) -> np.ndarray:
    """
    Closed polyline of the terminator.

    Args:
        radius: Body radius (km)
        sun_dir: Direction toward the sun; need not be normalised
        resolution: Number of segments

    Returns:
        Array of shape (resolution + 1, 3); the last point repeats the first.
    """
    if resolution < 1:
        raise ValueError("resolution must be >= 1")
    if radius <= 0:
        raise ValueError("radius must be > 0")

    d = np.asarray(sun_dir, dtype=float)
    norm = np.linalg.norm(d)
    if norm == 0.0 or not np.isfinite(norm):
        raise ValueError("sun direction must be a non-zero finite vector")
    d = d / norm

    # Fall back to the prime-meridian axis if the sun is near the pole
    reference = SCENE_UP
    if abs(np.dot(d, reference)) > NEAR_PARALLEL_DOT:
        reference = SCENE_PRIME_MERIDIAN

    u = np.cross(d, reference)
    u /= np.linalg.norm(u)
    v = np.cross(d, u)
    v /= np.linalg.norm(v)

    theta = 2.0 * np.pi * np.arange(resolution + 1) / resolution
    points = radius * (np.outer(np.cos(theta), u) + np.outer(np.sin(theta), v))
    points[-1] = points[0]
    return points
