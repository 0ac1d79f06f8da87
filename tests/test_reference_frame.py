"""
Tests for the Inertial-to-Scene Mapping and Geodetic Helpers

Run with:
    python -m pytest tests/test_reference_frame.py -v
"""

import math
import unittest
from datetime import datetime, timedelta, timezone

import numpy as np

import config
from orbit_tracker.propagator import propagate
from orbit_tracker.reference_frame import (
    INERTIAL_TO_SCENE,
    SCENE_PRIME_MERIDIAN,
    SCENE_UP,
    as_utc,
    ecef_to_geodetic,
    geographic_to_scene,
    greenwich_sidereal_angle,
    scene_extent,
    scene_to_teme,
    subpoint,
    teme_to_ecef,
    teme_to_scene,
)
from orbit_tracker.tle_parser import OrbitalElements


class TestSceneMapping(unittest.TestCase):
    """Test suite for the fixed inertial-to-scene matrix."""

    def test_axis_mapping(self):
        """(x, y, z) maps to (x, z, -y)."""
        np.testing.assert_array_equal(teme_to_scene([1.0, 2.0, 3.0]), [1.0, 3.0, -2.0])

    def test_polar_axis_is_up(self):
        np.testing.assert_array_equal(SCENE_UP, [0.0, 1.0, 0.0])
        np.testing.assert_array_equal(SCENE_PRIME_MERIDIAN, [1.0, 0.0, 0.0])

    def test_mapping_is_a_rotation(self):
        """The matrix is orthonormal and keeps handedness."""
        np.testing.assert_allclose(INERTIAL_TO_SCENE @ INERTIAL_TO_SCENE.T, np.eye(3))
        self.assertAlmostEqual(np.linalg.det(INERTIAL_TO_SCENE), 1.0)

    def test_inverse(self):
        vector = np.array([6524.8, -1200.5, 812.3])
        np.testing.assert_allclose(scene_to_teme(teme_to_scene(vector)), vector)

    def test_preserves_length(self):
        vector = np.array([-4200.0, 3100.0, 5000.0])
        self.assertAlmostEqual(np.linalg.norm(teme_to_scene(vector)), np.linalg.norm(vector))

    def test_geographic_axes(self):
        """Body-fixed directions land on the matching scene axes."""
        np.testing.assert_allclose(geographic_to_scene(0.0, 0.0), [1.0, 0.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(geographic_to_scene(90.0, 0.0), [0.0, 1.0, 0.0], atol=1e-12)
        np.testing.assert_allclose(geographic_to_scene(0.0, 90.0), [0.0, 0.0, -1.0], atol=1e-12)

    def test_geographic_radius(self):
        point = geographic_to_scene(35.0, -120.0, radius=6371.0)
        self.assertAlmostEqual(np.linalg.norm(point), 6371.0)


class TestAsUtc(unittest.TestCase):
    """Test suite for UTC normalisation of input times."""

    def test_naive_is_utc(self):
        self.assertEqual(as_utc(datetime(2024, 3, 1, 6, 30)), datetime(2024, 3, 1, 6, 30, tzinfo=timezone.utc))

    def test_offset_is_converted(self):
        local = datetime(2024, 3, 1, 8, 30, tzinfo=timezone(timedelta(hours=2)))
        converted = as_utc(local)

        self.assertEqual(converted.tzinfo, timezone.utc)
        self.assertEqual(converted.hour, 6)


class TestSceneExtent(unittest.TestCase):
    """Test suite for the axis-span diagnostic."""

    def test_extent_values(self):
        extent = scene_extent([[0.0, -500.0, 10.0], [100.0, 700.0, -30.0]])

        self.assertEqual(extent["x"], (0.0, 100.0, 100.0))
        self.assertEqual(extent["y"], (-500.0, 700.0, 1200.0))
        self.assertEqual(extent["z"], (-30.0, 10.0, 40.0))

    def test_flat_vertical_span_warns(self):
        """A near-zero vertical spread is reported as a warning."""
        points = [[7000.0, 1.0, 0.0], [-7000.0, 2.0, 100.0], [0.0, 0.5, 7000.0]]

        with self.assertLogs("orbit_tracker.reference_frame", level="WARNING"):
            scene_extent(points)

    def test_empty(self):
        self.assertEqual(scene_extent([]), {})


class TestGeodetic(unittest.TestCase):
    """Test suite for Earth-fixed conversions."""

    def test_equator_surface(self):
        lat, lon, alt = ecef_to_geodetic([6378.137, 0.0, 0.0])

        self.assertAlmostEqual(lat, 0.0, places=6)
        self.assertAlmostEqual(lon, 0.0, places=6)
        self.assertAlmostEqual(alt, 0.0, places=3)

    def test_longitude_east(self):
        _, lon, alt = ecef_to_geodetic([0.0, 7000.0, 0.0])

        self.assertAlmostEqual(lon, 90.0, places=6)
        self.assertAlmostEqual(alt, 7000.0 - 6378.137, places=3)

    def test_pole(self):
        """Positions on the polar axis do not divide by zero."""
        lat, _, alt = ecef_to_geodetic([0.0, 0.0, -7000.0])

        self.assertEqual(lat, -90.0)
        self.assertAlmostEqual(alt, 7000.0 - 6356.752, places=2)

    def test_gmst_at_j2000(self):
        """GMST at 2000-01-01 12:00 UT is about 280.46 degrees."""
        theta = greenwich_sidereal_angle(datetime(2000, 1, 1, 12, tzinfo=timezone.utc))
        self.assertAlmostEqual(math.degrees(theta), 280.4606, places=3)

    def test_teme_to_ecef_keeps_polar_component(self):
        when = datetime(2024, 3, 1, 6, 30, tzinfo=timezone.utc)
        ecef = teme_to_ecef([4000.0, 3000.0, 5000.0], when)

        self.assertEqual(ecef[2], 5000.0)
        self.assertAlmostEqual(np.linalg.norm(ecef[:2]), 5000.0)

    def test_iss_subpoint(self):
        """The ISS ground track stays within its inclination band."""
        tle = config.SAMPLE_ISS_TLE
        elements = OrbitalElements.from_lines(tle["line1"], tle["line2"], tle["name"])
        position = propagate(elements, elements.epoch, elements.epoch)

        lat, lon, alt = subpoint(position, elements.epoch)

        self.assertLessEqual(abs(lat), 52.0)
        self.assertTrue(-180.0 <= lon <= 180.0)
        self.assertTrue(350.0 < alt < 450.0)


if __name__ == "__main__":
    unittest.main()
