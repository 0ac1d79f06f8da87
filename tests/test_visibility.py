"""
Tests for Occlusion by the Central Body

Run with:
    python -m pytest tests/test_visibility.py -v
"""

import unittest

import numpy as np

from orbit_tracker.visibility import ORIGIN, is_occluded, occlusion_flags

RADIUS = 6371.0
VIEWER = (0.0, 0.0, 20000.0)


class TestIsOccluded(unittest.TestCase):
    """Test suite for is_occluded()."""

    def test_directly_behind_body(self):
        """An object opposite the viewer through the body is hidden."""
        self.assertTrue(is_occluded(VIEWER, (0.0, 0.0, -20000.0), ORIGIN, RADIUS))

    def test_same_side_near_viewer(self):
        """An object just beyond the viewer on the same side is visible."""
        self.assertFalse(is_occluded(VIEWER, (0.0, 0.0, 20500.0), ORIGIN, RADIUS))

    def test_between_viewer_and_body(self):
        self.assertFalse(is_occluded(VIEWER, (0.0, 0.0, 8000.0), ORIGIN, RADIUS))

    def test_inside_body(self):
        """Positions inside the body are always hidden."""
        self.assertTrue(is_occluded(VIEWER, (0.0, 1000.0, 2000.0), ORIGIN, RADIUS))

    def test_side_object_visible(self):
        """An object a quarter turn around the body is in plain sight."""
        self.assertFalse(is_occluded(VIEWER, (20000.0, 0.0, 0.0), ORIGIN, RADIUS))

    def test_grazing_far_side_is_hidden(self):
        """The far-side rule hides objects the ray test lets through."""
        target = (30000.0, 0.0, -15000.0)
        self.assertTrue(is_occluded(VIEWER, target, ORIGIN, RADIUS))

    def test_behind_viewer(self):
        """Objects behind the viewer, away from the body, are visible."""
        self.assertFalse(is_occluded(VIEWER, (3000.0, 0.0, 40000.0), ORIGIN, RADIUS))

    def test_shifted_body_center(self):
        center = np.array([100000.0, 0.0, 0.0])
        viewer = center + np.array([0.0, 0.0, 20000.0])
        target = center + np.array([0.0, 0.0, -20000.0])

        self.assertTrue(is_occluded(viewer, target, center, RADIUS))
        self.assertFalse(is_occluded(viewer, center + np.array([0.0, 0.0, 20500.0]), center, RADIUS))

    def test_viewer_at_object(self):
        """A zero-length sight line does not fail."""
        self.assertFalse(is_occluded(VIEWER, VIEWER, ORIGIN, RADIUS))


class TestOcclusionFlags(unittest.TestCase):
    """Test suite for batch decisions."""

    def test_flags_in_order(self):
        positions = [(0.0, 0.0, -20000.0), (0.0, 0.0, 20500.0), None]

        flags = occlusion_flags(VIEWER, positions, ORIGIN, RADIUS)

        self.assertEqual(flags, [True, False, True])

    def test_empty(self):
        self.assertEqual(occlusion_flags(VIEWER, [], ORIGIN, RADIUS), [])


if __name__ == "__main__":
    unittest.main()
