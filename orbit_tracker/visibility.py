"""
Visibility / Occlusion

Decides whether a tracked object is hidden behind the central body as seen
from the viewer. Checks run in order and the first positive one wins:

1. Object inside the body.
2. Exact ray-sphere test: the viewer->object segment passes through the
   body and the object lies beyond the exit point.
3. Far-side heuristic: the object sits more than ~101.5 deg around the body
   from the viewer (cosine below -0.2) while both are clear of the surface
   (beyond 1.2 body radii). The exact test flickers at grazing incidence
   near the silhouette; this keeps such objects consistently hidden.
"""

from typing import Iterable, List, Optional

import numpy as np

import config

ORIGIN = np.zeros(3)

FAR_SIDE_COS_LIMIT = -0.2
FAR_SIDE_MIN_DISTANCE_FACTOR = 1.2


def _unit(vector: np.ndarray) -> Optional[np.ndarray]:
    norm = np.linalg.norm(vector)
    if norm == 0.0:
        return None
    return vector / norm


def is_occluded(
    viewer_pos,
    object_pos,
    body_center=ORIGIN,
    body_radius: float = config.SCENE_BODY_RADIUS_KM,
) -> bool:
    """
    True if the body blocks the line of sight from viewer to object.

    Args:
        viewer_pos: Viewer position (scene frame)
        object_pos: Object position (scene frame)
        body_center: Centre of the occluding sphere
        body_radius: Radius of the occluding sphere
    """
    viewer = np.asarray(viewer_pos, dtype=float)
    target = np.asarray(object_pos, dtype=float)
    center = np.asarray(body_center, dtype=float)

    center_to_object = target - center
    object_distance = np.linalg.norm(center_to_object)

    # Inside the body (should not happen for propagated orbits)
    if object_distance < body_radius:
        return True

    viewer_to_object = target - viewer
    sight_distance = np.linalg.norm(viewer_to_object)
    sight_dir = _unit(viewer_to_object)

    if sight_dir is not None:
        t = np.dot(center - viewer, sight_dir)
        closest_point = viewer + sight_dir * t
        miss_distance = np.linalg.norm(closest_point - center)

        if miss_distance < body_radius:
            half_chord = np.sqrt(body_radius * body_radius - miss_distance * miss_distance)
            t_exit = t + half_chord
            if sight_distance > t_exit and t_exit > 0.0:
                return True

    center_to_viewer = viewer - center
    viewer_distance = np.linalg.norm(center_to_viewer)
    viewer_dir = _unit(center_to_viewer)
    object_dir = _unit(center_to_object)

    if viewer_dir is not None and object_dir is not None:
        if np.dot(viewer_dir, object_dir) < FAR_SIDE_COS_LIMIT:
            clearance = body_radius * FAR_SIDE_MIN_DISTANCE_FACTOR
            if viewer_distance > clearance and object_distance > clearance:
                return True

    return False


def occlusion_flags(
    viewer_pos,
    positions: Iterable,
    body_center=ORIGIN,
    body_radius: float = config.SCENE_BODY_RADIUS_KM,
) -> List[bool]:
    """
    Occlusion decision for each position; None entries count as occluded.
    """
    return [
        True if pos is None else is_occluded(viewer_pos, pos, body_center, body_radius)
        for pos in positions
    ]
