"""
Simulation Tick

Drives the tracked population forward one frame at a time:

    simulated time -> propagate (fan-out) -> apply -> occlusion -> sun/terminator

Objects live in an arena (a list) and are addressed by index. Propagation of
each index is pure and independent, so it is mapped over a thread pool; the
results are gathered first and applied serially, so no worker ever mutates a
TrackedObject.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import numpy as np

import config
from orbit_tracker.propagator import PROPAGATION_HORIZON, PropagationState, TrackedObject
from orbit_tracker.reference_frame import as_utc
from orbit_tracker.solar_ephemeris import SunState, terminator_circle
from orbit_tracker.tle_parser import ElementRecord
from orbit_tracker.visibility import ORIGIN, occlusion_flags

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SimulationClock:
    """
    Maps elapsed run time to simulated UTC time.

    The start time is fixed on the first call to `start()` or `simulated_time()`
    unless it was injected, which keeps runs reproducible in tests. Naive
    times are taken to be UTC.

    Args:
        start_time: Simulated time at elapsed 0 (None: wall clock at first tick)
        acceleration: Simulated seconds per elapsed second
        wall_clock: Source of the current time
    """

    def __init__(
        self,
        start_time: Optional[datetime] = None,
        acceleration: float = config.TIME_ACCELERATION,
        wall_clock: Callable[[], datetime] = _utc_now,
    ):
        self.start_time = None if start_time is None else as_utc(start_time)
        self.acceleration = acceleration
        self._wall_clock = wall_clock

    @property
    def started(self) -> bool:
        return self.start_time is not None

    def start(self) -> datetime:
        if self.start_time is None:
            self.start_time = as_utc(self._wall_clock())
            logger.info(f"Simulation clock started at {self.start_time.isoformat()}")
        return self.start_time

    def simulated_time(self, elapsed_seconds: float) -> datetime:
        return self.start() + timedelta(seconds=elapsed_seconds * self.acceleration)


class TickResult:
    """Everything the rendering layer reads for one frame."""

    def __init__(
        self,
        time: datetime,
        positions: List[Optional[np.ndarray]],
        visible: List[bool],
        states: List[PropagationState],
        sun: SunState,
        terminator: np.ndarray,
    ):
        self.time = time
        self.positions = positions
        self.visible = visible
        self.states = states
        self.sun = sun
        self.terminator = terminator

    @property
    def visible_count(self) -> int:
        return sum(self.visible)

    def __len__(self):
        return len(self.positions)


class ObjectTracker:
    """
    Arena of tracked objects updated once per tick.

    Args:
        objects: Tracked objects, addressed by list index
        clock: Simulation clock
        body_radius: Radius of the central body in scene units (km)
        workers: Thread count for propagation; <= 1 runs serially
        horizon: Propagation validity window
        terminator_resolution: Segments in the terminator polyline
    """

    def __init__(
        self,
        objects: Sequence[TrackedObject],
        clock: Optional[SimulationClock] = None,
        body_radius: float = config.SCENE_BODY_RADIUS_KM,
        workers: int = config.PROPAGATION_WORKERS,
        horizon: timedelta = PROPAGATION_HORIZON,
        terminator_resolution: int = config.TERMINATOR_RESOLUTION,
    ):
        self.objects: List[TrackedObject] = list(objects)
        self.clock = clock or SimulationClock()
        self.body_radius = body_radius
        self.workers = workers
        self.horizon = horizon
        self.terminator_resolution = terminator_resolution

    @classmethod
    def from_catalog(
        cls,
        catalog: Mapping[str, ElementRecord],
        max_objects: int = config.MAX_TRACKED_OBJECTS,
        **kwargs,
    ) -> "ObjectTracker":
        """
        Build a tracker from loaded records.

        Records whose element lines fail to parse are skipped; at most
        `max_objects` objects are kept.
        """
        objects = []
        skipped = 0

        for name, record in catalog.items():
            if len(objects) >= max_objects:
                logger.info(f"Object limit of {max_objects} reached; ignoring remaining records")
                break
            try:
                objects.append(TrackedObject.from_record(record))
            except ValueError as e:
                skipped += 1
                logger.debug(f"Skipping {name}: {e}")

        if skipped:
            logger.warning(f"Skipped {skipped} records with unparseable elements")
        logger.info(f"Tracking {len(objects)} objects")

        return cls(objects, **kwargs)

    def __len__(self):
        return len(self.objects)

    def _propagate_index(self, index: int, when: datetime) -> Optional[np.ndarray]:
        return self.objects[index].propagate_scene(when, self.horizon)

    def propagate_all(self, when: datetime) -> List[Optional[np.ndarray]]:
        """Scene positions for every object at `when`, in arena order."""
        indices = range(len(self.objects))

        if self.workers <= 1 or len(self.objects) < 2:
            return [self._propagate_index(i, when) for i in indices]

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            return list(executor.map(lambda i: self._propagate_index(i, when), indices))

    def tick(self, elapsed_seconds: float, viewer_position=config.DEFAULT_VIEWER_POSITION) -> TickResult:
        """Advance the whole population to the simulated time for `elapsed_seconds`."""
        return self.tick_at(self.clock.simulated_time(elapsed_seconds), viewer_position)

    def tick_at(self, when: datetime, viewer_position=config.DEFAULT_VIEWER_POSITION) -> TickResult:
        when = as_utc(when)
        results = self.propagate_all(when)

        states = [obj.apply(pos, when) for obj, pos in zip(self.objects, results)]
        positions = [obj.last_known_position for obj in self.objects]

        hidden = occlusion_flags(viewer_position, positions, ORIGIN, self.body_radius)
        sun = SunState.at(when)
        terminator = terminator_circle(self.body_radius, sun.direction, self.terminator_resolution)

        return TickResult(
            time=when,
            positions=positions,
            visible=[not h for h in hidden],
            states=states,
            sun=sun,
            terminator=terminator,
        )

    def matching(self, text: str) -> List[int]:
        """Indices whose name contains `text`, case-insensitive; empty text matches all."""
        if not text:
            return list(range(len(self.objects)))
        needle = text.lower()
        return [i for i, obj in enumerate(self.objects) if needle in obj.name.lower()]

    def state_counts(self) -> Dict[PropagationState, int]:
        counts = {state: 0 for state in PropagationState}
        for obj in self.objects:
            counts[obj.state] += 1
        return counts
