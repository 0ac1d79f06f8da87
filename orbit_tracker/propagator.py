"""
Orbital Propagator

SGP4 propagation of a single object with failure containment.

`propagate()` never raises for bad data: a query outside the validity
horizon, an element set that failed to initialise, an SGP4 error code or any
exception from the numerical model all come back as None. Across thousands
of objects some always fail; they must not take the rest of the update pass
down with them.

`TrackedObject` keeps the per-object state machine explicit:

    UNINITIALIZED --success--> VALID --failure--> STALE --success--> VALID

A failed update never overwrites the last valid position.
"""

import logging
import math
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

import numpy as np

import config
from orbit_tracker.reference_frame import as_utc, teme_to_scene
from orbit_tracker.tle_parser import ElementRecord, OrbitalElements

logger = logging.getLogger(__name__)

PROPAGATION_HORIZON = timedelta(days=config.PROPAGATION_HORIZON_DAYS)

# SGP4 error code meanings
SGP4_ERROR_CODES = {
    0: "No error",
    1: "Mean eccentricity < 0.0 or > 1.0",
    2: "Mean motion < 0.0",
    3: "Perturbed eccentricity < 0.0 or > 1.0",
    4: "Semi-latus rectum < 0.0",
    5: "Satellite has decayed",
    6: "Satellite has decayed (low altitude)",
}


class PropagationState(Enum):
    """Validity of a tracked object's position"""

    UNINITIALIZED = "UNINITIALIZED"
    VALID = "VALID"
    STALE = "STALE"


def minutes_since_epoch(epoch: datetime, query_time: datetime) -> float:
    return (as_utc(query_time) - as_utc(epoch)).total_seconds() / 60.0


def propagate(
    elements: OrbitalElements,
    epoch: datetime,
    query_time: datetime,
    horizon: timedelta = PROPAGATION_HORIZON,
) -> Optional[np.ndarray]:
    """
    Propagate an element set to `query_time`.

    Args:
        elements: Parsed element set
        epoch: Reference time of the element set (naive means UTC)
        query_time: Target time (naive means UTC)
        horizon: Maximum |query_time - epoch| that is trusted

    Returns:
        TEME position in km as a numpy array, or None when unavailable.
    """
    epoch = as_utc(epoch)
    query_time = as_utc(query_time)

    if abs(query_time - epoch) > horizon:
        return None

    if elements.init_error != 0:
        return None

    tsince = minutes_since_epoch(epoch, query_time)
    sat = elements.satrec

    try:
        error, position, _velocity = sat.sgp4(sat.jdsatepoch, sat.jdsatepochF + tsince / 1440.0)
    except Exception as e:
        logger.debug(f"SGP4 raised for {elements.name or elements.norad_id} at t={tsince:.1f} min: {e}")
        return None

    if error != 0:
        logger.debug(
            f"SGP4 error {error} for {elements.name or elements.norad_id}: "
            f"{SGP4_ERROR_CODES.get(error, f'Unknown error code {error}')}"
        )
        return None

    if not all(math.isfinite(c) for c in position):
        return None

    return np.array(position, dtype=float)


class TrackedObject:
    """
    One object of the tracked population.

    Holds the parsed elements and the last scene-frame position produced by
    a successful propagation.
    """

    def __init__(self, name: str, elements: OrbitalElements):
        self.name = name
        self.elements = elements
        self.epoch = elements.epoch
        self.state = PropagationState.UNINITIALIZED
        self.last_known_position: Optional[np.ndarray] = None
        self.last_update: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: ElementRecord) -> "TrackedObject":
        """Raises ValueError if the record's element lines cannot be parsed."""
        return cls(record.name, record.to_elements())

    def propagate_scene(self, query_time: datetime, horizon: timedelta = PROPAGATION_HORIZON) -> Optional[np.ndarray]:
        """Scene-frame position at `query_time` without touching object state."""
        position = propagate(self.elements, self.epoch, query_time, horizon)
        if position is None:
            return None
        return teme_to_scene(position)

    def apply(self, scene_position: Optional[np.ndarray], query_time: datetime) -> PropagationState:
        """Record the outcome of a propagation; failures keep the old position."""
        if scene_position is None:
            self.state = PropagationState.STALE
        else:
            self.last_known_position = scene_position
            self.last_update = as_utc(query_time)
            self.state = PropagationState.VALID
        return self.state

    def update(self, query_time: datetime, horizon: timedelta = PROPAGATION_HORIZON) -> PropagationState:
        """Propagate to `query_time` and apply the result."""
        return self.apply(self.propagate_scene(query_time, horizon), query_time)

    def __repr__(self):
        return f"TrackedObject({self.name!r}, state={self.state.value})"
