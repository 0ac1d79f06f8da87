"""
TLE Parser Module

Provides utilities for splitting catalog text into Two-Line Element (TLE)
records and for turning a record into the orbital state the propagator works
with.

Catalog text comes in groups of three non-empty lines: a name line followed
by the two element lines. A group is accepted only when its element lines
carry their "1 " / "2 " markers; anything else is dropped without failing the
rest of the catalog.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict
from sgp4.api import Satrec

logger = logging.getLogger(__name__)

LINE1_MARKER = "1 "
LINE2_MARKER = "2 "


class ElementRecord(BaseModel):
    """Raw two-line element set for one named object."""

    model_config = ConfigDict(frozen=True)

    name: str
    line1: str
    line2: str

    def to_elements(self) -> "OrbitalElements":
        """Parse the record into an OrbitalElements instance."""
        return OrbitalElements.from_lines(self.line1, self.line2, self.name)


class OrbitalElements:
    """
    Parsed orbital state of a single object.

    Wraps the sgp4 satellite record together with its epoch. The record's
    initialisation error is captured once, at construction, so later
    propagation calls can reject degenerate element sets without depending
    on state the propagator mutates.
    """

    def __init__(self, satrec: Satrec, name: str = ""):
        self.satrec = satrec
        self.name = name
        self.norad_id = satrec.satnum
        self.init_error = int(getattr(satrec, "error", 0) or 0)
        self.epoch = epoch_to_datetime(satrec.epochyr, satrec.epochdays)

    @classmethod
    def from_lines(cls, line1: str, line2: str, name: str = "") -> "OrbitalElements":
        """
        Build elements from raw TLE lines.

        Raises
        ------
        ValueError
            If the lines are not a structurally valid element set.
        """
        if not is_well_formed(line1, line2):
            raise ValueError(f"TLE lines for {name or 'object'} lack their 1/2 markers")
        try:
            satrec = Satrec.twoline2rv(line1, line2)
        except (ValueError, IndexError) as e:
            raise ValueError(f"TLE parsing error for {name or 'object'}: {e}") from e
        return cls(satrec, name)

    @property
    def is_valid(self) -> bool:
        return self.init_error == 0

    def summary(self) -> Dict[str, Any]:
        """Classical elements in conventional units."""
        sat = self.satrec
        return {
            "name": self.name,
            "norad_id": self.norad_id,
            "epoch": self.epoch.isoformat(),
            "inclination_deg": math.degrees(sat.inclo),
            "raan_deg": math.degrees(sat.nodeo),
            "eccentricity": sat.ecco,
            "arg_perigee_deg": math.degrees(sat.argpo),
            "mean_anomaly_deg": math.degrees(sat.mo),
            # Convert mean motion from rad/min to rev/day
            "mean_motion_rev_per_day": sat.no_kozai * 1440.0 / (2.0 * math.pi),
            "bstar_drag": sat.bstar,
        }


def is_well_formed(line1: str, line2: str) -> bool:
    """Check the distinguishing markers of both element lines."""
    return line1.startswith(LINE1_MARKER) and line2.startswith(LINE2_MARKER)


def parse_tle_text(text: str) -> Dict[str, ElementRecord]:
    """
    Parse catalog text into records keyed by object name.

    Args:
        text: Raw newline-delimited catalog text

    Returns:
        Dictionary mapping name to ElementRecord. Malformed groups are dropped.
    """
    lines = [line.strip() for line in (text or "").splitlines()]
    lines = [line for line in lines if line]

    records: Dict[str, ElementRecord] = {}
    dropped = 0

    for i in range(0, len(lines) - 2, 3):
        name, line1, line2 = lines[i], lines[i + 1], lines[i + 2]
        if not is_well_formed(line1, line2):
            dropped += 1
            continue
        records[name] = ElementRecord(name=name, line1=line1, line2=line2)

    if dropped:
        logger.debug(f"Dropped {dropped} malformed TLE groups")

    return records


def epoch_to_datetime(epoch_year: int, epoch_days: float) -> datetime:
    """
    Convert a TLE epoch to an aware UTC datetime.

    Args:
        epoch_year: Two-digit year (57-99 => 19xx, 00-56 => 20xx)
        epoch_days: Day of year with fractional part (day 1 is Jan 1)

    Returns:
        Datetime object in UTC
    """
    year = epoch_year
    if year < 100:
        year = 1900 + year if year >= 57 else 2000 + year

    return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=epoch_days - 1.0)
