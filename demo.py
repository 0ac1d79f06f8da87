"""
Orbit Tracker Demonstration

This script runs the tracking core end to end without a renderer:
- Catalog loading through the element cache (CelesTrak or a local TLE file)
- Per-tick SGP4 propagation of the whole population
- Occlusion of each object by the Earth as seen from a fixed viewer
- Sun direction and terminator circle for the simulated instant
- Optional plot of the scene (positions and terminator)

Usage:
    python demo.py [--source-file FILE] [--refresh] [--ticks N] [--filter TEXT]
                   [--show NAME] [--plot FILE] [--verbose]

If the catalog cannot be downloaded the demo falls back to the last cached
catalog, or to zero objects when there is none.
"""

import argparse
import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np

import config
from logging_config import configure_logging, get_logger, level_from_name
from orbit_tracker.catalog_loader import CatalogLoader
from orbit_tracker.element_cache import ElementCache
from orbit_tracker.element_source import CatalogFetchError, CelesTrakSource, FileSource
from orbit_tracker.propagator import propagate
from orbit_tracker.reference_frame import scene_extent, subpoint
from orbit_tracker.simulation import ObjectTracker, SimulationClock, TickResult

logger = get_logger(__name__)

MAX_LISTED_OBJECTS = 10


def build_loader(args: argparse.Namespace) -> CatalogLoader:
    """Create the catalog loader selected on the command line."""
    source = FileSource(args.source_file) if args.source_file else CelesTrakSource()
    cache = ElementCache(args.cache_file)
    return CatalogLoader(
        source,
        cache,
        catalog=args.catalog,
        max_age=timedelta(hours=args.max_age_hours),
    )


def load_catalog(loader: CatalogLoader, refresh: bool) -> dict:
    """Load the catalog, degrading to the last good snapshot on fetch failure."""
    try:
        return loader.refresh() if refresh else loader.load_catalog()
    except CatalogFetchError as e:
        logger.error(f"Catalog unavailable: {e}")
        return loader.load_last_good()


def show_object(tracker: ObjectTracker, name: str, when: datetime) -> None:
    """Log the elements and ground position of the first object matching `name`."""
    matches = tracker.matching(name)
    if not matches:
        logger.warning(f"No tracked object matches '{name}'")
        return

    obj = tracker.objects[matches[0]]
    summary = obj.elements.summary()

    logger.info(f"{summary['name']} (NORAD {summary['norad_id']}), epoch {summary['epoch']}")
    logger.info(f"Inclination: {summary['inclination_deg']:.4f} degrees")
    logger.info(f"RAAN: {summary['raan_deg']:.4f} degrees")
    logger.info(f"Eccentricity: {summary['eccentricity']:.6f}")
    logger.info(f"Mean Motion: {summary['mean_motion_rev_per_day']:.8f} rev/day")
    logger.info(f"B* Drag: {summary['bstar_drag']:.8e}")

    position = propagate(obj.elements, obj.epoch, when)
    if position is None:
        logger.info(f"{obj.name} has no valid position at {when.isoformat()}")
        return

    lat, lon, alt = subpoint(position, when)
    logger.info(f"Subpoint: {lat:.2f} deg, {lon:.2f} deg, {alt:.1f} km")


def plot_scene(result: TickResult, body_radius: float, output_file: str) -> None:
    """Save a two-view plot of object positions and the terminator."""
    points = [p for p in result.positions if p is not None]
    visible = [v for p, v in zip(result.positions, result.visible) if p is not None]

    fig, axes = plt.subplots(1, 2, figsize=(12, 6))
    views = [(0, 2, "Scene X (km)", "Scene Z (km)", "Top view"), (0, 1, "Scene X (km)", "Scene Y (km)", "Side view")]

    for ax, (i, j, xlabel, ylabel, title) in zip(axes, views):
        ax.add_patch(plt.Circle((0.0, 0.0), body_radius, color="steelblue", alpha=0.3))
        ax.plot(result.terminator[:, i], result.terminator[:, j], color="black", linewidth=1.0, label="Terminator")

        if points:
            pts = np.array(points)
            mask = np.array(visible, dtype=bool)
            ax.scatter(pts[mask, i], pts[mask, j], s=2, color="orange", label="Visible")
            ax.scatter(pts[~mask, i], pts[~mask, j], s=2, color="gray", label="Occluded")

        ax.set_xlabel(xlabel)
        ax.set_ylabel(ylabel)
        ax.set_title(title)
        ax.set_aspect("equal")
        ax.grid(True, alpha=0.3)

    axes[0].legend(loc="upper right")
    fig.suptitle(f"Scene at {result.time:%Y-%m-%d %H:%M:%S} UTC")
    plt.tight_layout()
    plt.savefig(output_file, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved scene plot to {output_file}")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Orbit Tracker Demonstration")
    parser.add_argument("--source-file", help="Read TLE text from a local file instead of CelesTrak")
    parser.add_argument("--catalog", default=config.DEFAULT_CATALOG, help="Catalog group to load")
    parser.add_argument("--cache-file", default=config.CACHE_FILE, help="Element cache location")
    parser.add_argument(
        "--max-age-hours", type=float, default=config.CACHE_MAX_AGE_HOURS, help="Cache freshness threshold"
    )
    parser.add_argument("--refresh", action="store_true", help="Clear the cache before loading")
    parser.add_argument("--max-objects", type=int, default=config.MAX_TRACKED_OBJECTS)
    parser.add_argument("--ticks", type=int, default=3, help="Number of simulation ticks")
    parser.add_argument("--step-seconds", type=float, default=60.0, help="Elapsed seconds between ticks")
    parser.add_argument("--acceleration", type=float, default=config.TIME_ACCELERATION)
    parser.add_argument("--start", help="Simulated start time (ISO 8601, default: now)")
    parser.add_argument(
        "--viewer", type=float, nargs=3, metavar=("X", "Y", "Z"), default=list(config.DEFAULT_VIEWER_POSITION)
    )
    parser.add_argument("--workers", type=int, default=config.PROPAGATION_WORKERS)
    parser.add_argument("--filter", default="", help="Only list objects whose name contains this text")
    parser.add_argument("--show", help="Print elements and subpoint of the named object")
    parser.add_argument("--plot", help="Save a plot of the final tick to this file")
    parser.add_argument("--log-level", default="info")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main demonstration entry point."""
    args = parse_args(argv)

    configure_logging(level=logging.DEBUG if args.verbose else level_from_name(args.log_level))

    logger.info("Orbit Tracker Demonstration")
    logger.info("=" * 60)

    loader = build_loader(args)
    catalog = load_catalog(loader, args.refresh)

    start = None
    if args.start:
        start = datetime.fromisoformat(args.start)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)

    tracker = ObjectTracker.from_catalog(
        catalog,
        max_objects=args.max_objects,
        clock=SimulationClock(start_time=start, acceleration=args.acceleration),
        workers=args.workers,
    )

    result = None
    for tick in range(max(args.ticks, 1)):
        result = tracker.tick(tick * args.step_seconds, args.viewer)
        valid = sum(1 for p in result.positions if p is not None)
        logger.info(
            f"Tick {tick} at {result.time:%Y-%m-%d %H:%M:%S} UTC: "
            f"{valid}/{len(result)} positioned, {result.visible_count} visible"
        )

    logger.info(f"Sun: {result.sun}")
    counts = tracker.state_counts()
    logger.info("States: " + ", ".join(f"{state.value}={n}" for state, n in counts.items()))

    positioned = [p for p in result.positions if p is not None]
    if positioned:
        extent = scene_extent(positioned)
        for axis, (lo, hi, span) in extent.items():
            logger.info(f"Scene {axis} range: {lo:.2f} to {hi:.2f} km (span: {span:.2f} km)")

    matches = tracker.matching(args.filter)
    logger.info(f"{len(matches)} objects match filter '{args.filter}'")
    for index in matches[:MAX_LISTED_OBJECTS]:
        obj = tracker.objects[index]
        pos = obj.last_known_position
        where = "no position" if pos is None else f"[{pos[0]:.1f}, {pos[1]:.1f}, {pos[2]:.1f}] km"
        shown = "visible" if result.visible[index] else "occluded"
        logger.info(f"  {obj.name}: {obj.state.value}, {where}, {shown}")

    if args.show:
        show_object(tracker, args.show, result.time)

    if args.plot:
        plot_scene(result, tracker.body_radius, args.plot)

    logger.info("=" * 60)
    logger.info("Demonstration complete")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
