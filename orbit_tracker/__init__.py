"""
Orbit Tracker Package

Near-real-time tracking core for a population of orbiting objects: element
acquisition with caching, SGP4 propagation, scene-frame mapping, solar
terminator geometry and occlusion by the central body.

Modules:
    tle_parser: TLE records, catalog text parsing, orbital elements
    element_cache: Persistent snapshot of the downloaded catalog
    element_source: CelesTrak and file catalog sources
    catalog_loader: Cache-first catalog loading
    propagator: Contained SGP4 propagation and per-object state
    reference_frame: TEME to scene mapping and geodetic helpers
    solar_ephemeris: Sun direction and terminator circle
    visibility: Occlusion by the central body
    simulation: Simulation clock and per-tick population update

References:
    Vallado, D. A., Crawford, P., Hujsak, R., & Kelso, T. S. (2006).
    Revisiting Spacetrack Report #3. AIAA 2006-6753.
"""

__version__ = "1.0.0"
