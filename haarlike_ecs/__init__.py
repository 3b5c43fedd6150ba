"""Haar-like wavelet catalog toolkit with ECS architecture.

This package generates and validates catalogs of Haar-like wavelets, the
rectangle-based features used by cascade object detectors:
- Exhaustive, deduplicated enumeration of 2-, 3- and 4-rectangle wavelets
- Independent validation of every catalog invariant, with statistics
- Entity-Component-System (ECS) architecture for composing checks

Quick Start:
    >>> from haarlike_ecs import generate_catalog_file, validate_catalog_file
    >>>
    >>> counts = generate_catalog_file("haarwavelets.txt")
    >>> report = validate_catalog_file("haarwavelets.txt")
    >>> report.ok
    True

For more control, use the fluent pipeline API:
    >>> from haarlike_ecs import World
    >>> from haarlike_ecs.core.serialization import read_catalog
    >>> from haarlike_ecs.systems.checks import BoundsCheck, DuplicateCheck
    >>>
    >>> world = World()
    >>> eids = world.spawn_catalog(read_catalog("haarwavelets.txt").records)
    >>> repeats = (
    ...     world.pipe(*eids)
    ...     .to(BoundsCheck(window_size=20, min_side=3))
    ...     .to(DuplicateCheck())
    ...     .report("duplicates")
    ... )
"""

__version__ = "0.1.0"

from haarlike_ecs.api import (
    ValidationReport,
    format_report,
    generate_catalog_file,
    validate_catalog,
    validate_catalog_file,
)
from haarlike_ecs.components.geometry import HaarWavelet, Rect
from haarlike_ecs.core.world import World

__all__ = [
    "__version__",
    "ValidationReport",
    "format_report",
    "generate_catalog_file",
    "validate_catalog",
    "validate_catalog_file",
    "HaarWavelet",
    "Rect",
    "World",
]
