"""Catalog validation systems.

Each system wraps one check from haarlike_ecs.eval.checks. Findings are
flagged on the entity in world.metadata[eid] and collected for the whole
batch in world.reports:

- OverlapCheck           -> reports['overlap']        list of eids
- BoundsCheck            -> reports['out_of_bounds']  list of eids
- DuplicateCheck         -> reports['duplicates']     list of (eid, eid)
- CatalogHistogramSystem -> reports['histogram']      CatalogHistogram
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from haarlike_ecs.components.geometry import HaarWavelet
from haarlike_ecs.core.system import System
from haarlike_ecs.eval.checks import (
    duplicate_index_pairs,
    histogram,
    out_of_bounds_indices,
    overlapping_indices,
)

if TYPE_CHECKING:
    from haarlike_ecs.core.world import World


class OverlapCheck(System):
    """Flag wavelets containing two identical rectangles.

    Sets world.metadata[eid]['overlap'] = True on offenders.
    """

    def required_components(self) -> list[type]:
        return [HaarWavelet]

    def produced_components(self) -> list[type]:
        return []

    def run(self, world: World, eids: list[int]) -> None:
        offenders = [eids[i] for i in overlapping_indices(world.wavelets(eids))]
        for eid in offenders:
            world.metadata[eid]["overlap"] = True
        world.reports["overlap"] = offenders


class BoundsCheck(System):
    """Flag wavelets with a rectangle outside the window or below min_side.

    Sets world.metadata[eid]['out_of_bounds'] = True on offenders.
    """

    def __init__(self, window_size: int = 20, min_side: int = 3) -> None:
        """Initialize bounds check.

        Args:
            window_size: Side of the square sampling window
            min_side: Minimum rectangle width and height
        """
        self.window_size = window_size
        self.min_side = min_side

    def required_components(self) -> list[type]:
        return [HaarWavelet]

    def produced_components(self) -> list[type]:
        return []

    def run(self, world: World, eids: list[int]) -> None:
        indices = out_of_bounds_indices(
            world.wavelets(eids), self.window_size, self.min_side
        )
        offenders = [eids[i] for i in indices]
        for eid in offenders:
            world.metadata[eid]["out_of_bounds"] = True
        world.reports["out_of_bounds"] = offenders

    def __repr__(self) -> str:
        return f"BoundsCheck(window_size={self.window_size}, min_side={self.min_side})"


class DuplicateCheck(System):
    """Report canonically equal wavelet pairs across the batch.

    The later entity of each pair gets world.metadata[eid]['duplicate_of'].
    """

    def __init__(self, exhaustive: bool = False) -> None:
        """Initialize duplicate check.

        Args:
            exhaustive: Compare every pair instead of bounding-box blocks
        """
        self.exhaustive = exhaustive

    def required_components(self) -> list[type]:
        return [HaarWavelet]

    def produced_components(self) -> list[type]:
        return []

    def run(self, world: World, eids: list[int]) -> None:
        pairs = [
            (eids[i], eids[j])
            for i, j in duplicate_index_pairs(
                world.wavelets(eids), exhaustive=self.exhaustive
            )
        ]
        for first, second in pairs:
            world.metadata[second].setdefault("duplicate_of", first)
        world.reports["duplicates"] = pairs


class CatalogHistogramSystem(System):
    """Store dimension, side-length and spatial histograms of the batch."""

    def __init__(
        self,
        window_size: int = 20,
        x_bands: tuple[float, float] = (0.4, 0.6),
        y_bands: tuple[float, float] = (0.35, 0.65),
    ) -> None:
        self.window_size = window_size
        self.x_bands = x_bands
        self.y_bands = y_bands

    def required_components(self) -> list[type]:
        return [HaarWavelet]

    def produced_components(self) -> list[type]:
        return []

    def run(self, world: World, eids: list[int]) -> None:
        world.reports["histogram"] = histogram(
            world.wavelets(eids),
            window_size=self.window_size,
            x_bands=self.x_bands,
            y_bands=self.y_bands,
        )
