"""Tests for catalog check systems."""

from __future__ import annotations

import pytest

from haarlike_ecs.components.geometry import HaarWavelet, Rect
from haarlike_ecs.core.world import World
from haarlike_ecs.eval.checks import CatalogHistogram
from haarlike_ecs.systems.checks import (
    BoundsCheck,
    CatalogHistogramSystem,
    DuplicateCheck,
    OverlapCheck,
)


def _wavelet(*rects: tuple[int, int, int, int]) -> HaarWavelet:
    return HaarWavelet.from_rects([Rect(*r) for r in rects])


@pytest.fixture
def world() -> World:
    """World holding a clean wavelet, each kind of bad wavelet and a repeat."""
    world = World()
    world.spawn_catalog(
        [
            _wavelet((0, 0, 3, 3), (3, 0, 3, 3)),
            _wavelet((6, 6, 3, 3), (6, 6, 3, 3)),
            _wavelet((15, 0, 3, 3), (18, 0, 3, 3)),
            _wavelet((3, 0, 3, 3), (0, 0, 3, 3)),
        ]
    )
    return world


class TestOverlapCheck:
    """Test OverlapCheck system."""

    def test_components(self) -> None:
        check = OverlapCheck()
        assert check.required_components() == [HaarWavelet]
        assert check.produced_components() == []

    def test_run(self, world: World) -> None:
        OverlapCheck().run(world, world.query(HaarWavelet))

        assert world.reports["overlap"] == [1]
        assert world.metadata[1]["overlap"] is True
        assert "overlap" not in world.metadata[0]


class TestBoundsCheck:
    """Test BoundsCheck system."""

    def test_init(self) -> None:
        check = BoundsCheck(window_size=10, min_side=2)
        assert check.window_size == 10
        assert check.min_side == 2
        assert repr(check) == "BoundsCheck(window_size=10, min_side=2)"

    def test_run(self, world: World) -> None:
        BoundsCheck().run(world, world.query(HaarWavelet))

        assert world.reports["out_of_bounds"] == [2]
        assert world.metadata[2]["out_of_bounds"] is True

    def test_smaller_window(self, world: World) -> None:
        """Test the window size parameter is honoured."""
        BoundsCheck(window_size=8).run(world, world.query(HaarWavelet))
        assert world.reports["out_of_bounds"] == [1, 2]


class TestDuplicateCheck:
    """Test DuplicateCheck system."""

    def test_run(self, world: World) -> None:
        DuplicateCheck().run(world, world.query(HaarWavelet))

        assert world.reports["duplicates"] == [(0, 3)]
        assert world.metadata[3]["duplicate_of"] == 0
        assert "duplicate_of" not in world.metadata[0]

    def test_exhaustive(self, world: World) -> None:
        DuplicateCheck(exhaustive=True).run(world, world.query(HaarWavelet))
        assert world.reports["duplicates"] == [(0, 3)]

    def test_subset_of_entities(self, world: World) -> None:
        """Test only the given entities are compared."""
        DuplicateCheck().run(world, [0, 1, 2])
        assert world.reports["duplicates"] == []

    def test_first_occurrence_kept(self) -> None:
        world = World()
        a = _wavelet((0, 0, 3, 3), (3, 0, 3, 3))
        eids = world.spawn_catalog([a, a, a])

        DuplicateCheck().run(world, eids)

        assert world.metadata[1]["duplicate_of"] == 0
        assert world.metadata[2]["duplicate_of"] == 0


class TestCatalogHistogramSystem:
    """Test CatalogHistogramSystem."""

    def test_run(self, world: World) -> None:
        CatalogHistogramSystem().run(world, world.query(HaarWavelet))

        hist = world.reports["histogram"]
        assert isinstance(hist, CatalogHistogram)
        assert hist.dimension_counts[2] == 4
        assert hist.total_rectangles == 8
        assert hist.width_histogram[2] == 8

    def test_custom_bands(self) -> None:
        world = World()
        eids = world.spawn_catalog([_wavelet((0, 0, 3, 3), (3, 0, 3, 3))])

        # centres at x = 1.5 and 4.5
        CatalogHistogramSystem(window_size=6, x_bands=(0.5, 0.9)).run(world, eids)

        assert world.reports["histogram"].spatial_histogram[0] == [1, 1, 0]
