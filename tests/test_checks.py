"""Tests for catalog check algorithms and statistics."""

from __future__ import annotations

import pytest

from haarlike_ecs.components.geometry import HaarWavelet, Rect
from haarlike_ecs.config import CatalogConfig
from haarlike_ecs.eval.checks import (
    check_bounds,
    check_duplicates,
    check_overlap,
    duplicate_index_pairs,
    has_coincident_rects,
    histogram,
    rect_in_bounds,
    unnormalized_histograms,
)
from haarlike_ecs.eval.generate import generate, generate_catalog


def _wavelet(*rects: tuple[int, int, int, int]) -> HaarWavelet:
    return HaarWavelet.from_rects([Rect(*r) for r in rects])


@pytest.fixture
def bad_catalog() -> list[HaarWavelet]:
    """One overlap, one out-of-bounds wavelet and one repeated pair."""
    return [
        _wavelet((0, 0, 3, 3), (3, 0, 3, 3)),
        _wavelet((6, 6, 3, 3), (6, 6, 3, 3)),
        _wavelet((15, 0, 3, 3), (18, 0, 3, 3)),
        _wavelet((3, 0, 3, 3), (0, 0, 3, 3)),
    ]


class TestOverlap:
    """Test exact-coincidence overlap detection."""

    def test_coincident(self) -> None:
        assert has_coincident_rects(_wavelet((0, 0, 3, 3), (3, 0, 3, 3), (0, 0, 3, 3)))
        assert not has_coincident_rects(_wavelet((0, 0, 3, 3), (3, 0, 3, 3)))

    def test_partial_intersection_not_flagged(self) -> None:
        """Test only exact coincidence counts as overlap."""
        assert not has_coincident_rects(_wavelet((0, 0, 3, 3), (1, 1, 3, 3)))

    def test_check_overlap(self, bad_catalog: list[HaarWavelet]) -> None:
        assert check_overlap(bad_catalog) == [bad_catalog[1]]


class TestBounds:
    """Test window containment and minimum side."""

    @pytest.mark.parametrize(
        "rect,expected",
        [
            (Rect(0, 0, 3, 3), True),
            (Rect(17, 17, 3, 3), True),
            (Rect(18, 0, 3, 3), False),
            (Rect(0, 18, 3, 3), False),
            (Rect(-1, 0, 3, 3), False),
            (Rect(0, 0, 2, 3), False),
            (Rect(0, 0, 3, 2), False),
        ],
    )
    def test_rect_in_bounds(self, rect: Rect, expected: bool) -> None:
        assert rect_in_bounds(rect, window_size=20, min_side=3) is expected

    def test_check_bounds(self, bad_catalog: list[HaarWavelet]) -> None:
        assert check_bounds(bad_catalog) == [bad_catalog[2]]

    def test_window_size_parameter(self) -> None:
        wavelet = _wavelet((0, 0, 3, 3), (6, 0, 3, 3))
        assert check_bounds([wavelet], window_size=8) == [wavelet]
        assert check_bounds([wavelet], window_size=9) == []


class TestDuplicates:
    """Test repeated-wavelet detection."""

    def test_check_duplicates(self, bad_catalog: list[HaarWavelet]) -> None:
        assert check_duplicates(bad_catalog) == [(bad_catalog[0], bad_catalog[3])]

    def test_blocked_matches_exhaustive(self) -> None:
        catalog = [
            _wavelet((0, 0, 3, 3), (3, 0, 3, 3)),
            _wavelet((0, 0, 3, 3), (0, 3, 3, 3)),
            _wavelet((0, 3, 3, 3), (0, 0, 3, 3)),
            _wavelet((0, 0, 3, 3), (3, 0, 3, 3), (6, 0, 3, 3)),
            _wavelet((3, 0, 3, 3), (0, 0, 3, 3)),
            _wavelet((6, 0, 3, 3), (0, 0, 3, 3), (3, 0, 3, 3)),
        ]
        expected = [(0, 4), (1, 2), (3, 5)]
        assert duplicate_index_pairs(catalog) == expected
        assert duplicate_index_pairs(catalog, exhaustive=True) == expected

    def test_weak_hash_collision_not_duplicate(self) -> None:
        catalog = [
            _wavelet((0, 0, 3, 3), (3, 0, 3, 3)),
            _wavelet((0, 0, 3, 3), (0, 3, 3, 3)),
        ]
        assert check_duplicates(catalog, exhaustive=True) == []

    def test_triple_gives_all_pairs(self) -> None:
        a = _wavelet((0, 0, 3, 3), (3, 0, 3, 3))
        catalog = [a, a, a]
        assert duplicate_index_pairs(catalog) == [(0, 1), (0, 2), (1, 2)]


class TestBadCatalog:
    """Test the three checks together report exactly the planted problems."""

    def test_exactly_three_findings(self, bad_catalog: list[HaarWavelet]) -> None:
        findings = (
            len(check_overlap(bad_catalog))
            + len(check_bounds(bad_catalog))
            + len(check_duplicates(bad_catalog))
        )
        assert findings == 3


class TestGeneratedCatalogPasses:
    """Test generator output passes every check."""

    def test_no_findings(self) -> None:
        catalog = generate_catalog(CatalogConfig(window_size=10))
        assert check_overlap(catalog) == []
        assert check_bounds(catalog, window_size=10) == []
        assert check_duplicates(catalog) == []


class TestHistogram:
    """Test catalog statistics."""

    def test_empty(self) -> None:
        hist = histogram([])
        assert hist.dimension_counts == {2: 0, 3: 0, 4: 0}
        assert hist.total_rectangles == 0
        assert hist.width_histogram == [0] * 20
        assert hist.spatial_histogram == [[0, 0, 0]] * 3

    def test_counts(self) -> None:
        catalog = [
            _wavelet((0, 0, 3, 4), (3, 0, 3, 4)),
            _wavelet((0, 0, 5, 3), (5, 0, 5, 3), (10, 0, 5, 3)),
        ]
        hist = histogram(catalog)

        assert hist.dimension_counts == {2: 1, 3: 1, 4: 0}
        assert hist.total_rectangles == 5
        assert hist.width_histogram[2] == 2
        assert hist.width_histogram[4] == 3
        assert hist.height_histogram[3] == 2
        assert hist.height_histogram[2] == 3

    def test_spatial_bands(self) -> None:
        """Test centres fall in 8-4-8 columns and 7-6-7 rows at N=20."""
        catalog = [
            # centres (1.5, 1.5) and (10, 10)
            _wavelet((0, 0, 3, 3), (8, 8, 4, 4)),
            # centres (18.5, 18.5) and (7.5, 9.5)
            _wavelet((17, 17, 3, 3), (6, 8, 3, 3)),
        ]
        hist = histogram(catalog)

        # Rows are vertical bands, columns horizontal bands
        assert hist.spatial_histogram == [
            [1, 0, 0],
            [1, 1, 0],
            [0, 0, 1],
        ]

    def test_band_edge_goes_up(self) -> None:
        """Test a centre exactly on a band edge counts in the upper band."""
        # centre x = 8.0 (edge 0.4 * 20), y = 7.0 (edge 0.35 * 20)
        hist = histogram([_wavelet((6, 5, 4, 4), (0, 0, 4, 4))])
        assert hist.spatial_histogram[1][1] == 1

    def test_sums_twice_two_rect_count(self) -> None:
        """Test side histograms of N=20 two-rectangle wavelets sum to 2 x count."""
        wavelets = list(generate(2, CatalogConfig(dimensions=(2,))))
        hist = histogram(wavelets)

        assert sum(hist.width_histogram) == 2 * len(wavelets)
        assert sum(hist.height_histogram) == 2 * len(wavelets)
        assert sum(map(sum, hist.spatial_histogram)) == 2 * len(wavelets)


class TestUnnormalizedHistograms:
    """Test histogram normalization check."""

    def test_normalized(self) -> None:
        assert unnormalized_histograms({"positive": [0.25, 0.75], "negative": [1.0]}) == {}

    def test_within_tolerance(self) -> None:
        assert unnormalized_histograms({"histogram": [0.5, 0.5 + 1e-9]}) == {}

    def test_unnormalized_keeps_role(self) -> None:
        """Test the failing histogram is identified, not just its sum."""
        bad = unnormalized_histograms({"positive": [1.0], "negative": [0.5, 0.6]})
        assert bad == {"negative": pytest.approx(1.1)}
