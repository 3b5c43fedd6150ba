"""Catalog validation: invariant checks and distribution statistics.

These re-derive the generator's guarantees with independent, brute-force
algorithms: no check uses the generator's weak hash or its canonical key.
"""

from __future__ import annotations

from itertools import combinations
from typing import Mapping, Sequence

import numpy as np
from pydantic import BaseModel

from haarlike_ecs.components.geometry import MAX_DIMENSION, MIN_DIMENSION, HaarWavelet, Rect
from haarlike_ecs.core.wavelet_set import canonical_equals


def has_coincident_rects(wavelet: HaarWavelet) -> bool:
    """True if two rectangles of *wavelet* are exactly the same."""
    for a, b in combinations(wavelet.rects, 2):
        if a == b:
            return True
    return False


def rect_in_bounds(rect: Rect, window_size: int, min_side: int) -> bool:
    """True if *rect* lies inside the window and respects the minimum side."""
    return (
        rect.x >= 0
        and rect.y >= 0
        and rect.x + rect.width <= window_size
        and rect.y + rect.height <= window_size
        and rect.width >= min_side
        and rect.height >= min_side
    )


def overlapping_indices(catalog: Sequence[HaarWavelet]) -> list[int]:
    """Indices of wavelets containing a coincident rectangle pair.

    Only exact coincidence is detected; partially intersecting rectangles
    are not reported.
    """
    return [i for i, wavelet in enumerate(catalog) if has_coincident_rects(wavelet)]


def out_of_bounds_indices(
    catalog: Sequence[HaarWavelet], window_size: int, min_side: int
) -> list[int]:
    """Indices of wavelets with a rectangle outside the window or too small."""
    return [
        i
        for i, wavelet in enumerate(catalog)
        if not all(rect_in_bounds(r, window_size, min_side) for r in wavelet.rects)
    ]


def _bounding_box(wavelet: HaarWavelet) -> tuple[int, int, int, int]:
    return (
        min(r.x for r in wavelet.rects),
        min(r.y for r in wavelet.rects),
        max(r.x + r.width for r in wavelet.rects),
        max(r.y + r.height for r in wavelet.rects),
    )


def duplicate_index_pairs(
    catalog: Sequence[HaarWavelet], exhaustive: bool = False
) -> list[tuple[int, int]]:
    """Index pairs (i < j) of canonically equal wavelets.

    Args:
        catalog: Wavelets to compare
        exhaustive: Compare all n(n-1)/2 pairs. Otherwise only pairs sharing
            dimension and bounding box are compared; canonically equal
            wavelets always share both, so the result is the same.

    Returns:
        Pairs sorted by (i, j)
    """
    if exhaustive:
        return [
            (i, j)
            for i, j in combinations(range(len(catalog)), 2)
            if canonical_equals(catalog[i], catalog[j])
        ]

    blocks: dict[tuple[int, tuple[int, int, int, int]], list[int]] = {}
    for i, wavelet in enumerate(catalog):
        blocks.setdefault((wavelet.dimension, _bounding_box(wavelet)), []).append(i)

    pairs = []
    for members in blocks.values():
        for i, j in combinations(members, 2):
            if canonical_equals(catalog[i], catalog[j]):
                pairs.append((i, j))
    pairs.sort()
    return pairs


def check_overlap(catalog: Sequence[HaarWavelet]) -> list[HaarWavelet]:
    """Wavelets containing two identical rectangles."""
    return [catalog[i] for i in overlapping_indices(catalog)]


def check_bounds(
    catalog: Sequence[HaarWavelet], window_size: int = 20, min_side: int = 3
) -> list[HaarWavelet]:
    """Wavelets violating window containment or the minimum rectangle side."""
    return [catalog[i] for i in out_of_bounds_indices(catalog, window_size, min_side)]


def check_duplicates(
    catalog: Sequence[HaarWavelet], exhaustive: bool = False
) -> list[tuple[HaarWavelet, HaarWavelet]]:
    """Pairs of catalog entries that are canonically equal."""
    return [
        (catalog[i], catalog[j])
        for i, j in duplicate_index_pairs(catalog, exhaustive=exhaustive)
    ]


class CatalogHistogram(BaseModel):
    """Descriptive statistics of a catalog.

    Attributes:
        dimension_counts: Number of wavelets per dimension (2, 3, 4)
        total_rectangles: Number of rectangles over all wavelets
        width_histogram: Entry i counts rectangles of width i + 1
        height_histogram: Entry i counts rectangles of height i + 1
        spatial_histogram: 3x3 counts of rectangle centres, indexed
            [vertical band][horizontal band]
    """

    dimension_counts: dict[int, int]
    total_rectangles: int
    width_histogram: list[int]
    height_histogram: list[int]
    spatial_histogram: list[list[int]]


def _side_histogram(sides: np.ndarray, window_size: int) -> list[int]:
    valid = sides[(sides >= 1) & (sides <= window_size)]
    return np.bincount(valid - 1, minlength=window_size).astype(int).tolist()


def histogram(
    catalog: Sequence[HaarWavelet],
    window_size: int = 20,
    x_bands: tuple[float, float] = (0.4, 0.6),
    y_bands: tuple[float, float] = (0.35, 0.65),
) -> CatalogHistogram:
    """Compute dimension, side-length and spatial histograms.

    Side lengths outside 1..window_size are left out of the side
    histograms (the bounds check reports them). Band edges are fractions of
    the window side; a centre equal to an edge falls in the upper band.
    """
    dimension_counts = {dim: 0 for dim in range(MIN_DIMENSION, MAX_DIMENSION + 1)}
    for wavelet in catalog:
        dimension_counts[wavelet.dimension] += 1

    rects = np.array(
        [r for wavelet in catalog for r in wavelet.rects], dtype=np.int64
    ).reshape(-1, 4)

    widths = rects[:, 2]
    heights = rects[:, 3]
    centre_x = rects[:, 0] + widths / 2.0
    centre_y = rects[:, 1] + heights / 2.0

    x_index = np.digitize(centre_x, np.array(x_bands) * window_size)
    y_index = np.digitize(centre_y, np.array(y_bands) * window_size)
    spatial = np.zeros((3, 3), dtype=np.int64)
    np.add.at(spatial, (y_index, x_index), 1)

    return CatalogHistogram(
        dimension_counts=dimension_counts,
        total_rectangles=int(rects.shape[0]),
        width_histogram=_side_histogram(widths, window_size),
        height_histogram=_side_histogram(heights, window_size),
        spatial_histogram=spatial.tolist(),
    )


def unnormalized_histograms(
    histograms: Mapping[str, Sequence[float]], tolerance: float = 1e-6
) -> dict[str, float]:
    """Sums of the histograms that do not add up to 1 within *tolerance*.

    Keys are kept, so the caller can tell which histogram failed.
    """
    sums = {role: float(np.sum(h)) for role, h in histograms.items()}
    return {role: s for role, s in sums.items() if abs(s - 1.0) > tolerance}
