"""Exhaustive generation of Haar-like wavelets.

Construction rules:
1) 2 to 4 rectangles per wavelet
2) fixed square sampling window
3) no rotated rectangles
4) rectangles are displaced from each other by integer multiples of the
   rectangle size, so distinct rectangles never partially overlap
5) all rectangles of a wavelet share the same size
6) no rectangle side below the configured minimum

Each wavelet is built by placing a first rectangle at an anchor and then
chaining displacement multipliers (dx, dy): rectangle i sits at
(x[i-1] + dx*w, y[i-1] + dy*h). Placement backtracks as soon as a
rectangle leaves the window or coincides with an earlier one.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from typing import Iterator, Sequence

from haarlike_ecs.components.geometry import HaarWavelet, Rect
from haarlike_ecs.config import CatalogConfig
from haarlike_ecs.core.wavelet_set import WaveletSet

logger = logging.getLogger(__name__)


def place_rectangles(
    placed: tuple[Rect, ...],
    steps: Sequence[int],
    width: int,
    height: int,
    window: int,
) -> Iterator[tuple[Rect, ...]]:
    """Yield every valid completion of a partial placement.

    Args:
        placed: Rectangles placed so far (at least the anchor)
        steps: Displacement stride of each rectangle still to place
        width: Shared rectangle width
        height: Shared rectangle height
        window: Sampling window side

    Yields:
        Complete rectangle tuples, in enumeration order
    """
    if not steps:
        yield placed
        return

    stride, rest = steps[0], steps[1:]
    prev = placed[-1]
    x_limit = window // width
    y_limit = window // height

    for dx in range(-x_limit, x_limit, stride):
        x = prev.x + dx * width
        if x < 0 or x + width > window:
            continue
        for dy in range(-y_limit, y_limit, stride):
            if dx == 0 and dy == 0:
                continue
            y = prev.y + dy * height
            if y < 0 or y + height > window:
                continue
            rect = Rect(x, y, width, height)
            if rect in placed:
                continue
            yield from place_rectangles(placed + (rect,), rest, width, height, window)


def size_candidates(dimension: int, config: CatalogConfig) -> list[tuple[int, int]]:
    """Shared (width, height) pairs scanned for *dimension*."""
    stride = config.strides_for(dimension).size
    sides = range(config.min_side, config.window_size + 1, stride)
    return [(w, h) for w in sides for h in sides]


def generate_size(
    dimension: int,
    width: int,
    height: int,
    config: CatalogConfig,
    into: WaveletSet,
) -> int:
    """Generate all wavelets of one dimension and rectangle size.

    Returns:
        Number of candidates that were new in *into*
    """
    window = config.window_size
    strides = config.strides_for(dimension)
    steps = strides.displacement_steps(dimension)

    added = 0
    for x0 in range(0, window - width + 1, strides.anchor):
        for y0 in range(0, window - height + 1, strides.anchor):
            anchor = (Rect(x0, y0, width, height),)
            for rects in place_rectangles(anchor, steps, width, height, window):
                if into.add_rects(rects):
                    added += 1
    return added


def generate(dimension: int, config: CatalogConfig | None = None) -> WaveletSet:
    """Generate the deduplicated wavelets of one dimension.

    A window smaller than twice the minimum side yields an empty set.
    """
    config = config or CatalogConfig()
    wavelets = WaveletSet()
    for width, height in size_candidates(dimension, config):
        generate_size(dimension, width, height, config, wavelets)
    return wavelets


def _generate_partition(
    args: tuple[int, int, int, CatalogConfig],
) -> list[tuple[Rect, ...]]:
    """Worker entry point: dedup one (dimension, w, h) partition locally."""
    dimension, width, height, config = args
    local = WaveletSet()
    generate_size(dimension, width, height, config, local)
    return [wavelet.rects for wavelet in local]


def _partitions(config: CatalogConfig) -> list[tuple[int, int, int, CatalogConfig]]:
    return [
        (dimension, width, height, config)
        for dimension in config.dimensions
        for width, height in size_candidates(dimension, config)
    ]


def generate_all(config: CatalogConfig | None = None) -> WaveletSet:
    """Generate every configured dimension into one deduplicated set.

    With ``config.workers > 1`` partitions are generated in a process pool
    and merged in partition order, which gives the same set (and the same
    surviving rectangle order) as the serial run.
    """
    config = config or CatalogConfig()
    wavelets = WaveletSet()
    start = time.perf_counter()

    if config.workers > 1:
        partitions = _partitions(config)
        with ProcessPoolExecutor(max_workers=config.workers) as pool:
            for rect_lists in pool.map(_generate_partition, partitions, chunksize=4):
                for rects in rect_lists:
                    wavelets.add_rects(rects)
    else:
        for dimension in config.dimensions:
            for width, height in size_candidates(dimension, config):
                generate_size(dimension, width, height, config, wavelets)

    for dimension in config.dimensions:
        logger.info(
            "Total %dD wavelets generated: %d", dimension, wavelets.count(dimension)
        )
    logger.info(
        "Wavelets generated: %d (%.2fs)", len(wavelets), time.perf_counter() - start
    )
    return wavelets


def generate_catalog(config: CatalogConfig | None = None) -> list[HaarWavelet]:
    """Generate, deduplicate and sort the full wavelet catalog.

    Order: dimension ascending, then weak hash ascending (stable). Wavelets
    with equal keys keep generation order, so the result is reproducible
    but finer ordering carries no meaning.
    """
    return generate_all(config).sorted()
