"""Canonical wavelet identity and the deduplicating WaveletSet.

Two wavelets are the same entity when they have the same dimension and the
same multiset of rectangles; rectangle order and weights do not matter.

The set buckets candidates by a cheap weak hash and resolves every bucket
with an exact canonical comparison. The weak hash collides often (any
rectangle touching the top or left edge contributes 0), so a hash match is
never taken as identity.

Example:
    >>> s = WaveletSet()
    >>> a = HaarWavelet.from_rects([Rect(0, 0, 3, 3), Rect(3, 0, 3, 3)])
    >>> b = HaarWavelet.from_rects([Rect(3, 0, 3, 3), Rect(0, 0, 3, 3)])
    >>> s.add(a), s.add(b)
    (True, False)
"""

from __future__ import annotations

from typing import Iterable, Iterator, Sequence

from haarlike_ecs.components.geometry import HaarWavelet, Rect, alternating_weights

# Added per rectangle beyond two; keeps dimensions in separate hash ranges.
DIMENSION_SALT = 160_000


def rects_hash(rects: Sequence[Rect]) -> int:
    """Weak order-independent hash of a rectangle sequence."""
    value = 0
    for r in rects:
        value += r.x * r.y * r.width * r.height
    return value + DIMENSION_SALT * (len(rects) - 2)


def wavelet_hash(wavelet: HaarWavelet) -> int:
    """Weak hash of a wavelet (ignores weights and rectangle order)."""
    return rects_hash(wavelet.rects)


def canonical_key(rects: Iterable[Rect]) -> tuple[Rect, ...]:
    """Order-independent key; equal keys iff the rectangle multisets match."""
    return tuple(sorted(rects))


def canonical_equals(a: HaarWavelet, b: HaarWavelet) -> bool:
    """Multiset equality of the rectangles of two wavelets.

    For every rectangle of *a*, its number of occurrences in *a* must equal
    its number of occurrences in *b*. With equal dimensions this also covers
    every rectangle of *b*.
    """
    if a.dimension != b.dimension:
        return False
    for rect in a.rects:
        if a.rects.count(rect) != b.rects.count(rect):
            return False
    return True


def sort_key(wavelet: HaarWavelet) -> tuple[int, int]:
    """Catalog ordering: dimension first, then weak hash."""
    return wavelet.dimension, wavelet_hash(wavelet)


class WaveletSet:
    """Deduplicating wavelet collection keyed by canonical identity.

    Storage is two-level: weak hash -> {canonical key -> wavelet}. Members
    are also kept in insertion order so iteration and sorting are
    reproducible.
    """

    def __init__(self, wavelets: Iterable[HaarWavelet] = ()) -> None:
        self._buckets: dict[int, dict[tuple[Rect, ...], HaarWavelet]] = {}
        self._members: list[HaarWavelet] = []
        self._dimension_counts: dict[int, int] = {}
        for wavelet in wavelets:
            self.add(wavelet)

    def _insert(
        self, rects: tuple[Rect, ...], wavelet: HaarWavelet | None
    ) -> bool:
        bucket = self._buckets.setdefault(rects_hash(rects), {})
        key = canonical_key(rects)
        if key in bucket:
            return False

        if wavelet is None:
            # Generator output is already valid; skip re-validation.
            wavelet = HaarWavelet.model_construct(
                rects=rects, weights=alternating_weights(len(rects))
            )
        bucket[key] = wavelet
        self._members.append(wavelet)
        dim = len(rects)
        self._dimension_counts[dim] = self._dimension_counts.get(dim, 0) + 1
        return True

    def add(self, wavelet: HaarWavelet) -> bool:
        """Insert *wavelet* unless a canonically equal one is present.

        Returns:
            True if the wavelet was new
        """
        return self._insert(wavelet.rects, wavelet)

    def add_rects(self, rects: tuple[Rect, ...]) -> bool:
        """Insert a wavelet given only its rectangles.

        The HaarWavelet (with alternating weights) is built only when the
        rectangles are new, which keeps rejected candidates cheap.
        """
        return self._insert(rects, None)

    def merge(self, other: Iterable[HaarWavelet]) -> int:
        """Add every wavelet of *other* in its iteration order.

        Returns:
            Number of wavelets that were new
        """
        added = 0
        for wavelet in other:
            if self.add(wavelet):
                added += 1
        return added

    def __contains__(self, wavelet: object) -> bool:
        if not isinstance(wavelet, HaarWavelet):
            return False
        bucket = self._buckets.get(wavelet_hash(wavelet))
        return bucket is not None and canonical_key(wavelet.rects) in bucket

    def __len__(self) -> int:
        return len(self._members)

    def __iter__(self) -> Iterator[HaarWavelet]:
        return iter(self._members)

    def count(self, dimension: int) -> int:
        """Number of members with *dimension* rectangles."""
        return self._dimension_counts.get(dimension, 0)

    def sorted(self) -> list[HaarWavelet]:
        """Members ordered by (dimension, weak hash), ties in insertion order."""
        return sorted(self._members, key=sort_key)

    def __repr__(self) -> str:
        counts = ", ".join(
            f"{dim}D={n}" for dim, n in sorted(self._dimension_counts.items())
        )
        return f"WaveletSet({counts})"
