"""Geometry components: Rect and HaarWavelet."""

from __future__ import annotations

from typing import NamedTuple

from pydantic import BaseModel, model_validator


class Component(BaseModel):
    """Base class for all ECS components.

    Components are data containers using Pydantic for validation and type safety.
    """

    model_config = {"arbitrary_types_allowed": True}


class Rect(NamedTuple):
    """Axis-aligned rectangle, window-relative, zero-based top-left corner."""

    x: int
    y: int
    width: int
    height: int


MIN_DIMENSION = 2
MAX_DIMENSION = 4


def alternating_weights(dimension: int) -> tuple[float, ...]:
    """Return the signed weights of a wavelet with *dimension* rectangles.

    Signs alternate starting at +1: (+1, -1), (+1, -1, +1), ...
    """
    return tuple(1.0 if i % 2 == 0 else -1.0 for i in range(dimension))


class HaarWavelet(Component):
    """Haar-like wavelet descriptor.

    A fixed-count set of rectangles with one signed weight per rectangle.
    Geometric rules (shared size, window containment, no coincident
    rectangles) are produced by the generator and re-checked by the
    validator, so a wavelet read from disk may violate them.

    Attributes:
        rects: Rectangles in enumeration order
        weights: Signed weight of each rectangle
    """

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    rects: tuple[Rect, ...]
    weights: tuple[float, ...]

    @model_validator(mode="after")
    def _check_shape(self) -> HaarWavelet:
        if not MIN_DIMENSION <= len(self.rects) <= MAX_DIMENSION:
            raise ValueError(
                f"Wavelet must have {MIN_DIMENSION} to {MAX_DIMENSION} rectangles, "
                f"got {len(self.rects)}"
            )
        if len(self.weights) != len(self.rects):
            raise ValueError(
                f"Expected {len(self.rects)} weights, got {len(self.weights)}"
            )
        return self

    @property
    def dimension(self) -> int:
        """Number of rectangles."""
        return len(self.rects)

    @classmethod
    def from_rects(cls, rects: tuple[Rect, ...] | list[Rect]) -> HaarWavelet:
        """Build a wavelet with the alternating weights of its dimension."""
        rects = tuple(Rect(*r) for r in rects)
        return cls(rects=rects, weights=alternating_weights(len(rects)))
