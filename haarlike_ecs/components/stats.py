"""Classifier statistics components.

Downstream tools append statistics after the weight list of a catalog
record. The geometry core keeps that tail opaque (RawTail); it is decoded
into a ClassifierStats payload only when a consumer asks for a specific
layout.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union, get_args

from pydantic import BaseModel, Field

from haarlike_ecs.components.geometry import Component


class RawTail(Component):
    """Uninterpreted tokens following the weights of a catalog record."""

    tokens: tuple[str, ...]


class NoStats(BaseModel):
    """Plain wavelet, no statistics attached."""

    kind: Literal["none"] = "none"


class GaussianStats(BaseModel):
    """Single Gaussian fit of the feature value.

    Attributes:
        mean: Mean feature value
        std_dev: Standard deviation of the feature value
    """

    kind: Literal["gaussian"] = "gaussian"
    mean: float
    std_dev: float = Field(ge=0.0)


class HistogramStats(BaseModel):
    """Gaussian summary plus a normalized histogram of the feature value."""

    kind: Literal["histogram"] = "histogram"
    mean: float
    std_dev: float = Field(ge=0.0)
    buckets: list[float] = Field(min_length=1)


class ClassStats(BaseModel):
    """Per-class Gaussian fit with its prior."""

    mean: float
    variance: float = Field(ge=0.0)
    prior: float = Field(ge=0.0, le=1.0)


class DualWeightStats(BaseModel):
    """Separate Gaussian fits for positive and negative samples."""

    kind: Literal["dual_weight"] = "dual_weight"
    positive: ClassStats
    negative: ClassStats


class DualHistogramStats(BaseModel):
    """Separate histograms (with priors) for positive and negative samples."""

    kind: Literal["dual_histogram"] = "dual_histogram"
    positive_prior: float = Field(ge=0.0, le=1.0)
    positive_buckets: list[float]
    negative_prior: float = Field(ge=0.0, le=1.0)
    negative_buckets: list[float]


class BandStats(BaseModel):
    """Band classifier: one mean per rectangle and a shared deviation."""

    kind: Literal["band"] = "band"
    means: list[float] = Field(min_length=1)
    std_dev: float = Field(ge=0.0)


StatsPayload = Annotated[
    Union[
        NoStats,
        GaussianStats,
        HistogramStats,
        DualWeightStats,
        DualHistogramStats,
        BandStats,
    ],
    Field(discriminator="kind"),
]

StatsKind = Literal[
    "none",
    "gaussian",
    "histogram",
    "dual_weight",
    "dual_histogram",
    "band",
]

STATS_KINDS: tuple[str, ...] = get_args(StatsKind)


class ClassifierStats(Component):
    """Statistics payload attached next to a HaarWavelet component."""

    payload: StatsPayload


def payload_histograms(payload: BaseModel) -> dict[str, list[float]]:
    """Return every histogram carried by *payload*, keyed by its role.

    Roles are "histogram" for a single histogram and "positive" / "negative"
    for the two class histograms. Payloads without histograms give {}.
    """
    if isinstance(payload, HistogramStats):
        return {"histogram": payload.buckets}
    if isinstance(payload, DualHistogramStats):
        return {
            "positive": payload.positive_buckets,
            "negative": payload.negative_buckets,
        }
    return {}
