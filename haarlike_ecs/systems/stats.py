"""Statistics payload systems.

AttachStats decodes each entity's RawTail with a chosen layout and
attaches the result as ClassifierStats. HistogramNormalizationCheck then
verifies that every attached histogram sums to 1.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from haarlike_ecs.components.geometry import HaarWavelet
from haarlike_ecs.components.stats import (
    STATS_KINDS,
    ClassifierStats,
    RawTail,
    payload_histograms,
)
from haarlike_ecs.core.serialization import parse_stats
from haarlike_ecs.core.system import System
from haarlike_ecs.eval.checks import unnormalized_histograms

if TYPE_CHECKING:
    from haarlike_ecs.core.world import World


class AttachStats(System):
    """Decode record tails into ClassifierStats components.

    Entities without a RawTail are decoded from an empty tail. Decoding
    failures are stored in world.metadata[eid]['stats_error'] and listed in
    world.reports['stats_errors'] as (eid, reason).
    """

    def __init__(self, kind: str) -> None:
        """Initialize stats decoder.

        Args:
            kind: Tail layout, one of components.stats.STATS_KINDS

        Raises:
            ValueError: If kind is unknown
        """
        if kind not in STATS_KINDS:
            raise ValueError(
                f"Unknown statistics kind {kind!r}, expected one of {STATS_KINDS}"
            )
        self.kind = kind

    def required_components(self) -> list[type]:
        return [HaarWavelet]

    def produced_components(self) -> list[type]:
        return [ClassifierStats]

    def run(self, world: World, eids: list[int]) -> None:
        errors = []
        for eid in eids:
            wavelet = world.get_component(eid, HaarWavelet)
            tokens: tuple[str, ...] = ()
            if world.has_component(eid, RawTail):
                tokens = world.get_component(eid, RawTail).tokens
            try:
                payload = parse_stats(self.kind, tokens, wavelet.dimension)
            except ValueError as e:
                world.metadata[eid]["stats_error"] = str(e)
                errors.append((eid, str(e)))
                continue
            world.add_component(eid, ClassifierStats(payload=payload))
        world.reports["stats_errors"] = errors

    def __repr__(self) -> str:
        return f"AttachStats(kind={self.kind!r})"


class HistogramNormalizationCheck(System):
    """Verify that attached histograms sum to 1 within a tolerance.

    Offenders are listed in world.reports['unnormalized'] as (eid, sums),
    where sums maps the failing histogram ("histogram", "positive" or
    "negative") to its total.
    """

    def __init__(self, tolerance: float = 1e-6) -> None:
        self.tolerance = tolerance

    def required_components(self) -> list[type]:
        return [ClassifierStats]

    def produced_components(self) -> list[type]:
        return []

    def run(self, world: World, eids: list[int]) -> None:
        offenders = []
        for eid in eids:
            stats = world.get_component(eid, ClassifierStats)
            bad = unnormalized_histograms(
                payload_histograms(stats.payload), self.tolerance
            )
            if bad:
                world.metadata[eid]["histogram_sums"] = bad
                offenders.append((eid, bad))
        world.reports["unnormalized"] = offenders
