#!/usr/bin/env python3
"""Example demonstrating the fluent pipeline API.

This example shows how to compose check systems into pipelines over a
catalog, including a custom system of your own.
"""

from haarlike_ecs.components.geometry import HaarWavelet, Rect
from haarlike_ecs.config import CatalogConfig
from haarlike_ecs.core.system import System
from haarlike_ecs.core.world import World
from haarlike_ecs.eval.generate import generate_catalog
from haarlike_ecs.systems.checks import (
    BoundsCheck,
    CatalogHistogramSystem,
    DuplicateCheck,
    OverlapCheck,
)


class AreaSystem(System):
    """Stores each wavelet's total rectangle area in metadata."""

    def required_components(self):
        return [HaarWavelet]

    def produced_components(self):
        return []

    def run(self, world: World, eids: list[int]) -> None:
        for eid in eids:
            wavelet = world.get_component(eid, HaarWavelet)
            world.metadata[eid]["area"] = sum(r.width * r.height for r in wavelet.rects)


def main() -> None:
    """Demonstrate fluent pipeline API."""
    print("=== Fluent Pipeline API Example ===\n")

    world = World()
    catalog = generate_catalog(CatalogConfig(window_size=10))
    eids = world.spawn_catalog(catalog)
    print(f"[OK] Spawned {len(eids)} wavelet entities\n")

    # Example 1: Simple pipeline with .to() method
    print("Example 1: Simple pipeline with .to()")
    print("-" * 40)
    overlaps = world.pipe(*eids).to(OverlapCheck()).report("overlap")
    print(f"Overlapping wavelets: {len(overlaps)}\n")

    # Example 2: Pipe operator
    print("Example 2: Pipeline with | operator")
    print("-" * 40)
    (
        world.pipe(*eids)
        | BoundsCheck(window_size=10, min_side=3)
        | DuplicateCheck()
        | CatalogHistogramSystem(window_size=10)
    ).execute()
    print(f"Out of bounds: {len(world.reports['out_of_bounds'])}")
    print(f"Repeated pairs: {len(world.reports['duplicates'])}")
    for row in world.reports["histogram"].spatial_histogram:
        print("  " + " ".join(f"{n:5d}" for n in row))
    print()

    # Example 3: Custom system and a hand-made bad wavelet
    print("Example 3: Custom system")
    print("-" * 40)
    bad = world.spawn_wavelet(
        HaarWavelet.from_rects([Rect(0, 0, 4, 4), Rect(0, 0, 4, 4)])
    )
    world.pipe(bad).to(AreaSystem()).to(OverlapCheck()).execute()
    print(f"Entity {bad}: area={world.metadata[bad]['area']} "
          f"overlap={world.metadata[bad].get('overlap', False)}")


if __name__ == "__main__":
    main()
