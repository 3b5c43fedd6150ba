"""System base class for ECS processing.

Systems are the "logic" layer of the ECS architecture. They operate on
components attached to entities, reading required components and producing
new components or results in world metadata/reports.

Example:
    >>> class MySystem(System):
    ...     def required_components(self):
    ...         return [HaarWavelet]
    ...     def produced_components(self):
    ...         return []
    ...     def run(self, world, eids):
    ...         for eid in eids:
    ...             wavelet = world.get_component(eid, HaarWavelet)
    ...             world.metadata[eid]["dimension"] = wavelet.dimension
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from haarlike_ecs.core.world import World


class System(ABC):
    """Base class for all ECS systems.

    Systems declare:
    - required_components(): What inputs they need
    - produced_components(): What outputs they create
    - run(): The actual processing logic
    """

    @abstractmethod
    def required_components(self) -> list[type]:
        """Return list of component types this system requires as input."""
        pass

    @abstractmethod
    def produced_components(self) -> list[type]:
        """Return list of component types this system produces as output."""
        pass

    @abstractmethod
    def run(self, world: World, eids: list[int]) -> None:
        """Execute system on given entities.

        Args:
            world: World instance with entities and components
            eids: List of entity IDs to process

        Note:
            Catalog-level systems treat *eids* as one batch; results for
            the batch go to world.reports.
        """
        pass

    def can_run(self, world: World, eid: int) -> bool:
        """Check if entity has all required components."""
        return all(world.has_component(eid, ct) for ct in self.required_components())

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
