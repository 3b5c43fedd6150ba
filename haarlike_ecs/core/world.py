"""World: Entity-Component-System manager.

The World is the central ECS registry that manages:
- Entity creation (integer IDs)
- Component storage (type -> entity -> component mapping)
- Component queries (find entities with specific component combinations)
- Per-entity metadata and catalog-level reports

Each catalog wavelet is one entity carrying a HaarWavelet component.

Example:
    >>> world = World()
    >>> eids = world.spawn_catalog(loaded.records)
    >>> world.pipe(*eids).to(OverlapCheck()).to(DuplicateCheck()).execute()
    >>> world.reports["duplicates"]
    []
"""

from __future__ import annotations

from typing import Any, Iterable, TypeVar

from pydantic import BaseModel

from haarlike_ecs.components.geometry import HaarWavelet
from haarlike_ecs.components.stats import RawTail
from haarlike_ecs.core.serialization import CatalogRecord

Component = BaseModel

T = TypeVar("T", bound=Component)


class World:
    """Central ECS registry managing entities, components and results.

    Attributes:
        metadata: Per-entity metadata dict (line numbers, check flags)
        reports: Catalog-level results written by systems

    Example:
        >>> world = World()
        >>> eid = world.spawn_wavelet(wavelet)
        >>> world.has_component(eid, HaarWavelet)
        True
        >>> world.clear()
    """

    def __init__(self) -> None:
        self._next_eid = 0
        self._components: dict[type[Component], dict[int, Component]] = {}
        self.metadata: dict[int, dict[str, Any]] = {}
        self.reports: dict[str, Any] = {}

    def new_entity(self) -> int:
        """Create a new entity and return its ID.

        Returns:
            Entity ID (monotonically increasing integer)
        """
        eid = self._next_eid
        self._next_eid += 1
        self.metadata[eid] = {}
        return eid

    def spawn_wavelet(self, wavelet: HaarWavelet) -> int:
        """Create an entity holding *wavelet*.

        Raises:
            TypeError: If *wavelet* is not a HaarWavelet
        """
        if not isinstance(wavelet, HaarWavelet):
            raise TypeError(f"Expected HaarWavelet, got {type(wavelet)}")
        eid = self.new_entity()
        self.add_component(eid, wavelet)
        return eid

    def spawn_record(self, record: CatalogRecord) -> int:
        """Create an entity from a catalog record.

        The record's tail, when present, is attached unparsed as RawTail.
        """
        eid = self.spawn_wavelet(record.wavelet)
        self.metadata[eid]["line_no"] = record.line_no
        if record.tail:
            self.add_component(eid, RawTail(tokens=record.tail))
        return eid

    def spawn_catalog(self, items: Iterable[HaarWavelet | CatalogRecord]) -> list[int]:
        """Spawn one entity per wavelet or record, preserving order."""
        eids = []
        for item in items:
            if isinstance(item, CatalogRecord):
                eids.append(self.spawn_record(item))
            else:
                eids.append(self.spawn_wavelet(item))
        return eids

    def wavelets(self, eids: Iterable[int]) -> list[HaarWavelet]:
        """HaarWavelet components of *eids*, in the given order."""
        return [self.get_component(eid, HaarWavelet) for eid in eids]

    def clear(self) -> None:
        """Clear all entities, components and reports for reuse."""
        self._next_eid = 0
        self._components.clear()
        self.metadata.clear()
        self.reports.clear()

    def add_component(self, eid: int, component: Component) -> None:
        """Attach a component to an entity.

        Args:
            eid: Entity ID
            component: Component instance

        Raises:
            ValueError: If entity does not exist
        """
        if eid not in self.metadata:
            raise ValueError(f"Entity {eid} does not exist")

        comp_type = type(component)
        if comp_type not in self._components:
            self._components[comp_type] = {}

        self._components[comp_type][eid] = component

    def get_component(self, eid: int, comp_type: type[T]) -> T:
        """Retrieve a component from an entity.

        Raises:
            KeyError: If entity does not have the component
        """
        if comp_type not in self._components:
            raise KeyError(f"No entities have component type {comp_type.__name__}")
        if eid not in self._components[comp_type]:
            raise KeyError(f"Entity {eid} does not have component {comp_type.__name__}")

        return self._components[comp_type][eid]  # type: ignore

    def has_component(self, eid: int, comp_type: type[Component]) -> bool:
        """Check if entity has a specific component type."""
        return (
            comp_type in self._components
            and eid in self._components[comp_type]
        )

    def remove_component(self, eid: int, comp_type: type[Component]) -> None:
        """Remove a component from an entity.

        Raises:
            KeyError: If entity does not have the component
        """
        if not self.has_component(eid, comp_type):
            raise KeyError(f"Entity {eid} does not have component {comp_type.__name__}")

        del self._components[comp_type][eid]

    def query(self, *comp_types: type[Component]) -> list[int]:
        """Query entities that have ALL specified component types.

        Example:
            >>> eids = world.query(HaarWavelet, RawTail)
        """
        if not comp_types:
            return list(self.metadata.keys())

        result_set = set(self._components.get(comp_types[0], {}).keys())

        for comp_type in comp_types[1:]:
            if comp_type not in self._components:
                return []
            result_set &= set(self._components[comp_type].keys())

        return sorted(result_set)

    def destroy_entity(self, eid: int) -> None:
        """Remove entity and all its components.

        Raises:
            ValueError: If entity does not exist
        """
        if eid not in self.metadata:
            raise ValueError(f"Entity {eid} does not exist")

        for comp_store in self._components.values():
            comp_store.pop(eid, None)

        del self.metadata[eid]

    def pipe(self, *entities: int) -> Any:
        """Create a pipeline over the given entities (all entities if none).

        Example:
            >>> (
            ...     world.pipe()
            ...     .to(BoundsCheck(window_size=20, min_side=3))
            ...     .report("out_of_bounds")
            ... )
        """
        from haarlike_ecs.core.pipeline import Pipe

        return Pipe(world=self, entities=list(entities) or self.query())

    def __repr__(self) -> str:
        num_entities = len(self.metadata)
        num_comp_types = len(self._components)
        return (
            f"World(entities={num_entities}, component_types={num_comp_types}, "
            f"reports={sorted(self.reports)})"
        )
