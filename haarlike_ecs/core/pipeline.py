"""Pipeline: fluent composition of systems over a set of entities."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from haarlike_ecs.core.system import System
    from haarlike_ecs.core.world import World


class Pipe:
    """Fluent pipeline builder with dependency checking.

    Enables chaining systems with method `.to()` or pipe operator `|`,
    and execution with `.execute()` or `.report()`.

    Example:
        >>> world = World()
        >>> world.spawn_catalog(wavelets)
        >>> pairs = (
        ...     world.pipe()
        ...     .to(DuplicateCheck())
        ...     .report("duplicates")
        ... )
    """

    def __init__(self, world: "World", entities: list[int]) -> None:
        """Initialize Pipe with world and entities.

        Args:
            world: The ECS world
            entities: Entity IDs to apply the pipeline to
        """
        self.world: Any = world
        self.entities = list(entities)
        self.systems: list[Any] = []

    def to(self, system: "System") -> "Pipe":
        """Add system to pipeline.

        Returns:
            Self for method chaining
        """
        self.systems.append(system)
        return self

    def __or__(self, system: "System") -> "Pipe":
        """Pipe operator for chaining systems. Equivalent to `.to(system)`."""
        return self.to(system)

    def execute(self) -> None:
        """Run all systems in order with dependency checking.

        Each system runs on the entities that have its required components.
        An empty pipeline input is allowed (checks on an empty catalog still
        write their empty reports).

        Raises:
            RuntimeError: If entities were given but none can run a system
        """
        for system in self.systems:
            runnable = [
                eid for eid in self.entities if system.can_run(self.world, eid)
            ]

            if self.entities and not runnable:
                required = [ct.__name__ for ct in system.required_components()]
                raise RuntimeError(
                    f"System {type(system).__name__} cannot run: "
                    f"entities missing required components {required}. "
                    f"Available entities: {self.entities}"
                )

            system.run(self.world, runnable)

    def report(self, key: str) -> Any:
        """Execute the pipeline and return ``world.reports[key]``.

        Raises:
            RuntimeError: If any system cannot run
            KeyError: If no system produced the report
        """
        self.execute()
        if key not in self.world.reports:
            raise KeyError(f"No report named {key!r}")
        return self.world.reports[key]
