"""Ordered list of systems run once per frame."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Union

if TYPE_CHECKING:
    from w3dkit.world import World


class System(ABC):
    """A unit of per-frame logic operating on a world."""

    @abstractmethod
    def run(self, world: World, delta_time: float, total_time: float) -> None:
        """Advance this system by one frame."""


SystemLike = Union[System, Callable[["World", float, float], object]]


class Scheduler:
    """Runs its systems in the order they were added."""

    def __init__(self) -> None:
        self._systems: list[Callable[[World, float, float], object]] = []

    def __len__(self) -> int:
        return len(self._systems)

    def add_system(self, system: SystemLike) -> Scheduler:
        """Append a System or a callable ``(world, delta_time, total_time)``.

        Returns the scheduler so calls can be chained.
        """
        if isinstance(system, System):
            self._systems.append(system.run)
        elif callable(system):
            self._systems.append(system)
        else:
            raise TypeError(f"not a system: {system!r}")
        return self

    def run(self, world: World, delta_time: float, total_time: float) -> None:
        """Run every system once, in insertion order."""
        for system in self._systems:
            system(world, delta_time, total_time)