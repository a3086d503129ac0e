"""Entity-component world backed by archetype storage.

Entities that carry the same set of component types share one archetype.
Each archetype keeps one list per component type (a column); all columns of
an archetype have the same length as its entity list, so a component is
found through the entity's (archetype, row) location in constant time.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Iterator, TypeVar

Entity = int

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class _Location:
    archetype_id: int
    row: int


def _swap_remove(items: list[Any], index: int) -> Any:
    """Remove ``items[index]`` by moving the last element into its place."""
    last = items.pop()
    if index < len(items):
        removed = items[index]
        items[index] = last
        return removed
    return last


@dataclass
class _Archetype:
    """One unique combination of component types."""

    key: frozenset[type]
    entities: list[Entity] = field(default_factory=list)
    columns: dict[type, list[Any]] = field(default_factory=dict)

    def has_type(self, component_type: type) -> bool:
        return component_type in self.columns

    def swap_remove(self, row: int) -> dict[type, Any]:
        """Remove ``row`` from the entity list and every column."""
        _swap_remove(self.entities, row)
        return {tid: _swap_remove(col, row) for tid, col in self.columns.items()}


class World:
    """Container of entities and their components."""

    def __init__(self) -> None:
        self._next_id: Entity = 0
        self._recycled: list[Entity] = []
        # Archetype 0 is the empty archetype; new entities land there.
        self._archetypes: list[_Archetype] = [_Archetype(frozenset())]
        self._locations: dict[Entity, _Location] = {}
        self._archetype_index: dict[frozenset[type], int] = {frozenset(): 0}

    # ── entity management ────────────────────────────────────────────────

    def create_entity(self) -> Entity:
        """Create an entity, reusing the most recently destroyed id if any."""
        if self._recycled:
            entity = self._recycled.pop()
        else:
            entity = self._next_id
            self._next_id += 1
        empty = self._archetypes[0]
        self._locations[entity] = _Location(0, len(empty.entities))
        empty.entities.append(entity)
        return entity

    def destroy_entity(self, entity: Entity) -> None:
        """Drop the entity and all its components; its id becomes reusable."""
        loc = self._locations.pop(entity, None)
        if loc is not None:
            self._erase_row(loc.archetype_id, loc.row)
        self._recycled.append(entity)

    # ── component write ──────────────────────────────────────────────────

    def add_component(self, entity: Entity, component: Any) -> None:
        """Attach ``component``, replacing any component of the same type.

        Unknown entities are ignored.
        """
        component_type = type(component)
        loc = self._locations.get(entity)
        if loc is None:
            return

        current = self._archetypes[loc.archetype_id]
        if current.has_type(component_type):
            current.columns[component_type][loc.row] = component
            return

        new_key = current.key | {component_type}
        new_id = self._ensure_archetype(new_key)
        self._migrate(entity, loc, new_id)
        self._archetypes[new_id].columns[component_type].append(component)

    def remove_component(self, entity: Entity, component_type: type) -> None:
        """Detach the component of ``component_type``; no-op if absent."""
        loc = self._locations.get(entity)
        if loc is None:
            return
        current = self._archetypes[loc.archetype_id]
        if not current.has_type(component_type):
            return
        new_id = self._ensure_archetype(current.key - {component_type})
        self._migrate(entity, loc, new_id)

    # ── component read ───────────────────────────────────────────────────

    def get_component(self, entity: Entity, component_type: type[T]) -> T | None:
        """The entity's component of ``component_type``, or None."""
        loc = self._locations.get(entity)
        if loc is None:
            return None
        column = self._archetypes[loc.archetype_id].columns.get(component_type)
        if column is None or loc.row >= len(column):
            return None
        return column[loc.row]

    def has_component(self, entity: Entity, component_type: type) -> bool:
        loc = self._locations.get(entity)
        if loc is None:
            return False
        return self._archetypes[loc.archetype_id].has_type(component_type)

    def archetype_of(self, entity: Entity) -> int:
        """Index of the archetype holding ``entity``; KeyError if unknown."""
        try:
            return self._locations[entity].archetype_id
        except KeyError:
            raise KeyError(f"unknown entity {entity}") from None

    # ── queries ──────────────────────────────────────────────────────────

    def query_entities(self, component_type: type) -> list[Entity]:
        """All entities that have a component of ``component_type``."""
        return [
            entity
            for arch in self._archetypes
            if arch.has_type(component_type)
            for entity in arch.entities
        ]

    def iter(self, component_type: type[T]) -> Iterator[tuple[Entity, T]]:
        """Yield (entity, component) for every component of ``component_type``."""
        for arch in self._archetypes:
            column = arch.columns.get(component_type)
            if column is not None:
                yield from zip(arch.entities, column)

    def for_each_mut(self, component_type: type[T], func: Callable[[T], Any]) -> None:
        """Call ``func`` on every component of ``component_type``."""
        for arch in self._archetypes:
            for component in arch.columns.get(component_type, ()):
                func(component)

    def for_each_without_mut(
        self,
        component_type: type[T],
        excluded_type: type,
        func: Callable[[T], Any],
    ) -> None:
        """Call ``func`` on every component of ``component_type`` whose entity
        has no component of ``excluded_type``."""
        for arch in self._archetypes:
            if arch.has_type(excluded_type):
                continue
            for component in arch.columns.get(component_type, ()):
                func(component)

    # ── internals ────────────────────────────────────────────────────────

    def _ensure_archetype(self, key: frozenset[type]) -> int:
        index = self._archetype_index.get(key)
        if index is None:
            index = len(self._archetypes)
            self._archetypes.append(_Archetype(key, columns={tid: [] for tid in key}))
            self._archetype_index[key] = index
        return index

    def _fix_moved(self, arch_id: int, row: int) -> None:
        arch = self._archetypes[arch_id]
        if row < len(arch.entities):
            self._locations[arch.entities[row]] = _Location(arch_id, row)

    def _erase_row(self, arch_id: int, row: int) -> None:
        self._archetypes[arch_id].swap_remove(row)
        self._fix_moved(arch_id, row)

    def _migrate(self, entity: Entity, old: _Location, new_id: int) -> int:
        """Move ``entity`` to archetype ``new_id``, carrying shared columns.

        The caller appends any newly added component.
        """
        extracted = self._archetypes[old.archetype_id].swap_remove(old.row)
        self._fix_moved(old.archetype_id, old.row)

        target = self._archetypes[new_id]
        new_row = len(target.entities)
        target.entities.append(entity)
        for tid, value in extracted.items():
            column = target.columns.get(tid)
            if column is not None:
                column.append(value)
        self._locations[entity] = _Location(new_id, new_row)
        return new_row