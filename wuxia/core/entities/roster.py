"""Ordered roster of live combat entities.

Roster order is part of the scheduling contract: when two entities need the
same time to reach the action threshold, the one earlier in the roster acts
first. The roster therefore keeps insertion order and never re-sorts.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Optional

from ..data import Faction
from .combat_entity import CombatEntity, ClonedCombatEntity


class RosterError(ValueError):
    """Raised when a roster would be built from invalid entity records."""


class Roster:
    """Owns the live entity records of one encounter.

    Invalid records (duplicate identities, negative speed) are rejected here,
    at setup time, so the scheduler never has to tolerate them mid-combat.
    """

    def __init__(self, entities: Optional[Iterable[CombatEntity]] = None):
        self._entities: list[CombatEntity] = []
        self._by_id: dict[str, CombatEntity] = {}
        for entity in entities or ():
            self.add(entity)

    def add(self, entity: CombatEntity) -> None:
        """Append an entity to the end of the roster.

        Raises:
            RosterError: If the id is already present or the speed is negative
        """
        if entity.entity_id in self._by_id:
            raise RosterError(f"Duplicate entity id in roster: {entity.entity_id}")
        if entity.speed < 0:
            raise RosterError(f"Entity {entity.entity_id} has negative speed {entity.speed}")
        self._entities.append(entity)
        self._by_id[entity.entity_id] = entity

    def remove(self, entity_id: str) -> Optional[CombatEntity]:
        """Remove an entity by id, returning it (or None if absent)."""
        entity = self._by_id.pop(entity_id, None)
        if entity is not None:
            self._entities.remove(entity)
        return entity

    def get(self, entity_id: str) -> Optional[CombatEntity]:
        return self._by_id.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._by_id

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[CombatEntity]:
        # Iterate over a copy so callers can remove while walking
        return iter(list(self._entities))

    @property
    def entities(self) -> tuple[CombatEntity, ...]:
        """Read-only view of the roster in scheduling order."""
        return tuple(self._entities)

    def entity_ids(self) -> list[str]:
        return [entity.entity_id for entity in self._entities]

    def alive(self) -> list[CombatEntity]:
        return [entity for entity in self._entities if entity.is_alive]

    def by_faction(self, faction: Faction) -> list[CombatEntity]:
        return [entity for entity in self._entities if entity.faction == faction]

    def prune_dead(self) -> list[CombatEntity]:
        """Remove every entity whose health reports zero.

        Returns:
            The removed entities, in roster order
        """
        dead = [entity for entity in self._entities if not entity.is_alive]
        for entity in dead:
            self.remove(entity.entity_id)
        return dead

    def clone(self) -> list[ClonedCombatEntity]:
        """Snapshot every entity's clock for side-effect-free prediction."""
        return [entity.get_clone() for entity in self._entities]
