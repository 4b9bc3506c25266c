"""Battlefield positions and spatial queries.

The battlefield is the narrow world interface the AI engine talks to: where
each entity stands, which way it faces, how far apart two entities are, and
whether an obstacle blocks the line between two points. Path finding and
animation are somebody else's problem; a move here is a straight step along
the ground plane.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import numpy as np

from ...core.data.data_structures import Vector2, VectorArray

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity


@dataclass(frozen=True)
class Obstacle:
    """A circular sight blocker."""
    center: Vector2
    radius: float


class Battlefield:
    """Entity positions and facings on a continuous ground plane."""

    def __init__(self, obstacles: Optional[Iterable[Obstacle]] = None):
        self._positions: dict[str, Vector2] = {}
        self._facings: dict[str, Vector2] = {}
        self.obstacles: list[Obstacle] = list(obstacles or ())

    def place(self, entity_id: str, position: Vector2) -> None:
        """Put an entity at ``position``, replacing any previous position."""
        self._positions[entity_id] = position

    def remove(self, entity_id: str) -> Optional[Vector2]:
        """Take an entity off the field and return its last position."""
        self._facings.pop(entity_id, None)
        return self._positions.pop(entity_id, None)

    def position_of(self, entity_id: str) -> Optional[Vector2]:
        return self._positions.get(entity_id)

    def facing_of(self, entity_id: str) -> Optional[Vector2]:
        """Unit facing direction, or None if the entity never turned."""
        return self._facings.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._positions

    def distance_between(self, first_id: str, second_id: str) -> Optional[float]:
        """Distance between two placed entities (None if either is missing)."""
        first = self._positions.get(first_id)
        second = self._positions.get(second_id)
        if first is None or second is None:
            return None
        return first.distance_to(second)

    def move_toward(self, entity_id: str, destination: Vector2, max_distance: float) -> float:
        """Step an entity straight toward ``destination``.

        Args:
            entity_id: Entity to move
            destination: Point to head for
            max_distance: Longest step allowed

        Returns:
            Distance actually moved (0.0 if the entity is not on the field)
        """
        current = self._positions.get(entity_id)
        if current is None or max_distance <= 0:
            return 0.0

        new_position = current.move_towards(destination, max_distance)
        self._positions[entity_id] = new_position
        return current.distance_to(new_position)

    def face_towards(self, entity_id: str, target: Vector2) -> bool:
        """Turn an entity to face ``target``. Returns False if it cannot."""
        current = self._positions.get(entity_id)
        if current is None:
            return False
        direction = (target - current).normalize()
        if direction.magnitude() == 0:
            return False
        self._facings[entity_id] = direction
        return True

    def has_line_of_sight(self, origin: Vector2, target: Vector2) -> bool:
        """Check whether the segment from ``origin`` to ``target`` is clear.

        A segment is blocked when it passes strictly inside any obstacle.
        """
        if not self.obstacles:
            return True

        centers = VectorArray([obstacle.center for obstacle in self.obstacles]).data
        radii = np.array([obstacle.radius for obstacle in self.obstacles], dtype=np.float64)

        start = origin.to_numpy()
        segment = target.to_numpy() - start
        length_sq = float(np.dot(segment, segment))
        if length_sq == 0:
            distances = np.sqrt(np.sum((centers - start) ** 2, axis=1))
        else:
            # Project each center onto the segment and clamp to its endpoints
            t = np.clip(((centers - start) @ segment) / length_sq, 0.0, 1.0)
            closest = start + np.outer(t, segment)
            distances = np.sqrt(np.sum((centers - closest) ** 2, axis=1))
        return not bool(np.any(distances < radii))

    # Batch queries over candidate entities

    def _placed(self, candidates: Sequence["CombatEntity"]) -> tuple[list["CombatEntity"], VectorArray]:
        placed = [entity for entity in candidates if entity.entity_id in self._positions]
        positions = VectorArray([self._positions[entity.entity_id] for entity in placed])
        return placed, positions

    def nearest(
        self, origin: Vector2, candidates: Sequence["CombatEntity"]
    ) -> Optional[tuple["CombatEntity", float]]:
        """Closest placed candidate to ``origin``; earlier candidates win ties."""
        placed, positions = self._placed(candidates)
        index = positions.nearest_index(origin)
        if index is None:
            return None
        return placed[index], float(positions.distance_to_point(origin)[index])

    def within_range(
        self,
        origin: Vector2,
        candidates: Sequence["CombatEntity"],
        min_range: float,
        max_range: float,
    ) -> list[tuple["CombatEntity", float]]:
        """Placed candidates whose distance lies in [min_range, max_range], in candidate order."""
        placed, positions = self._placed(candidates)
        if not placed:
            return []
        distances = positions.distance_to_point(origin)
        mask = positions.within_range_mask(origin, min_range, max_range)
        return [
            (entity, float(distance))
            for entity, distance, in_range in zip(placed, distances, mask)
            if in_range
        ]
