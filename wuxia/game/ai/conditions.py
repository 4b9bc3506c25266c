"""Conditions that gate AI strategies and individual actions.

Conditions are pure predicates over an entity and the encounter around it.
The set of built-in kinds is closed:

- ResourceCondition: current action points against a threshold
- HealthCondition: health ratio against a threshold
- DistanceCondition: distance to the nearest hostile, a named entity or a point
- CompositeCondition: AND / OR over child conditions
- CustomCondition: wraps any callable for one-off rules

Every condition carries an ``invert`` flag that is applied after evaluation.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional

from ...core.data import (
    COMPARISON_SYMBOLS,
    Comparison,
    DistanceReference,
    LogicOperator,
    Vector2,
    is_hostile_to,
)

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity
    from ...core.engine.combat_context import CombatContext


def compare(value: float, comparison: Comparison, threshold: float) -> bool:
    """Apply a comparison operator. EQUAL is approximate to absorb float noise."""
    if comparison == Comparison.GREATER_THAN:
        return value > threshold
    if comparison == Comparison.LESS_THAN:
        return value < threshold
    if comparison == Comparison.EQUAL:
        return math.isclose(value, threshold, rel_tol=1e-6, abs_tol=1e-6)
    if comparison == Comparison.GREATER_OR_EQUAL:
        return value >= threshold
    if comparison == Comparison.LESS_OR_EQUAL:
        return value <= threshold
    return False


def find_hostiles(entity: "CombatEntity", context: "CombatContext") -> list["CombatEntity"]:
    """Living roster entities that ``entity`` treats as enemies, in roster order."""
    return [
        other for other in context.roster
        if other is not entity and other.is_alive and is_hostile_to(entity.faction, other.faction)
    ]


class Condition(ABC):
    """Base class for all conditions."""

    invert: bool

    def evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        result = self._evaluate(entity, context)
        return not result if self.invert else result

    @abstractmethod
    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        """Raw result before inversion."""

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable form used in logs."""

    def _with_invert(self, text: str) -> str:
        return f"NOT {text}" if self.invert else text


@dataclass
class ResourceCondition(Condition):
    """Compares the entity's current action points to ``threshold``."""
    comparison: Comparison = Comparison.GREATER_OR_EQUAL
    threshold: float = 50.0
    invert: bool = False

    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return compare(entity.current_resource, self.comparison, self.threshold)

    def describe(self) -> str:
        return self._with_invert(f"AP {COMPARISON_SYMBOLS[self.comparison]} {self.threshold:g}")


@dataclass
class HealthCondition(Condition):
    """Compares the entity's health ratio (0.0 - 1.0) to ``ratio``.

    An entity without a health collaborator never satisfies the raw check.
    """
    comparison: Comparison = Comparison.LESS_THAN
    ratio: float = 0.5
    invert: bool = False

    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        if entity.health is None:
            return False
        return compare(entity.health.health_ratio, self.comparison, self.ratio)

    def describe(self) -> str:
        return self._with_invert(f"Health {COMPARISON_SYMBOLS[self.comparison]} {self.ratio * 100:g}%")


@dataclass
class DistanceCondition(Condition):
    """Compares the distance from the entity to a reference point.

    The reference is resolved on every evaluation: the nearest living hostile,
    the entity named by ``target_entity_id`` (if still in the roster) or the
    fixed ``target_position``. An unresolvable reference fails the raw check.
    """
    reference: DistanceReference = DistanceReference.NEAREST_HOSTILE
    comparison: Comparison = Comparison.LESS_OR_EQUAL
    distance: float = 5.0
    target_entity_id: Optional[str] = None
    target_position: Optional[Vector2] = None
    invert: bool = False

    def _resolve_reference(self, entity: "CombatEntity", context: "CombatContext") -> Optional[Vector2]:
        battlefield = context.battlefield
        if battlefield is None:
            return None

        if self.reference == DistanceReference.POSITION:
            return self.target_position

        if self.reference == DistanceReference.ENTITY:
            if self.target_entity_id is None:
                return None
            target = context.roster.get(self.target_entity_id)
            if target is None or not target.is_alive:
                return None
            return battlefield.position_of(target.entity_id)

        origin = battlefield.position_of(entity.entity_id)
        if origin is None:
            return None
        nearest = battlefield.nearest(origin, find_hostiles(entity, context))
        if nearest is None:
            return None
        return battlefield.position_of(nearest[0].entity_id)

    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        if context.battlefield is None:
            return False
        origin = context.battlefield.position_of(entity.entity_id)
        reference = self._resolve_reference(entity, context)
        if origin is None or reference is None:
            return False
        return compare(origin.distance_to(reference), self.comparison, self.distance)

    def describe(self) -> str:
        target = self.reference.name.lower()
        if self.reference == DistanceReference.ENTITY:
            target = self.target_entity_id or "?"
        elif self.reference == DistanceReference.POSITION and self.target_position is not None:
            target = f"({self.target_position.y:g}, {self.target_position.x:g})"
        return self._with_invert(
            f"Distance to {target} {COMPARISON_SYMBOLS[self.comparison]} {self.distance:g}m"
        )


@dataclass
class CompositeCondition(Condition):
    """AND / OR over child conditions. An empty composite is vacuously true."""
    operator: LogicOperator = LogicOperator.AND
    children: list[Condition] = field(default_factory=list)
    invert: bool = False

    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        if self.operator == LogicOperator.AND:
            return all(child.evaluate(entity, context) for child in self.children)
        if not self.children:
            return True
        return any(child.evaluate(entity, context) for child in self.children)

    def describe(self) -> str:
        inner = f" {self.operator.name} ".join(child.describe() for child in self.children)
        return self._with_invert(f"({inner})" if inner else f"{self.operator.name}()")


@dataclass
class CustomCondition(Condition):
    """Wraps a predicate ``(entity, context) -> bool``."""
    predicate: Callable[["CombatEntity", "CombatContext"], bool] = lambda entity, context: True
    name: str = "custom"
    invert: bool = False

    def _evaluate(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return bool(self.predicate(entity, context))

    def describe(self) -> str:
        return self._with_invert(self.name)


def evaluate_condition(condition: Condition, entity: "CombatEntity", context: "CombatContext") -> bool:
    """Evaluate one condition, inversion included."""
    return condition.evaluate(entity, context)


def evaluate_all(conditions: list[Condition], entity: "CombatEntity", context: "CombatContext") -> bool:
    """AND gate over a condition list, short-circuiting on the first false."""
    return all(condition.evaluate(entity, context) for condition in conditions)
