"""Actions an AI-controlled entity can take as part of a strategy.

Each action has two halves:

- ``can_execute(entity, context)``: a side-effect-free guard (alive, enough
  action points, per-action conditions, plus the action's own checks)
- ``execute(entity, context)``: returns a ``StepSequence`` holding the
  effect. Nothing changes in the world until the driver ticks the sequence.

Built-in kinds: MeleeAttackAction, RangedAttackAction, MoveAction and
WaitAction. CustomAction wraps a guard and a step factory for anything else.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, Optional

from ...core.data import MoveTarget, TargetSelection, Vector2
from ...core.engine.steps import Step, StepSequence, instant, wait
from ...core.events.events import EntityDamaged
from .conditions import Condition, evaluate_all, find_hostiles

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity
    from ...core.engine.combat_context import CombatContext


@dataclass
class Action(ABC):
    """Base class for all actions."""

    name: str = ""
    resource_cost: float = 0.0
    conditions: list[Condition] = field(default_factory=list)

    def can_execute(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        """Check whether the action could run right now."""
        if not entity.is_alive:
            return False
        if entity.current_resource < self.resource_cost:
            return False
        if not evaluate_all(self.conditions, entity, context):
            return False
        return self._can_execute(entity, context)

    def _can_execute(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return True

    @abstractmethod
    def execute(self, entity: "CombatEntity", context: "CombatContext") -> StepSequence:
        """Build the effect of this action as a step sequence."""

    def describe(self) -> str:
        return self.name or type(self).__name__


def _spend_step(entity: "CombatEntity", cost: float) -> Step:
    return instant("spend", lambda: entity.spend_resource(cost))


@dataclass
class _AttackAction(Action):
    """Shared targeting and damage steps for melee and ranged attacks."""

    damage: float = 10.0
    target_selection: TargetSelection = TargetSelection.CLOSEST
    wind_up: float = 0.5
    recovery: float = 0.5

    @abstractmethod
    def _range_band(self) -> tuple[float, float]:
        """Closest and farthest distance a target may be at."""

    def _requires_line_of_sight(self) -> bool:
        return False

    def find_target(self, entity: "CombatEntity", context: "CombatContext") -> Optional["CombatEntity"]:
        """Pick a target among living hostiles inside the range band.

        Ties (equal distance or equal health) go to the earlier roster entry.
        """
        battlefield = context.battlefield
        if battlefield is None:
            return None
        origin = battlefield.position_of(entity.entity_id)
        if origin is None:
            return None

        min_range, max_range = self._range_band()
        in_range = battlefield.within_range(origin, find_hostiles(entity, context), min_range, max_range)
        if self._requires_line_of_sight():
            in_range = [
                (target, distance) for target, distance in in_range
                if battlefield.has_line_of_sight(origin, battlefield.position_of(target.entity_id))
            ]
        if not in_range:
            return None

        if self.target_selection == TargetSelection.CLOSEST:
            return min(in_range, key=lambda pair: pair[1])[0]
        if self.target_selection == TargetSelection.LOWEST_HEALTH:
            return min(
                in_range,
                key=lambda pair: pair[0].health.current_health if pair[0].health else float("inf"),
            )[0]
        return in_range[0][0]

    def _can_execute(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return self.find_target(entity, context) is not None

    def execute(self, entity: "CombatEntity", context: "CombatContext") -> StepSequence:
        target = self.find_target(entity, context)
        if target is None:
            return StepSequence.empty(self.describe())

        battlefield = context.battlefield
        target_position = battlefield.position_of(target.entity_id)

        def strike() -> None:
            if not target.is_alive or target.health is None:
                return
            dealt = target.health.take_damage(self.damage)
            context.event_manager.publish(
                EntityDamaged(context.combat_time, entity, target, dealt),
                source=type(self).__name__,
            )

        return StepSequence(
            [
                instant("face", lambda: battlefield.face_towards(entity.entity_id, target_position)),
                wait(self.wind_up, "wind_up"),
                instant("strike", strike),
                wait(self.recovery, "recovery"),
                _spend_step(entity, self.resource_cost),
            ],
            name=self.describe(),
        )


@dataclass
class MeleeAttackAction(_AttackAction):
    """Strike one hostile within ``attack_range``."""

    name: str = "Melee Attack"
    resource_cost: float = 30.0
    attack_range: float = 2.0

    def _range_band(self) -> tuple[float, float]:
        return 0.0, self.attack_range


@dataclass
class RangedAttackAction(_AttackAction):
    """Shoot one hostile between ``min_range`` and ``max_range`` with a clear line of sight."""

    name: str = "Ranged Attack"
    resource_cost: float = 25.0
    damage: float = 15.0
    min_range: float = 3.0
    max_range: float = 10.0

    def _range_band(self) -> tuple[float, float]:
        return self.min_range, self.max_range

    def _requires_line_of_sight(self) -> bool:
        return True


@dataclass
class MoveAction(Action):
    """Walk toward the nearest hostile, away from it, or to a fixed point.

    The step length is capped by ``max_distance`` and by how many meters the
    entity can pay for; the cost is charged per meter actually moved.
    """

    name: str = "Move"
    move_target: MoveTarget = MoveTarget.TOWARD_HOSTILE
    max_distance: float = 5.0
    target_position: Optional[Vector2] = None
    stopping_distance: float = 2.0
    # Do not move once action points drop to this level
    stop_below: float = 30.0

    def plan(self, entity: "CombatEntity", context: "CombatContext") -> Optional[tuple[Vector2, float]]:
        """Destination and distance of the move, or None if there is nowhere to go."""
        battlefield = context.battlefield
        if battlefield is None:
            return None
        origin = battlefield.position_of(entity.entity_id)
        if origin is None:
            return None

        affordable = entity.current_resource / context.config.ap_cost_per_meter
        budget = min(self.max_distance, affordable)

        if self.move_target == MoveTarget.TO_POSITION:
            if self.target_position is None:
                return None
            goal = self.target_position
        else:
            nearest = battlefield.nearest(origin, find_hostiles(entity, context))
            if nearest is None:
                return None
            goal = battlefield.position_of(nearest[0].entity_id)

        if self.move_target == MoveTarget.AWAY_FROM_HOSTILE:
            direction = (origin - goal).normalize()
            if direction.magnitude() == 0:
                return None
            distance = budget
            destination = origin + direction * distance
        else:
            distance = min(budget, origin.distance_to(goal) - self.stopping_distance)
            destination = origin.move_towards(goal, distance) if distance > 0 else origin

        if distance <= 0:
            return None
        return destination, distance

    def _can_execute(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        if entity.current_resource <= self.stop_below:
            return False
        if entity.current_resource < context.config.ap_cost_per_meter:
            return False
        return self.plan(entity, context) is not None

    def execute(self, entity: "CombatEntity", context: "CombatContext") -> StepSequence:
        planned = self.plan(entity, context)
        if planned is None:
            return StepSequence.empty(self.describe())

        destination, distance = planned
        battlefield = context.battlefield
        cost_per_meter = context.config.ap_cost_per_meter

        def arrive() -> None:
            moved = battlefield.move_toward(entity.entity_id, destination, distance)
            entity.spend_resource(min(entity.current_resource, moved * cost_per_meter))

        return StepSequence(
            [
                instant("face", lambda: battlefield.face_towards(entity.entity_id, destination)),
                wait(distance / context.config.move_speed, "travel"),
                instant("arrive", arrive),
            ],
            name=self.describe(),
        )


@dataclass
class WaitAction(Action):
    """Hold position for ``duration`` seconds and recover action points."""

    name: str = "Wait"
    duration: float = 1.0
    resource_recovery: float = 20.0

    def execute(self, entity: "CombatEntity", context: "CombatContext") -> StepSequence:
        return StepSequence(
            [
                wait(self.duration, "wait"),
                instant("recover", lambda: entity.recover_resource(self.resource_recovery)),
            ],
            name=self.describe(),
        )


@dataclass
class CustomAction(Action):
    """Action built from a guard and a step factory.

    ``resource_cost`` is charged by a final step once the factory's steps
    have all run.
    """

    name: str = "Custom"
    guard: Optional[Callable[["CombatEntity", "CombatContext"], bool]] = None
    step_factory: Optional[Callable[["CombatEntity", "CombatContext"], Iterable[Step]]] = None

    def _can_execute(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return self.guard is None or bool(self.guard(entity, context))

    def execute(self, entity: "CombatEntity", context: "CombatContext") -> StepSequence:
        steps = list(self.step_factory(entity, context)) if self.step_factory else []
        if self.resource_cost > 0:
            steps.append(_spend_step(entity, self.resource_cost))
        return StepSequence(steps, name=self.describe())
