"""Combat entity records.

A ``CombatEntity`` is the scheduler's view of one actor in the encounter:
identity, speed, accumulated action value, faction and the per-turn action
point budget. Health lives in an external collaborator; the record only asks
it whether the entity is still alive.

``ClonedCombatEntity`` is the minimal projection the turn predictor advances
instead of the live record.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ..data import ControlType, Faction, FACTION_NAMES

if TYPE_CHECKING:
    from ...game.entities.health import Health
    from ...game.ai.strategy import StrategySet


@dataclass(eq=False)
class CombatEntity:
    """Live record of one actor on the shared timeline.

    Identity semantics: two records are equal only if they are the same
    object, so records can be used as dictionary keys while their clocks
    change.
    """

    entity_id: str
    name: str
    speed: float
    faction: Faction = Faction.NEUTRAL
    control: ControlType = ControlType.AI
    action_value: float = 0.0
    max_resource: float = 60.0
    current_resource: float = -1.0
    health: Optional["Health"] = None
    strategies: Optional["StrategySet"] = None

    def __post_init__(self):
        # A negative sentinel means "start the encounter with a full budget"
        if self.current_resource < 0:
            self.current_resource = self.max_resource

    @property
    def is_alive(self) -> bool:
        """Alive unless the health collaborator reports zero health."""
        return self.health is None or self.health.is_alive

    @property
    def is_ai_controlled(self) -> bool:
        return self.control == ControlType.AI

    @property
    def faction_name(self) -> str:
        return FACTION_NAMES[self.faction]

    def advance_action_value(self, time: float) -> None:
        """Advance this entity's clock by ``time`` units of combat time."""
        if self.speed <= 0:
            return
        self.action_value += self.speed * time

    def get_clone(self) -> "ClonedCombatEntity":
        """Snapshot speed and action value for turn prediction."""
        return ClonedCombatEntity(self.name, self.speed, self.action_value, self)

    # Action point budget

    def spend_resource(self, cost: float) -> bool:
        """Spend ``cost`` action points.

        Returns:
            True if the budget covered the cost, False (unchanged) otherwise
        """
        if self.current_resource >= cost:
            self.current_resource -= cost
            return True
        return False

    def restore_resource(self) -> None:
        """Refill the action point budget at the start of a turn."""
        self.current_resource = self.max_resource

    def recover_resource(self, amount: float) -> float:
        """Recover up to ``amount`` action points, clamped to the maximum.

        Returns:
            Points actually recovered
        """
        before = self.current_resource
        self.current_resource = min(self.max_resource, self.current_resource + amount)
        return self.current_resource - before

    def __repr__(self) -> str:
        return (
            f"CombatEntity({self.entity_id!r}, speed={self.speed}, "
            f"action_value={self.action_value}, faction={self.faction.name})"
        )


class ClonedCombatEntity:
    """Prediction-only copy of a combat entity's clock.

    Only ``action_value`` is mutated during prediction; ``real_entity`` is a
    read-only back reference used to report who would act.
    """

    __slots__ = ("name", "speed", "action_value", "_real_entity")

    def __init__(self, name: str, speed: float, action_value: float, real_entity: CombatEntity):
        self.name = name
        self.speed = speed
        self.action_value = action_value
        self._real_entity = real_entity

    @property
    def real_entity(self) -> CombatEntity:
        return self._real_entity

    @property
    def entity_id(self) -> str:
        return self._real_entity.entity_id

    def advance_action_value(self, time: float) -> None:
        if self.speed <= 0:
            return
        self.action_value += self.speed * time

    def __repr__(self) -> str:
        return f"ClonedCombatEntity({self.name!r}, speed={self.speed}, action_value={self.action_value})"
