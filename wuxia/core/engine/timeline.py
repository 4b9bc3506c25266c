"""Action-value timeline for turn-based combat.

This module implements the scheduler that decides who acts next on the shared
combat timeline. Every entity races along a track of length
``action_threshold`` at its own speed; whoever would reach the end first gets
the turn.

Core Concepts:
- time_to_act = (threshold - action_value) / speed for every entity with speed > 0
- The smallest time_to_act wins; ties go to the earliest entity in roster order
- Every entity's clock advances by speed * time_to_act, keeping all clocks in sync
- The winner keeps its overshoot: threshold is subtracted rather than reset to zero
- Entities with speed <= 0 never act and never block anyone else
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Protocol, Sequence, TypeVar

if TYPE_CHECKING:
    from ..entities.combat_entity import CombatEntity
    from .combat_context import CombatContext


class Clocked(Protocol):
    """Anything the scheduling algorithm can advance."""
    speed: float
    action_value: float

    def advance_action_value(self, time: float) -> None: ...


T = TypeVar("T", bound=Clocked)


def find_next_actor(actors: Sequence[T], threshold: float) -> Optional[tuple[T, float]]:
    """Find who would act next without touching any clock.

    Args:
        actors: Entities in stable roster order
        threshold: The global action threshold

    Returns:
        (actor, time_to_act) for the winner, or None if no actor has speed > 0
    """
    next_actor: Optional[T] = None
    min_time_to_act = float("inf")

    for actor in actors:
        if actor.speed <= 0:
            continue
        time_to_act = (threshold - actor.action_value) / actor.speed
        # Strict comparison keeps the earliest roster entry on ties
        if next_actor is None or time_to_act < min_time_to_act:
            min_time_to_act = time_to_act
            next_actor = actor

    if next_actor is None:
        return None
    return next_actor, min_time_to_act


def select_next_actor(actors: Sequence[T], threshold: float) -> Optional[T]:
    """Select the next actor and advance every clock to the moment it acts.

    This is the single scheduling algorithm shared by the live scheduler and
    the turn predictor. All clocks are advanced before the winner's threshold
    is subtracted, so no partially advanced roster is ever observable.

    Returns:
        The selected actor, or None when no actor has speed > 0
    """
    found = find_next_actor(actors, threshold)
    if found is None:
        return None

    next_actor, time_to_act = found
    apply_turn(actors, next_actor, time_to_act, threshold)
    return next_actor


def apply_turn(actors: Sequence[T], next_actor: T, time_to_act: float, threshold: float) -> None:
    """Advance every clock by ``time_to_act`` and charge the winner one threshold."""
    for actor in actors:
        actor.advance_action_value(time_to_act)
    next_actor.action_value -= threshold


class ActionValueScheduler:
    """Schedules turns on the live roster of an encounter.

    The scheduler is the only component that advances live action values.
    It also keeps the accumulated combat time, which every event carries as
    its timestamp.
    """

    def __init__(self, context: "CombatContext"):
        self.context = context
        self._current_time: float = 0.0
        self._turns_scheduled: int = 0
        self._last_actor_id: Optional[str] = None

    @property
    def current_time(self) -> float:
        """Combat time elapsed since the encounter started."""
        return self._current_time

    @property
    def threshold(self) -> float:
        return self.context.config.action_threshold

    @property
    def turns_scheduled(self) -> int:
        return self._turns_scheduled

    def peek_next_actor(self) -> Optional["CombatEntity"]:
        """Who would act next, without advancing anything."""
        found = find_next_actor(self.context.roster.entities, self.threshold)
        return found[0] if found else None

    def select_next_actor(self) -> Optional["CombatEntity"]:
        """Select the next live actor and advance the whole roster.

        Returns:
            The entity whose turn it is, or None when nobody can act
            (empty roster, or no entity with positive speed)
        """
        actors = self.context.roster.entities
        found = find_next_actor(actors, self.threshold)
        if found is None:
            return None

        next_actor, time_to_act = found
        apply_turn(actors, next_actor, time_to_act, self.threshold)

        self._current_time += time_to_act
        self.context.combat_time = self._current_time
        self._turns_scheduled += 1
        self._last_actor_id = next_actor.entity_id
        return next_actor

    def get_stats(self) -> dict[str, Any]:
        """Get scheduler statistics for debugging/monitoring."""
        return {
            "current_time": self._current_time,
            "turns_scheduled": self._turns_scheduled,
            "last_actor_id": self._last_actor_id,
            "roster_size": len(self.context.roster),
            "threshold": self.threshold,
        }
