"""
Combat driver for one encounter.

The CombatManager owns the single tick loop. Each ``update(dt)`` call either
waits out the turn transition delay, asks the scheduler for the next actor,
advances the running AI strategy, or does nothing while a human-controlled
entity is deciding. Turn ends, pruning of defeated entities, combat-end
checks and turn-order predictions all happen here, in that order.

A manager drives exactly one encounter: once COMBAT_END is reached, build a
new manager for the next one.
"""

from typing import TYPE_CHECKING, Any, Optional

from ...core.data import Faction, FACTION_NAMES
from ...core.engine.combat_state import CombatPhase, CombatState
from ...core.engine.timeline import ActionValueScheduler
from ...core.engine.turn_predictor import TurnPredictor
from ...core.events.events import (
    CombatEnded,
    CombatStarted,
    EntityDefeated,
    EventType,
    HumanTurnStarted,
    LogMessage,
    TurnEnded,
    TurnOrderPredicted,
    TurnStarted,
)
from .log_manager import LogLevel
from .phase_manager import PhaseManager

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity
    from ...core.engine.combat_context import CombatContext
    from ..ai.ai_system import EnemyAISystem


class CombatManager:
    """Sequences entity turns on the shared action-value timeline."""

    def __init__(self, context: "CombatContext", ai_system: Optional["EnemyAISystem"] = None):
        """Initialize the combat manager.

        Args:
            context: Combat context for the encounter
            ai_system: AI engine to use (one is built from the context if omitted)
        """
        from ..ai.ai_system import EnemyAISystem

        self.context = context
        self.event_manager = context.event_manager
        self.state = CombatState()
        self.scheduler = ActionValueScheduler(context)
        self.predictor = TurnPredictor(context)
        self.phase_manager = PhaseManager(self.state, context)
        self.ai_system = ai_system or EnemyAISystem(context)

        self.current_actor: Optional["CombatEntity"] = None
        self._had_allies = False
        self._had_hostiles = False

    def _emit_log(
        self, message: str, category: str = "COMBAT", level: LogLevel = LogLevel.INFO
    ) -> None:
        """Emit a log message event."""
        self.event_manager.publish(
            LogMessage(
                combat_time=self.context.combat_time,
                message=message,
                category=category,
                level=level,
                source="CombatManager",
            ),
            source="CombatManager",
        )

    # State queries

    @property
    def phase(self) -> CombatPhase:
        return self.state.phase

    @property
    def awaiting_human(self) -> bool:
        """True while a human-controlled entity holds the turn."""
        return (
            self.state.phase == CombatPhase.ENTITY_TURN
            and self.current_actor is not None
            and not self.current_actor.is_ai_controlled
        )

    def is_combat_over(self) -> bool:
        return self.state.is_over

    # Encounter lifecycle

    def start_combat(self) -> bool:
        """Publish the roster and first prediction and open the timeline.

        Returns:
            False if combat was already started
        """
        if self.state.phase != CombatPhase.INITIALIZING:
            self._emit_log("start_combat called twice, ignoring", "WARNING", LogLevel.WARNING)
            return False

        self._prune_defeated()
        roster = self.context.roster
        self._had_allies = bool(roster.by_faction(Faction.ALLY))
        self._had_hostiles = bool(roster.by_faction(Faction.HOSTILE))

        started = CombatStarted(self.context.combat_time, tuple(roster.entity_ids()))
        self.event_manager.publish(started, source="CombatManager")
        self.phase_manager.handle_event(started)
        self._emit_log(f"Combat started with {len(roster)} entities", "SYSTEM")

        if not self._check_combat_end():
            self._publish_prediction()
        return True

    def update(self, dt: float) -> None:
        """Advance combat by ``dt`` seconds of driver time."""
        phase = self.state.phase

        if phase == CombatPhase.WAITING_FOR_TURN:
            self.state.transition_delay_remaining -= dt
            if self.state.transition_delay_remaining <= 0:
                self.state.transition_delay_remaining = 0.0
                self._advance_to_next_turn()
        elif phase == CombatPhase.PROCESSING_ACTION:
            if self.ai_system.update(dt):
                self._end_turn(forced=False)

        self.event_manager.process_events()

    def run_until_blocked(self, max_turns: int = 1000, max_ticks: int = 1_000_000) -> int:
        """Drive AI turns with a fixed tick until a human must act or combat ends.

        Args:
            max_turns: Stop after this many completed turns
            max_ticks: Hard cap on update calls

        Returns:
            Number of turns started during the call
        """
        if self.state.phase == CombatPhase.INITIALIZING:
            self.start_combat()

        tick = self.context.config.ai_tick_seconds
        start_turns = self.state.turn_count
        ticks = 0
        while not self.is_combat_over() and not self.awaiting_human:
            if self.state.turn_count - start_turns >= max_turns and self.state.phase == CombatPhase.WAITING_FOR_TURN:
                break
            if ticks >= max_ticks:
                raise RuntimeError(f"Combat did not block within {max_ticks} ticks")
            self.update(tick)
            ticks += 1
        self.event_manager.process_events()
        return self.state.turn_count - start_turns

    # Turn flow

    def _advance_to_next_turn(self) -> None:
        actor = self.scheduler.select_next_actor()
        if actor is None:
            self._end_combat("No entity can act")
            return

        self.current_actor = actor
        self.state.begin_turn(actor.entity_id)
        actor.restore_resource()

        started = TurnStarted(self.context.combat_time, actor)
        self.event_manager.publish(started, source="CombatManager")
        self.phase_manager.handle_event(started)
        self._emit_log(
            f"Turn {self.state.turn_count}: {actor.name} acts (AV {actor.action_value:.1f})",
            "TIMELINE",
        )

        if actor.is_ai_controlled:
            self._begin_ai_turn(actor)
        else:
            self.begin_human_turn(actor)

    def _begin_ai_turn(self, actor: "CombatEntity") -> None:
        execution = self.ai_system.execute_ai(actor)
        if execution is None:
            self._emit_log(f"{actor.name} has nothing to do", "AI", LogLevel.DEBUG)
            self._end_turn(forced=False)
            return
        self.phase_manager.handle(EventType.STRATEGY_SELECTED, actor.entity_id)

    def begin_human_turn(self, entity: "CombatEntity") -> None:
        """Hand control to the input layer until the turn is signalled complete."""
        self.event_manager.publish(
            HumanTurnStarted(self.context.combat_time, entity),
            source="CombatManager",
        )
        self._emit_log(f"Waiting for input from {entity.name}", "INPUT")

    def signal_turn_complete(self, entity: "CombatEntity") -> bool:
        """End a human-controlled entity's turn.

        Returns:
            False (with a warning logged) if ``entity`` is not the human actor
            currently holding the turn
        """
        if not self.awaiting_human or self.current_actor is not entity:
            self._emit_log(
                f"Ignored turn-complete signal for {entity.name}: not the current human actor",
                "WARNING",
                LogLevel.WARNING,
            )
            return False
        self._end_turn(forced=False)
        return True

    def force_end_turn(self, entity: "CombatEntity") -> bool:
        """End the current actor's turn immediately, discarding any running strategy.

        Effects already applied are not rolled back.
        """
        if self.current_actor is not entity or self.state.phase not in (
            CombatPhase.ENTITY_TURN, CombatPhase.PROCESSING_ACTION
        ):
            self._emit_log(
                f"Ignored force end for {entity.name}: not the current actor",
                "WARNING",
                LogLevel.WARNING,
            )
            return False

        self.ai_system.stop_execution()
        self._end_turn(forced=True)
        return True

    def _end_turn(self, forced: bool) -> None:
        actor = self.current_actor
        if actor is None:
            return

        ended = TurnEnded(self.context.combat_time, actor, forced)
        self.event_manager.publish(ended, source="CombatManager")
        self.phase_manager.handle_event(ended)
        if forced:
            self._emit_log(f"{actor.name}'s turn was force-ended", "TIMELINE", LogLevel.WARNING)

        self.current_actor = None
        self.state.clear_turn()

        self._prune_defeated()
        if self._check_combat_end():
            return

        self._publish_prediction()
        self.state.transition_delay_remaining = self.context.config.turn_transition_delay

    def _prune_defeated(self) -> None:
        for entity in self.context.roster.prune_dead():
            if self.context.battlefield is not None:
                self.context.battlefield.remove(entity.entity_id)
            self.event_manager.publish(
                EntityDefeated(self.context.combat_time, entity),
                source="CombatManager",
            )
            self._emit_log(f"{entity.name} is defeated")

    def _check_combat_end(self) -> bool:
        """End combat if a side that started the encounter has been wiped out."""
        roster = self.context.roster
        allies_alive = any(entity.is_alive for entity in roster.by_faction(Faction.ALLY))
        hostiles_alive = any(entity.is_alive for entity in roster.by_faction(Faction.HOSTILE))

        if (self._had_allies and not allies_alive) or (self._had_hostiles and not hostiles_alive):
            winner = None
            if allies_alive:
                winner = FACTION_NAMES[Faction.ALLY]
            elif hostiles_alive:
                winner = FACTION_NAMES[Faction.HOSTILE]
            self._end_combat("Opposing side defeated", winner)
            return True
        return False

    def _end_combat(self, reason: str, winning_faction: Optional[str] = None) -> None:
        if self.state.is_over:
            return
        self.ai_system.stop_execution()
        self.current_actor = None
        self.state.clear_turn()
        self.state.end_reason = reason
        self.state.winning_faction = winning_faction

        ended = CombatEnded(self.context.combat_time, reason, winning_faction)
        self.event_manager.publish(ended, source="CombatManager")
        self.phase_manager.handle_event(ended)
        outcome = f"{winning_faction} side wins" if winning_faction else "no winner"
        self._emit_log(f"Combat ended: {reason} ({outcome})")

    # Turn order forecasting

    def _publish_prediction(self) -> None:
        predicted = self.predictor.get_prediction(self.context.config.predicted_turns_to_show)
        self.state.predicted_order = predicted
        self.event_manager.publish(
            TurnOrderPredicted(self.context.combat_time, tuple(predicted)),
            source="CombatManager",
        )
        self._emit_log(f"Predicted order: {', '.join(predicted)}", "TIMELINE", LogLevel.DEBUG)

    def get_prediction(self, count: Optional[int] = None) -> list[str]:
        """Entity ids of the upcoming turns, the current actor first if one holds the turn."""
        if count is None:
            count = self.context.config.predicted_turns_to_show
        return [
            entity.entity_id
            for entity in self.predictor.predict_with_current(self.current_actor, count)
        ]

    def get_stats(self) -> dict[str, Any]:
        return {
            "phase": self.state.phase.name,
            "turn_count": self.state.turn_count,
            "current_actor_id": self.state.current_actor_id,
            "scheduler": self.scheduler.get_stats(),
        }
