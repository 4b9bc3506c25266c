"""
Combat phase state machine.

Phase changes are driven by the events the combat driver emits and are
looked up in one rule table, so no other component assigns a phase
directly. A trigger that has no rule for the current phase is rejected and
logged. COMBAT_END is absorbing: nothing leaves it.

    INITIALIZING --COMBAT_STARTED--> WAITING_FOR_TURN
    WAITING_FOR_TURN --TURN_STARTED--> ENTITY_TURN
    ENTITY_TURN --STRATEGY_SELECTED--> PROCESSING_ACTION   (AI actors)
    ENTITY_TURN --TURN_ENDED--> WAITING_FOR_TURN           (human done, or AI idle)
    PROCESSING_ACTION --TURN_ENDED--> WAITING_FOR_TURN
    any other phase --COMBAT_ENDED--> COMBAT_END
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from ...core.engine.combat_state import CombatPhase, CombatState
from ...core.events.events import CombatEvent, EventType, LogMessage, PhaseChanged
from .log_manager import LogLevel

if TYPE_CHECKING:
    from ...core.engine.combat_context import CombatContext


@dataclass
class PhaseTransitionRule:
    """Defines a combat phase transition rule."""

    from_phase: CombatPhase
    event_type: EventType
    to_phase: CombatPhase
    description: str

    def matches(self, current_phase: CombatPhase, event_type: EventType) -> bool:
        """Check if this rule matches the current conditions."""
        return self.from_phase == current_phase and self.event_type == event_type


class PhaseManager:
    """Owns the combat phase and applies the transition rules."""

    def __init__(self, state: CombatState, context: "CombatContext"):
        self.state = state
        self.context = context
        self.event_manager = context.event_manager

        self.rules: list[PhaseTransitionRule] = []
        self.history: list[tuple[CombatPhase, CombatPhase]] = []
        self._setup_transitions()

    def _emit_log(self, message: str, level: LogLevel = LogLevel.DEBUG) -> None:
        self.event_manager.publish(
            LogMessage(
                combat_time=self.context.combat_time,
                message=message,
                category="PHASE",
                level=level,
                source="PhaseManager",
            ),
            source="PhaseManager",
        )

    def _setup_transitions(self) -> None:
        """Define the combat phase transition rules."""
        self.rules = [
            PhaseTransitionRule(
                from_phase=CombatPhase.INITIALIZING,
                event_type=EventType.COMBAT_STARTED,
                to_phase=CombatPhase.WAITING_FOR_TURN,
                description="Roster ready, first prediction published",
            ),
            PhaseTransitionRule(
                from_phase=CombatPhase.WAITING_FOR_TURN,
                event_type=EventType.TURN_STARTED,
                to_phase=CombatPhase.ENTITY_TURN,
                description="Scheduler handed the turn to an entity",
            ),
            PhaseTransitionRule(
                from_phase=CombatPhase.ENTITY_TURN,
                event_type=EventType.STRATEGY_SELECTED,
                to_phase=CombatPhase.PROCESSING_ACTION,
                description="AI strategy execution started",
            ),
            PhaseTransitionRule(
                from_phase=CombatPhase.ENTITY_TURN,
                event_type=EventType.TURN_ENDED,
                to_phase=CombatPhase.WAITING_FOR_TURN,
                description="Turn ended without AI processing",
            ),
            PhaseTransitionRule(
                from_phase=CombatPhase.PROCESSING_ACTION,
                event_type=EventType.TURN_ENDED,
                to_phase=CombatPhase.WAITING_FOR_TURN,
                description="AI strategy execution finished",
            ),
        ]
        # Combat can end from every phase except the terminal one
        for phase in CombatPhase:
            if phase == CombatPhase.COMBAT_END:
                continue
            self.rules.append(
                PhaseTransitionRule(
                    from_phase=phase,
                    event_type=EventType.COMBAT_ENDED,
                    to_phase=CombatPhase.COMBAT_END,
                    description="Combat over",
                )
            )

    @property
    def phase(self) -> CombatPhase:
        return self.state.phase

    def can_handle(self, event_type: EventType) -> bool:
        return any(rule.matches(self.state.phase, event_type) for rule in self.rules)

    def handle(self, event_type: EventType, entity_id: Optional[str] = None) -> bool:
        """Apply the rule matching ``event_type`` in the current phase.

        Returns:
            True if a transition happened, False if it was rejected
        """
        for rule in self.rules:
            if rule.matches(self.state.phase, event_type):
                self._transition(rule.to_phase, entity_id, rule.description)
                return True

        self._emit_log(
            f"Rejected phase trigger {event_type.name} in {self.state.phase.name}",
            LogLevel.WARNING,
        )
        return False

    def handle_event(self, event: CombatEvent) -> bool:
        """Apply a transition for an emitted event."""
        entity = getattr(event, "entity", None)
        return self.handle(event.event_type, entity.entity_id if entity is not None else None)

    def _transition(self, new_phase: CombatPhase, entity_id: Optional[str], description: str) -> None:
        old_phase = self.state.phase
        self.state.phase = new_phase
        self.history.append((old_phase, new_phase))

        self.event_manager.publish(
            PhaseChanged(
                combat_time=self.context.combat_time,
                old_phase=old_phase,
                new_phase=new_phase,
                entity_id=entity_id,
            ),
            source="PhaseManager",
        )
        self._emit_log(f"Combat phase: {old_phase.name} -> {new_phase.name} ({description})")
