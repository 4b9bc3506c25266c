"""Combat state with the encounter's phase and turn bookkeeping.

This module defines :class:`CombatPhase`, the states of the combat phase
machine, and :class:`CombatState`, the plain data the managers read and
write while an encounter runs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional


class CombatPhase(Enum):
    """Phases of one encounter."""

    INITIALIZING = auto()       # Roster populated, first prediction pending
    WAITING_FOR_TURN = auto()   # Scheduler about to pick the next actor
    ENTITY_TURN = auto()        # An actor holds the turn (human input sub-state)
    PROCESSING_ACTION = auto()  # AI strategy steps are running
    COMBAT_END = auto()         # Absorbing terminal phase


@dataclass
class CombatState:
    """Mutable bookkeeping for one encounter."""

    phase: CombatPhase = CombatPhase.INITIALIZING
    current_actor_id: Optional[str] = None
    turn_count: int = 0
    predicted_order: list[str] = field(default_factory=list)
    # Seconds still to wait before the next actor is selected
    transition_delay_remaining: float = 0.0
    end_reason: Optional[str] = None
    winning_faction: Optional[str] = None

    @property
    def is_over(self) -> bool:
        return self.phase == CombatPhase.COMBAT_END

    def begin_turn(self, entity_id: str) -> None:
        self.current_actor_id = entity_id
        self.turn_count += 1

    def clear_turn(self) -> None:
        self.current_actor_id = None
