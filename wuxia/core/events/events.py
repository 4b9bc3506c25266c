"""Combat events and their types.

This module defines every event the combat core publishes on the event bus.

Event Design Principles:
- Events are immutable dataclasses with rich object payloads
- All events include the combat_time timestamp from the scheduler
- Events use enums instead of magic strings
- Keep event types focused and avoid over-granular events
"""

from dataclasses import dataclass, field
from typing import Optional, TYPE_CHECKING
from abc import ABC
from enum import Enum, auto

if TYPE_CHECKING:
    from ..entities.combat_entity import CombatEntity
    from ..engine.combat_state import CombatPhase
    from ...game.managers.log_manager import LogLevel


class EventType(Enum):
    """Types of combat events that managers can subscribe to."""
    # Encounter lifecycle
    COMBAT_STARTED = auto()
    COMBAT_ENDED = auto()
    PHASE_CHANGED = auto()

    # Turn flow
    TURN_STARTED = auto()
    TURN_ENDED = auto()
    HUMAN_TURN_STARTED = auto()
    TURN_ORDER_PREDICTED = auto()

    # AI decisions
    STRATEGY_SELECTED = auto()
    ACTION_EXECUTED = auto()
    ACTION_SKIPPED = auto()

    # Entity state
    ENTITY_DAMAGED = auto()
    ENTITY_DEFEATED = auto()

    # Logging
    LOG_MESSAGE = auto()
    DEBUG_MESSAGE = auto()
    LOG_SAVE_REQUESTED = auto()


@dataclass(frozen=True)
class CombatEvent(ABC):
    """Base class for all combat events."""
    combat_time: float
    event_type: EventType = field(init=False)


@dataclass(frozen=True)
class CombatStarted(CombatEvent):
    """Event emitted once the roster is populated and the first prediction exists."""
    entity_ids: tuple[str, ...]

    def __post_init__(self):
        # Set event_type since dataclass frozen=True prevents normal assignment
        object.__setattr__(self, 'event_type', EventType.COMBAT_STARTED)


@dataclass(frozen=True)
class CombatEnded(CombatEvent):
    """Event emitted when combat reaches its absorbing end state."""
    reason: str
    winning_faction: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.COMBAT_ENDED)


@dataclass(frozen=True)
class PhaseChanged(CombatEvent):
    """Event emitted on every combat phase transition."""
    old_phase: "CombatPhase"
    new_phase: "CombatPhase"
    entity_id: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.PHASE_CHANGED)


@dataclass(frozen=True)
class TurnStarted(CombatEvent):
    """Event emitted when the scheduler hands the turn to an entity."""
    entity: "CombatEntity"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_STARTED)


@dataclass(frozen=True)
class TurnEnded(CombatEvent):
    """Event emitted when an entity's turn completes."""
    entity: "CombatEntity"
    forced: bool = False

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_ENDED)


@dataclass(frozen=True)
class HumanTurnStarted(CombatEvent):
    """Event asking the input layer to drive a human-controlled entity."""
    entity: "CombatEntity"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.HUMAN_TURN_STARTED)


@dataclass(frozen=True)
class TurnOrderPredicted(CombatEvent):
    """Event carrying a fresh turn-order forecast for display."""
    entity_ids: tuple[str, ...]

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.TURN_ORDER_PREDICTED)


@dataclass(frozen=True)
class StrategySelected(CombatEvent):
    """Event emitted when the AI picks a strategy for its turn."""
    entity: "CombatEntity"
    strategy_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.STRATEGY_SELECTED)


@dataclass(frozen=True)
class ActionExecuted(CombatEvent):
    """Event emitted when an AI action's step sequence has finished."""
    entity: "CombatEntity"
    action_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_EXECUTED)


@dataclass(frozen=True)
class ActionSkipped(CombatEvent):
    """Event emitted when an action's guard fails right before execution."""
    entity: "CombatEntity"
    action_name: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ACTION_SKIPPED)


@dataclass(frozen=True)
class EntityDamaged(CombatEvent):
    """Event emitted when an action deals damage."""
    attacker: "CombatEntity"
    target: "CombatEntity"
    amount: float

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ENTITY_DAMAGED)


@dataclass(frozen=True)
class EntityDefeated(CombatEvent):
    """Event emitted when an entity is pruned from the roster at zero health."""
    entity: "CombatEntity"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.ENTITY_DEFEATED)


@dataclass(frozen=True)
class LogMessage(CombatEvent):
    """Event emitted when a log message is created."""
    message: str
    category: str
    level: "LogLevel"
    source: str

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_MESSAGE)


@dataclass(frozen=True)
class DebugMessage(CombatEvent):
    """Event emitted for debug-specific messages."""
    message: str
    source: str
    context: Optional[dict] = None

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.DEBUG_MESSAGE)


@dataclass(frozen=True)
class LogSaveRequested(CombatEvent):
    """Event requesting the log buffer be written to disk."""
    directory: str = "logs"

    def __post_init__(self):
        object.__setattr__(self, 'event_type', EventType.LOG_SAVE_REQUESTED)
