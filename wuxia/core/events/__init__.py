"""Event system for publisher-subscriber communication.

This package contains the complete event-driven architecture:
- event_manager.py: Publisher-subscriber event routing
- events.py: Event definitions for inter-system communication
"""

from .event_manager import EventManager, EventPriority, QueuedEvent
from .events import (
    CombatEvent,
    EventType,
    CombatStarted,
    CombatEnded,
    PhaseChanged,
    TurnStarted,
    TurnEnded,
    HumanTurnStarted,
    TurnOrderPredicted,
    StrategySelected,
    ActionExecuted,
    ActionSkipped,
    EntityDamaged,
    EntityDefeated,
    LogMessage,
    DebugMessage,
    LogSaveRequested,
)

__all__ = [
    "EventManager",
    "EventPriority",
    "QueuedEvent",
    "CombatEvent",
    "EventType",
    "CombatStarted",
    "CombatEnded",
    "PhaseChanged",
    "TurnStarted",
    "TurnEnded",
    "HumanTurnStarted",
    "TurnOrderPredicted",
    "StrategySelected",
    "ActionExecuted",
    "ActionSkipped",
    "EntityDamaged",
    "EntityDefeated",
    "LogMessage",
    "DebugMessage",
    "LogSaveRequested",
]
