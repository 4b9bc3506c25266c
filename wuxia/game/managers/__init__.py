"""Manager systems for combat coordination.

This package contains the manager classes that drive an encounter through
the event-driven architecture.
"""

from .log_manager import LogManager, LogLevel, LogCategory, LogEntry
from .phase_manager import PhaseManager, PhaseTransitionRule
from .combat_manager import CombatManager

__all__ = [
    "LogManager",
    "LogLevel",
    "LogCategory",
    "LogEntry",
    "PhaseManager",
    "PhaseTransitionRule",
    "CombatManager",
]
