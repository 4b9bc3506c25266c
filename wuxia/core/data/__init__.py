"""Core data structures and definitions.

This package contains fundamental data types and combat definitions:
- data_structures.py: Vector2 and VectorArray for spatial queries
- game_enums.py: Centralized enums for factions, control, comparisons
"""

from .data_structures import Vector2, VectorArray
from .game_enums import (
    DEFAULT_ACTION_THRESHOLD,
    Faction,
    ControlType,
    Comparison,
    LogicOperator,
    DistanceReference,
    TargetSelection,
    MoveTarget,
    FACTION_NAMES,
    COMPARISON_SYMBOLS,
    is_hostile_to,
)

__all__ = [
    "Vector2",
    "VectorArray",
    "DEFAULT_ACTION_THRESHOLD",
    "Faction",
    "ControlType",
    "Comparison",
    "LogicOperator",
    "DistanceReference",
    "TargetSelection",
    "MoveTarget",
    "FACTION_NAMES",
    "COMPARISON_SYMBOLS",
    "is_hostile_to",
]
