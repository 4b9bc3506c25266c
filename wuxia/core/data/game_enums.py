"""Centralized combat enums and constants.

This module contains the enums that are shared across the engine, the AI
layer and the managers, providing a single source of truth.
"""

from enum import Enum, auto


# Length of the action-value track every entity races along.
DEFAULT_ACTION_THRESHOLD = 500.0


class Faction(Enum):
    """Allegiance of a combat entity."""
    ALLY = auto()
    HOSTILE = auto()
    NEUTRAL = auto()


class ControlType(Enum):
    """Who decides what an entity does on its turn."""
    HUMAN = auto()
    AI = auto()


class Comparison(Enum):
    """Comparison operators used by threshold conditions."""
    GREATER_THAN = auto()
    LESS_THAN = auto()
    EQUAL = auto()
    GREATER_OR_EQUAL = auto()
    LESS_OR_EQUAL = auto()


class LogicOperator(Enum):
    """Combination operators for composite conditions."""
    AND = auto()
    OR = auto()


class DistanceReference(Enum):
    """What a distance condition measures against."""
    NEAREST_HOSTILE = auto()
    ENTITY = auto()
    POSITION = auto()


class TargetSelection(Enum):
    """How an attack picks among the targets in range."""
    CLOSEST = auto()
    LOWEST_HEALTH = auto()
    FIRST_AVAILABLE = auto()


class MoveTarget(Enum):
    """Where a move action heads."""
    TOWARD_HOSTILE = auto()
    AWAY_FROM_HOSTILE = auto()
    TO_POSITION = auto()


FACTION_NAMES = {
    Faction.ALLY: "Ally",
    Faction.HOSTILE: "Hostile",
    Faction.NEUTRAL: "Neutral",
}

COMPARISON_SYMBOLS = {
    Comparison.GREATER_THAN: ">",
    Comparison.LESS_THAN: "<",
    Comparison.EQUAL: "==",
    Comparison.GREATER_OR_EQUAL: ">=",
    Comparison.LESS_OR_EQUAL: "<=",
}


def is_hostile_to(attacker: Faction, target: Faction) -> bool:
    """Check whether ``attacker`` treats ``target`` as a valid enemy.

    Hostile entities fight allies and neutrals, allies fight hostiles and
    neutral entities fight nobody.
    """
    if attacker == Faction.HOSTILE:
        return target in (Faction.ALLY, Faction.NEUTRAL)
    if attacker == Faction.ALLY:
        return target == Faction.HOSTILE
    return False
