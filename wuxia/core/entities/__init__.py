"""Entity records for the combat timeline.

- combat_entity.py: Live entity record and its prediction clone
- roster.py: Ordered, validated collection of live entity records
"""

from .combat_entity import CombatEntity, ClonedCombatEntity
from .roster import Roster, RosterError

__all__ = [
    "CombatEntity",
    "ClonedCombatEntity",
    "Roster",
    "RosterError",
]
