"""Explicit combat context shared by the scheduler, predictor and AI engine.

Everything an encounter needs to reach (roster, settings, event bus, world
collaborators, random source) travels in one object that is handed to each
component's constructor. No component looks anything up globally.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from ..config_loader import CombatConfig
from ..entities.roster import Roster
from ..events.event_manager import EventManager

if TYPE_CHECKING:
    from ...game.entities.battlefield import Battlefield


@dataclass
class CombatContext:
    """State and collaborators for one encounter."""

    roster: Roster
    config: CombatConfig = field(default_factory=CombatConfig)
    event_manager: EventManager = field(default_factory=EventManager)
    battlefield: Optional["Battlefield"] = None
    rng: random.Random = field(default_factory=random.Random)
    # Updated by the scheduler; stamped on every published event
    combat_time: float = 0.0

    @classmethod
    def create(
        cls,
        roster: Roster,
        config: Optional[CombatConfig] = None,
        battlefield: Optional["Battlefield"] = None,
        seed: Optional[int] = None,
        event_manager: Optional[EventManager] = None,
    ) -> "CombatContext":
        """Build a context, seeding the random source when ``seed`` is given."""
        return cls(
            roster=roster,
            config=config or CombatConfig(),
            event_manager=event_manager or EventManager(),
            battlefield=battlefield,
            rng=random.Random(seed),
        )
