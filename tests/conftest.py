"""
Basic test fixtures for the wuxia combat test suite.

Provides small rosters, contexts and managers for testing the scheduler,
the predictor, the AI engine and the combat driver.
"""

import sys
import os
import pytest

# Add the project root to the Python path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, project_root)

from wuxia.core.config_loader import CombatConfig
from wuxia.core.data import ControlType, Faction, Vector2
from wuxia.core.engine.combat_context import CombatContext
from wuxia.core.entities.combat_entity import CombatEntity
from wuxia.core.entities.roster import Roster
from wuxia.core.events.event_manager import EventManager
from wuxia.game.entities.battlefield import Battlefield
from wuxia.game.entities.health import Health


def make_entity(entity_id, speed, faction=Faction.NEUTRAL, control=ControlType.AI,
                action_value=0.0, max_resource=60.0, max_health=None, strategies=None):
    """Build a combat entity with sensible test defaults."""
    return CombatEntity(
        entity_id=entity_id,
        name=entity_id.upper(),
        speed=speed,
        faction=faction,
        control=control,
        action_value=action_value,
        max_resource=max_resource,
        health=Health(max_health) if max_health is not None else None,
        strategies=strategies,
    )


@pytest.fixture
def entity_factory():
    """The make_entity helper, for tests that build their own rosters."""
    return make_entity


@pytest.fixture
def event_manager():
    """Create an event manager for testing."""
    return EventManager(enable_debug_logging=False)


@pytest.fixture
def config():
    """Combat config with no transition delay so turns start on the next tick."""
    return CombatConfig(turn_transition_delay=0.0, use_random_selection=False)


@pytest.fixture
def two_entity_roster():
    """A (speed 10) then B (speed 5), both starting at zero."""
    return Roster([make_entity("a", 10), make_entity("b", 5)])


@pytest.fixture
def context(two_entity_roster, config, event_manager):
    """Context over the two-entity roster with a seeded random source."""
    return CombatContext.create(two_entity_roster, config=config, seed=42, event_manager=event_manager)


@pytest.fixture
def skirmish(config, event_manager):
    """One ally and one hostile placed three meters apart."""
    hero = make_entity("hero", 10, Faction.ALLY, max_health=100)
    bandit = make_entity("bandit", 8, Faction.HOSTILE, max_health=50)
    battlefield = Battlefield()
    battlefield.place("hero", Vector2(0, 0))
    battlefield.place("bandit", Vector2(0, 3))
    return CombatContext.create(
        Roster([hero, bandit]),
        config=config,
        battlefield=battlefield,
        seed=7,
        event_manager=event_manager,
    )


@pytest.fixture
def sample_positions():
    """Create a list of sample positions for testing."""
    return [
        Vector2(0, 0),
        Vector2(1, 1),
        Vector2(2, 2),
        Vector2(3, 4)
    ]
