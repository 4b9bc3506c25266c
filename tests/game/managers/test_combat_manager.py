"""
Tests for the combat driver.

Covers the turn loop, human turn signalling, forced turn ends, pruning of
defeated entities, combat end and the published turn-order forecasts.
"""

from unittest.mock import Mock

import pytest

from wuxia.core.config_loader import CombatConfig
from wuxia.core.data import ControlType, Faction, Vector2
from wuxia.core.engine.combat_context import CombatContext
from wuxia.core.engine.combat_state import CombatPhase
from wuxia.core.entities.roster import Roster
from wuxia.core.events.events import EventType
from wuxia.game.ai.actions import MeleeAttackAction, WaitAction
from wuxia.game.ai.strategy import Strategy, StrategySet
from wuxia.game.entities import Battlefield
from wuxia.game.managers import CombatManager


def record(event_manager, event_type):
    """Subscribe a Mock and return it."""
    subscriber = Mock()
    event_manager.subscribe(event_type, subscriber)
    return subscriber


def published(subscriber):
    return [call[0][0] for call in subscriber.call_args_list]


@pytest.fixture
def duel(entity_factory, config, event_manager):
    """A human-controlled ally against an idle AI hostile."""
    hero = entity_factory("hero", 10, Faction.ALLY, ControlType.HUMAN, max_health=30)
    brute = entity_factory("brute", 5, Faction.HOSTILE, max_health=30)
    return CombatContext.create(Roster([hero, brute]), config=config, event_manager=event_manager)


@pytest.fixture
def finishing_blow(entity_factory, config, event_manager):
    """An AI ally one meter from a hostile it can defeat in a single strike."""
    strike = Strategy("strike", actions=[MeleeAttackAction(damage=100)])
    hero = entity_factory("hero", 10, Faction.ALLY, max_health=100, strategies=StrategySet([strike]))
    bandit = entity_factory("bandit", 8, Faction.HOSTILE, max_health=50)
    battlefield = Battlefield()
    battlefield.place("hero", Vector2(0, 0))
    battlefield.place("bandit", Vector2(0, 1))
    return CombatContext.create(
        Roster([hero, bandit]), config=config, battlefield=battlefield, event_manager=event_manager
    )


class TestCombatStart:
    """Test starting an encounter."""

    def test_start_combat(self, context):
        started = record(context.event_manager, EventType.COMBAT_STARTED)
        manager = CombatManager(context)

        assert manager.start_combat()
        context.event_manager.process_events()

        assert manager.phase == CombatPhase.WAITING_FOR_TURN
        assert published(started)[0].entity_ids == ("a", "b")

    def test_start_twice_is_ignored(self, context):
        manager = CombatManager(context)
        manager.start_combat()

        assert not manager.start_combat()
        assert manager.phase == CombatPhase.WAITING_FOR_TURN

    def test_first_prediction_published(self, context):
        predicted = record(context.event_manager, EventType.TURN_ORDER_PREDICTED)
        manager = CombatManager(context)

        manager.start_combat()
        context.event_manager.process_events()

        assert published(predicted)[0].entity_ids[:6] == ("a", "a", "b", "a", "a", "b")
        assert len(manager.state.predicted_order) == context.config.predicted_turns_to_show

    def test_dead_entities_pruned_at_start(self, duel, entity_factory):
        ghost = entity_factory("ghost", 20, Faction.HOSTILE, max_health=1)
        ghost.health.take_damage(1)
        duel.roster.add(ghost)

        CombatManager(duel).start_combat()

        assert "ghost" not in duel.roster


class TestTurnLoop:
    """Test turn sequencing."""

    def test_turns_follow_scheduler(self, context):
        turns = record(context.event_manager, EventType.TURN_STARTED)
        manager = CombatManager(context)

        assert manager.run_until_blocked(max_turns=5) == 5

        assert [event.entity.entity_id for event in published(turns)] == ["a", "a", "b", "a", "a"]
        assert manager.state.turn_count == 5

    def test_run_until_blocked_starts_combat(self, context):
        manager = CombatManager(context)

        manager.run_until_blocked(max_turns=1)

        assert manager.state.turn_count == 1
        assert manager.phase == CombatPhase.WAITING_FOR_TURN

    def test_resource_restored_at_turn_start(self, context):
        a = context.roster.get("a")
        a.current_resource = 0
        manager = CombatManager(context)
        manager.start_combat()

        manager.update(0.1)

        assert a.current_resource == a.max_resource

    def test_transition_delay(self, entity_factory):
        ctx = CombatContext.create(
            Roster([entity_factory("a", 10), entity_factory("b", 5)]),
            config=CombatConfig(turn_transition_delay=0.5, use_random_selection=False),
        )
        manager = CombatManager(ctx)
        manager.start_combat()
        manager.update(0.1)
        assert manager.state.turn_count == 1

        manager.update(0.2)
        assert manager.state.turn_count == 1

        manager.update(0.3)
        assert manager.state.turn_count == 2

    def test_ai_turn_runs_strategy(self, context):
        a = context.roster.get("a")
        a.strategies = StrategySet([Strategy("rest", actions=[WaitAction(duration=0.3)])])
        ended = record(context.event_manager, EventType.TURN_ENDED)
        manager = CombatManager(context)
        manager.start_combat()

        manager.update(0.1)
        assert manager.phase == CombatPhase.PROCESSING_ACTION
        assert manager.current_actor is a

        for _ in range(3):
            manager.update(0.1)

        assert manager.phase == CombatPhase.WAITING_FOR_TURN
        assert published(ended)[0].entity is a
        assert not published(ended)[0].forced

    def test_no_actor_ends_combat(self, entity_factory, config):
        ctx = CombatContext.create(Roster([entity_factory("statue", 0)]), config=config)
        manager = CombatManager(ctx)
        manager.start_combat()

        manager.update(0.1)

        assert manager.is_combat_over()
        assert manager.state.end_reason == "No entity can act"

    def test_get_prediction_leads_with_current_actor(self, context):
        a = context.roster.get("a")
        a.strategies = StrategySet([Strategy("rest", actions=[WaitAction(duration=5)])])
        manager = CombatManager(context)
        manager.start_combat()
        manager.update(0.1)

        prediction = manager.get_prediction(4)

        assert prediction[0] == "a"
        assert len(prediction) == 4


class TestHumanTurns:
    """Test the human input sub-state."""

    def test_blocks_on_human_actor(self, duel):
        human_turns = record(duel.event_manager, EventType.HUMAN_TURN_STARTED)
        manager = CombatManager(duel)

        manager.run_until_blocked()

        assert manager.awaiting_human
        assert manager.current_actor is duel.roster.get("hero")
        assert manager.phase == CombatPhase.ENTITY_TURN
        human_turns.assert_called_once()

    def test_updates_wait_for_signal(self, duel):
        manager = CombatManager(duel)
        manager.run_until_blocked()

        for _ in range(10):
            manager.update(0.1)

        assert manager.awaiting_human
        assert manager.state.turn_count == 1

    def test_signal_from_wrong_entity_rejected(self, duel):
        manager = CombatManager(duel)
        manager.run_until_blocked()

        assert not manager.signal_turn_complete(duel.roster.get("brute"))
        assert manager.awaiting_human

    def test_signal_ends_turn(self, duel):
        manager = CombatManager(duel)
        manager.run_until_blocked()

        assert manager.signal_turn_complete(duel.roster.get("hero"))

        assert manager.phase == CombatPhase.WAITING_FOR_TURN
        assert manager.current_actor is None

    def test_human_resumes_after_ai(self, duel):
        """The idle AI turn passes straight back to the human."""
        manager = CombatManager(duel)
        manager.run_until_blocked()
        manager.signal_turn_complete(duel.roster.get("hero"))

        started = manager.run_until_blocked()

        assert started >= 1
        assert manager.awaiting_human


class TestForceEndTurn:
    """Test ending a turn from outside."""

    def test_force_end_stops_strategy(self, context):
        a = context.roster.get("a")
        a.strategies = StrategySet([Strategy("rest", actions=[WaitAction(duration=5)])])
        ended = record(context.event_manager, EventType.TURN_ENDED)
        manager = CombatManager(context)
        manager.start_combat()
        manager.update(0.1)

        assert manager.force_end_turn(a)
        context.event_manager.process_events()

        assert manager.phase == CombatPhase.WAITING_FOR_TURN
        assert not manager.ai_system.is_executing
        assert published(ended)[0].forced

    def test_force_end_wrong_entity(self, context):
        manager = CombatManager(context)
        manager.start_combat()

        assert not manager.force_end_turn(context.roster.get("b"))


class TestCombatEnd:
    """Test defeat handling and the end of combat."""

    def test_defeat_ends_combat(self, finishing_blow):
        defeated = record(finishing_blow.event_manager, EventType.ENTITY_DEFEATED)
        ended = record(finishing_blow.event_manager, EventType.COMBAT_ENDED)
        manager = CombatManager(finishing_blow)

        manager.run_until_blocked()

        assert manager.is_combat_over()
        assert manager.state.winning_faction == "Ally"
        assert "bandit" not in finishing_blow.roster
        assert "bandit" not in finishing_blow.battlefield
        assert published(defeated)[0].entity.entity_id == "bandit"
        assert published(ended)[0].winning_faction == "Ally"

    def test_phase_history(self, finishing_blow):
        manager = CombatManager(finishing_blow)

        manager.run_until_blocked()

        assert manager.phase_manager.history == [
            (CombatPhase.INITIALIZING, CombatPhase.WAITING_FOR_TURN),
            (CombatPhase.WAITING_FOR_TURN, CombatPhase.ENTITY_TURN),
            (CombatPhase.ENTITY_TURN, CombatPhase.PROCESSING_ACTION),
            (CombatPhase.PROCESSING_ACTION, CombatPhase.WAITING_FOR_TURN),
            (CombatPhase.WAITING_FOR_TURN, CombatPhase.COMBAT_END),
        ]

    def test_updates_after_end_do_nothing(self, finishing_blow):
        manager = CombatManager(finishing_blow)
        manager.run_until_blocked()
        turns = manager.state.turn_count

        manager.update(1.0)

        assert manager.state.turn_count == turns
        assert manager.phase == CombatPhase.COMBAT_END

    def test_neutral_roster_never_ends(self, context):
        manager = CombatManager(context)

        manager.run_until_blocked(max_turns=20)

        assert not manager.is_combat_over()

    def test_stats(self, context):
        manager = CombatManager(context)
        manager.run_until_blocked(max_turns=2)

        stats = manager.get_stats()

        assert stats["phase"] == "WAITING_FOR_TURN"
        assert stats["turn_count"] == 2
