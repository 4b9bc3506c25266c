"""
Unit tests for the enemy AI decision engine.
"""

import random
from unittest.mock import Mock

import pytest

from wuxia.core.events.events import EventType
from wuxia.game.ai.actions import CustomAction, WaitAction
from wuxia.game.ai.ai_system import EnemyAISystem
from wuxia.game.ai.conditions import CustomCondition
from wuxia.game.ai.strategy import Strategy, StrategySet


NEVER = CustomCondition(lambda entity, context: False, name="never")


@pytest.fixture
def entity(context):
    return context.roster.get("a")


class TestStrategyFiltering:
    """Test which strategies are candidates."""

    def test_filters_in_list_order(self, context, entity):
        ready = Strategy("ready", priority=1)
        gated = Strategy("gated", priority=9, conditions=[NEVER])
        blocked = Strategy("blocked", priority=9, actions=[WaitAction(conditions=[NEVER])])
        later = Strategy("later", priority=2)
        entity.strategies = StrategySet([ready, gated, blocked, later])

        available = EnemyAISystem(context).get_available_strategies(entity)

        assert available == [ready, later]

    def test_nothing_available(self, context, entity):
        """No candidates means no strategy this turn."""
        ai = EnemyAISystem(context)

        assert ai.select_strategy(entity) is None
        assert ai.select_strategy(entity, [Strategy("gated", conditions=[NEVER])]) is None
        assert ai.execute_ai(entity) is None
        assert not ai.is_executing


class TestPrioritySelection:
    """Test deterministic highest-priority selection."""

    def test_highest_priority_wins(self, context, entity):
        low, high = Strategy("low", priority=1), Strategy("high", priority=5)
        ai = EnemyAISystem(context, use_random_selection=False)

        assert ai.select_strategy(entity, [low, high]) is high

    def test_first_wins_ties(self, context, entity):
        first, second = Strategy("first", priority=3), Strategy("second", priority=3)
        ai = EnemyAISystem(context, use_random_selection=False)

        assert ai.select_strategy(entity, [first, second]) is first


class TestWeightedSelection:
    """Test priority-weighted random selection."""

    def test_draw_walks_highest_priority_first(self, context, entity):
        """A low draw lands on the heaviest strategy wherever it sits in the list."""
        light, heavy = Strategy("light", priority=1), Strategy("heavy", priority=3)
        context.rng = Mock(random=Mock(return_value=0.1))
        ai = EnemyAISystem(context, use_random_selection=True)

        assert ai.select_strategy(entity, [light, heavy]) is heavy

    def test_draw_on_boundary_picks_earlier(self, context, entity):
        """A draw exactly on an accumulated weight selects that strategy."""
        light, heavy = Strategy("light", priority=1), Strategy("heavy", priority=3)
        context.rng = Mock(random=Mock(return_value=0.75))
        ai = EnemyAISystem(context, use_random_selection=True)

        assert ai.select_strategy(entity, [light, heavy]) is heavy

    def test_draw_past_boundary_picks_next(self, context, entity):
        light, heavy = Strategy("light", priority=1), Strategy("heavy", priority=3)
        context.rng = Mock(random=Mock(return_value=0.76))
        ai = EnemyAISystem(context, use_random_selection=True)

        assert ai.select_strategy(entity, [light, heavy]) is light

    def test_equal_priorities_keep_list_order(self, context, entity):
        first, second = Strategy("first", priority=2), Strategy("second", priority=2)
        context.rng = Mock(random=Mock(return_value=0.5))
        ai = EnemyAISystem(context, use_random_selection=True)

        assert ai.select_strategy(entity, [first, second]) is first

    def test_single_candidate_skips_draw(self, context, entity):
        context.rng = Mock()
        ai = EnemyAISystem(context, use_random_selection=True)
        only = Strategy("only")

        assert ai.select_strategy(entity, [only]) is only
        context.rng.random.assert_not_called()

    def test_frequencies_follow_weights(self, context, entity):
        """Over many seeded draws each strategy wins about its share of the weight."""
        light, heavy = Strategy("light", priority=1), Strategy("heavy", priority=3)
        context.rng = random.Random(1234)
        ai = EnemyAISystem(context, use_random_selection=True)

        picks = [ai.select_strategy(entity, [light, heavy]) for _ in range(2000)]

        share = picks.count(light) / len(picks)
        assert 0.2 < share < 0.3

    def test_seeded_runs_repeat(self, context, entity):
        strategies = [Strategy("one", priority=1), Strategy("two", priority=2), Strategy("three", priority=3)]

        context.rng = random.Random(99)
        first_run = [EnemyAISystem(context, True).select_strategy(entity, strategies).name for _ in range(20)]
        context.rng = random.Random(99)
        second_run = [EnemyAISystem(context, True).select_strategy(entity, strategies).name for _ in range(20)]

        assert first_run == second_run

    def test_config_flag_is_default(self, context):
        assert EnemyAISystem(context).use_random_selection is False


class TestExecution:
    """Test starting, ticking and stopping executions."""

    def test_execute_ai_publishes_selection(self, context, entity):
        selected = Mock()
        context.event_manager.subscribe(EventType.STRATEGY_SELECTED, selected)
        entity.strategies = StrategySet([Strategy("rest", actions=[WaitAction(duration=0.2)])])
        ai = EnemyAISystem(context)

        execution = ai.execute_ai(entity)
        context.event_manager.process_events()

        assert execution is ai.current_execution
        assert ai.is_executing
        selected.assert_called_once()
        assert selected.call_args[0][0].strategy_name == "rest"

    def test_update_until_done(self, context, entity):
        ai = EnemyAISystem(context)
        ai.execute_strategy(entity, Strategy("rest", actions=[WaitAction(duration=0.2)]))

        assert ai.update(0.1) is False
        assert ai.update(0.1) is True
        assert ai.current_execution is None
        assert ai.update(0.1) is True

    def test_new_execution_cancels_previous(self, context, entity):
        ai = EnemyAISystem(context)
        first = ai.execute_strategy(entity, Strategy("slow", actions=[WaitAction(duration=5)]))
        ai.update(0.1)

        ai.execute_strategy(entity, Strategy("other"))

        assert first.cancelled

    def test_stop_execution(self, context, entity):
        ai = EnemyAISystem(context)
        execution = ai.execute_strategy(entity, Strategy("slow", actions=[WaitAction(duration=5)]))

        ai.stop_execution()

        assert execution.cancelled
        assert ai.current_execution is None

    def test_strategy_management(self, context, entity):
        ai = EnemyAISystem(context)
        strategy = Strategy("strike", actions=[CustomAction()])

        assert ai.add_strategy(entity, strategy)
        assert not ai.add_strategy(entity, strategy)
        assert strategy in entity.strategies
        assert ai.remove_strategy(entity, strategy)
        assert not ai.remove_strategy(entity, strategy)

        ai.add_strategy(entity, strategy)
        ai.clear_strategies(entity)
        assert len(entity.strategies) == 0
