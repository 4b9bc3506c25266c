"""
Unit tests for the action-value timeline.

Tests the scheduling algorithm that decides who acts next and keeps every
entity's clock advancing in lockstep.
"""

import pytest

from wuxia.core.engine.timeline import (
    ActionValueScheduler,
    find_next_actor,
    select_next_actor,
)
from wuxia.core.entities.roster import Roster


THRESHOLD = 500.0


class TestSelectNextActor:
    """Test the shared scheduling algorithm."""

    def test_faster_entity_acts_first(self, two_entity_roster):
        """A (speed 10) reaches 500 in 50 time units, B (speed 5) needs 100."""
        a, b = two_entity_roster.entities

        actor = select_next_actor(two_entity_roster.entities, THRESHOLD)

        assert actor is a
        assert a.action_value == pytest.approx(0.0)
        assert b.action_value == pytest.approx(250.0)

    def test_tie_goes_to_earlier_roster_entry(self, two_entity_roster):
        """On the second call both need 50 time units; roster order decides."""
        a, b = two_entity_roster.entities
        select_next_actor(two_entity_roster.entities, THRESHOLD)

        actor = select_next_actor(two_entity_roster.entities, THRESHOLD)

        assert actor is a
        assert a.action_value == pytest.approx(0.0)
        assert b.action_value == pytest.approx(500.0)

    def test_slower_entity_gets_its_turn(self, two_entity_roster):
        """B at the threshold acts next with zero wait."""
        a, b = two_entity_roster.entities
        select_next_actor(two_entity_roster.entities, THRESHOLD)
        select_next_actor(two_entity_roster.entities, THRESHOLD)

        actor = select_next_actor(two_entity_roster.entities, THRESHOLD)

        assert actor is b
        assert a.action_value == pytest.approx(0.0)
        assert b.action_value == pytest.approx(0.0)

    def test_turn_frequency_follows_speed(self, two_entity_roster):
        """Over many turns, A acts twice as often as B."""
        a, b = two_entity_roster.entities
        turns = [select_next_actor(two_entity_roster.entities, THRESHOLD) for _ in range(30)]

        assert turns.count(a) == 20
        assert turns.count(b) == 10

    def test_zero_speed_single_entity_yields_none(self, entity_factory):
        """No entity with positive speed means no next actor."""
        statue = entity_factory("statue", 0)

        assert select_next_actor([statue], THRESHOLD) is None
        assert statue.action_value == 0.0

    def test_empty_roster_yields_none(self):
        """An empty roster is a stop condition, not an error."""
        assert select_next_actor([], THRESHOLD) is None
        assert find_next_actor([], THRESHOLD) is None

    def test_zero_speed_entity_never_selected_nor_advanced(self, entity_factory):
        """Zero-speed entities neither act nor block anyone."""
        runner = entity_factory("runner", 7)
        statue = entity_factory("statue", 0, action_value=123.0)
        actors = [statue, runner]

        for _ in range(10):
            assert select_next_actor(actors, THRESHOLD) is runner
        assert statue.action_value == 123.0

    def test_starting_action_value_gives_head_start(self, entity_factory):
        """An entity that starts closer to the threshold acts first despite lower speed."""
        slow = entity_factory("slow", 5, action_value=450.0)  # needs 10
        fast = entity_factory("fast", 10)                       # needs 50

        assert select_next_actor([fast, slow], THRESHOLD) is slow

    def test_clocks_stay_synchronized(self, entity_factory):
        """Every entity advances by speed * elapsed time on each selection."""
        actors = [
            entity_factory("a", 10),
            entity_factory("b", 7, action_value=120.0),
            entity_factory("c", 3.5, action_value=40.0),
            entity_factory("d", 0, action_value=10.0),
        ]

        for _ in range(25):
            before = {actor.entity_id: actor.action_value for actor in actors}
            found = find_next_actor(actors, THRESHOLD)
            assert found is not None
            expected_actor, elapsed = found

            actor = select_next_actor(actors, THRESHOLD)

            assert actor is expected_actor
            for other in actors:
                expected = before[other.entity_id] + max(other.speed, 0) * elapsed
                if other is actor:
                    expected -= THRESHOLD
                assert other.action_value == pytest.approx(expected)

    def test_selected_actor_ends_below_threshold(self, entity_factory):
        """After selection the actor's value is back under the threshold."""
        actors = [entity_factory("a", 13), entity_factory("b", 9), entity_factory("c", 4)]

        for _ in range(40):
            actor = select_next_actor(actors, THRESHOLD)
            assert actor.action_value < THRESHOLD

    def test_find_next_actor_does_not_mutate(self, two_entity_roster):
        """Peeking at the next actor leaves every clock untouched."""
        a, b = two_entity_roster.entities

        actor, elapsed = find_next_actor(two_entity_roster.entities, THRESHOLD)

        assert actor is a
        assert elapsed == pytest.approx(50.0)
        assert a.action_value == 0.0
        assert b.action_value == 0.0


class TestActionValueScheduler:
    """Test the live scheduler wrapped around a combat context."""

    def test_scheduler_uses_context_threshold(self, context):
        """Threshold comes from the context's config."""
        scheduler = ActionValueScheduler(context)

        assert scheduler.threshold == 500.0

    def test_current_time_accumulates(self, context):
        """Combat time is the sum of the waits between turns."""
        scheduler = ActionValueScheduler(context)

        scheduler.select_next_actor()
        assert scheduler.current_time == pytest.approx(50.0)

        scheduler.select_next_actor()
        assert scheduler.current_time == pytest.approx(100.0)
        assert context.combat_time == pytest.approx(100.0)
        assert scheduler.turns_scheduled == 2

    def test_peek_does_not_advance(self, context):
        """peek_next_actor reports the winner without moving time."""
        scheduler = ActionValueScheduler(context)

        peeked = scheduler.peek_next_actor()

        assert peeked is context.roster.get("a")
        assert scheduler.current_time == 0.0
        assert context.roster.get("b").action_value == 0.0

    def test_no_actor_leaves_time_unchanged(self, config, event_manager, entity_factory):
        """A roster that cannot act returns None and does not count a turn."""
        from wuxia.core.engine.combat_context import CombatContext

        still = CombatContext.create(Roster([entity_factory("statue", 0)]), config=config)
        scheduler = ActionValueScheduler(still)

        assert scheduler.select_next_actor() is None
        assert scheduler.turns_scheduled == 0
        assert scheduler.current_time == 0.0

    def test_get_stats(self, context):
        """Stats expose time, turn count and the last actor."""
        scheduler = ActionValueScheduler(context)
        scheduler.select_next_actor()

        stats = scheduler.get_stats()

        assert stats["turns_scheduled"] == 1
        assert stats["last_actor_id"] == "a"
        assert stats["roster_size"] == 2
        assert stats["threshold"] == 500.0
