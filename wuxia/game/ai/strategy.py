"""Strategies and their step-by-step execution.

A strategy is a named, weighted bundle of gating conditions (all must hold)
and an ordered list of actions. ``StrategyExecution`` runs one selected
strategy cooperatively: one action at a time, each action's step sequence
advanced by the combat driver's ticks until it finishes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Iterator, Optional

from ...core.engine.steps import StepSequence
from ...core.events.events import ActionExecuted, ActionSkipped, LogMessage
from ..managers.log_manager import LogLevel
from .actions import Action
from .conditions import Condition, evaluate_all

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity
    from ...core.engine.combat_context import CombatContext


class StrategyDefinitionError(ValueError):
    """Raised when a strategy is defined with invalid settings."""


@dataclass
class Strategy:
    """A weighted set of conditions and actions an AI entity can follow."""

    name: str
    priority: float = 1.0
    conditions: list[Condition] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)

    def __post_init__(self):
        if not self.name:
            raise StrategyDefinitionError("Strategy name cannot be empty")
        if self.priority <= 0:
            raise StrategyDefinitionError(
                f"Strategy '{self.name}' priority must be positive, got {self.priority}"
            )

    def conditions_met(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return evaluate_all(self.conditions, entity, context)

    def has_executable_action(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        """True if any action could run now. A strategy with no actions always qualifies."""
        if not self.actions:
            return True
        return any(action.can_execute(entity, context) for action in self.actions)

    def is_available(self, entity: "CombatEntity", context: "CombatContext") -> bool:
        return self.conditions_met(entity, context) and self.has_executable_action(entity, context)


class StrategySet:
    """Ordered, duplicate-free collection of an entity's strategies."""

    def __init__(self, strategies: Optional[Iterable[Strategy]] = None):
        self._strategies: list[Strategy] = []
        for strategy in strategies or ():
            self.add(strategy)

    def add(self, strategy: Strategy) -> bool:
        """Append a strategy. Returns False if it is already present."""
        if any(existing is strategy for existing in self._strategies):
            return False
        self._strategies.append(strategy)
        return True

    def remove(self, strategy: Strategy) -> bool:
        for index, existing in enumerate(self._strategies):
            if existing is strategy:
                del self._strategies[index]
                return True
        return False

    def clear(self) -> None:
        self._strategies.clear()

    def get(self, name: str) -> Optional[Strategy]:
        for strategy in self._strategies:
            if strategy.name == name:
                return strategy
        return None

    def __len__(self) -> int:
        return len(self._strategies)

    def __iter__(self) -> Iterator[Strategy]:
        return iter(tuple(self._strategies))

    def __contains__(self, strategy: object) -> bool:
        return any(existing is strategy for existing in self._strategies)

    @property
    def strategies(self) -> tuple[Strategy, ...]:
        return tuple(self._strategies)


class StrategyExecution:
    """Runs one strategy's actions in order, driven by ``update(dt)``.

    Before each action starts, ``can_execute`` is checked again; a failed
    guard skips that action and execution continues with the next one.
    """

    def __init__(self, entity: "CombatEntity", strategy: Strategy, context: "CombatContext"):
        self.entity = entity
        self.strategy = strategy
        self.context = context

        self._next_index = 0
        self._current_action: Optional[Action] = None
        self._sequence: Optional[StepSequence] = None
        self._finished = False
        self._cancelled = False

        self.executed_actions: list[str] = []
        self.skipped_actions: list[str] = []

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def current_action(self) -> Optional[Action]:
        return self._current_action

    def _emit_log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self.context.event_manager.publish(
            LogMessage(
                combat_time=self.context.combat_time,
                message=message,
                category="AI",
                level=level,
                source="StrategyExecution",
            ),
            source="StrategyExecution",
        )

    def _start_next_action(self) -> bool:
        """Start the next executable action. Returns False when none are left."""
        while self._next_index < len(self.strategy.actions):
            action = self.strategy.actions[self._next_index]
            self._next_index += 1

            if not action.can_execute(self.entity, self.context):
                self.skipped_actions.append(action.describe())
                self.context.event_manager.publish(
                    ActionSkipped(self.context.combat_time, self.entity, action.describe()),
                    source="StrategyExecution",
                )
                self._emit_log(f"{self.entity.name} skips {action.describe()}", LogLevel.DEBUG)
                continue

            self._current_action = action
            self._sequence = action.execute(self.entity, self.context)
            self._emit_log(f"{self.entity.name} begins {action.describe()}")
            return True
        return False

    def _complete_current_action(self) -> None:
        name = self._current_action.describe()
        self.executed_actions.append(name)
        self.context.event_manager.publish(
            ActionExecuted(self.context.combat_time, self.entity, name),
            source="StrategyExecution",
        )
        self._current_action = None
        self._sequence = None

    def update(self, dt: float) -> bool:
        """Advance the running action by ``dt`` seconds.

        Returns:
            True once every action has finished or been skipped (or the
            execution was cancelled)
        """
        budget = dt
        while not self._finished:
            if self._sequence is None and not self._start_next_action():
                self._finished = True
                self._emit_log(f"{self.entity.name} finished strategy '{self.strategy.name}'", LogLevel.DEBUG)
                break
            if not self._sequence.tick(budget):
                return False
            self._complete_current_action()
            # Leftover time is not carried into the next action
            budget = 0.0
        return True

    def run_to_completion(self, dt: float, max_ticks: int = 10_000) -> int:
        """Tick with a fixed ``dt`` until finished. Returns the number of ticks."""
        ticks = 0
        while not self.update(dt):
            ticks += 1
            if ticks >= max_ticks:
                raise RuntimeError(
                    f"Strategy '{self.strategy.name}' did not finish in {max_ticks} ticks"
                )
        return ticks + 1

    def cancel(self) -> None:
        """Abandon the running action and everything after it. Applied effects stand."""
        if self._finished:
            return
        if self._sequence is not None:
            self._sequence.cancel()
        self._current_action = None
        self._sequence = None
        self._cancelled = True
        self._finished = True
