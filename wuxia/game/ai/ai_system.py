"""Enemy AI decision engine.

Given the AI-controlled entity that holds the turn, the engine picks one of
its strategies and runs it:

1. Keep strategies whose conditions all hold and that have at least one
   executable action (a strategy without actions always qualifies).
2. Nothing left: no strategy this turn, the caller moves on.
3. Weighted random selection (when enabled and more than one candidate):
   priorities are weights, a draw in [0, total) walks the candidates from
   highest to lowest priority (list order among equals) and picks the first
   whose accumulated weight reaches it.
4. Otherwise the highest priority wins, earlier strategies winning ties.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

from ...core.events.events import LogMessage, StrategySelected
from ..managers.log_manager import LogLevel
from .strategy import Strategy, StrategyExecution, StrategySet

if TYPE_CHECKING:
    from ...core.entities.combat_entity import CombatEntity
    from ...core.engine.combat_context import CombatContext


class EnemyAISystem:
    """Selects and executes strategies for AI-controlled entities."""

    def __init__(self, context: "CombatContext", use_random_selection: Optional[bool] = None):
        """Initialize the AI system.

        Args:
            context: Combat context (roster, config, event bus, random source)
            use_random_selection: Override the config's weighted selection flag
        """
        self.context = context
        self.use_random_selection = (
            context.config.use_random_selection if use_random_selection is None else use_random_selection
        )
        self.current_execution: Optional[StrategyExecution] = None

    def _emit_log(self, message: str, level: LogLevel = LogLevel.INFO) -> None:
        self.context.event_manager.publish(
            LogMessage(
                combat_time=self.context.combat_time,
                message=message,
                category="AI",
                level=level,
                source="EnemyAISystem",
            ),
            source="EnemyAISystem",
        )

    @property
    def is_executing(self) -> bool:
        return self.current_execution is not None and not self.current_execution.finished

    def get_available_strategies(
        self, entity: "CombatEntity", strategies: Optional[Sequence[Strategy]] = None
    ) -> list[Strategy]:
        """Strategies that could be chosen right now, in list order."""
        if strategies is None:
            strategies = list(entity.strategies) if entity.strategies is not None else []
        return [strategy for strategy in strategies if strategy.is_available(entity, self.context)]

    def select_strategy(
        self, entity: "CombatEntity", strategies: Optional[Sequence[Strategy]] = None
    ) -> Optional[Strategy]:
        """Choose a strategy for ``entity``.

        Args:
            entity: The acting entity
            strategies: Candidates to choose from (defaults to the entity's own set)

        Returns:
            The chosen strategy, or None when no strategy is available
        """
        candidates = self.get_available_strategies(entity, strategies)
        if not candidates:
            return None
        # Highest priority first; sorted() is stable so equal priorities keep list order
        candidates = sorted(candidates, key=lambda strategy: strategy.priority, reverse=True)

        if self.use_random_selection and len(candidates) > 1:
            total_weight = sum(strategy.priority for strategy in candidates)
            draw = self.context.rng.random() * total_weight
            accumulated = 0.0
            for strategy in candidates:
                accumulated += strategy.priority
                if draw <= accumulated:
                    return strategy
            return candidates[-1]

        return candidates[0]

    def execute_strategy(self, entity: "CombatEntity", strategy: Strategy) -> StrategyExecution:
        """Start running ``strategy`` for ``entity``, replacing any running execution."""
        self.stop_execution()
        self.current_execution = StrategyExecution(entity, strategy, self.context)
        return self.current_execution

    def execute_ai(self, entity: "CombatEntity") -> Optional[StrategyExecution]:
        """Select a strategy and start executing it.

        Returns:
            The running execution, or None when no strategy is available
        """
        strategy = self.select_strategy(entity)
        if strategy is None:
            self._emit_log(f"{entity.name} has no available strategy", LogLevel.DEBUG)
            return None

        self.context.event_manager.publish(
            StrategySelected(self.context.combat_time, entity, strategy.name),
            source="EnemyAISystem",
        )
        self._emit_log(f"{entity.name} chooses strategy '{strategy.name}'")
        return self.execute_strategy(entity, strategy)

    def update(self, dt: float) -> bool:
        """Advance the running execution. Returns True when nothing is left to run."""
        if self.current_execution is None:
            return True
        if self.current_execution.update(dt):
            self.current_execution = None
            return True
        return False

    def stop_execution(self) -> None:
        """Cancel the running execution, if any. Effects already applied stand."""
        if self.current_execution is not None:
            self.current_execution.cancel()
            self.current_execution = None

    # Strategy management

    def add_strategy(self, entity: "CombatEntity", strategy: Strategy) -> bool:
        if entity.strategies is None:
            entity.strategies = StrategySet()
        return entity.strategies.add(strategy)

    def remove_strategy(self, entity: "CombatEntity", strategy: Strategy) -> bool:
        if entity.strategies is None:
            return False
        return entity.strategies.remove(strategy)

    def clear_strategies(self, entity: "CombatEntity") -> None:
        if entity.strategies is not None:
            entity.strategies.clear()
