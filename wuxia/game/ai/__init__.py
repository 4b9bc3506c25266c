"""AI decision engine components.

This package contains the enemy decision-making layer:
- conditions.py: Condition kinds that gate strategies and actions
- actions.py: Action kinds whose effects run as step sequences
- strategy.py: Strategies, strategy sets and cooperative strategy execution
- ai_system.py: Strategy selection and execution for AI-controlled entities
"""

from .conditions import (
    Condition,
    CompositeCondition,
    CustomCondition,
    DistanceCondition,
    HealthCondition,
    ResourceCondition,
    compare,
    evaluate_all,
    evaluate_condition,
    find_hostiles,
)
from .actions import (
    Action,
    CustomAction,
    MeleeAttackAction,
    MoveAction,
    RangedAttackAction,
    WaitAction,
)
from .strategy import Strategy, StrategyDefinitionError, StrategyExecution, StrategySet
from .ai_system import EnemyAISystem

__all__ = [
    "Condition",
    "CompositeCondition",
    "CustomCondition",
    "DistanceCondition",
    "HealthCondition",
    "ResourceCondition",
    "compare",
    "evaluate_all",
    "evaluate_condition",
    "find_hostiles",
    "Action",
    "CustomAction",
    "MeleeAttackAction",
    "MoveAction",
    "RangedAttackAction",
    "WaitAction",
    "Strategy",
    "StrategyDefinitionError",
    "StrategyExecution",
    "StrategySet",
    "EnemyAISystem",
]
