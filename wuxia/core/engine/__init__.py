"""Core combat engine components.

This package contains the fundamental engine systems:
- timeline.py: Action-value scheduling algorithm and the live scheduler
- turn_predictor.py: Side-effect-free turn order forecasting
- steps.py: Resumable step sequences for action effects
- combat_context.py: Explicit per-encounter context object
- combat_state.py: Combat phases and turn bookkeeping
"""

from .timeline import ActionValueScheduler, apply_turn, find_next_actor, select_next_actor
from .turn_predictor import TurnPredictor
from .steps import Step, StepKind, StepSequence, instant, wait, wait_until
from .combat_context import CombatContext
from .combat_state import CombatPhase, CombatState

__all__ = [
    "ActionValueScheduler",
    "apply_turn",
    "find_next_actor",
    "select_next_actor",
    "TurnPredictor",
    "Step",
    "StepKind",
    "StepSequence",
    "instant",
    "wait",
    "wait_until",
    "CombatContext",
    "CombatPhase",
    "CombatState",
]
