"""Wuxia combat core.

Action-value turn scheduling, turn-order prediction, the combat phase state
machine and the enemy strategy engine for a tactical turn-based combat game.

- core: data types, engine (scheduler, predictor, steps), entities, events
- game: AI decision engine, managers, collaborators, encounter loading
"""

__version__ = "0.3.0"
