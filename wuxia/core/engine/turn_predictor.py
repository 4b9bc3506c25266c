"""Side-effect-free turn order forecasting.

The predictor runs the live scheduling algorithm on a cloned snapshot of the
roster. Only the clones' clocks move, so a forecast can be requested at any
moment, including in the middle of a turn, without disturbing live state.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .timeline import select_next_actor

if TYPE_CHECKING:
    from ..entities.combat_entity import CombatEntity
    from .combat_context import CombatContext


class TurnPredictor:
    """Forecasts the next N actors of an encounter for display."""

    def __init__(self, context: "CombatContext"):
        self.context = context

    def predict(self, count: int) -> list["CombatEntity"]:
        """Predict the next ``count`` actors.

        Args:
            count: Number of turns to simulate

        Returns:
            Real entity references in predicted order; shorter than ``count``
            if scheduling runs out of eligible actors
        """
        simulated = self.context.roster.clone()
        threshold = self.context.config.action_threshold

        predicted: list["CombatEntity"] = []
        for _ in range(count):
            next_clone = select_next_actor(simulated, threshold)
            if next_clone is None:
                break
            predicted.append(next_clone.real_entity)
        return predicted

    def predict_with_current(self, current: Optional["CombatEntity"], count: int) -> list["CombatEntity"]:
        """Prediction with the entity whose turn it is spliced at the front.

        The live scheduler has already consumed the current actor's slot, so a
        fresh forecast would otherwise leave it out.
        """
        if current is None:
            return self.predict(count)
        if count <= 0:
            return []
        return [current, *self.predict(count - 1)]

    def get_prediction(self, count: int) -> list[str]:
        """Entity ids of the next ``count`` actors, for the turn-order display."""
        return [entity.entity_id for entity in self.predict(count)]
