"""Health collaborator for combat entities.

The scheduler and the AI engine only ask whether an entity is alive and how
much health it has left. Damage and healing go through this class so that
every change is clamped to [0, max_health].
"""

from __future__ import annotations


class Health:
    """Current and maximum hit points of one entity."""

    def __init__(self, max_health: float, current_health: float | None = None):
        """Initialize health.

        Args:
            max_health: Maximum hit points, must be positive
            current_health: Starting hit points (defaults to max_health)
        """
        if max_health <= 0:
            raise ValueError(f"max_health must be positive, got {max_health}")
        self.max_health = float(max_health)
        start = self.max_health if current_health is None else float(current_health)
        self.current_health = min(max(0.0, start), self.max_health)

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    @property
    def health_ratio(self) -> float:
        """Current health as a fraction of maximum, from 0.0 to 1.0."""
        return self.current_health / self.max_health

    def take_damage(self, amount: float) -> float:
        """Apply damage.

        Args:
            amount: Damage to apply

        Returns:
            Damage actually dealt (overkill is not counted)
        """
        if amount < 0:
            raise ValueError("Damage amount cannot be negative")

        old_health = self.current_health
        self.current_health = max(0.0, self.current_health - amount)
        return old_health - self.current_health

    def heal(self, amount: float) -> float:
        """Apply healing, clamped to max_health. Returns the amount healed."""
        if amount < 0:
            raise ValueError("Heal amount cannot be negative")

        old_health = self.current_health
        self.current_health = min(self.max_health, self.current_health + amount)
        return self.current_health - old_health

    def __repr__(self) -> str:
        return f"Health({self.current_health}/{self.max_health})"
