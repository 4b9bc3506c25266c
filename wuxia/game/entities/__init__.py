"""World collaborators of combat entities: health and battlefield positions."""

from .health import Health
from .battlefield import Battlefield, Obstacle

__all__ = ["Health", "Battlefield", "Obstacle"]
