"""Spatial data structures for battlefield positions.

Positions live on a continuous ground plane. ``Vector2`` is the value type
used by entities, conditions and actions; ``VectorArray`` batches many
positions into a numpy array for range and nearest-target queries.
"""

from dataclasses import dataclass
from typing import Optional, Union
import math
import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class Vector2:
    """2D ground-plane position.

    Uses (y, x) ordering, matching the row/column convention of the map data
    the encounters are authored against.
    """
    y: float
    x: float

    def __add__(self, other: "Vector2") -> "Vector2":
        """Vector addition."""
        return Vector2(self.y + other.y, self.x + other.x)

    def __sub__(self, other: "Vector2") -> "Vector2":
        """Vector subtraction."""
        return Vector2(self.y - other.y, self.x - other.x)

    def __mul__(self, scalar: float) -> "Vector2":
        """Scalar multiplication."""
        return Vector2(self.y * scalar, self.x * scalar)

    def __iter__(self):
        """Make Vector2 iterable for unpacking (y, x order)."""
        yield self.y
        yield self.x

    def __repr__(self) -> str:
        return f"Vector2({self.y}, {self.x})"

    def distance_to(self, other: "Vector2") -> float:
        """Calculate Euclidean distance to another vector."""
        return math.hypot(self.y - other.y, self.x - other.x)

    def magnitude(self) -> float:
        """Calculate vector magnitude (distance from origin)."""
        return math.hypot(self.y, self.x)

    def normalize(self) -> "Vector2":
        """Return the unit vector. Returns (0, 0) for the zero vector."""
        mag = self.magnitude()
        if mag == 0:
            return Vector2(0.0, 0.0)
        return Vector2(self.y / mag, self.x / mag)

    def move_towards(self, target: "Vector2", max_distance: float) -> "Vector2":
        """Step toward ``target`` by at most ``max_distance``."""
        offset = target - self
        distance = offset.magnitude()
        if distance <= max_distance or distance == 0:
            return target
        return self + offset * (max_distance / distance)

    @classmethod
    def from_list(cls, coords: list[float]) -> "Vector2":
        """Create Vector2 from coordinate list (y, x order)."""
        if len(coords) < 2:
            raise ValueError("List must contain at least 2 elements")
        return cls(float(coords[0]), float(coords[1]))

    def to_tuple(self) -> tuple[float, float]:
        """Convert to coordinate tuple (y, x order)."""
        return (self.y, self.x)

    def to_numpy(self) -> NDArray[np.float64]:
        """Convert to numpy array (y, x order)."""
        return np.array([self.y, self.x], dtype=np.float64)


class VectorArray:
    """Collection of positions backed by a numpy array for batch operations.

    Used for target scans: distances from one actor to every candidate are
    computed in a single vectorized pass.
    """

    def __init__(self, vectors: Optional[Union[list[Vector2], NDArray[np.float64]]] = None):
        """Initialize VectorArray from a list of Vector2 objects or numpy array.

        Args:
            vectors: List of Vector2 objects or numpy array of shape (N, 2).
                    If None, creates an empty VectorArray.
        """
        if vectors is None:
            self._data = np.empty((0, 2), dtype=np.float64)
        elif isinstance(vectors, list):
            if not vectors:
                self._data = np.empty((0, 2), dtype=np.float64)
            else:
                self._data = np.array([[v.y, v.x] for v in vectors], dtype=np.float64)
        else:
            if vectors.ndim != 2 or vectors.shape[-1] != 2:
                raise ValueError("Numpy array must have shape (N, 2)")
            self._data = vectors.astype(np.float64)

    @property
    def data(self) -> NDArray[np.float64]:
        """Get the underlying numpy array (N, 2) shape."""
        return self._data

    def __len__(self) -> int:
        return len(self._data)

    def __getitem__(self, index: int) -> Vector2:
        if index >= len(self._data) or index < -len(self._data):
            raise IndexError("VectorArray index out of range")
        row = self._data[index]
        return Vector2(float(row[0]), float(row[1]))

    def __iter__(self):
        for row in self._data:
            yield Vector2(float(row[0]), float(row[1]))

    def distance_to_point(self, target: Vector2) -> NDArray[np.float64]:
        """Calculate Euclidean distances from all vectors to a target point.

        Args:
            target: Target Vector2 position

        Returns:
            Array of distances from each vector to target
        """
        diff = self._data - target.to_numpy()
        return np.sqrt(np.sum(diff**2, axis=1))

    def within_range_mask(self, center: Vector2, min_dist: float, max_dist: float) -> NDArray[np.bool_]:
        """Boolean mask of vectors whose distance to ``center`` lies in [min_dist, max_dist]."""
        distances = self.distance_to_point(center)
        return (distances >= min_dist) & (distances <= max_dist)

    def nearest_index(self, target: Vector2) -> Optional[int]:
        """Index of the vector closest to ``target``; first index wins ties."""
        if len(self._data) == 0:
            return None
        return int(np.argmin(self.distance_to_point(target)))
