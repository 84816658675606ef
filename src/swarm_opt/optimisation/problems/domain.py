"""Per-dimension search space bounds."""

from dataclasses import dataclass

import numpy as np

from ..errors import DimensionMismatchError


@dataclass(frozen=True)
class Domain:
    """
    Bounded real-valued search space.

    Each dimension ``i`` has an independent closed interval
    ``[lower[i], upper[i]]``. Bounds are immutable once constructed; the
    arrays are stored read-only.

    Example:
        ```python
        domain = Domain.uniform(-5.12, 5.12, dimension=30)
        domain = Domain(lower=[0.0, -1.0], upper=[1.0, 1.0])
        ```
    """

    lower: np.ndarray
    upper: np.ndarray

    def __post_init__(self):
        lower = np.array(self.lower, dtype=float).ravel()
        upper = np.array(self.upper, dtype=float).ravel()

        if lower.size == 0:
            raise ValueError("Domain must have at least one dimension")
        if lower.size != upper.size:
            raise DimensionMismatchError("upper bounds", lower.size, upper.size)
        if not (np.all(np.isfinite(lower)) and np.all(np.isfinite(upper))):
            raise ValueError("Domain bounds must be finite")
        if np.any(lower > upper):
            raise ValueError("Lower bounds must not exceed upper bounds")

        lower.setflags(write=False)
        upper.setflags(write=False)
        object.__setattr__(self, "lower", lower)
        object.__setattr__(self, "upper", upper)

    @classmethod
    def uniform(cls, lower: float, upper: float, dimension: int) -> "Domain":
        """Same interval repeated over ``dimension`` dimensions."""
        return cls(lower=np.full(dimension, lower), upper=np.full(dimension, upper))

    @property
    def dimension(self) -> int:
        return int(self.lower.size)

    @property
    def span(self) -> np.ndarray:
        return self.upper - self.lower

    def clip(self, vector: np.ndarray) -> np.ndarray:
        """Clamp ``vector`` into the bounds, returning a new array."""
        self.check_dimension("vector", vector)
        return np.clip(vector, self.lower, self.upper)

    def contains(self, vector: np.ndarray) -> bool:
        self.check_dimension("vector", vector)
        return bool(np.all((vector >= self.lower) & (vector <= self.upper)))

    def sample(self, rng: np.random.Generator) -> np.ndarray:
        """Uniform random point inside the domain."""
        return rng.uniform(self.lower, self.upper)

    def check_dimension(self, name: str, vector) -> None:
        vector = np.asarray(vector)
        if vector.ndim != 1 or vector.size != self.dimension:
            raise DimensionMismatchError(name, self.dimension, vector.size)

    def __eq__(self, other):
        if not isinstance(other, Domain):
            return NotImplemented
        return np.array_equal(self.lower, other.lower) and np.array_equal(self.upper, other.upper)

    def __hash__(self):
        return hash((self.lower.tobytes(), self.upper.tobytes()))
