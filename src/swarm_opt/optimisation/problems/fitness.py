"""
Fitness values and their comparison semantics.

A fitness is one of three tagged values:

- ``MinimisationFitness(value)``: lower values are better.
- ``MaximisationFitness(value)``: higher values are better.
- ``INFERIOR_FITNESS``: sentinel used before a particle is first evaluated.
  It is worse than every real fitness of either direction and equal only
  to itself.

Fitness values are immutable and replaced wholesale on every evaluation.
Equality is exact float equality within the same tag; no tolerance is
applied, because GC success/failure counting depends on it.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from ..errors import InvalidComparisonError, NonFiniteValueError


class Comparison(Enum):
    """Outcome of comparing one fitness against another."""

    BETTER = 1
    EQUAL = 0
    WORSE = -1


class Fitness(ABC):
    """Base class for all fitness values."""

    @property
    @abstractmethod
    def direction(self) -> str | None:
        """Optimisation direction, or None for the inferior sentinel."""

    @abstractmethod
    def compare_to(self, other: "Fitness") -> Comparison:
        """Compare this fitness against ``other`` under its direction."""

    def is_better_than(self, other: "Fitness") -> bool:
        return self.compare_to(other) is Comparison.BETTER

    def is_inferior(self) -> bool:
        return False


class InferiorFitness(Fitness):
    """Worse than anything; the fitness of a particle before evaluation."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def direction(self) -> None:
        return None

    @property
    def value(self) -> None:
        return None

    def compare_to(self, other: Fitness) -> Comparison:
        if isinstance(other, InferiorFitness):
            return Comparison.EQUAL
        return Comparison.WORSE

    def is_inferior(self) -> bool:
        return True

    def __eq__(self, other):
        return isinstance(other, InferiorFitness)

    def __hash__(self):
        return hash(InferiorFitness)

    def __repr__(self):
        return "InferiorFitness()"


INFERIOR_FITNESS = InferiorFitness()


@dataclass(frozen=True)
class _DirectedFitness(Fitness):
    value: float

    def __post_init__(self):
        if math.isnan(self.value):
            raise NonFiniteValueError(
                f"{self.__class__.__name__} cannot hold NaN"
            )

    def compare_to(self, other: Fitness) -> Comparison:
        if isinstance(other, InferiorFitness):
            return Comparison.BETTER
        if other.direction != self.direction:
            raise InvalidComparisonError(
                f"Cannot compare {self!r} with {other!r}: "
                f"directions differ ({self.direction} vs {other.direction})"
            )
        if self.value == other.value:
            return Comparison.EQUAL
        return Comparison.BETTER if self._wins(self.value, other.value) else Comparison.WORSE

    @staticmethod
    def _wins(mine: float, theirs: float) -> bool:
        raise NotImplementedError


@dataclass(frozen=True)
class MinimisationFitness(_DirectedFitness):
    """Fitness for minimisation problems: lower is better."""

    @property
    def direction(self) -> str:
        return "minimise"

    @staticmethod
    def _wins(mine: float, theirs: float) -> bool:
        return mine < theirs


@dataclass(frozen=True)
class MaximisationFitness(_DirectedFitness):
    """Fitness for maximisation problems: higher is better."""

    @property
    def direction(self) -> str:
        return "maximise"

    @staticmethod
    def _wins(mine: float, theirs: float) -> bool:
        return mine > theirs


def compare(a: Fitness, b: Fitness) -> Comparison:
    """Compare ``a`` against ``b``; see :meth:`Fitness.compare_to`."""
    return a.compare_to(b)


def make_fitness(value: float, direction: str) -> Fitness:
    """Build the fitness type matching an optimisation direction."""
    if direction == "minimise":
        return MinimisationFitness(float(value))
    if direction == "maximise":
        return MaximisationFitness(float(value))
    raise ValueError(f"Unknown optimisation direction: {direction!r}")
