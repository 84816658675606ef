"""
Exception taxonomy for the swarm optimisation core.

Every error raised here is a precondition violation surfaced to the caller
immediately. The core never retries; the enclosing runner decides whether a
failure aborts the whole run.
"""


class SwarmOptError(Exception):
    """Base class for all swarm optimisation errors."""


class InvalidComparisonError(SwarmOptError, TypeError):
    """Two non-inferior fitness values of different optimisation direction were compared."""


class DimensionMismatchError(SwarmOptError, ValueError):
    """A position, velocity or bounds vector does not match the particle dimension."""

    def __init__(self, name: str, expected: int, actual: int):
        self.name = name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{name} has dimension {actual}, expected {expected}"
        )


class DegenerateBoundsError(SwarmOptError, ValueError):
    """A dimension has equal lower and upper bounds where a non-zero span is required."""


class NonFiniteValueError(SwarmOptError, ArithmeticError):
    """A NaN appeared in a velocity or fitness value."""
