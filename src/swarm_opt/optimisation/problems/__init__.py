"""Problems, search domains and fitness values."""

from .base import (
    FunctionOptimisationProblem,
    OptimisationProblem,
    PymooProblemAdapter,
    get_benchmark_problem,
)
from .domain import Domain
from .fitness import (
    INFERIOR_FITNESS,
    Comparison,
    Fitness,
    InferiorFitness,
    MaximisationFitness,
    MinimisationFitness,
    compare,
    make_fitness,
)

__all__ = [
    "OptimisationProblem",
    "FunctionOptimisationProblem",
    "PymooProblemAdapter",
    "get_benchmark_problem",
    "Domain",
    "Comparison",
    "Fitness",
    "InferiorFitness",
    "INFERIOR_FITNESS",
    "MinimisationFitness",
    "MaximisationFitness",
    "compare",
    "make_fitness",
]
