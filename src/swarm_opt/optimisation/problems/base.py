"""
Optimisation problems consumed by the swarm.

This module provides the narrow evaluator interface the swarm depends on and
two concrete adapters:

- ``FunctionOptimisationProblem``: wraps a plain Python callable.
- ``PymooProblemAdapter``: wraps a pymoo ``Problem`` and evaluates one of its
  objective columns. Wrapping the same multi-objective pymoo problem once per
  objective index gives the per-criterion problems used by VEPSO sub-swarms.

Evaluation must be pure and deterministic for a given position; problems only
count how many evaluations were made.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

import numpy as np
from pymoo.core.problem import Problem
from pymoo.problems import get_problem

from .domain import Domain
from .fitness import Fitness, make_fitness

logger = logging.getLogger(__name__)

VALID_DIRECTIONS = ("minimise", "maximise")


class OptimisationProblem(ABC):
    """
    Base class for problems optimised by the swarm.

    Attributes:
        domain (Domain): Search space bounds, immutable after construction.
        direction (str): ``"minimise"`` or ``"maximise"``.
        evaluation_count (int): Number of calls to :meth:`evaluate` so far.
    """

    def __init__(self, domain: Domain, direction: str = "minimise"):
        if direction not in VALID_DIRECTIONS:
            raise ValueError(f"direction must be one of {VALID_DIRECTIONS}, got {direction!r}")
        self.domain = domain
        self.direction = direction
        self.evaluation_count = 0

    @property
    def dimension(self) -> int:
        return self.domain.dimension

    @abstractmethod
    def _evaluate(self, position: np.ndarray) -> float:
        """Return the raw objective value at ``position``."""

    def evaluate(self, position: np.ndarray) -> Fitness:
        """Evaluate ``position`` and wrap the result as a fitness value."""
        self.domain.check_dimension("position", position)
        self.evaluation_count += 1
        return make_fitness(self._evaluate(position), self.direction)

    def describe(self) -> str:
        return f"{self.__class__.__name__}(dimension={self.dimension}, direction={self.direction})"


class FunctionOptimisationProblem(OptimisationProblem):
    """
    Problem defined by a Python callable mapping a position to a float.

    Example:
        ```python
        problem = FunctionOptimisationProblem(
            lambda x: float(np.sum(x ** 2)),
            Domain.uniform(-5.12, 5.12, dimension=10),
        )
        fitness = problem.evaluate(np.zeros(10))   # MinimisationFitness(0.0)
        ```
    """

    def __init__(self, function: Callable[[np.ndarray], float], domain: Domain,
                 direction: str = "minimise"):
        super().__init__(domain, direction)
        self.function = function

    def _evaluate(self, position: np.ndarray) -> float:
        return float(self.function(position))


class PymooProblemAdapter(OptimisationProblem):
    """
    Adapter exposing one objective of a pymoo problem as a swarm problem.

    The pymoo problem must declare finite ``xl``/``xu`` bounds. Positions are
    evaluated one at a time as a single-row batch.

    Args:
        problem: Any pymoo ``Problem`` (single or multi-objective).
        objective_index: Column of ``F`` this adapter optimises.
        direction: Optimisation direction for the selected objective.
    """

    def __init__(self, problem: Problem, objective_index: int = 0,
                 direction: str = "minimise"):
        if problem.xl is None or problem.xu is None:
            raise ValueError("pymoo problem must declare lower and upper bounds")
        if not 0 <= objective_index < problem.n_obj:
            raise ValueError(
                f"objective_index {objective_index} out of range for problem with "
                f"{problem.n_obj} objectives"
            )

        domain = Domain(
            lower=np.broadcast_to(problem.xl, (problem.n_var,)),
            upper=np.broadcast_to(problem.xu, (problem.n_var,)),
        )
        super().__init__(domain, direction)
        self.problem = problem
        self.objective_index = objective_index

    @property
    def n_obj(self) -> int:
        return self.problem.n_obj

    def objective_vector(self, position: np.ndarray) -> np.ndarray:
        """All objective values at ``position`` (does not count as an evaluation)."""
        self.domain.check_dimension("position", position)
        out = self.problem.evaluate(np.atleast_2d(position), return_as_dictionary=True)
        return np.asarray(out["F"], dtype=float).reshape(-1, self.problem.n_obj)[0]

    def _evaluate(self, position: np.ndarray) -> float:
        return float(self.objective_vector(position)[self.objective_index])

    def for_objective(self, objective_index: int) -> "PymooProblemAdapter":
        """Adapter over the same pymoo problem for another objective column."""
        return PymooProblemAdapter(self.problem, objective_index, self.direction)

    def describe(self) -> str:
        return (f"{self.problem.__class__.__name__}[objective {self.objective_index}] "
                f"(dimension={self.dimension}, direction={self.direction})")


def get_benchmark_problem(name: str, n_var: int | None = None,
                          objective_index: int = 0,
                          direction: str = "minimise") -> PymooProblemAdapter:
    """
    Build a pymoo benchmark problem wrapped for the swarm.

    Args:
        name: pymoo problem name, e.g. ``"sphere"``, ``"ackley"``, ``"zdt1"``.
        n_var: Number of decision variables; pymoo default when None.
        objective_index: Objective column for multi-objective problems.
        direction: Optimisation direction of every objective.
    """
    kwargs = {"n_var": n_var} if n_var is not None else {}
    try:
        problem = get_problem(name, **kwargs)
    except Exception as e:
        raise ValueError(f"Unknown benchmark problem '{name}': {e}") from e

    logger.info("Loaded pymoo benchmark '%s' with %d variables and %d objectives",
                name, problem.n_var, problem.n_obj)
    return PymooProblemAdapter(problem, objective_index=objective_index, direction=direction)
