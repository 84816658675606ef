"""
Termination criteria for swarm runs.

The optimiser classes only step; runners own the stopping decision. A run
stops as soon as ANY active criterion is met:

1. ``max_generations`` completed
2. ``max_time_minutes`` of wall-clock time exceeded
3. ``target_objective`` reached (direction aware)
4. best objective improved by less than ``convergence_tolerance`` for
   ``convergence_patience`` consecutive generations

Criteria 1 and 2 are pymoo terminations. They read ``n_gen`` and
``start_time`` from the algorithm, which ``PSO`` and
``MultiPopulationContext`` expose for that purpose.
"""

import logging
import math

from pymoo.termination import get_termination
from pymoo.termination.collection import TerminationCollection
from pymoo.termination.max_time import TimeBasedTermination

from ..config.config_manager import TerminationConfig

logger = logging.getLogger(__name__)


class SwarmTermination:
    """
    Stateful termination check, fed once per generation.

    Args:
        config: Termination settings.
        direction: ``"minimise"`` or ``"maximise"``.
        use_objective_criteria: When False only the generation and time limits
            apply (used for VEPSO, which has no single best objective).
    """

    def __init__(self, config: TerminationConfig, direction: str = "minimise",
                 use_objective_criteria: bool = True):
        self.config = config
        self.direction = direction
        self.use_objective_criteria = use_objective_criteria

        self.best_value: float | None = None
        self.stall_generations = 0
        self.reason: str | None = None
        self.limits = self._create_limits()

    def _create_limits(self):
        """pymoo generation limit, combined with the time limit when configured."""
        self.generation_limit = get_termination("n_gen", self.config.max_generations)
        self.time_limit = None
        if self.config.max_time_minutes is None:
            return self.generation_limit

        self.time_limit = TimeBasedTermination(self.config.max_time_minutes * 60)
        return TerminationCollection(self.generation_limit, self.time_limit)

    def start(self) -> None:
        # pymoo terminations keep their progress, so every run gets fresh ones
        self.limits = self._create_limits()
        self.best_value = None
        self.stall_generations = 0
        self.reason = None

    def _improvement(self, value: float) -> float:
        if self.best_value is None:
            return math.inf
        if self.direction == "maximise":
            return value - self.best_value
        return self.best_value - value

    def _target_reached(self, value: float) -> bool:
        target = self.config.target_objective
        if target is None:
            return False
        if self.direction == "maximise":
            return value >= target
        return value <= target

    def _check_objective(self, best_value: float) -> None:
        if self._target_reached(best_value):
            self.reason = "target_objective"
            return

        improvement = self._improvement(best_value)
        if improvement >= self.config.convergence_tolerance:
            self.stall_generations = 0
        else:
            self.stall_generations += 1
        if self.best_value is None or improvement > 0:
            self.best_value = best_value
        if self.stall_generations >= self.config.convergence_patience:
            self.reason = "converged"

    def should_terminate(self, algorithm, best_value: float | None = None) -> bool:
        """
        Record the state of ``algorithm`` after its latest generation.

        ``algorithm`` needs ``n_gen`` (completed generations) and
        ``start_time``. Returns True when the run must stop; ``reason`` then
        names the criterion.
        """
        self.limits.update(algorithm)

        if self.generation_limit.has_terminated():
            self.reason = "max_generations"
        elif self.time_limit is not None and self.time_limit.has_terminated():
            self.reason = "max_time"
        elif self.use_objective_criteria and best_value is not None:
            self._check_objective(best_value)

        if self.reason is not None:
            logger.info(f"⏹️ Terminating after {algorithm.n_gen} generations: {self.reason}")
            return True
        return False
