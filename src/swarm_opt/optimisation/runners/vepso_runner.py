"""
VEPSO Runner for multi-objective benchmark problems.

One sub-swarm optimises each objective of a pymoo multi-objective problem.
Sub-swarms exchange their best positions through the multi-population
context; the runner steps the context, records per-population history and
reports the best position of each sub-swarm together with its full
objective vector.

Only the generation and wall-clock limits apply here: there is no single
best objective to test against a target or a convergence tolerance.

Usage:
```python
config_manager = OptimizationConfigManager('vepso_zdt1.yaml')
runner = VEPSORunner(config_manager)
result = runner.optimize()
print(result.objective_vectors)
```
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd

from ..algorithms.multi_population import MultiPopulationContext, create_vepso
from ..config.config_manager import OptimizationConfigManager
from ..problems.base import PymooProblemAdapter
from .pso_runner import PSORunner
from .termination import SwarmTermination

logger = logging.getLogger(__name__)


@dataclass
class VEPSOResult:
    """
    Result of a VEPSO run.

    Attributes:
        best_positions (list[np.ndarray]): Best position of each sub-swarm,
            in objective order.
        best_objectives (list[float]): Each sub-swarm's value on its own
            objective.
        objective_vectors (np.ndarray): Shape (n_obj, n_obj); row i holds all
            objective values at ``best_positions[i]``.
        optimization_time (float): Wall-clock seconds for the run.
        generations_completed (int): Number of context steps executed.
        optimization_history (list[dict[str, Any]]): One entry per generation
            and sub-swarm with 'generation', 'population', 'best_objective',
            'mean_objective' and 'diversity'.
        algorithm_config (dict[str, Any]): Parameters used for the run.
    """

    best_positions: list[np.ndarray]
    best_objectives: list[float]
    objective_vectors: np.ndarray
    optimization_time: float
    generations_completed: int
    optimization_history: list[dict[str, Any]] = field(default_factory=list)
    algorithm_config: dict[str, Any] = field(default_factory=dict)

    def history_frame(self) -> pd.DataFrame:
        """History indexed by (generation, population); empty when history was not saved."""
        if not self.optimization_history:
            index = pd.MultiIndex.from_arrays([[], []], names=["generation", "population"])
            return pd.DataFrame(index=index)
        return pd.DataFrame(self.optimization_history).set_index(["generation", "population"])


class VEPSORunner(PSORunner):
    """
    Configuration-driven runner for Vector-Evaluated PSO.

    Reuses the velocity settings of ``PSORunner`` for every sub-swarm and
    adds the knowledge transfer, GC and parallel options of the ``vepso``
    configuration section.
    """

    def __init__(self, config_manager: OptimizationConfigManager):
        self.context = None
        super().__init__(config_manager)

    def _validate_configuration(self):
        pso_config = self.config_manager.get_pso_config()
        if pso_config.type != "VEPSO":
            raise ValueError(f"VEPSORunner requires algorithm type 'VEPSO', got '{pso_config.type}'")
        if pso_config.topology == "lbest" and pso_config.ring_k >= pso_config.pop_size:
            raise ValueError(
                f"ring_k ({pso_config.ring_k}) must be smaller than pop_size ({pso_config.pop_size})"
            )

    def optimize(self, problem: PymooProblemAdapter | None = None, seed=None) -> VEPSOResult:
        """
        Run VEPSO on ``problem`` (the configured benchmark when None).

        Raises:
            ValueError: If the problem is not a pymoo adapter.
            RuntimeError: If the run fails; the original error is chained.
        """
        logger.info("🚀 STARTING VEPSO OPTIMIZATION")

        self.problem = problem if problem is not None else self._create_problem()
        if not isinstance(self.problem, PymooProblemAdapter):
            raise ValueError("VEPSO needs a multi-objective PymooProblemAdapter")
        if seed is None:
            seed = self.config_manager.get_random_seed()

        monitoring = self.config_manager.get_monitoring_config()
        termination = SwarmTermination(
            self.config_manager.get_termination_config(), use_objective_criteria=False
        )
        history = []

        start_time = time.time()
        try:
            self.context = self._create_context(seed)
            logger.info(f"   Problem: {self.problem.describe()}")
            logger.info(f"   Sub-swarms: {len(self.context)} x {self.config_manager.get_pso_config().pop_size}")

            termination.start()
            self.context.initialise()
            self._record(history, monitoring.save_history)

            while not termination.should_terminate(self.context):
                self.context.step()
                self._record(history, monitoring.save_history)

                if self.context.iteration % monitoring.progress_frequency == 0:
                    bests = ", ".join(f"{p.best_fitness.value:.4g}" for p in self.context.populations)
                    logger.info(f"   Gen {self.context.iteration:5d}: bests=[{bests}]")

            optimization_time = time.time() - start_time
            return self._process_vepso_result(history, optimization_time, seed)

        except Exception as e:
            optimization_time = time.time() - start_time
            raise RuntimeError(f"VEPSO optimization failed after {optimization_time:.1f}s: {str(e)}") from e

        finally:
            if self.context is not None:
                self.context.close()

    def optimize_multi_run(self, problem=None, num_runs=None):
        """
        Not available for VEPSO.

        A VEPSO run has one best per objective rather than a single best
        objective, so the single-objective run statistics do not apply.
        Call :meth:`optimize` once per seed instead.
        """
        raise NotImplementedError(
            "Multi-run statistics are not supported for VEPSO; call optimize() once per seed"
        )

    def _create_context(self, seed) -> MultiPopulationContext:
        pso_config = self.config_manager.get_pso_config()
        vepso_config = self.config_manager.get_vepso_config()

        velocity_kwargs = self._create_velocity_kwargs()
        velocity_kwargs["vmax"] = pso_config.vmax_frac * self.problem.domain.span

        return create_vepso(
            self.problem,
            pop_size=pso_config.pop_size,
            seed=seed,
            knowledge_transfer=vepso_config.knowledge_transfer,
            use_gc=vepso_config.use_gc,
            topology=pso_config.topology,
            ring_k=pso_config.ring_k,
            iteration=pso_config.iteration,
            parallel=vepso_config.parallel,
            max_iterations=self.config_manager.get_termination_config().max_generations,
            velocity_scale=pso_config.velocity_init_frac,
            velocity_kwargs=velocity_kwargs,
            gc_kwargs=self._create_gc_kwargs() if vepso_config.use_gc else None,
        )

    def _record(self, history: list[dict[str, Any]], save_history: bool) -> None:
        if not save_history:
            return
        for index, population in enumerate(self.context.populations):
            history.append({
                "generation": self.context.iteration,
                "population": index,
                "best_objective": population.best_fitness.value,
                "mean_objective": population.fitness_statistics()["mean"],
                "diversity": population.diversity(),
            })

    def _process_vepso_result(self, history, optimization_time: float, seed) -> VEPSOResult:
        pso_config = self.config_manager.get_pso_config()
        vepso_config = self.config_manager.get_vepso_config()

        best_positions = [population.best_position for population in self.context.populations]
        result = VEPSOResult(
            best_positions=best_positions,
            best_objectives=[float(p.best_fitness.value) for p in self.context.populations],
            objective_vectors=np.array([self.problem.objective_vector(x) for x in best_positions]),
            optimization_time=optimization_time,
            generations_completed=self.context.iteration,
            optimization_history=history,
            algorithm_config={
                "type": "VEPSO",
                "pop_size": pso_config.pop_size,
                "num_populations": len(self.context),
                "knowledge_transfer": vepso_config.knowledge_transfer,
                "use_gc": vepso_config.use_gc,
                "parallel": vepso_config.parallel,
                "topology": pso_config.topology,
                "iteration": pso_config.iteration,
                "seed": seed,
            },
        )

        logger.info("✅ VEPSO OPTIMIZATION COMPLETED")
        for index, vector in enumerate(result.objective_vectors):
            logger.info(f"   Objective {index} best: F={np.array2string(vector, precision=4)}")
        logger.info(f"   Time: {optimization_time:.2f}s")
        return result
