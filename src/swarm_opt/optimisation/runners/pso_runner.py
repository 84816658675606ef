"""
PSO Runner for swarm optimisation.

This module provides the configuration-driven entry point for single-swarm
optimisation with the standard (PSO) or guaranteed-convergence (GCPSO)
velocity update. It handles:

- Configuration management and validation
- Problem creation from the configured pymoo benchmark
- Swarm setup (topology, iteration policy, inertia schedule, vmax)
- Single and multi-run optimisation with seeded random generators
- Result processing and statistical analysis

Usage:
```python
from swarm_opt.optimisation.config import OptimizationConfigManager
from swarm_opt.optimisation.runners import PSORunner

# Load configuration
config_manager = OptimizationConfigManager('gcpso.yaml')

# Create and run optimization
runner = PSORunner(config_manager)
result = runner.optimize()

# Access results
print(f"Best objective: {result.best_objective}")
print(f"Best solution: {result.best_solution}")
print(result.history_frame().tail())
```

Any ``OptimisationProblem`` can be passed to ``optimize`` instead of the
configured benchmark, e.g. a ``FunctionOptimisationProblem`` wrapping a
plain Python function.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any

import numpy as np
import pandas as pd
from pymoo.core.callback import Callback

from ..algorithms.iteration import create_iteration_strategy
from ..algorithms.pso import PSO
from ..config.config_manager import OptimizationConfigManager
from ..parameters.control import ConstantControlParameter, LinearDecreasingControlParameter
from ..problems.base import OptimisationProblem, get_benchmark_problem
from ..problems.fitness import Comparison, make_fitness
from ..strategies.velocity import GCVelocityUpdate, StandardVelocityUpdate
from ..swarm.topology import create_topology
from .termination import SwarmTermination

logger = logging.getLogger(__name__)


@dataclass
class OptimizationResult:
    """
    Complete result of a single swarm optimisation run.

    Attributes:
        best_solution (np.ndarray): Best position found (personal best of the
            swarm's best particle).
        best_objective (float): Objective value at ``best_solution``.
        optimization_time (float): Wall-clock seconds for the run.
        generations_completed (int): Number of swarm iterations executed.
        optimization_history (list[dict[str, Any]]): One entry per generation
            (generation 0 is the initialised swarm) with keys
            'generation', 'best_objective', 'mean_objective', 'std_objective',
            'min_objective', 'max_objective', 'diversity', 'improvement',
            'elapsed' and, for GCPSO, 'rho'.
        algorithm_config (dict[str, Any]): Parameters used for the run,
            including 'seed' and 'direction'.
        convergence_info (dict[str, Any]): 'converged', 'reason',
            'recent_improvement', 'final_generation', 'final_objective'.
        performance_stats (dict[str, Any]): Timing figures, plus
            'rho_schedule' for GCPSO runs.
    """

    best_solution: np.ndarray
    best_objective: float

    optimization_time: float
    generations_completed: int

    optimization_history: list[dict[str, Any]] = field(default_factory=list)
    algorithm_config: dict[str, Any] = field(default_factory=dict)
    convergence_info: dict[str, Any] = field(default_factory=dict)
    performance_stats: dict[str, Any] = field(default_factory=dict)

    def history_frame(self) -> pd.DataFrame:
        """Generation-by-generation history as a DataFrame indexed by generation."""
        if not self.optimization_history:
            return pd.DataFrame(columns=["best_objective"]).rename_axis("generation")
        return pd.DataFrame(self.optimization_history).set_index("generation")


@dataclass
class MultiRunResult:
    """
    Statistical results from multiple independent runs of one configuration.

    Attributes:
        best_result (OptimizationResult): Best run across all runs, usable
            exactly like a single-run result.
        run_summaries (list[dict]): Per-run 'run_id', 'seed', 'objective',
            'generations', 'time' and 'reason'.
        statistical_summary (dict[str, Any]): Objective mean/std/min/max/median,
            timing and generation statistics and the success rate.
        total_time (float): Wall-clock time for all runs.
        num_runs_completed (int): Runs that finished without error.
    """

    best_result: OptimizationResult
    run_summaries: list[dict]
    statistical_summary: dict[str, Any]
    total_time: float
    num_runs_completed: int

    def summary_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.run_summaries).set_index("run_id")


class PSORuntimeCallback(Callback):
    """
    Per-generation tracker for a running swarm.

    Called once after initialisation and once after every iteration. Records
    cumulative wall-clock time, swarm statistics for the history and, when
    the swarm uses the GC velocity update, the best particle's rho.

    Attributes:
        start_time (float | None): Set on the first call.
        generation_times (list[float]): Seconds elapsed at each generation;
            index 0 is always 0.0.
        history (list[dict]): History entries (see ``OptimizationResult``).
        rho_schedule (list[float]): Best particle's rho per generation (GCPSO).
    """

    def __init__(self, save_history: bool = True):
        super().__init__()
        self.save_history = save_history
        self.start_time = None
        self.generation_times = []
        self.history = []
        self.rho_schedule = []
        self._previous_best = None

    def notify(self, algorithm: PSO):
        now = time.time()
        if self.start_time is None:
            self.start_time = now
        elapsed = now - self.start_time
        self.generation_times.append(elapsed)

        best = algorithm.best_particle()
        best_value = best.best_fitness.value

        strategy = best.velocity_strategy
        if isinstance(strategy, GCVelocityUpdate):
            self.rho_schedule.append(strategy.rho.get())

        if not self.save_history:
            return

        if self._previous_best is None:
            improvement = 0.0
        elif best.best_fitness.direction == "maximise":
            improvement = best_value - self._previous_best
        else:
            improvement = self._previous_best - best_value
        self._previous_best = best_value

        stats = algorithm.fitness_statistics()
        entry = {
            "generation": algorithm.iteration,
            "best_objective": best_value,
            "mean_objective": stats["mean"],
            "std_objective": stats["std"],
            "min_objective": stats["min"],
            "max_objective": stats["max"],
            "diversity": algorithm.diversity(),
            "improvement": improvement,
            "elapsed": elapsed,
        }
        if self.rho_schedule:
            entry["rho"] = self.rho_schedule[-1]
        self.history.append(entry)


class PSORunner:
    """
    Configuration-driven runner for PSO and GCPSO.

    WORKFLOW OVERVIEW:
    1. **Initialization**: Validate configuration
    2. **Problem creation**: Configured pymoo benchmark unless one is passed in
    3. **Algorithm setup**: Velocity strategy, topology and iteration policy
    4. **Execution**: Step the swarm until a termination criterion fires
    5. **Result processing**: History, convergence and performance analysis

    SEEDING:
    Every run draws all random numbers from one ``numpy.random.Generator``.
    A single run uses ``optimization.random_seed``; multi-run spawns one
    independent child seed per run from it, so a multi-run with a fixed seed
    is reproducible end to end.

    Attributes:
        config_manager (OptimizationConfigManager): Source of all parameters.
        problem (OptimisationProblem | None): Problem of the latest run.
        algorithm (PSO | None): Swarm of the latest run.
    """

    def __init__(self, config_manager: OptimizationConfigManager):
        self.config_manager = config_manager
        self.problem = None
        self.algorithm = None
        self._evaluations_at_start = 0

        self._validate_configuration()

    def _validate_configuration(self):
        pso_config = self.config_manager.get_pso_config()
        term_config = self.config_manager.get_termination_config()

        if pso_config.type == "VEPSO":
            raise ValueError("PSORunner handles PSO and GCPSO; use VEPSORunner for VEPSO")

        if pso_config.topology == "lbest" and pso_config.ring_k >= pso_config.pop_size:
            raise ValueError(
                f"ring_k ({pso_config.ring_k}) must be smaller than pop_size ({pso_config.pop_size})"
            )

        if (pso_config.inertia_weight_final is not None
                and pso_config.inertia_weight_final > pso_config.inertia_weight):
            raise ValueError("Final inertia weight must be <= initial inertia weight")

        if term_config.max_generations < 1:
            raise ValueError("PSO requires max_generations >= 1")

    def optimize(self, problem: OptimisationProblem | None = None, seed=None) -> OptimizationResult:
        """
        Run a single optimisation.

        Args:
            problem: Problem to optimise; the configured benchmark when None.
            seed: Seed (int or ``SeedSequence``) overriding
                ``optimization.random_seed``.

        Returns:
            OptimizationResult for the run.

        Raises:
            RuntimeError: If the run fails; the original error is chained.
        """
        logger.info("🚀 STARTING %s OPTIMIZATION", self.config_manager.get_pso_config().type)

        self.problem = problem if problem is not None else self._create_problem()
        self._evaluations_at_start = self.problem.evaluation_count
        if seed is None:
            seed = self.config_manager.get_random_seed()
        rng = np.random.default_rng(seed)

        monitoring = self.config_manager.get_monitoring_config()
        callback = PSORuntimeCallback(save_history=monitoring.save_history)
        termination = self._create_termination()

        start_time = time.time()
        try:
            self.algorithm = self._create_algorithm(rng)
            self._print_optimization_summary()

            termination.start()
            self.algorithm.initialise()
            callback(self.algorithm)

            while not termination.should_terminate(self.algorithm, self.algorithm.best_fitness.value):
                self.algorithm.step()
                callback(self.algorithm)

                if self.algorithm.iteration % monitoring.progress_frequency == 0:
                    logger.info(
                        f"   Gen {self.algorithm.iteration:5d}: best={self.algorithm.best_fitness.value:.6g} "
                        f"diversity={self.algorithm.diversity():.4g}"
                    )

            optimization_time = time.time() - start_time
            return self._process_single_result(callback, termination, optimization_time, seed)

        except Exception as e:
            optimization_time = time.time() - start_time
            raise RuntimeError(f"PSO optimization failed after {optimization_time:.1f}s: {str(e)}") from e

    def optimize_multi_run(self, problem: OptimisationProblem | None = None,
                           num_runs: int | None = None) -> MultiRunResult:
        """
        Run several independent optimisations and summarise them.

        Failed runs are logged and skipped.

        Raises:
            RuntimeError: If every run fails.
        """
        if num_runs is None:
            num_runs = self.config_manager.get_multi_run_config().num_runs
        if num_runs < 1:
            raise ValueError("num_runs must be positive")

        logger.info(f"🔄 STARTING MULTI-RUN OPTIMIZATION ({num_runs} runs)")

        children = np.random.SeedSequence(self.config_manager.get_random_seed()).spawn(num_runs)
        run_seeds = [int(child.generate_state(1)[0]) for child in children]

        start_time = time.time()
        run_summaries = []
        best_result = None

        for run_idx, run_seed in enumerate(run_seeds):
            logger.info(f"🏃 RUN {run_idx + 1}/{num_runs} (seed {run_seed})")
            try:
                result = self.optimize(problem, seed=run_seed)
            except RuntimeError as e:
                logger.error(f"❌ Run {run_idx + 1} failed: {str(e)}")
                continue

            run_summaries.append({
                "run_id": run_idx + 1,
                "seed": run_seed,
                "objective": result.best_objective,
                "generations": result.generations_completed,
                "time": result.optimization_time,
                "reason": result.convergence_info.get("reason"),
            })

            if best_result is None or self._is_better(result, best_result):
                best_result = result

            logger.info(f"✅ Run {run_idx + 1} completed: objective = {result.best_objective:.6g}")

        total_time = time.time() - start_time

        if not run_summaries:
            raise RuntimeError("All optimization runs failed")

        statistical_summary = self._generate_statistical_summary_from_summaries(
            run_summaries, num_runs
        )

        logger.info("🎯 MULTI-RUN OPTIMIZATION COMPLETED")
        logger.info(f"   Successful runs: {len(run_summaries)}/{num_runs}")
        logger.info(f"   Total time: {total_time:.1f}s")
        logger.info(f"   Best objective: {best_result.best_objective:.6g}")
        logger.info(f"   Mean objective: {statistical_summary['objective_mean']:.6g}")
        logger.info(f"   Std objective: {statistical_summary['objective_std']:.6g}")

        return MultiRunResult(
            best_result=best_result,
            run_summaries=run_summaries,
            statistical_summary=statistical_summary,
            total_time=total_time,
            num_runs_completed=len(run_summaries),
        )

    def _is_better(self, result: OptimizationResult, other: OptimizationResult) -> bool:
        direction = result.algorithm_config["direction"]
        fitness = make_fitness(result.best_objective, direction)
        return fitness.compare_to(make_fitness(other.best_objective, direction)) is Comparison.BETTER

    def _create_problem(self) -> OptimisationProblem:
        problem_config = self.config_manager.get_problem_config()
        return get_benchmark_problem(
            problem_config.type,
            n_var=problem_config.n_var,
            direction=problem_config.direction,
        )

    def _create_velocity_kwargs(self) -> dict[str, Any]:
        """Velocity parameters shared by PSO, GCPSO and VEPSO sub-swarms."""
        pso_config = self.config_manager.get_pso_config()

        if pso_config.inertia_weight_final is not None:
            inertia = LinearDecreasingControlParameter(
                pso_config.inertia_weight, pso_config.inertia_weight_final
            )
        else:
            inertia = ConstantControlParameter(pso_config.inertia_weight)

        return {
            "inertia_weight": inertia,
            "cognitive_acceleration": pso_config.cognitive_coeff,
            "social_acceleration": pso_config.social_coeff,
        }

    def _create_gc_kwargs(self) -> dict[str, Any]:
        gc_config = self.config_manager.get_gc_config()
        return {
            "rho": gc_config.rho,
            "rho_lower_bound": gc_config.rho_lower_bound,
            "rho_expand_coefficient": gc_config.rho_expand_coeff,
            "rho_contract_coefficient": gc_config.rho_contract_coeff,
            "success_threshold": gc_config.success_threshold,
            "failure_threshold": gc_config.failure_threshold,
        }

    def _create_algorithm(self, rng: np.random.Generator) -> PSO:
        pso_config = self.config_manager.get_pso_config()
        term_config = self.config_manager.get_termination_config()

        vmax = pso_config.vmax_frac * self.problem.domain.span
        velocity_kwargs = self._create_velocity_kwargs()

        if pso_config.type == "GCPSO":
            strategy = GCVelocityUpdate(rng, vmax=vmax, **self._create_gc_kwargs(), **velocity_kwargs)
        else:
            strategy = StandardVelocityUpdate(rng, vmax=vmax, **velocity_kwargs)

        return PSO(
            self.problem,
            strategy,
            rng,
            pop_size=pso_config.pop_size,
            topology=create_topology(pso_config.topology, pso_config.ring_k),
            iteration_strategy=create_iteration_strategy(pso_config.iteration),
            velocity_scale=pso_config.velocity_init_frac,
            max_iterations=term_config.max_generations,
            name=pso_config.type.lower(),
        )

    def _create_termination(self) -> SwarmTermination:
        return SwarmTermination(
            self.config_manager.get_termination_config(),
            direction=self.problem.direction,
        )

    def _print_optimization_summary(self):
        pso_config = self.config_manager.get_pso_config()
        term_config = self.config_manager.get_termination_config()

        logger.info("📋 OPTIMIZATION SETUP:")
        logger.info(f"   Problem: {self.problem.describe()}")
        logger.info(f"   Algorithm: {pso_config.type}, {pso_config.pop_size} particles, "
                    f"{pso_config.topology} topology, {pso_config.iteration} iteration")
        logger.info(f"   Max generations: {term_config.max_generations}")
        if term_config.max_time_minutes:
            logger.info(f"   Time limit: {term_config.max_time_minutes} minutes")

    def _process_single_result(self, callback: PSORuntimeCallback, termination: SwarmTermination,
                               optimization_time: float, seed) -> OptimizationResult:
        pso_config = self.config_manager.get_pso_config()
        algorithm = self.algorithm

        algorithm_config = {
            "type": pso_config.type,
            "pop_size": pso_config.pop_size,
            "inertia_weight": pso_config.inertia_weight,
            "inertia_weight_final": pso_config.inertia_weight_final,
            "cognitive_coeff": pso_config.cognitive_coeff,
            "social_coeff": pso_config.social_coeff,
            "vmax_frac": pso_config.vmax_frac,
            "topology": pso_config.topology,
            "iteration": pso_config.iteration,
            "direction": self.problem.direction,
            "seed": seed if isinstance(seed, int) or seed is None else str(seed),
        }

        result = OptimizationResult(
            best_solution=algorithm.best_position,
            best_objective=float(algorithm.best_fitness.value),
            optimization_time=optimization_time,
            generations_completed=algorithm.iteration,
            optimization_history=callback.history,
            algorithm_config=algorithm_config,
            convergence_info=self._analyze_convergence(callback.history, termination),
            performance_stats=self._generate_performance_stats(
                callback, optimization_time, algorithm.iteration
            ),
        )

        logger.info("✅ OPTIMIZATION COMPLETED")
        logger.info(f"   Best objective: {result.best_objective:.6g}")
        logger.info(f"   Generations: {result.generations_completed} ({termination.reason})")
        logger.info(f"   Evaluations: {self.problem.evaluation_count - self._evaluations_at_start}")
        logger.info(f"   Time: {optimization_time:.2f}s")
        return result

    def _generate_performance_stats(self, callback: PSORuntimeCallback,
                                    total_time: float, num_generations: int) -> dict[str, Any]:
        stats = {
            "total_time": total_time,
            "num_generations": num_generations,
            "evaluations": self.problem.evaluation_count - self._evaluations_at_start,
            "avg_time_per_generation": total_time / max(1, num_generations),
            "generations_per_second": num_generations / max(0.001, total_time),
        }
        if callback.rho_schedule:
            stats["rho_schedule"] = list(callback.rho_schedule)
        return stats

    def _analyze_convergence(self, history: list[dict[str, Any]],
                             termination: SwarmTermination) -> dict[str, Any]:
        """Termination reason plus improvement over the last five generations."""
        convergence_info = {
            "converged": termination.reason in ("converged", "target_objective"),
            "reason": termination.reason,
            "final_generation": self.algorithm.iteration,
            "final_objective": float(self.algorithm.best_fitness.value),
        }
        if len(history) >= 5:
            convergence_info["recent_improvement"] = float(
                sum(entry["improvement"] for entry in history[-5:])
            )
        return convergence_info

    def _generate_statistical_summary_from_summaries(self, run_summaries: list[dict],
                                                     num_runs: int) -> dict[str, Any]:
        if not run_summaries:
            return {}

        objectives = [summary["objective"] for summary in run_summaries]
        times = [summary["time"] for summary in run_summaries]
        generations = [summary["generations"] for summary in run_summaries]

        return {
            "num_runs": len(run_summaries),
            "objective_mean": float(np.mean(objectives)),
            "objective_std": float(np.std(objectives)),
            "objective_min": float(np.min(objectives)),
            "objective_max": float(np.max(objectives)),
            "objective_median": float(np.median(objectives)),
            "time_mean": float(np.mean(times)),
            "time_std": float(np.std(times)),
            "time_total": float(np.sum(times)),
            "generations_mean": float(np.mean(generations)),
            "generations_std": float(np.std(generations)),
            "success_rate": len(run_summaries) / num_runs,
        }
