"""
Tests for the PSO and VEPSO runners.

Covers configuration validation, single and multi-run optimisation over
pymoo benchmarks and plain functions, every termination criterion, result
processing (history DataFrame, rho schedule) and reproducibility from the
configured seed.
"""

import time
from types import SimpleNamespace

import numpy as np
import pandas as pd
import pytest
from pymoo.termination.collection import TerminationCollection
from pymoo.termination.max_gen import MaximumGenerationTermination
from pymoo.termination.max_time import TimeBasedTermination

from swarm_opt.optimisation.config import OptimizationConfigManager, TerminationConfig
from swarm_opt.optimisation.problems import Domain, FunctionOptimisationProblem
from swarm_opt.optimisation.runners import (
    MultiRunResult,
    OptimizationResult,
    PSORunner,
    SwarmTermination,
    VEPSORunner,
    VEPSOResult,
)

# ================================================================================================
# RUNNER SETUP AND CONFIGURATION TESTS
# ================================================================================================


class TestPSORunnerSetup:
    """
    Test runner initialization and configuration validation.

    Invalid parameter combinations must be caught before optimization begins.
    """

    def test_runner_creation_with_config(self, basic_config):
        manager = OptimizationConfigManager(config_dict=basic_config)
        runner = PSORunner(manager)

        assert runner.config_manager is manager
        assert runner.problem is None
        assert runner.algorithm is None
        print("✅ Runner created with valid configuration")

    def test_vepso_config_rejected(self, vepso_config):
        manager = OptimizationConfigManager(config_dict=vepso_config)
        with pytest.raises(ValueError, match="use VEPSORunner"):
            PSORunner(manager)

    def test_ring_larger_than_swarm_rejected(self, basic_config):
        basic_config["optimization"]["algorithm"].update({"topology": "lbest", "ring_k": 8})
        with pytest.raises(ValueError, match="ring_k"):
            PSORunner(OptimizationConfigManager(config_dict=basic_config))

    def test_increasing_inertia_rejected(self, basic_config):
        basic_config["optimization"]["algorithm"].update({"inertia_weight": 0.4, "inertia_weight_final": 0.9})
        with pytest.raises(ValueError, match="Final inertia weight"):
            PSORunner(OptimizationConfigManager(config_dict=basic_config))


# ================================================================================================
# SINGLE RUN TESTS
# ================================================================================================


class TestPSORunnerOptimize:
    """Single optimization runs and result processing."""

    def test_gcpso_benchmark_run(self, basic_config):
        runner = PSORunner(OptimizationConfigManager(config_dict=basic_config))
        result = runner.optimize()

        assert isinstance(result, OptimizationResult)
        assert result.generations_completed == 15
        assert result.best_solution.shape == (3,)
        assert runner.problem.domain.contains(result.best_solution)
        assert result.convergence_info["reason"] == "max_generations"
        assert result.algorithm_config["type"] == "GCPSO"
        assert result.algorithm_config["seed"] == 7

        # Generation 0 plus one entry per iteration
        assert len(result.optimization_history) == 16
        assert len(result.performance_stats["rho_schedule"]) == 16
        assert result.performance_stats["evaluations"] == 8 * 16
        print(f"✅ GCPSO run: best={result.best_objective:.3e}")

    def test_history_frame(self, basic_config):
        result = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()
        frame = result.history_frame()

        assert isinstance(frame, pd.DataFrame)
        assert frame.index.name == "generation"
        assert list(frame.index) == list(range(16))
        assert {"best_objective", "mean_objective", "diversity", "rho"} <= set(frame.columns)
        # Best objective is monotone for minimisation
        assert frame["best_objective"].is_monotonic_decreasing

    def test_history_can_be_disabled(self, basic_config):
        basic_config["optimization"]["monitoring"]["save_history"] = False
        result = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()
        assert result.optimization_history == []
        assert result.history_frame().empty

    def test_configured_seed_is_reproducible(self, basic_config):
        first = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()
        second = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()
        assert first.best_solution.tobytes() == second.best_solution.tobytes()
        assert first.best_objective == second.best_objective

    def test_custom_problem_and_standard_pso(self, basic_config):
        basic_config["optimization"]["algorithm"].update({
            "type": "PSO", "pop_size": 10, "inertia_weight": 0.9, "inertia_weight_final": 0.4,
            "topology": "lbest", "ring_k": 2, "iteration": "asynchronous",
        })
        basic_config["optimization"]["termination"].update({"max_generations": 60, "convergence_patience": 1000})
        problem = FunctionOptimisationProblem(
            lambda x: float(np.sum((x - 1.0) ** 2)), Domain.uniform(-4.0, 4.0, 2)
        )

        runner = PSORunner(OptimizationConfigManager(config_dict=basic_config))
        result = runner.optimize(problem)

        assert runner.problem is problem
        assert "rho_schedule" not in result.performance_stats
        assert result.best_objective < 0.1
        # Inertia weight followed the linear schedule down to its final value
        inertia = runner.algorithm.swarm[0].velocity_strategy.inertia_weight.get()
        assert inertia == pytest.approx(0.4)

    def test_maximisation(self, basic_config):
        basic_config["optimization"]["termination"]["max_generations"] = 40
        problem = FunctionOptimisationProblem(
            lambda x: -float(np.sum(x ** 2)), Domain.uniform(-2.0, 2.0, 2), direction="maximise"
        )
        result = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize(problem)
        assert result.algorithm_config["direction"] == "maximise"
        assert result.history_frame()["best_objective"].is_monotonic_increasing
        assert result.best_objective > -0.1

    def test_target_objective_stops_early(self, basic_config):
        basic_config["optimization"]["termination"].update({"max_generations": 500, "target_objective": 0.05})
        result = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()

        assert result.convergence_info["reason"] == "target_objective"
        assert result.convergence_info["converged"]
        assert result.best_objective <= 0.05
        assert result.generations_completed < 500

    def test_failures_are_wrapped(self, basic_config):
        def explode(x):
            raise ArithmeticError("boom")

        problem = FunctionOptimisationProblem(explode, Domain.uniform(0.0, 1.0, 2))
        runner = PSORunner(OptimizationConfigManager(config_dict=basic_config))
        with pytest.raises(RuntimeError, match="PSO optimization failed") as exc_info:
            runner.optimize(problem)
        assert isinstance(exc_info.value.__cause__, ArithmeticError)


# ================================================================================================
# MULTI-RUN TESTS
# ================================================================================================


class TestPSORunnerMultiRun:
    def test_multi_run_statistics(self, basic_config):
        runner = PSORunner(OptimizationConfigManager(config_dict=basic_config))
        multi = runner.optimize_multi_run(num_runs=3)

        assert isinstance(multi, MultiRunResult)
        assert multi.num_runs_completed == 3
        assert len({summary["seed"] for summary in multi.run_summaries}) == 3

        stats = multi.statistical_summary
        assert stats["num_runs"] == 3
        assert stats["objective_min"] <= stats["objective_median"] <= stats["objective_max"]
        assert stats["success_rate"] == 1.0
        assert multi.best_result.best_objective == stats["objective_min"]
        assert list(multi.summary_frame().index) == [1, 2, 3]

    def test_multi_run_reproducible(self, basic_config):
        first = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize_multi_run(num_runs=2)
        second = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize_multi_run(num_runs=2)
        assert [s["objective"] for s in first.run_summaries] == [s["objective"] for s in second.run_summaries]

    def test_all_runs_failing(self, basic_config):
        def explode(x):
            raise ValueError("bad evaluation")

        problem = FunctionOptimisationProblem(explode, Domain.uniform(0.0, 1.0, 2))
        runner = PSORunner(OptimizationConfigManager(config_dict=basic_config))
        with pytest.raises(RuntimeError, match="All optimization runs failed"):
            runner.optimize_multi_run(problem, num_runs=2)


# ================================================================================================
# TERMINATION TESTS
# ================================================================================================


class TestSwarmTermination:
    """
    Stopping rules fed once per generation.

    The generation and time limits are pymoo terminations reading ``n_gen``
    and ``start_time`` from the algorithm; a namespace stands in for it here.
    """

    @staticmethod
    def _state(n_gen, start_time=None):
        return SimpleNamespace(n_gen=n_gen, start_time=time.time() if start_time is None else start_time)

    def test_limits_are_pymoo_terminations(self):
        termination = SwarmTermination(TerminationConfig(max_generations=3))
        assert isinstance(termination.limits, MaximumGenerationTermination)

        timed = SwarmTermination(TerminationConfig(max_generations=3, max_time_minutes=1.0))
        assert isinstance(timed.limits, TerminationCollection)
        assert isinstance(timed.time_limit, TimeBasedTermination)
        assert timed.time_limit.max_time == 60.0

    def test_max_generations(self):
        termination = SwarmTermination(TerminationConfig(max_generations=3))
        termination.start()
        assert not termination.should_terminate(self._state(2), 1.0)
        assert termination.should_terminate(self._state(3), 1.0)
        assert termination.reason == "max_generations"

    def test_start_resets_limits(self):
        termination = SwarmTermination(TerminationConfig(max_generations=3))
        assert termination.should_terminate(self._state(3))
        termination.start()
        assert termination.reason is None
        assert not termination.should_terminate(self._state(1))

    def test_convergence_patience(self):
        termination = SwarmTermination(
            TerminationConfig(max_generations=100, convergence_tolerance=1e-3, convergence_patience=3)
        )
        termination.start()
        assert not termination.should_terminate(self._state(0), 10.0)
        assert not termination.should_terminate(self._state(1), 5.0)
        assert not termination.should_terminate(self._state(2), 5.0)
        assert not termination.should_terminate(self._state(3), 4.9999)
        assert termination.should_terminate(self._state(4), 4.9999)
        assert termination.reason == "converged"

    def test_target_direction(self):
        termination = SwarmTermination(
            TerminationConfig(max_generations=100, target_objective=2.0), direction="maximise"
        )
        termination.start()
        assert not termination.should_terminate(self._state(1), 1.5)
        assert termination.should_terminate(self._state(2), 2.5)
        assert termination.reason == "target_objective"

    def test_time_limit(self):
        termination = SwarmTermination(TerminationConfig(max_generations=100, max_time_minutes=1e-9))
        termination.start()
        assert termination.should_terminate(self._state(1, start_time=time.time() - 1.0), 1.0)
        assert termination.reason == "max_time"

    def test_objective_criteria_can_be_disabled(self):
        termination = SwarmTermination(
            TerminationConfig(max_generations=10, target_objective=100.0), use_objective_criteria=False
        )
        termination.start()
        assert not termination.should_terminate(self._state(1), 0.0)

    def test_time_limit_stops_a_run(self, basic_config):
        basic_config["optimization"]["termination"].update({
            "max_generations": 10_000_000, "max_time_minutes": 0.002, "convergence_patience": 10_000_000,
        })
        basic_config["optimization"]["monitoring"]["save_history"] = False
        result = PSORunner(OptimizationConfigManager(config_dict=basic_config)).optimize()
        assert result.convergence_info["reason"] == "max_time"
        assert result.generations_completed < 10_000_000


# ================================================================================================
# VEPSO RUNNER TESTS
# ================================================================================================


class TestVEPSORunner:
    def test_requires_vepso_type(self, basic_config):
        with pytest.raises(ValueError, match="VEPSO"):
            VEPSORunner(OptimizationConfigManager(config_dict=basic_config))

    def test_zdt1_run(self, vepso_config):
        runner = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config))
        result = runner.optimize()

        assert isinstance(result, VEPSOResult)
        assert result.generations_completed == 8
        assert len(result.best_positions) == 2
        assert result.objective_vectors.shape == (2, 2)
        # Each sub-swarm's own objective matches its column of the objective vector
        for index, value in enumerate(result.best_objectives):
            assert result.objective_vectors[index, index] == pytest.approx(value)

        frame = result.history_frame()
        assert frame.index.names == ["generation", "population"]
        assert len(frame) == 2 * 9

    def test_parallel_matches_sequential(self, vepso_config):
        sequential = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config)).optimize()

        vepso_config["optimization"]["vepso"]["parallel"] = True
        parallel = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config)).optimize()

        np.testing.assert_array_equal(sequential.objective_vectors, parallel.objective_vectors)

    def test_random_transfer_with_gc(self, vepso_config):
        vepso_config["optimization"]["vepso"].update({"knowledge_transfer": "random", "use_gc": True})
        vepso_config["optimization"]["gc"] = {"rho": 0.1}
        result = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config)).optimize()
        assert result.algorithm_config["knowledge_transfer"] == "random"
        assert result.algorithm_config["use_gc"]

    def test_single_objective_problem_rejected(self, vepso_config):
        problem = FunctionOptimisationProblem(lambda x: 0.0, Domain.uniform(0.0, 1.0, 2))
        runner = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config))
        with pytest.raises(ValueError, match="PymooProblemAdapter"):
            runner.optimize(problem)

    def test_history_frame_without_saved_history(self, vepso_config):
        vepso_config["optimization"]["monitoring"] = {"save_history": False}
        result = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config)).optimize()

        frame = result.history_frame()
        assert frame.empty
        assert frame.index.names == ["generation", "population"]

    def test_multi_run_not_supported(self, vepso_config):
        vepso_config["optimization"]["multi_run"] = {"enabled": True, "num_runs": 2}
        runner = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config))
        with pytest.raises(NotImplementedError, match="not supported for VEPSO"):
            runner.optimize_multi_run()

    def test_parallel_pool_released_after_run(self, vepso_config):
        vepso_config["optimization"]["vepso"]["parallel"] = True
        runner = VEPSORunner(OptimizationConfigManager(config_dict=vepso_config))
        runner.optimize()
        assert runner.context._executor is None
