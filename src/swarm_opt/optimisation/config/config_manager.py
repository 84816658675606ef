"""
Configuration data classes and management for swarm optimisation.

This module defines structured configuration classes for the PSO, GCPSO and
VEPSO optimisers and provides validation and loading capabilities.

The configuration system supports:
- Swarm algorithm parameters (population, coefficients, vmax, topology)
- Guaranteed-convergence rho control parameters
- VEPSO knowledge transfer and parallel stepping
- Termination criteria (generations, time limits, convergence, target)
- Progress monitoring and logging options
- Multi-run statistical analysis

Example YAML Configuration:
```yaml
problem:
  type: "ackley"
  n_var: 10
  direction: "minimise"

optimization:
  random_seed: 42
  algorithm:
    type: "GCPSO"
    pop_size: 30
    inertia_weight: 0.729844
    cognitive_coeff: 1.49618
    social_coeff: 1.49618
    vmax_frac: 0.5
    topology: "gbest"
  gc:
    rho: 1.0
    success_threshold: 15
    failure_threshold: 5
  termination:
    max_generations: 500
    convergence_tolerance: 1e-8
  monitoring:
    progress_frequency: 50
  multi_run:
    enabled: true
    num_runs: 10
```

Usage:
```python
config_manager = OptimizationConfigManager('config.yaml')
pso_config = config_manager.get_pso_config()
runner = PSORunner(config_manager)
```
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

VALID_ALGORITHMS = ["PSO", "GCPSO", "VEPSO"]


@dataclass
class ProblemConfig:
    """
    Benchmark problem selection.

    Attributes:
        type: pymoo problem name (``"sphere"``, ``"ackley"``, ``"rastrigin"``,
            ``"zdt1"`` ...).
        n_var: Number of decision variables, pymoo default when None.
        direction: ``"minimise"`` or ``"maximise"``.
    """

    type: str
    n_var: int | None = None
    direction: str = "minimise"

    def __post_init__(self):
        if self.n_var is not None and self.n_var < 1:
            raise ValueError("n_var must be positive")
        if self.direction not in ("minimise", "maximise"):
            raise ValueError("direction must be 'minimise' or 'maximise'")


@dataclass
class PSOConfig:
    """
    Particle Swarm Optimization algorithm configuration.

    ALGORITHM TYPES:
    ===============

    **PSO:** standard inertia-weight velocity update for every particle.

    **GCPSO:** the swarm's best particle performs an adaptive local random
    search of radius rho (see ``GCConfig``); all others use the standard update.

    **VEPSO:** one sub-swarm of ``pop_size`` particles per objective of a
    multi-objective problem; guides come from other sub-swarms (see
    ``VEPSOConfig``).

    Attributes:
    ===========

    pop_size : int (REQUIRED)
        Number of particles (per sub-swarm for VEPSO).

    inertia_weight : float, default=0.729844
        Inertia weight (w). Initial value when ``inertia_weight_final`` is set.

    inertia_weight_final : float | None, default=None
        When set, w decreases linearly from ``inertia_weight`` to this value
        over ``max_generations``.

    cognitive_coeff : float, default=1.49618
        Cognitive coefficient (c1), attraction to personal best.

    social_coeff : float, default=1.49618
        Social coefficient (c2), attraction to the guide.

    vmax_frac : float, default=0.5
        Velocity clamp per dimension as a fraction of the dimension's span.

    velocity_init_frac : float, default=0.0
        Initial velocities uniform in +/- this fraction of the span (0 = at rest).

    topology : str, default="gbest"
        ``"gbest"`` or ``"lbest"`` (ring).

    ring_k : int, default=2
        Even ring neighbourhood size for lbest.

    iteration : str, default="synchronous"
        ``"synchronous"`` or ``"asynchronous"`` iteration policy.
    """

    pop_size: int  # REQUIRED - no default
    type: str = "PSO"
    inertia_weight: float = 0.729844
    inertia_weight_final: float | None = None
    cognitive_coeff: float = 1.49618
    social_coeff: float = 1.49618
    vmax_frac: float = 0.5
    velocity_init_frac: float = 0.0
    topology: str = "gbest"
    ring_k: int = 2
    iteration: str = "synchronous"

    def __post_init__(self):
        """Validate PSO configuration parameters."""
        if self.type not in VALID_ALGORITHMS:
            raise ValueError(f"Algorithm type must be one of {VALID_ALGORITHMS}")

        if self.pop_size < 2:
            raise ValueError("Population size must be at least 2")
        if self.pop_size > 1000:
            raise ValueError("Population size should not exceed 1000 (memory/time)")

        if not 0.0 <= self.inertia_weight <= 2.0:
            raise ValueError("Inertia weight should be in range [0.0, 2.0]")
        if self.inertia_weight_final is not None and not 0.0 <= self.inertia_weight_final <= 2.0:
            raise ValueError("Final inertia weight should be in range [0.0, 2.0]")

        if not 0.0 <= self.cognitive_coeff <= 5.0:
            raise ValueError("Cognitive coefficient should be in range [0.0, 5.0]")

        if not 0.0 <= self.social_coeff <= 5.0:
            raise ValueError("Social coefficient should be in range [0.0, 5.0]")

        if self.vmax_frac <= 0:
            raise ValueError("vmax_frac must be > 0")
        if self.velocity_init_frac < 0:
            raise ValueError("velocity_init_frac cannot be negative")

        if self.topology not in ("gbest", "lbest"):
            raise ValueError("Topology must be 'gbest' or 'lbest'")
        if self.topology == "lbest" and (self.ring_k < 2 or self.ring_k % 2 != 0):
            raise ValueError("ring_k must be an even number >= 2")

        if self.iteration not in ("synchronous", "asynchronous"):
            raise ValueError("Iteration must be 'synchronous' or 'asynchronous'")


@dataclass
class GCConfig:
    """
    Guaranteed-convergence control parameters.

    rho is the local search radius of the best particle. It expands by
    ``rho_expand_coeff`` after ``success_threshold`` consecutive fitness
    changes and contracts by ``rho_contract_coeff`` after
    ``failure_threshold`` consecutive unchanged evaluations, clamped into
    ``[rho_lower_bound, span_0 / rho_expand_coeff]``.

    Pick rho for the problem domain: 1.0 is far too large for [0, 1].
    """

    rho: float = 1.0
    rho_lower_bound: float = 1.0e-323
    rho_expand_coeff: float = 1.2
    rho_contract_coeff: float = 0.5
    success_threshold: int = 15
    failure_threshold: int = 5

    def __post_init__(self):
        if self.rho <= 0:
            raise ValueError("rho must be positive")
        if self.rho_lower_bound <= 0:
            raise ValueError("rho_lower_bound must be positive")
        if self.rho_expand_coeff <= 1.0:
            raise ValueError("rho_expand_coeff must be > 1.0")
        if not 0.0 < self.rho_contract_coeff < 1.0:
            raise ValueError("rho_contract_coeff must be in (0, 1)")
        if self.success_threshold < 1 or self.failure_threshold < 1:
            raise ValueError("Success and failure thresholds must be positive")


@dataclass
class VEPSOConfig:
    """
    Vector-evaluated PSO options.

    Attributes:
        knowledge_transfer: ``"ring"`` (next sub-swarm) or ``"random"``
            (uniform among the other sub-swarms).
        use_gc: Use the GC velocity update inside each sub-swarm.
        parallel: Step sub-swarms on a thread pool.
    """

    knowledge_transfer: str = "ring"
    use_gc: bool = False
    parallel: bool = False

    def __post_init__(self):
        if self.knowledge_transfer not in ("ring", "random"):
            raise ValueError("knowledge_transfer must be 'ring' or 'random'")


@dataclass
class TerminationConfig:
    """
    Termination criteria configuration for optimization.

    Multiple termination criteria can be active simultaneously - optimization
    stops when ANY criterion is met.

    Attributes:
        max_generations: Maximum number of generations to run (REQUIRED)

        max_time_minutes: Maximum wall-clock time in minutes
            - None = no time limit (only generation limit applies)

        convergence_tolerance: Objective improvement threshold for convergence
            - If best objective improves by less than this over patience generations,
              optimization terminates (converged)

        convergence_patience: Generations to wait for improvement

        target_objective: Target objective value for early termination
            - Stop once the best objective is at least as good as this value
            - None = no target-based stopping

    Termination Logic:
        The optimization terminates when the FIRST of these conditions is met:
        1. max_generations reached
        2. max_time_minutes exceeded (if specified)
        3. Convergence detected (improvement < tolerance for patience generations)
        4. target_objective achieved (if specified)
    """

    max_generations: int  # REQUIRED - no default
    max_time_minutes: float | None = None
    convergence_tolerance: float = 1e-6
    convergence_patience: int = 50
    target_objective: float | None = None

    def __post_init__(self):
        """Validate termination configuration."""
        if self.max_generations < 1:
            raise ValueError("Max generations must be positive")

        if self.max_time_minutes is not None and self.max_time_minutes <= 0:
            raise ValueError("Max time must be positive")

        if self.convergence_tolerance <= 0:
            raise ValueError("Convergence tolerance must be positive")

        if self.convergence_patience < 1:
            raise ValueError("Convergence patience must be positive")


@dataclass
class MonitoringConfig:
    """
    Progress monitoring and logging configuration.

    Attributes:
        progress_frequency: Log progress every N generations
        save_history: Whether to keep per-generation history in results
        log_level: 'DEBUG', 'INFO', 'WARNING' or 'ERROR'
    """

    progress_frequency: int = 10
    save_history: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        """Validate monitoring configuration."""
        if self.progress_frequency < 1:
            raise ValueError("Progress frequency must be positive")

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
        if self.log_level not in valid_log_levels:
            raise ValueError(f"Log level must be one of {valid_log_levels}")


@dataclass
class MultiRunConfig:
    """
    Multi-run statistical analysis configuration.

    Runs the same configuration several times with independent seeds spawned
    from the top-level ``random_seed``.

    Attributes:
        enabled: Whether to enable multi-run analysis
        num_runs: Number of runs (2-100 when enabled)
    """

    enabled: bool = False
    num_runs: int = 5

    def __post_init__(self):
        """Validate multi-run configuration."""
        if self.enabled:
            if self.num_runs < 2:
                raise ValueError(
                    "Number of runs must be at least 2 for multi-run analysis"
                )

            if self.num_runs > 100:
                raise ValueError(
                    "Number of runs should not exceed 100 (time/resource limits)"
                )


class OptimizationConfigManager:
    """
    Configuration manager for swarm optimisation.

    Handles loading, validation, and structured access to optimisation
    configurations from YAML files or dictionaries.

    Configuration Structure:
        ```yaml
        problem: {...}          # Benchmark problem selection

        optimization:
          random_seed: 42       # Seed for every random generator in the run
          algorithm: {...}      # Swarm algorithm parameters
          gc: {...}             # GCPSO rho control (optional)
          vepso: {...}          # VEPSO options (optional)
          termination: {...}    # Stopping criteria
          monitoring: {...}     # Progress reporting
          multi_run: {...}      # Statistical analysis
        ```
    """

    def __init__(self, config_path: str | None = None, config_dict: dict | None = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to YAML configuration file
            config_dict: Configuration dictionary (alternative to file)

        Raises:
            FileNotFoundError: If config_path doesn't exist
            ValueError: If both, neither, or invalid config sources provided
            yaml.YAMLError: If YAML file is malformed
            ValueError: If configuration validation fails
        """
        if config_path and config_dict:
            raise ValueError("Provide either config_path or config_dict, not both")

        if not config_path and not config_dict:
            raise ValueError(
                "Configuration is required. Provide either:\n"
                "  - config_path: Path to YAML configuration file\n"
                "  - config_dict: Configuration dictionary\n"
                "Example: OptimizationConfigManager('my_config.yaml')"
            )

        if config_path:
            self.config = self._load_yaml_config(config_path)
            logger.info("📋 Using loaded configuration file")
        else:
            self.config = config_dict
            logger.info("📋 Using provided configuration dictionary")

        # Validate and setup structured configs
        self._validate_config()
        self._setup_structured_configs()

    def _load_yaml_config(self, config_path: str) -> dict[str, Any]:
        """Load configuration from YAML file with error handling."""
        config_file = Path(config_path)

        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file) as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Invalid YAML in {config_path}: {e}")

        if not isinstance(config, dict):
            raise ValueError(f"Configuration must be a dictionary, got {type(config)}")

        logger.info(f"📂 Loaded configuration from {config_path}")
        return config

    def _validate_config(self):
        """Validate configuration structure and required fields."""
        required_sections = ["problem", "optimization"]
        for section in required_sections:
            if section not in self.config:
                raise ValueError(f"Missing required configuration section: '{section}'")

        if "type" not in self.config["problem"]:
            raise ValueError("Missing 'type' in problem configuration")

        opt_config = self.config["optimization"]
        if "algorithm" not in opt_config:
            raise ValueError("Missing required optimization section: 'algorithm'")

        alg_type = opt_config["algorithm"].get("type", "PSO")
        if alg_type not in VALID_ALGORITHMS:
            raise ValueError(f"Unsupported algorithm '{alg_type}', expected one of {VALID_ALGORITHMS}")

    def _setup_structured_configs(self):
        """Setup structured configuration objects with validation."""
        problem_config = self.config["problem"]
        self.problem_config = ProblemConfig(
            type=problem_config["type"],
            n_var=problem_config.get("n_var"),
            direction=problem_config.get("direction", "minimise"),
        )

        opt_config = self.config["optimization"]
        self.random_seed = opt_config.get("random_seed")

        alg_config = opt_config["algorithm"]
        if "pop_size" not in alg_config:
            raise ValueError(
                "Missing required parameter 'pop_size' in algorithm configuration.\n"
                "Example:\n"
                "optimization:\n"
                "  algorithm:\n"
                "    pop_size: 30"
            )

        self.pso_config = PSOConfig(
            pop_size=alg_config["pop_size"],  # REQUIRED
            type=alg_config.get("type", "PSO"),
            inertia_weight=alg_config.get("inertia_weight", 0.729844),
            inertia_weight_final=alg_config.get("inertia_weight_final"),
            cognitive_coeff=alg_config.get("cognitive_coeff", 1.49618),
            social_coeff=alg_config.get("social_coeff", 1.49618),
            vmax_frac=alg_config.get("vmax_frac", 0.5),
            velocity_init_frac=alg_config.get("velocity_init_frac", 0.0),
            topology=alg_config.get("topology", "gbest"),
            ring_k=alg_config.get("ring_k", 2),
            iteration=alg_config.get("iteration", "synchronous"),
        )

        gc_config = opt_config.get("gc", {})
        self.gc_config = GCConfig(
            rho=gc_config.get("rho", 1.0),
            rho_lower_bound=float(gc_config.get("rho_lower_bound", 1.0e-323)),
            rho_expand_coeff=gc_config.get("rho_expand_coeff", 1.2),
            rho_contract_coeff=gc_config.get("rho_contract_coeff", 0.5),
            success_threshold=gc_config.get("success_threshold", 15),
            failure_threshold=gc_config.get("failure_threshold", 5),
        )

        vepso_config = opt_config.get("vepso", {})
        self.vepso_config = VEPSOConfig(
            knowledge_transfer=vepso_config.get("knowledge_transfer", "ring"),
            use_gc=vepso_config.get("use_gc", False),
            parallel=vepso_config.get("parallel", False),
        )

        term_config = opt_config.get("termination", {})
        if "max_generations" not in term_config:
            raise ValueError(
                "Missing required parameter 'max_generations' in termination configuration.\n"
                "Example:\n"
                "optimization:\n"
                "  termination:\n"
                "    max_generations: 100"
            )

        self.termination_config = TerminationConfig(
            max_generations=term_config["max_generations"],  # REQUIRED
            max_time_minutes=term_config.get("max_time_minutes"),
            convergence_tolerance=float(term_config.get("convergence_tolerance", 1e-6)),
            convergence_patience=term_config.get("convergence_patience", 50),
            target_objective=term_config.get("target_objective"),
        )

        mon_config = opt_config.get("monitoring", {})
        self.monitoring_config = MonitoringConfig(
            progress_frequency=mon_config.get("progress_frequency", 10),
            save_history=mon_config.get("save_history", True),
            log_level=mon_config.get("log_level", "INFO"),
        )

        multi_config = opt_config.get("multi_run", {})
        self.multi_run_config = MultiRunConfig(
            enabled=multi_config.get("enabled", False),
            num_runs=multi_config.get("num_runs", 5),
        )

    def get_problem_config(self) -> ProblemConfig:
        """Get benchmark problem configuration."""
        return self.problem_config

    def get_pso_config(self) -> PSOConfig:
        """Get swarm algorithm configuration."""
        return self.pso_config

    def get_gc_config(self) -> GCConfig:
        """Get guaranteed-convergence configuration."""
        return self.gc_config

    def get_vepso_config(self) -> VEPSOConfig:
        """Get VEPSO configuration."""
        return self.vepso_config

    def get_termination_config(self) -> TerminationConfig:
        """Get termination criteria configuration."""
        return self.termination_config

    def get_monitoring_config(self) -> MonitoringConfig:
        """Get monitoring and logging configuration."""
        return self.monitoring_config

    def get_multi_run_config(self) -> MultiRunConfig:
        """Get multi-run analysis configuration."""
        return self.multi_run_config

    def get_random_seed(self) -> int | None:
        return self.random_seed

    def get_full_config(self) -> dict[str, Any]:
        """Get complete configuration dictionary."""
        return self.config.copy()

    def print_summary(self):
        """Print configuration summary for verification."""
        print("\n📋 OPTIMIZATION CONFIGURATION SUMMARY:")

        print("   🎯 Problem Configuration:")
        print(f"      Problem: {self.problem_config.type}")
        print(f"      Variables: {self.problem_config.n_var or 'pymoo default'}")
        print(f"      Direction: {self.problem_config.direction}")

        print("   🔄 Algorithm Configuration:")
        print(f"      Type: {self.pso_config.type}")
        print(f"      Population size: {self.pso_config.pop_size}")
        if self.pso_config.inertia_weight_final is not None:
            print(f"      Inertia weight: {self.pso_config.inertia_weight} -> "
                  f"{self.pso_config.inertia_weight_final} (linear)")
        else:
            print(f"      Inertia weight: {self.pso_config.inertia_weight} (fixed)")
        print(f"      Cognitive/Social coeffs: {self.pso_config.cognitive_coeff}/{self.pso_config.social_coeff}")
        print(f"      Topology: {self.pso_config.topology}, iteration: {self.pso_config.iteration}")

        if self.pso_config.type == "GCPSO" or (
            self.pso_config.type == "VEPSO" and self.vepso_config.use_gc
        ):
            print(f"      GC rho: {self.gc_config.rho} "
                  f"(expand {self.gc_config.rho_expand_coeff} after {self.gc_config.success_threshold}, "
                  f"contract {self.gc_config.rho_contract_coeff} after {self.gc_config.failure_threshold})")
        if self.pso_config.type == "VEPSO":
            print(f"      Knowledge transfer: {self.vepso_config.knowledge_transfer}")
            print(f"      Parallel sub-swarms: {self.vepso_config.parallel}")

        print("   ⏰ Termination Configuration:")
        print(f"      Max generations: {self.termination_config.max_generations}")
        if self.termination_config.max_time_minutes:
            print(f"      Max time: {self.termination_config.max_time_minutes} minutes")
        print(
            f"      Convergence tolerance: {self.termination_config.convergence_tolerance}"
        )

        print("   📊 Monitoring Configuration:")
        print(f"      Progress frequency: {self.monitoring_config.progress_frequency}")
        print(f"      Save history: {self.monitoring_config.save_history}")
        print(f"      Log level: {self.monitoring_config.log_level}")

        print("   🔢 Multi-run Configuration:")
        print(f"      Enabled: {self.multi_run_config.enabled}")
        if self.multi_run_config.enabled:
            print(f"      Statistical runs: {self.multi_run_config.num_runs}")
