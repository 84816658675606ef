"""
Basic tests for optimization configuration management.

These tests validate that the configuration system works correctly with
simple, realistic configurations. Focus on core functionality rather than
edge cases.
"""

import tempfile
from pathlib import Path

import pytest
import yaml

from swarm_opt.optimisation.config import (
    GCConfig,
    MultiRunConfig,
    OptimizationConfigManager,
    PSOConfig,
    TerminationConfig,
    VEPSOConfig,
)

CONFIGS_DIR = Path(__file__).parent.parent / "configs"


class TestConfigDataClasses:
    """Test basic configuration data class creation and validation."""

    def test_pso_config_defaults(self):
        """Test PSOConfig creates with the standard constriction defaults."""
        config = PSOConfig(pop_size=50)

        assert config.pop_size == 50
        assert config.type == "PSO"
        assert config.inertia_weight == 0.729844
        assert config.cognitive_coeff == 1.49618
        assert config.social_coeff == 1.49618
        assert config.inertia_weight_final is None
        assert config.topology == "gbest"
        assert config.iteration == "synchronous"

        print(
            f"✅ PSOConfig defaults: pop_size={config.pop_size}, w={config.inertia_weight}"
        )

    def test_pso_config_validation(self):
        """Test PSOConfig validates parameters reasonably."""
        config = PSOConfig(pop_size=30, inertia_weight=0.7)
        assert config.pop_size == 30

        with pytest.raises(ValueError, match="at least 2"):
            PSOConfig(pop_size=1)
        with pytest.raises(ValueError, match="Algorithm type"):
            PSOConfig(pop_size=10, type="DE")
        with pytest.raises(ValueError, match="Topology"):
            PSOConfig(pop_size=10, topology="star")
        with pytest.raises(ValueError, match="ring_k"):
            PSOConfig(pop_size=10, topology="lbest", ring_k=3)
        with pytest.raises(ValueError, match="vmax_frac"):
            PSOConfig(pop_size=10, vmax_frac=0.0)
        with pytest.raises(ValueError, match="Iteration"):
            PSOConfig(pop_size=10, iteration="parallel")

        print("✅ PSOConfig validation works")

    def test_gc_config(self):
        """Test GCConfig defaults and coefficient validation."""
        config = GCConfig()
        assert config.rho == 1.0
        assert config.rho_lower_bound == 1.0e-323
        assert config.success_threshold == 15
        assert config.failure_threshold == 5

        with pytest.raises(ValueError, match="rho_expand_coeff"):
            GCConfig(rho_expand_coeff=0.9)
        with pytest.raises(ValueError, match="rho_contract_coeff"):
            GCConfig(rho_contract_coeff=1.0)
        with pytest.raises(ValueError, match="rho must be positive"):
            GCConfig(rho=-1.0)

    def test_vepso_config(self):
        assert VEPSOConfig().knowledge_transfer == "ring"
        with pytest.raises(ValueError, match="knowledge_transfer"):
            VEPSOConfig(knowledge_transfer="broadcast")

    def test_termination_config_defaults(self):
        """Test TerminationConfig creates with reasonable defaults."""
        config = TerminationConfig(max_generations=100)

        assert config.max_generations == 100
        assert config.max_time_minutes is None
        assert config.convergence_tolerance == 1e-6
        assert config.convergence_patience == 50
        assert config.target_objective is None

        print(f"✅ TerminationConfig defaults: max_gen={config.max_generations}")

    def test_multi_run_config(self):
        assert not MultiRunConfig().enabled
        with pytest.raises(ValueError, match="at least 2"):
            MultiRunConfig(enabled=True, num_runs=1)


class TestConfigManager:
    """Test OptimizationConfigManager core functionality."""

    def test_yaml_config_loading(self):
        """Test loading configuration from YAML file."""
        test_config = {
            "problem": {"type": "ackley", "n_var": 5},
            "optimization": {
                "random_seed": 11,
                "algorithm": {"type": "GCPSO", "pop_size": 75, "inertia_weight": 0.8},
                "gc": {"rho": 0.25, "success_threshold": 10},
                "termination": {"max_generations": 150},
                "monitoring": {"progress_frequency": 20},
            },
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            yaml.dump(test_config, f)
            temp_path = f.name

        try:
            manager = OptimizationConfigManager(temp_path)

            pso_config = manager.get_pso_config()
            assert pso_config.type == "GCPSO"
            assert pso_config.pop_size == 75
            assert pso_config.inertia_weight == 0.8

            gc_config = manager.get_gc_config()
            assert gc_config.rho == 0.25
            assert gc_config.success_threshold == 10
            assert gc_config.failure_threshold == 5

            assert manager.get_termination_config().max_generations == 150
            assert manager.get_monitoring_config().progress_frequency == 20
            assert manager.get_random_seed() == 11
            assert manager.get_problem_config().n_var == 5

            print("✅ YAML config loading works")

        finally:
            Path(temp_path).unlink()

    def test_dict_config_loading(self, basic_config):
        """Test loading configuration from dictionary."""
        manager = OptimizationConfigManager(config_dict=basic_config)

        assert manager.get_pso_config().pop_size == 8
        assert manager.get_termination_config().max_generations == 15
        assert manager.get_problem_config().type == "sphere"
        assert manager.get_problem_config().direction == "minimise"

        print("✅ Dictionary config loading works")

    def test_source_arguments(self, basic_config):
        with pytest.raises(ValueError, match="Configuration is required"):
            OptimizationConfigManager()
        with pytest.raises(ValueError, match="not both"):
            OptimizationConfigManager("config.yaml", config_dict=basic_config)
        with pytest.raises(FileNotFoundError):
            OptimizationConfigManager("does/not/exist.yaml")

    def test_config_validation(self):
        """Test configuration validation catches basic errors."""
        with pytest.raises(ValueError, match="Missing required configuration section"):
            OptimizationConfigManager(config_dict={"problem": {"type": "sphere"}})

        with pytest.raises(ValueError, match="Missing 'type'"):
            OptimizationConfigManager(config_dict={
                "problem": {"n_var": 3},
                "optimization": {"algorithm": {"pop_size": 10}},
            })

        with pytest.raises(ValueError, match="Unsupported algorithm"):
            OptimizationConfigManager(config_dict={
                "problem": {"type": "sphere"},
                "optimization": {"algorithm": {"type": "GA", "pop_size": 10},
                                 "termination": {"max_generations": 5}},
            })

        print("✅ Config validation works")

    def test_required_parameters(self, basic_config):
        """Test that required parameters are enforced."""
        del basic_config["optimization"]["algorithm"]["pop_size"]
        with pytest.raises(ValueError, match="Missing required parameter 'pop_size'"):
            OptimizationConfigManager(config_dict=basic_config)

        basic_config["optimization"]["algorithm"]["pop_size"] = 10
        del basic_config["optimization"]["termination"]["max_generations"]
        with pytest.raises(ValueError, match="Missing required parameter 'max_generations'"):
            OptimizationConfigManager(config_dict=basic_config)

    def test_config_summary_printing(self, basic_config, vepso_config, capsys):
        """Test config summary prints without errors."""
        OptimizationConfigManager(config_dict=basic_config).print_summary()
        OptimizationConfigManager(config_dict=vepso_config).print_summary()

        out = capsys.readouterr().out
        assert "GC rho" in out
        assert "Knowledge transfer: ring" in out

    @pytest.mark.parametrize("name", ["gcpso_ackley.yaml", "pso_rastrigin_lbest.yaml", "vepso_zdt1.yaml"])
    def test_shipped_configs_are_valid(self, name):
        manager = OptimizationConfigManager(str(CONFIGS_DIR / name))
        assert manager.get_pso_config().type in ("PSO", "GCPSO", "VEPSO")
