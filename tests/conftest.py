"""Shared fixtures for swarm optimisation tests."""

import numpy as np
import pytest

from swarm_opt.optimisation.problems import Domain, FunctionOptimisationProblem
from swarm_opt.optimisation.strategies import StandardVelocityUpdate
from swarm_opt.optimisation.swarm import Particle


class FixedRandom:
    """
    Generator stand-in returning one constant for every uniform draw.

    Lets tests pin r1, r2 and u to exact values.
    """

    def __init__(self, value: float):
        self.value = value
        self.calls = 0

    def random(self, size=None):
        self.calls += 1
        if size is None:
            return self.value
        return np.full(size, self.value)


def sphere(x):
    return float(np.sum(np.asarray(x) ** 2))


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def fixed_random():
    """Factory: ``fixed_random(0.5)`` makes a FixedRandom."""
    return FixedRandom


@pytest.fixture
def sphere_problem():
    """Five-dimensional sphere on [-5.12, 5.12]."""
    return FunctionOptimisationProblem(sphere, Domain.uniform(-5.12, 5.12, 5))


@pytest.fixture
def make_particle(rng):
    """
    Factory for particles with explicit vectors on a wide domain.

    Usage: ``make_particle([0.0], velocity=[1.0], best_position=[2.0])``
    """

    def _make(position, velocity=None, best_position=None, strategy=None,
              bounds=(-100.0, 100.0), particle_id=0):
        position = np.asarray(position, dtype=float)
        domain = Domain.uniform(bounds[0], bounds[1], position.size)
        particle = Particle(
            position,
            domain,
            strategy or StandardVelocityUpdate(rng),
            velocity=velocity,
            particle_id=particle_id,
        )
        if best_position is not None:
            particle.best_position = best_position
        return particle

    return _make


@pytest.fixture
def basic_config():
    """Minimal valid GCPSO configuration on a small sphere."""
    return {
        "problem": {"type": "sphere", "n_var": 3},
        "optimization": {
            "random_seed": 7,
            "algorithm": {"type": "GCPSO", "pop_size": 8},
            "gc": {"rho": 0.5},
            "termination": {"max_generations": 15},
            "monitoring": {"progress_frequency": 5, "log_level": "WARNING"},
        },
    }


@pytest.fixture
def vepso_config():
    return {
        "problem": {"type": "zdt1", "n_var": 4},
        "optimization": {
            "random_seed": 3,
            "algorithm": {"type": "VEPSO", "pop_size": 6},
            "vepso": {"knowledge_transfer": "ring"},
            "termination": {"max_generations": 8},
        },
    }
