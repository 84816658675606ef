"""
Tests for particles and topologies.

Particles hold fixed-dimension vectors, replace their personal best only on
strict improvement and duplicate into fully independent copies. Topologies
resolve the best particle of each neighbourhood with lowest-index ties.
"""

import numpy as np
import pytest

from swarm_opt.optimisation.errors import DimensionMismatchError
from swarm_opt.optimisation.problems import INFERIOR_FITNESS, Domain, MinimisationFitness
from swarm_opt.optimisation.strategies import GCVelocityUpdate, StandardVelocityUpdate
from swarm_opt.optimisation.swarm import GBestTopology, LBestTopology, Particle, create_topology


class TestParticle:
    def test_initial_state(self, make_particle):
        particle = make_particle([1.0, 2.0])
        assert particle.fitness is INFERIOR_FITNESS
        assert particle.best_fitness is INFERIOR_FITNESS
        assert particle.neighbourhood_best is particle
        np.testing.assert_array_equal(particle.velocity, [0.0, 0.0])
        np.testing.assert_array_equal(particle.best_position, [1.0, 2.0])

    def test_vector_dimensions_enforced(self, make_particle):
        particle = make_particle([0.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            particle.velocity = [1.0]
        with pytest.raises(DimensionMismatchError):
            particle.position = np.zeros(3)
        with pytest.raises(DimensionMismatchError):
            particle.best_position = np.zeros((2, 1))

    def test_update_position_clamps_to_domain(self, make_particle):
        particle = make_particle([0.5], velocity=[10.0], bounds=(0.0, 1.0))
        particle.update_position()
        np.testing.assert_array_equal(particle.position, [1.0])

    def test_personal_best_strict_improvement_only(self, make_particle, sphere_problem):
        particle = make_particle([1.0, 1.0, 1.0, 1.0, 1.0])
        particle.evaluate(sphere_problem)
        assert particle.update_personal_best()
        assert particle.best_fitness == MinimisationFitness(5.0)

        # Equal fitness at a different position does not replace the memory
        particle.position = [-1.0, 1.0, 1.0, 1.0, 1.0]
        particle.evaluate(sphere_problem)
        assert not particle.update_personal_best()
        np.testing.assert_array_equal(particle.best_position, np.ones(5))

        particle.position = np.zeros(5)
        particle.evaluate(sphere_problem)
        assert particle.update_personal_best()
        np.testing.assert_array_equal(particle.best_position, np.zeros(5))

    def test_random_particle_inside_domain(self, rng):
        domain = Domain(lower=[0.0, -1.0], upper=[1.0, 1.0])
        particle = Particle.random(domain, StandardVelocityUpdate(rng), rng, velocity_scale=0.1)
        assert domain.contains(particle.position)
        assert np.all(np.abs(particle.velocity) <= 0.1 * domain.span)

    def test_duplicate_is_independent(self, make_particle, rng):
        particle = make_particle([1.0, 1.0], strategy=GCVelocityUpdate(rng))
        particle.fitness = MinimisationFitness(2.0)
        copy = particle.duplicate()

        assert copy.neighbourhood_best is copy
        assert copy.velocity_strategy is not particle.velocity_strategy
        assert copy.velocity_strategy.rho is not particle.velocity_strategy.rho
        assert copy.fitness == particle.fitness

        copy.position = [3.0, 3.0]
        copy.velocity_strategy.rho.set(0.25)
        np.testing.assert_array_equal(particle.position, [1.0, 1.0])
        assert particle.velocity_strategy.rho.get() == 1.0


def _swarm_with_fitness(values, rng):
    domain = Domain.uniform(-1.0, 1.0, 1)
    swarm = []
    for i, value in enumerate(values):
        particle = Particle(np.zeros(1), domain, StandardVelocityUpdate(rng), particle_id=i)
        particle.best_fitness = MinimisationFitness(value)
        swarm.append(particle)
    return swarm


class TestTopology:
    def test_gbest_picks_global_best(self, rng):
        swarm = _swarm_with_fitness([3.0, 1.0, 2.0, 0.5, 4.0], rng)
        topology = GBestTopology()
        for particle in swarm:
            assert topology.neighbourhood_best(particle, swarm) is swarm[3]

    def test_ties_keep_lowest_index(self, rng):
        swarm = _swarm_with_fitness([2.0, 1.0, 1.0], rng)
        assert GBestTopology().neighbourhood_best(swarm[2], swarm) is swarm[1]

    def test_ring_neighbourhood(self, rng):
        swarm = _swarm_with_fitness([5.0, 4.0, 3.0, 2.0, 1.0, 0.0], rng)
        topology = LBestTopology(k=2)

        assert topology.neighbourhood(0, 6) == [0, 1, 5]
        assert topology.neighbourhood_best(swarm[0], swarm) is swarm[5]
        assert topology.neighbourhood_best(swarm[2], swarm) is swarm[3]

    def test_ring_validation(self):
        with pytest.raises(ValueError, match="even"):
            LBestTopology(k=3)
        with pytest.raises(ValueError, match="less than n_particles"):
            LBestTopology(k=4).validate(4)

    def test_create_topology(self):
        assert isinstance(create_topology("gbest"), GBestTopology)
        ring = create_topology("lbest", ring_k=4)
        assert isinstance(ring, LBestTopology) and ring.k == 4
        with pytest.raises(ValueError, match="Unknown topology"):
            create_topology("star")
