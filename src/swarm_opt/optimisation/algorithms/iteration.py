"""
Iteration policies for one pass over a swarm.

SYNCHRONOUS (default)
=====================
Compute all velocities, then move all particles, then evaluate all of them,
then adapt control parameters, then update personal and neighbourhood
bests. No particle sees another particle's already-updated state within the
same pass, so the result does not depend on particle order beyond the order
of random draws. The GC and VEPSO strategies assume this policy.

ASYNCHRONOUS
============
Each particle completes its whole update, including personal and
neighbourhood best updates, before the next particle starts. Later particles
see earlier particles' new bests in the same pass and the best particle is
re-resolved before every particle, which changes numerical trajectories.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..strategies.knowledge_transfer import PublicationSlot
    from .pso import PSO


class IterationStrategy(ABC):
    name = "abstract"

    @abstractmethod
    def perform_iteration(
        self,
        algorithm: "PSO",
        publications: "Sequence[PublicationSlot] | None" = None,
        population_index: int | None = None,
    ) -> None:
        """Advance every particle of ``algorithm`` by one iteration."""


class SynchronousIteration(IterationStrategy):
    name = "synchronous"

    def perform_iteration(self, algorithm, publications=None, population_index=None):
        context = algorithm.context(publications, population_index)
        swarm = algorithm.swarm

        for particle in swarm:
            particle.update_velocity(context)
        for particle in swarm:
            particle.update_position()
        for particle in swarm:
            particle.evaluate(algorithm.problem)
        for particle in swarm:
            particle.update_control_parameters(context)
        for particle in swarm:
            particle.update_personal_best()

        algorithm.update_neighbourhood_bests()


class AsynchronousIteration(IterationStrategy):
    name = "asynchronous"

    def perform_iteration(self, algorithm, publications=None, population_index=None):
        for particle in algorithm.swarm:
            context = algorithm.context(publications, population_index)
            particle.update_velocity(context)
            particle.update_position()
            particle.evaluate(algorithm.problem)
            particle.update_control_parameters(context)
            if particle.update_personal_best():
                algorithm.update_neighbourhood_bests()


def create_iteration_strategy(name: str) -> IterationStrategy:
    if name == "synchronous":
        return SynchronousIteration()
    if name == "asynchronous":
        return AsynchronousIteration()
    raise ValueError(f"Unknown iteration strategy: {name}")
