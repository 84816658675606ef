"""
Swarm topologies.

A topology decides which particles share information. It answers one
question for the swarm: given a particle, which particle in its
neighbourhood has the best personal-best fitness. Ties keep the particle
with the lowest index.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from ..problems.fitness import Comparison
from .particle import Particle


class Topology(ABC):
    """Neighbourhood structure over a swarm indexed by ``particle_id``."""

    @abstractmethod
    def neighbourhood(self, index: int, n_particles: int) -> list[int]:
        """Indices of the particles in the neighbourhood of ``index``, ascending."""

    def neighbourhood_best(self, particle: Particle, swarm: Sequence[Particle]) -> Particle:
        best = None
        for idx in self.neighbourhood(particle.particle_id, len(swarm)):
            candidate = swarm[idx]
            if best is None or candidate.best_fitness.compare_to(best.best_fitness) is Comparison.BETTER:
                best = candidate
        return best

    def validate(self, n_particles: int) -> None:
        """Raise ValueError if the topology cannot be built for this swarm size."""


class GBestTopology(Topology):
    """Fully connected neighbourhood: every particle sees the whole swarm."""

    def neighbourhood(self, index: int, n_particles: int) -> list[int]:
        return list(range(n_particles))

    def validate(self, n_particles: int) -> None:
        if n_particles <= 0:
            raise ValueError("n_particles must be positive.")


class LBestTopology(Topology):
    """
    Symmetric ring neighbourhood (lbest PSO).

    Each particle i is connected to itself and k/2 neighbours on each side in a
    ring. With k=2, i sees {i-1, i, i+1} (mod n).

    Parameters
    ----------
    k : int, default=2
        Even neighbourhood size (must satisfy 2 <= k < n_particles).
    """

    def __init__(self, k: int = 2):
        if k % 2 != 0:
            raise ValueError("k must be even (neighbours are k/2 on each side).")
        if k < 2:
            raise ValueError("k must be >= 2.")
        self.k = k

    def validate(self, n_particles: int) -> None:
        if n_particles < 2:
            raise ValueError("n_particles must be >= 2 for a ring topology.")
        if self.k >= n_particles:
            raise ValueError("k must be less than n_particles to avoid a fully connected graph.")

    def neighbourhood(self, index: int, n_particles: int) -> list[int]:
        half = self.k // 2
        members = {index}
        for d in range(1, half + 1):
            members.add((index - d) % n_particles)
            members.add((index + d) % n_particles)
        return sorted(members)


def create_topology(name: str, ring_k: int = 2) -> Topology:
    name = name.lower()
    if name == "gbest":
        return GBestTopology()
    if name == "lbest":
        return LBestTopology(k=ring_k)
    raise ValueError(f"Unknown topology: {name}")
