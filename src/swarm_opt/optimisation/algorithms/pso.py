"""
Particle swarm optimiser.

``PSO`` owns one swarm and drives it one iteration at a time. It does not
decide when to stop; runners (or callers) loop over :meth:`PSO.step` and
apply their own termination criteria.

Every particle receives its own duplicate of the prototype velocity
strategy, so adaptive state such as GC rho lives with the particle. The
random generator is shared by reference between those duplicates, which
keeps a run reproducible from a single seed.

Usage:
```python
rng = np.random.default_rng(42)
problem = FunctionOptimisationProblem(sphere, Domain.uniform(-5.12, 5.12, 10))
pso = PSO(problem, GCVelocityUpdate(rng, vmax=1.0), rng, pop_size=20)
pso.initialise()
for _ in range(100):
    pso.step()
print(pso.best_fitness, pso.best_position)
```
"""

import logging
import time
from collections.abc import Sequence

import numpy as np

from ..problems.base import OptimisationProblem
from ..problems.fitness import Comparison, Fitness
from ..strategies.velocity import VelocityUpdateStrategy
from ..swarm.particle import Particle
from ..swarm.topology import GBestTopology, Topology
from .context import IterationContext
from .iteration import IterationStrategy, SynchronousIteration

logger = logging.getLogger(__name__)


class PSO:
    """
    Single-population particle swarm optimiser.

    Attributes:
        problem (OptimisationProblem): Problem evaluated by every particle.
        velocity_strategy (VelocityUpdateStrategy): Prototype duplicated into
            each particle.
        rng (np.random.Generator): Generator for initial positions and
            velocities.
        pop_size (int): Number of particles.
        topology (Topology): Neighbourhood structure, gbest by default.
        iteration_strategy (IterationStrategy): Synchronous by default.
        max_iterations (int | None): Used only to compute run progress for
            adaptive control parameters.
        start_time (float | None): Wall-clock time the swarm was initialised.
        swarm (list[Particle]): The particles, empty until :meth:`initialise`.
        iteration (int): Number of completed iterations.
    """

    def __init__(
        self,
        problem: OptimisationProblem,
        velocity_strategy: VelocityUpdateStrategy,
        rng: np.random.Generator,
        pop_size: int,
        topology: Topology | None = None,
        iteration_strategy: IterationStrategy | None = None,
        velocity_scale: float = 0.0,
        max_iterations: int | None = None,
        name: str = "pso",
    ):
        if rng is None:
            raise ValueError("PSO requires an explicit random generator")
        if pop_size < 1:
            raise ValueError("pop_size must be positive")

        self.problem = problem
        self.velocity_strategy = velocity_strategy
        self.rng = rng
        self.pop_size = pop_size
        self.topology = topology or GBestTopology()
        self.iteration_strategy = iteration_strategy or SynchronousIteration()
        self.velocity_scale = velocity_scale
        self.max_iterations = max_iterations
        self.name = name

        self.topology.validate(pop_size)

        self.swarm: list[Particle] = []
        self.iteration = 0
        self.start_time: float | None = None

    @property
    def initialised(self) -> bool:
        return bool(self.swarm)

    def initialise(self) -> None:
        """Create, evaluate and link the swarm."""
        self.swarm = [
            Particle.random(
                self.problem.domain,
                self.velocity_strategy.duplicate(),
                self.rng,
                particle_id=i,
                velocity_scale=self.velocity_scale,
            )
            for i in range(self.pop_size)
        ]
        for particle in self.swarm:
            particle.evaluate(self.problem)
            particle.update_personal_best()
        self.update_neighbourhood_bests()
        self.iteration = 0
        self.start_time = time.time()

        logger.debug("Initialised %s with %d particles, best fitness %s",
                     self.name, self.pop_size, self.best_fitness)

    def set_swarm(self, particles: Sequence[Particle]) -> None:
        """Install pre-built particles (ids are reassigned to their index)."""
        for i, particle in enumerate(particles):
            particle.particle_id = i
        self.swarm = list(particles)
        self.pop_size = len(self.swarm)
        self.topology.validate(self.pop_size)
        self.update_neighbourhood_bests()
        self.start_time = time.time()

    # ------------------------------------------------------------------

    @property
    def n_gen(self) -> int:
        """Completed iterations, under the name pymoo terminations read."""
        return self.iteration

    @property
    def progress(self) -> float:
        if not self.max_iterations:
            return 0.0
        return min(self.iteration / self.max_iterations, 1.0)

    def context(self, publications=None, population_index: int | None = None) -> IterationContext:
        # Progress once the iteration in flight completes, so the last
        # iteration adapts parameters to their final values.
        progress = 0.0
        if self.max_iterations:
            progress = min((self.iteration + 1) / self.max_iterations, 1.0)
        return IterationContext(
            best_particle=self.best_particle(),
            iteration=self.iteration,
            progress=progress,
            publications=publications,
            population_index=population_index,
        )

    def step(self, publications=None, population_index: int | None = None) -> None:
        """Perform one iteration over the swarm."""
        if not self.initialised:
            raise RuntimeError("PSO.initialise() must be called before step()")
        self.iteration_strategy.perform_iteration(self, publications, population_index)
        self.iteration += 1

    def update_neighbourhood_bests(self) -> None:
        for particle in self.swarm:
            particle.neighbourhood_best = self.topology.neighbourhood_best(particle, self.swarm)

    # ------------------------------------------------------------------

    def best_particle(self) -> Particle:
        """Particle with the best personal-best fitness; ties keep the lowest id."""
        if not self.swarm:
            raise RuntimeError("Swarm is empty")
        best = self.swarm[0]
        for particle in self.swarm[1:]:
            if particle.best_fitness.compare_to(best.best_fitness) is Comparison.BETTER:
                best = particle
        return best

    @property
    def best_fitness(self) -> Fitness:
        return self.best_particle().best_fitness

    @property
    def best_position(self) -> np.ndarray:
        return self.best_particle().best_position.copy()

    def fitness_statistics(self) -> dict[str, float]:
        """Summary of the current (not personal-best) fitness values."""
        values = np.array([
            p.fitness.value for p in self.swarm if not p.fitness.is_inferior()
        ], dtype=float)
        if values.size == 0:
            return {"mean": np.nan, "std": np.nan, "min": np.nan, "max": np.nan}
        return {
            "mean": float(np.mean(values)),
            "std": float(np.std(values)),
            "min": float(np.min(values)),
            "max": float(np.max(values)),
        }

    def diversity(self) -> float:
        """Mean Euclidean distance of the particles to the swarm centroid."""
        positions = np.array([p.position for p in self.swarm])
        centroid = positions.mean(axis=0)
        return float(np.mean(np.linalg.norm(positions - centroid, axis=1)))
