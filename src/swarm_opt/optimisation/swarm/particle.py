"""
Particle state and per-particle update operations.

A particle owns its position, velocity and personal-best memory, all fixed to
the dimension of its domain. It also owns its own velocity update strategy
instance (duplicated from the swarm prototype) so that adaptive strategy
state, such as GC rho and success/failure counters, is never shared between
particles.
"""

from typing import TYPE_CHECKING

import numpy as np

from ..errors import DimensionMismatchError
from ..problems.domain import Domain
from ..problems.fitness import INFERIOR_FITNESS, Comparison, Fitness

if TYPE_CHECKING:
    from ..algorithms.context import IterationContext
    from ..problems.base import OptimisationProblem
    from ..strategies.velocity import VelocityUpdateStrategy


class Particle:
    """
    Candidate solution with position, velocity and best-found memory.

    Attributes:
        particle_id (int): Index of the particle within its swarm.
        domain (Domain): Bounds of every position dimension.
        fitness (Fitness): Fitness at the current position.
        best_fitness (Fitness): Fitness at ``best_position``.
        neighbourhood_best (Particle): Reference to the best particle in this
            particle's neighbourhood, as last resolved by the topology.
        velocity_strategy (VelocityUpdateStrategy): Strategy owned by this particle.
    """

    def __init__(
        self,
        position: np.ndarray,
        domain: Domain,
        velocity_strategy: "VelocityUpdateStrategy",
        velocity: np.ndarray | None = None,
        particle_id: int = 0,
    ):
        domain.check_dimension("position", position)
        self.domain = domain
        self.particle_id = particle_id
        self.velocity_strategy = velocity_strategy

        self._position = np.array(position, dtype=float)
        self._velocity = np.zeros(domain.dimension)
        if velocity is not None:
            self.velocity = velocity
        self._best_position = self._position.copy()

        self.fitness: Fitness = INFERIOR_FITNESS
        self.best_fitness: Fitness = INFERIOR_FITNESS
        self.neighbourhood_best: Particle = self

    @classmethod
    def random(
        cls,
        domain: Domain,
        velocity_strategy: "VelocityUpdateStrategy",
        rng: np.random.Generator,
        particle_id: int = 0,
        velocity_scale: float = 0.0,
    ) -> "Particle":
        """
        Particle at a uniform random position inside ``domain``.

        The velocity is zero when ``velocity_scale`` is 0, otherwise uniform in
        ``[-scale * span, scale * span]`` per dimension.
        """
        position = domain.sample(rng)
        velocity = None
        if velocity_scale > 0:
            span = velocity_scale * domain.span
            velocity = rng.uniform(-span, span)
        return cls(position, domain, velocity_strategy, velocity=velocity, particle_id=particle_id)

    @property
    def dimension(self) -> int:
        return self.domain.dimension

    @property
    def position(self) -> np.ndarray:
        return self._position

    @position.setter
    def position(self, value: np.ndarray) -> None:
        self._position = self._checked("position", value)

    @property
    def velocity(self) -> np.ndarray:
        return self._velocity

    @velocity.setter
    def velocity(self, value: np.ndarray) -> None:
        self._velocity = self._checked("velocity", value)

    @property
    def best_position(self) -> np.ndarray:
        return self._best_position

    @best_position.setter
    def best_position(self, value: np.ndarray) -> None:
        self._best_position = self._checked("best_position", value)

    def _checked(self, name: str, value) -> np.ndarray:
        array = np.array(value, dtype=float)
        if array.ndim != 1 or array.size != self.dimension:
            raise DimensionMismatchError(name, self.dimension, array.size)
        return array

    # ------------------------------------------------------------------
    # Update steps, called by the iteration strategies

    def update_velocity(self, context: "IterationContext") -> None:
        self.velocity_strategy.update_velocity(self, context)

    def update_position(self) -> None:
        """Advance by the current velocity and clamp to the domain."""
        self._position = self.domain.clip(self._position + self._velocity)

    def evaluate(self, problem: "OptimisationProblem") -> Fitness:
        self.fitness = problem.evaluate(self._position)
        return self.fitness

    def update_control_parameters(self, context: "IterationContext") -> None:
        self.velocity_strategy.update_control_parameters(self, context)

    def update_personal_best(self) -> bool:
        """Replace the personal best on strict improvement only."""
        if self.fitness.compare_to(self.best_fitness) is Comparison.BETTER:
            self._best_position = self._position.copy()
            self.best_fitness = self.fitness
            return True
        return False

    def duplicate(self) -> "Particle":
        """
        Independent copy of this particle.

        Vectors are copied and the velocity strategy is duplicated. A
        neighbourhood-best reference to the particle itself is re-pointed at
        the copy; any other reference is kept as is.
        """
        copy = Particle(
            self._position.copy(),
            self.domain,
            self.velocity_strategy.duplicate(),
            velocity=self._velocity.copy(),
            particle_id=self.particle_id,
        )
        copy._best_position = self._best_position.copy()
        copy.fitness = self.fitness
        copy.best_fitness = self.best_fitness
        copy.neighbourhood_best = copy if self.neighbourhood_best is self else self.neighbourhood_best
        return copy

    def __repr__(self):
        return (f"Particle(id={self.particle_id}, fitness={self.fitness!r}, "
                f"best_fitness={self.best_fitness!r})")
