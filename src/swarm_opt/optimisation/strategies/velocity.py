"""
Velocity update strategies.

STANDARD UPDATE
===============
For every dimension ``i``:

    v[i] = w*v[i] + c1*r1[i]*(pbest[i] - x[i]) + c2*r2[i]*(guide[i] - x[i])

followed by clamping each component into ``[-vmax[i], vmax[i]]``. ``r1`` and
``r2`` are independent uniform(0, 1) draws per dimension per call, taken from
the generator injected at construction.

GUARANTEED CONVERGENCE (GCPSO)
==============================
The swarm's best particle ignores the attraction terms and performs a local
random search around the neighbourhood best instead:

    v[i] = -x[i] + nbest[i] + w*v[i] + rho*(1 - 2*u[i])

The search radius ``rho`` expands after ``success_threshold`` consecutive
successes and contracts after ``failure_threshold`` consecutive failures. A
success is any change of the best particle's fitness between two
iterations, and a failure is an unchanged fitness. Every other particle uses
the standard update.

References:
    F. van den Bergh and A. Engelbrecht, "A new locally convergent particle
    swarm optimizer," IEEE SMC, 2002.
    F. van den Bergh, "An Analysis of Particle Swarm Optimizers," PhD thesis,
    University of Pretoria, 2002.

DUPLICATION
===========
``duplicate(rng=None)`` returns an independent strategy. Scalar state
(counters, thresholds, old fitness) is value-copied and every control
parameter and the guide selection strategy are duplicated. The random
generator is shared by reference unless a replacement ``rng`` is passed.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from ..errors import DegenerateBoundsError, DimensionMismatchError, NonFiniteValueError
from ..parameters.control import (
    ControlParameter,
    UpdatableControlParameter,
    as_control_parameter,
)
from ..problems.domain import Domain
from ..problems.fitness import INFERIOR_FITNESS, Fitness
from .guide import GuideSelectionStrategy, NeighbourhoodBestGuideSelection

if TYPE_CHECKING:
    from ..algorithms.context import IterationContext
    from ..swarm.particle import Particle

logger = logging.getLogger(__name__)

DEFAULT_INERTIA_WEIGHT = 0.729844
DEFAULT_ACCELERATION = 1.496180


class VelocityUpdateStrategy(ABC):
    """Computes a particle's new velocity each iteration."""

    @abstractmethod
    def update_velocity(self, particle: "Particle", context: "IterationContext") -> None:
        """Replace ``particle.velocity`` with the updated velocity."""

    @abstractmethod
    def update_control_parameters(self, particle: "Particle", context: "IterationContext") -> None:
        """Adapt the strategy's parameters after the particle is re-evaluated."""

    @abstractmethod
    def duplicate(self, rng: np.random.Generator | None = None) -> "VelocityUpdateStrategy":
        pass


class StandardVelocityUpdate(VelocityUpdateStrategy):
    """
    Inertia-weight PSO velocity update.

    Args:
        rng: Seedable generator for the r1/r2 draws. Required.
        inertia_weight: w, number or ControlParameter.
        cognitive_acceleration: c1, number or ControlParameter.
        social_acceleration: c2, number or ControlParameter.
        vmax: Velocity clamp. A single number/ControlParameter is broadcast to
            every dimension; a sequence gives one bound per dimension.
        guide_selection: Source of the social guide. Defaults to the
            neighbourhood best.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        inertia_weight: float | ControlParameter = DEFAULT_INERTIA_WEIGHT,
        cognitive_acceleration: float | ControlParameter = DEFAULT_ACCELERATION,
        social_acceleration: float | ControlParameter = DEFAULT_ACCELERATION,
        vmax: float | ControlParameter | Sequence = np.inf,
        guide_selection: GuideSelectionStrategy | None = None,
    ):
        if rng is None:
            raise ValueError(f"{self.__class__.__name__} requires an explicit random generator")
        self.rng = rng
        self.inertia_weight = as_control_parameter(inertia_weight)
        self.cognitive_acceleration = as_control_parameter(cognitive_acceleration)
        self.social_acceleration = as_control_parameter(social_acceleration)
        self.vmax = self._as_vmax(vmax)
        self.guide_selection = guide_selection or NeighbourhoodBestGuideSelection()

    @staticmethod
    def _as_vmax(vmax) -> ControlParameter | list[ControlParameter]:
        if isinstance(vmax, (list, tuple, np.ndarray)):
            return [as_control_parameter(v) for v in vmax]
        return as_control_parameter(vmax)

    def vmax_vector(self, dimension: int) -> np.ndarray:
        """Per-dimension velocity bound."""
        if isinstance(self.vmax, list):
            if len(self.vmax) != dimension:
                raise DimensionMismatchError("vmax", dimension, len(self.vmax))
            return np.array([v.get() for v in self.vmax])
        return np.full(dimension, self.vmax.get())

    def clamp(self, velocity: np.ndarray) -> np.ndarray:
        """Truncate every component to ``[-vmax[i], vmax[i]]``."""
        if np.any(np.isnan(velocity)):
            raise NonFiniteValueError(f"NaN in velocity: {velocity}")
        vmax = self.vmax_vector(velocity.size)
        return np.clip(velocity, -vmax, vmax)

    def update_velocity(self, particle: "Particle", context: "IterationContext") -> None:
        position = particle.position
        guide = np.asarray(self.guide_selection.select_guide(particle, context))
        if guide.size != particle.dimension:
            raise DimensionMismatchError("guide", particle.dimension, guide.size)

        r1 = self.rng.random(particle.dimension)
        r2 = self.rng.random(particle.dimension)

        velocity = (
            self.inertia_weight.get() * particle.velocity
            + self.cognitive_acceleration.get() * r1 * (particle.best_position - position)
            + self.social_acceleration.get() * r2 * (guide - position)
        )
        particle.velocity = self.clamp(velocity)

    def update_control_parameters(self, particle: "Particle", context: "IterationContext") -> None:
        self.inertia_weight.update(context.progress)
        self.cognitive_acceleration.update(context.progress)
        self.social_acceleration.update(context.progress)

    def _duplicate_vmax(self):
        if isinstance(self.vmax, list):
            return [v.duplicate() for v in self.vmax]
        return self.vmax.duplicate()

    def duplicate(self, rng: np.random.Generator | None = None) -> "StandardVelocityUpdate":
        return StandardVelocityUpdate(
            rng if rng is not None else self.rng,
            inertia_weight=self.inertia_weight.duplicate(),
            cognitive_acceleration=self.cognitive_acceleration.duplicate(),
            social_acceleration=self.social_acceleration.duplicate(),
            vmax=self._duplicate_vmax(),
            guide_selection=self.guide_selection.duplicate(rng),
        )


class GCVelocityUpdate(StandardVelocityUpdate):
    """
    Guaranteed Convergence PSO velocity update.

    The choice of ``rho`` matters: it sets the local search size of the best
    particle, so a value of 1.0 is far too large for a domain spanning [0, 1].
    It is clamped after every update into
    ``[rho_lower_bound, (upper[0] - lower[0]) / rho_expand_coefficient]``.

    Args:
        rng: Seedable generator for all random draws. Required.
        rho: Initial local search radius.
        rho_lower_bound: Floor for rho.
        rho_expand_coefficient: Factor applied on repeated success, > 1.
        rho_contract_coefficient: Factor applied on repeated failure, in (0, 1).
        success_threshold: Consecutive successes before rho expands.
        failure_threshold: Consecutive failures before rho contracts.
        vmax: Velocity clamp, defaults to 0.5. Set it for the problem domain.
        **kwargs: Passed through to :class:`StandardVelocityUpdate`.
    """

    def __init__(
        self,
        rng: np.random.Generator,
        rho: float = 1.0,
        rho_lower_bound: float | ControlParameter = 1.0e-323,
        rho_expand_coefficient: float | ControlParameter = 1.2,
        rho_contract_coefficient: float | ControlParameter = 0.5,
        success_threshold: int = 15,
        failure_threshold: int = 5,
        vmax: float | ControlParameter | Sequence = 0.5,
        **kwargs,
    ):
        super().__init__(rng, vmax=vmax, **kwargs)

        if isinstance(rho, ControlParameter):
            rho = rho.get()
        if rho <= 0:
            raise ValueError("rho must be strictly positive")
        self.rho = UpdatableControlParameter(rho)
        self.rho_lower_bound = as_control_parameter(rho_lower_bound)
        self.rho_expand_coefficient = as_control_parameter(rho_expand_coefficient)
        self.rho_contract_coefficient = as_control_parameter(rho_contract_coefficient)

        if self.rho_lower_bound.get() <= 0:
            raise ValueError("rho_lower_bound must be strictly positive")
        if self.rho_expand_coefficient.get() <= 1.0:
            raise ValueError("rho_expand_coefficient must be > 1")
        if not 0.0 < self.rho_contract_coefficient.get() < 1.0:
            raise ValueError("rho_contract_coefficient must be in (0, 1)")
        if success_threshold < 1 or failure_threshold < 1:
            raise ValueError("success and failure thresholds must be positive")

        self.success_threshold = success_threshold
        self.failure_threshold = failure_threshold
        self.success_count = 0
        self.failure_count = 0
        self.old_fitness: Fitness = INFERIOR_FITNESS

    def update_velocity(self, particle: "Particle", context: "IterationContext") -> None:
        if particle is not context.best_particle:
            super().update_velocity(particle, context)
            return

        position = particle.position
        nbest = particle.neighbourhood_best.best_position
        u = self.rng.random(particle.dimension)

        velocity = (
            -position
            + nbest
            + self.inertia_weight.get() * particle.velocity
            + self.rho.get() * (1 - 2 * u)
        )
        particle.velocity = self.clamp(velocity)

        # evaluation happens between this call and update_control_parameters
        self.old_fitness = particle.fitness

    def update_control_parameters(self, particle: "Particle", context: "IterationContext") -> None:
        if particle is not context.best_particle:
            self.success_count = 0
            self.failure_count = 0
            super().update_control_parameters(particle, context)
            return

        if particle.fitness != self.old_fitness:
            self.failure_count = 0
            self.success_count += 1
        else:
            self.success_count = 0
            self.failure_count += 1

        self.update_rho(particle.domain)

    def rho_ceiling(self, domain: Domain) -> float:
        span = domain.upper[0] - domain.lower[0]
        if span == 0:
            raise DegenerateBoundsError(
                "Cannot derive a rho ceiling: dimension 0 has equal lower and upper bounds"
            )
        return span / self.rho_expand_coefficient.get()

    def update_rho(self, domain: Domain) -> float:
        """Expand or contract rho from the counters, then clamp it."""
        ceiling = self.rho_ceiling(domain)
        rho = self.rho.get()

        candidate = rho
        if self.success_count >= self.success_threshold:
            candidate = self.rho_expand_coefficient.get() * rho
        if self.failure_count >= self.failure_threshold:
            candidate = self.rho_contract_coefficient.get() * rho

        if candidate <= self.rho_lower_bound.get():
            candidate = self.rho_lower_bound.get()
        if candidate >= ceiling:
            candidate = ceiling

        if candidate != rho:
            logger.debug("GC rho %.6g -> %.6g (successes=%d, failures=%d)",
                         rho, candidate, self.success_count, self.failure_count)
        self.rho.set(candidate)
        return candidate

    def duplicate(self, rng: np.random.Generator | None = None) -> "GCVelocityUpdate":
        copy = GCVelocityUpdate(
            rng if rng is not None else self.rng,
            rho=self.rho.get(),
            rho_lower_bound=self.rho_lower_bound.duplicate(),
            rho_expand_coefficient=self.rho_expand_coefficient.duplicate(),
            rho_contract_coefficient=self.rho_contract_coefficient.duplicate(),
            success_threshold=self.success_threshold,
            failure_threshold=self.failure_threshold,
            vmax=self._duplicate_vmax(),
            inertia_weight=self.inertia_weight.duplicate(),
            cognitive_acceleration=self.cognitive_acceleration.duplicate(),
            social_acceleration=self.social_acceleration.duplicate(),
            guide_selection=self.guide_selection.duplicate(rng),
        )
        copy.success_count = self.success_count
        copy.failure_count = self.failure_count
        copy.old_fitness = self.old_fitness
        return copy
