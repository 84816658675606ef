"""Per-iteration context passed explicitly to the swarm strategies."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..strategies.knowledge_transfer import PublicationSlot
    from ..swarm.particle import Particle


@dataclass(frozen=True)
class IterationContext:
    """
    Everything a strategy may consult beyond the particle itself.

    Attributes:
        best_particle: The population's best particle for this update. GC
            tracks adaptive state only for this particle.
        iteration: Zero-based iteration number of the population.
        progress: Run progress in [0, 1], drives adaptive control parameters.
        publications: Publication slots of all sub-populations, or None
            outside a multi-population context.
        population_index: Index of the particle's own sub-population.
    """

    best_particle: "Particle | None"
    iteration: int = 0
    progress: float = 0.0
    publications: "Sequence[PublicationSlot] | None" = None
    population_index: int | None = None
