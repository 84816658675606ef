"""
Guide selection strategies.

The guide is the vector a particle's social term pulls it towards. Standard
PSO uses the neighbourhood best; VEPSO replaces it with the best position
published by another sub-population, which is how swarms optimising
different sub-objectives inform one another.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import numpy as np

from .knowledge_transfer import KnowledgeTransferStrategy, RingKnowledgeTransfer

if TYPE_CHECKING:
    from ..algorithms.context import IterationContext
    from ..swarm.particle import Particle


class GuideSelectionStrategy(ABC):
    @abstractmethod
    def select_guide(self, particle: "Particle", context: "IterationContext") -> np.ndarray:
        """Return the guide vector for ``particle``."""

    @abstractmethod
    def duplicate(self, rng: np.random.Generator | None = None) -> "GuideSelectionStrategy":
        pass


class NeighbourhoodBestGuideSelection(GuideSelectionStrategy):
    """Guide is the best position of the particle's neighbourhood best."""

    def select_guide(self, particle: "Particle", context: "IterationContext") -> np.ndarray:
        return particle.neighbourhood_best.best_position

    def duplicate(self, rng: np.random.Generator | None = None) -> "NeighbourhoodBestGuideSelection":
        return NeighbourhoodBestGuideSelection()


class VEPSOGuideSelection(GuideSelectionStrategy):
    """
    Vector-evaluated guide selection.

    Reads the publication slots of all sub-populations from the iteration
    context and delegates to a knowledge transfer strategy to pick one.

    References:
        K. E. Parsopoulos, D. K. Tasoulis and M. N. Vrahatis, "Multiobjective
        Optimization using Parallel Vector Evaluated Particle Swarm
        Optimization", IASTED AIA 2004.
    """

    def __init__(self, knowledge_transfer: KnowledgeTransferStrategy | None = None):
        self.knowledge_transfer = knowledge_transfer or RingKnowledgeTransfer()

    def select_guide(self, particle: "Particle", context: "IterationContext") -> np.ndarray:
        if context.publications is None:
            raise RuntimeError(
                "VEPSO guide selection requires a multi-population context"
            )
        return self.knowledge_transfer.transfer_knowledge(
            context.publications, context.population_index
        )

    def duplicate(self, rng: np.random.Generator | None = None) -> "VEPSOGuideSelection":
        return VEPSOGuideSelection(self.knowledge_transfer.duplicate(rng))
