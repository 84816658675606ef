"""Swarm algorithms and iteration policies."""

from .context import IterationContext
from .iteration import (
    AsynchronousIteration,
    IterationStrategy,
    SynchronousIteration,
    create_iteration_strategy,
)
from .multi_population import MultiPopulationContext, create_vepso
from .pso import PSO

__all__ = [
    "IterationContext",
    "IterationStrategy",
    "SynchronousIteration",
    "AsynchronousIteration",
    "create_iteration_strategy",
    "PSO",
    "MultiPopulationContext",
    "create_vepso",
]
