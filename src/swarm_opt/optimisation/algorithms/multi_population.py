"""
Multi-population context for Vector-Evaluated PSO.

VEPSO runs one sub-swarm per sub-objective. Each sub-swarm is a plain
``PSO`` evaluating a single objective column; its particles draw their
social guide from the best position published by another sub-swarm.

STEP PROTOCOL
=============
1. Every sub-population performs one iteration, reading only the snapshots
   published at the end of the previous step (one-step-stale reads).
2. After all of them finish, every sub-population publishes its new best
   into its own slot.

With ``parallel=True`` step 1 runs on a thread pool, one task per
sub-population. Each sub-population owns its particles and its own random
generator (spawned from one ``SeedSequence``), and only reads immutable
snapshots across the boundary, so parallel and sequential runs produce the
same numbers.
"""

import logging
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from ..problems.base import PymooProblemAdapter
from ..strategies.guide import VEPSOGuideSelection
from ..strategies.knowledge_transfer import (
    PublicationSlot,
    PublishedBest,
    create_knowledge_transfer,
)
from ..strategies.velocity import GCVelocityUpdate, StandardVelocityUpdate
from ..swarm.topology import create_topology
from .iteration import create_iteration_strategy
from .pso import PSO

logger = logging.getLogger(__name__)


class MultiPopulationContext:
    """
    Ordered set of independently stepped sub-populations.

    With ``parallel=True`` one thread pool serves every step; call
    :meth:`close` (or use the context as a ``with`` block) to release it.

    Attributes:
        populations (list[PSO]): One sub-population per sub-objective.
        publications (tuple[PublicationSlot, ...]): One slot per sub-population.
        parallel (bool): Step sub-populations on a thread pool.
        iteration (int): Number of completed steps.
        start_time (float | None): Wall-clock time of :meth:`initialise`.
    """

    def __init__(self, populations: Sequence[PSO], parallel: bool = False,
                 max_workers: int | None = None):
        if not populations:
            raise ValueError("At least one sub-population is required")
        self.populations = list(populations)
        self.publications = tuple(PublicationSlot(pop.name) for pop in self.populations)
        self.parallel = parallel
        self.max_workers = max_workers or len(self.populations)
        self.iteration = 0
        self.start_time: float | None = None
        self._executor: ThreadPoolExecutor | None = None

    def __len__(self):
        return len(self.populations)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    @property
    def n_gen(self) -> int:
        return self.iteration

    def initialise(self) -> None:
        for population in self.populations:
            if not population.initialised:
                population.initialise()
        self.publish()
        self.iteration = 0
        self.start_time = time.time()

    def publish(self) -> None:
        for slot, population in zip(self.publications, self.populations):
            best = population.best_particle()
            slot.publish(PublishedBest(
                position=best.best_position,
                fitness=best.best_fitness,
                iteration=population.iteration,
            ))

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="vepso"
            )
        return self._executor

    def step(self) -> None:
        """Step every sub-population once, then publish all new bests."""
        if self.parallel and len(self.populations) > 1:
            pool = self._pool()
            futures = [
                pool.submit(population.step, self.publications, index)
                for index, population in enumerate(self.populations)
            ]
            for future in futures:
                future.result()
        else:
            for index, population in enumerate(self.populations):
                population.step(self.publications, index)

        self.publish()
        self.iteration += 1

    def close(self) -> None:
        """Shut down the thread pool, if one was started."""
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def published_bests(self) -> list[PublishedBest]:
        return [slot.read() for slot in self.publications]


def create_vepso(
    problem: PymooProblemAdapter,
    pop_size: int,
    seed: int | None,
    knowledge_transfer: str = "ring",
    use_gc: bool = False,
    topology: str = "gbest",
    ring_k: int = 2,
    iteration: str = "synchronous",
    parallel: bool = False,
    max_iterations: int | None = None,
    velocity_scale: float = 0.0,
    velocity_kwargs: dict | None = None,
    gc_kwargs: dict | None = None,
) -> MultiPopulationContext:
    """
    Build a VEPSO context with one sub-population per objective of ``problem``.

    Each sub-population gets its own generator spawned from ``seed``; the
    generator drives initialisation, velocity draws and (for random knowledge
    transfer) the choice of guide population.
    """
    velocity_kwargs = dict(velocity_kwargs or {})
    gc_kwargs = dict(gc_kwargs or {})
    children = np.random.SeedSequence(seed).spawn(problem.n_obj)

    populations = []
    for index, child in enumerate(children):
        rng = np.random.default_rng(child)
        guide = VEPSOGuideSelection(create_knowledge_transfer(knowledge_transfer, rng))
        if use_gc:
            strategy = GCVelocityUpdate(rng, guide_selection=guide, **gc_kwargs, **velocity_kwargs)
        else:
            strategy = StandardVelocityUpdate(rng, guide_selection=guide, **velocity_kwargs)

        populations.append(PSO(
            problem.for_objective(index),
            strategy,
            rng,
            pop_size=pop_size,
            topology=create_topology(topology, ring_k),
            iteration_strategy=create_iteration_strategy(iteration),
            velocity_scale=velocity_scale,
            max_iterations=max_iterations,
            name=f"objective_{index}",
        ))

    logger.info("Created VEPSO context: %d sub-populations x %d particles, %s knowledge transfer",
                len(populations), pop_size, knowledge_transfer)
    return MultiPopulationContext(populations, parallel=parallel)
