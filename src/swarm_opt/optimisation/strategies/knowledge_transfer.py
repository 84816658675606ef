"""
Knowledge transfer between VEPSO sub-populations.

Each sub-population publishes an immutable snapshot of its best position
into its own ``PublicationSlot`` at the end of every step. Other
sub-populations only ever read these snapshots, never a particle's live
position vector, so sub-populations can be stepped on separate threads.
Reads may be one step stale.

A knowledge transfer strategy picks which slot a particle reads its guide
from:

- ``RingKnowledgeTransfer``: the neighbour ``(index + offset) mod n``.
- ``RandomKnowledgeTransfer``: uniform choice among the other slots, drawn
  from an injected, seedable generator.
"""

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np

from ..problems.fitness import Fitness


@dataclass(frozen=True, eq=False)
class PublishedBest:
    """Read-only snapshot of a sub-population's best position."""

    position: np.ndarray
    fitness: Fitness
    iteration: int

    def __post_init__(self):
        position = np.array(self.position, dtype=float)
        position.setflags(write=False)
        object.__setattr__(self, "position", position)


class PublicationSlot:
    """Single-writer, multi-reader holder for the latest ``PublishedBest``."""

    def __init__(self, name: str = ""):
        self.name = name
        self._lock = threading.Lock()
        self._snapshot: PublishedBest | None = None

    def publish(self, snapshot: PublishedBest) -> None:
        with self._lock:
            self._snapshot = snapshot

    def read(self) -> PublishedBest | None:
        with self._lock:
            return self._snapshot

    def __repr__(self):
        return f"PublicationSlot({self.name!r}, snapshot={self._snapshot!r})"


class KnowledgeTransferStrategy(ABC):
    """Selects a sub-population and extracts its published best position."""

    @abstractmethod
    def select_index(self, n_populations: int, source_index: int | None) -> int:
        """Index of the slot to read from."""

    def transfer_knowledge(self, publications: Sequence[PublicationSlot],
                           source_index: int | None = None) -> np.ndarray:
        if not publications:
            raise ValueError("No sub-populations to transfer knowledge from")

        index = self.select_index(len(publications), source_index)
        snapshot = publications[index].read()
        if snapshot is None:
            raise RuntimeError(
                f"Sub-population {index} has not published a best position yet"
            )
        return snapshot.position

    @abstractmethod
    def duplicate(self, rng: np.random.Generator | None = None) -> "KnowledgeTransferStrategy":
        """Independent copy; ``rng`` replaces the shared generator when given."""


class RingKnowledgeTransfer(KnowledgeTransferStrategy):
    """Read from the sub-population ``offset`` steps further round the ring."""

    def __init__(self, offset: int = 1):
        self.offset = offset

    def select_index(self, n_populations: int, source_index: int | None) -> int:
        if source_index is None:
            raise ValueError("Ring knowledge transfer needs the source population index")
        return (source_index + self.offset) % n_populations

    def duplicate(self, rng: np.random.Generator | None = None) -> "RingKnowledgeTransfer":
        return RingKnowledgeTransfer(self.offset)


class RandomKnowledgeTransfer(KnowledgeTransferStrategy):
    """
    Read from a uniformly chosen sub-population other than the source.

    The source's own slot is only chosen when it is the only one. The
    generator is shared by reference on ``duplicate()`` unless a new one is
    supplied.
    """

    def __init__(self, rng: np.random.Generator):
        if rng is None:
            raise ValueError("RandomKnowledgeTransfer requires an explicit random generator")
        self.rng = rng

    def select_index(self, n_populations: int, source_index: int | None) -> int:
        candidates = [i for i in range(n_populations) if i != source_index]
        if not candidates:
            candidates = [source_index]
        return candidates[int(self.rng.integers(len(candidates)))]

    def duplicate(self, rng: np.random.Generator | None = None) -> "RandomKnowledgeTransfer":
        return RandomKnowledgeTransfer(rng if rng is not None else self.rng)


def create_knowledge_transfer(name: str, rng: np.random.Generator) -> KnowledgeTransferStrategy:
    if name == "ring":
        return RingKnowledgeTransfer()
    if name == "random":
        return RandomKnowledgeTransfer(rng)
    raise ValueError(f"Unknown knowledge transfer strategy: {name}")
