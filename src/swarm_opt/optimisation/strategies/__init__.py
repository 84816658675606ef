"""
Pluggable swarm strategies: velocity update, guide selection and
knowledge transfer between sub-populations.
"""

from .guide import GuideSelectionStrategy, NeighbourhoodBestGuideSelection, VEPSOGuideSelection
from .knowledge_transfer import (
    KnowledgeTransferStrategy,
    PublicationSlot,
    PublishedBest,
    RandomKnowledgeTransfer,
    RingKnowledgeTransfer,
    create_knowledge_transfer,
)
from .velocity import GCVelocityUpdate, StandardVelocityUpdate, VelocityUpdateStrategy

__all__ = [
    "VelocityUpdateStrategy",
    "StandardVelocityUpdate",
    "GCVelocityUpdate",
    "GuideSelectionStrategy",
    "NeighbourhoodBestGuideSelection",
    "VEPSOGuideSelection",
    "KnowledgeTransferStrategy",
    "RingKnowledgeTransfer",
    "RandomKnowledgeTransfer",
    "PublicationSlot",
    "PublishedBest",
    "create_knowledge_transfer",
]
