"""Particles and swarm topologies."""

from .particle import Particle
from .topology import GBestTopology, LBestTopology, Topology, create_topology

__all__ = [
    "Particle",
    "Topology",
    "GBestTopology",
    "LBestTopology",
    "create_topology",
]
