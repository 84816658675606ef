"""
Optimization runners for swarm optimisation.

This module provides high-level runners that integrate the configuration
system with the swarm algorithms and benchmark problems.
"""

from .pso_runner import MultiRunResult, OptimizationResult, PSORunner
from .termination import SwarmTermination
from .vepso_runner import VEPSOResult, VEPSORunner

__all__ = [
    'PSORunner',
    'OptimizationResult',
    'MultiRunResult',
    'SwarmTermination',
    'VEPSORunner',
    'VEPSOResult',
]
