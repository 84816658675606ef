"""
Configuration management for swarm optimisation.

This module provides structured, validated configuration for the PSO, GCPSO
and VEPSO optimisers, covering algorithm parameters, termination criteria,
monitoring options and multi-run capabilities.
"""

from .config_manager import (
    GCConfig,
    MonitoringConfig,
    MultiRunConfig,
    OptimizationConfigManager,
    ProblemConfig,
    PSOConfig,
    TerminationConfig,
    VEPSOConfig,
)

__all__ = [
    "ProblemConfig",
    "PSOConfig",
    "GCConfig",
    "VEPSOConfig",
    "TerminationConfig",
    "MonitoringConfig",
    "MultiRunConfig",
    "OptimizationConfigManager",
]
