"""Particle swarm optimisation engine with GCPSO and VEPSO support."""

__version__ = "0.1.0"
