"""Swarm optimisation: problems, particles, strategies, algorithms and runners."""
