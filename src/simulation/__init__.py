"""Simulation package shim.

Exposes the driver at `src.simulation` so callers can write
`from src.simulation import Simulation`.
"""
from .simulation import Simulation, SimulationConfig, sweep

__all__ = ["Simulation", "SimulationConfig", "sweep"]
