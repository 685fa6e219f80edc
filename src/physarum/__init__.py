"""Physarum slime-mould trail simulation engine.

Agents sense a 4-channel trail field, steer toward their own species' signal,
move and deposit; the field then blurs and evaporates. Kernels are compiled
with Numba and run data-parallel over agents and field rows.
"""
from physarum.config import FrameClock, SimulationConfig, clamp_frame_delta
from physarum.engine import PhysarumEngine
from physarum.errors import AllocationError, ConfigurationError, DispatchError, PhysarumError
from physarum.markers import InteractionPoint, SourceMarker
from physarum.passes import SimulationContext, step
from physarum.species import SpeciesPolicy

__all__ = [
    'AllocationError',
    'ConfigurationError',
    'DispatchError',
    'FrameClock',
    'InteractionPoint',
    'PhysarumEngine',
    'PhysarumError',
    'SimulationConfig',
    'SimulationContext',
    'SourceMarker',
    'SpeciesPolicy',
    'clamp_frame_delta',
    'step',
]

__version__ = '0.1.0'
