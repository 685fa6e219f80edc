"""Exception taxonomy for the simulation engine.

Allocation and configuration problems are recoverable: the engine raises
before touching existing state, so the caller can fix the request and try
again. Dispatch problems mean the current frame was not advanced.
"""


class PhysarumError(Exception):
    """Base class for all engine errors."""


class AllocationError(PhysarumError):
    """A field or population buffer could not be sized as requested."""


class ConfigurationError(PhysarumError, ValueError):
    """A simulation parameter is outside its domain."""


class DispatchError(PhysarumError, RuntimeError):
    """A kernel failed to compile or run; the frame was not advanced."""
