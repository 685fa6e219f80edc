# -*- coding: utf-8 -*-

"""
physarum/config.py

This module centralizes the tunable parameters and fixed constants of the
Physarum trail simulation. Keeping them in one place means the kernels, the
engine and the headless runner all agree on limits and defaults.

Contents:
---------
1. POPULATION_LIMITS:
   - Work-group size used for rounding agent counts and the allowed range
     of population sizes.

2. FIELD_LIMITS:
   - Allowed trail-field dimensions and the pixel layout (4 float channels).

3. FRAME_TIMING:
   - Nominal first-frame delta and the largest delta a single step may
     integrate over (no slower than 20 updates per second).

4. INTERACTION:
   - Teleport probability and jitter radius used when agents are pulled toward
     interaction points, plus per-frame caps on markers.

5. SimulationConfig / PARAMETER_RANGES:
   - The per-frame parameter snapshot and the closed ranges its numeric
     fields are clamped into before reaching a kernel.

Usage:
------
    from physarum.config import SimulationConfig, clamp_frame_delta

    cfg = SimulationConfig.default().validated()
    dt = clamp_frame_delta(None)     # 1/60 on the first frame
"""
import logging
import math
import time
from dataclasses import asdict, dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional

from physarum.errors import ConfigurationError

logger = logging.getLogger(__name__)

# ───────────────────────────────────────────────────────────────────────────────
# 1) AGENT POPULATION
# ───────────────────────────────────────────────────────────────────────────────
POPULATION_LIMITS = {
    'group_size': 256,             # agents per parallel work-group
    'min_agents': 1 << 10,         # 1024 agents
    'max_agents': 1 << 24,         # 16_777_216 agents
    'default_agents': 100_000,     # initial population size
}

# ───────────────────────────────────────────────────────────────────────────────
# 2) TRAIL FIELD
# ───────────────────────────────────────────────────────────────────────────────
FIELD_LIMITS = {
    'min_dimension': 1,            # cells
    # float32 agent positions keep w - BOUNDARY_EPSILON strictly below w up to here
    'max_dimension': 16384,        # cells
    'channels': 4,                 # r, g, b species channels + alpha held at 1
}

# ───────────────────────────────────────────────────────────────────────────────
# 3) FRAME TIMING (seconds)
# ───────────────────────────────────────────────────────────────────────────────
FRAME_TIMING = {
    'default_dt': 1.0 / 60.0,      # used when no elapsed time is known
    'max_dt': 1.0 / 20.0,          # stalls longer than this are clipped
}

# ───────────────────────────────────────────────────────────────────────────────
# 4) INTERACTIONS AND SOURCES
# ───────────────────────────────────────────────────────────────────────────────
INTERACTION = {
    'probability': 0.0001,         # per agent, per point, per frame
    'jitter_radius': 10.0,         # field units, landing disk inside a +-10 box
    'max_points': 256,             # interaction points honoured per frame
    'max_sources': 256,            # source markers honoured per frame
}

BOUNDARY_EPSILON = 0.01            # agents are clamped to [0, dim - eps]
EVAPORATION_FLOOR = 0.01           # smallest per-pass retention factor
SOURCE_RADIUS_FRACTION = 0.1       # source radius = fraction * min(w, h)
REPEL_SOFTNESS = 0.2               # repelling markers leave max(d - 0.2, 0)

# ───────────────────────────────────────────────────────────────────────────────
# 5) SIMULATION PARAMETERS
# ───────────────────────────────────────────────────────────────────────────────
PARAMETER_RANGES = {
    'sensor_offset': (0.0, 512.0),              # field units
    'sensor_size': (1, 16),                     # cells, window side is 2n-1
    'sensor_angle_spacing': (0.0, math.pi),     # radians
    'turn_speed': (0.0, 1000.0),                # radians / s
    'evaporation_speed': (0.001, 0.999),        # fraction removed per pass
    'move_speed': (0.0, 1000.0),                # field units / s
    'trail_weight': (0.001, 1.0),               # deposit intensity
}

SPECIES_COUNTS = (1, 2, 3)


@dataclass(frozen=True)
class SimulationConfig:
    """Immutable parameter snapshot consumed once per frame."""
    sensor_offset: float = 15.0
    sensor_size: int = 1
    sensor_angle_spacing: float = 0.2 * math.pi
    turn_speed: float = 50.0
    evaporation_speed: float = 0.5
    move_speed: float = 60.0
    trail_weight: float = 1.0
    species_count: int = 1

    @classmethod
    def default(cls) -> 'SimulationConfig':
        return cls()

    def validated(self) -> 'SimulationConfig':
        """Return a copy safe to hand to the kernels.

        Numeric parameters are clamped into PARAMETER_RANGES (with a warning);
        non-numeric or non-finite values and unsupported species counts raise
        ConfigurationError.
        """
        if isinstance(self.species_count, bool) or self.species_count not in SPECIES_COUNTS:
            raise ConfigurationError(
                f"species_count must be one of {SPECIES_COUNTS}, got {self.species_count!r}")

        changes: Dict[str, Any] = {}
        for name, (lo, hi) in PARAMETER_RANGES.items():
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"{name} must be numeric, got {value!r}")
            if not math.isfinite(value):
                raise ConfigurationError(f"{name} must be finite, got {value!r}")
            clamped = min(max(value, lo), hi)
            if name == 'sensor_size':
                clamped = int(clamped)
            else:
                clamped = float(clamped)
            if clamped != value:
                logger.warning("config %s=%r outside [%s, %s]; clamped to %r", name, value, lo, hi, clamped)
            changes[name] = clamped
        changes['species_count'] = int(self.species_count)
        return replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Export parameters as a plain dictionary for external persistence."""
        return asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> 'SimulationConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(values) - known
        if unknown:
            raise ConfigurationError(f"unknown configuration keys: {sorted(unknown)}")
        return cls(**dict(values))


def clamp_frame_delta(dt: Optional[float]) -> float:
    """Return the delta a step should integrate over.

    A missing, non-finite or non-positive delta falls back to the nominal
    1/60 s; anything longer than 1/20 s is clipped.
    """
    if dt is None:
        return FRAME_TIMING['default_dt']
    dt = float(dt)
    if not math.isfinite(dt) or dt <= 0.0:
        return FRAME_TIMING['default_dt']
    return min(dt, FRAME_TIMING['max_dt'])


class FrameClock:
    """Wall-clock frame delta source for callers that pace frames in real time."""

    def __init__(self, clock=time.perf_counter):
        self._clock = clock
        self._previous = None

    def tick(self) -> float:
        now = self._clock()
        if self._previous is None:
            dt = None
        else:
            dt = now - self._previous
        self._previous = now
        return clamp_frame_delta(dt)

    def reset(self) -> None:
        self._previous = None
