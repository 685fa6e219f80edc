"""
engine.py

Facade over the frame passes for callers that own a render loop.

Core Responsibilities:
----------------------
1. Field lifecycle:
   • `initialize(width, height)` (re)allocates and zeroes the trail field
     whenever the presentation surface changes size, and marks the
     population uninitialized so agents are re-scattered on the next frame.

2. Population lifecycle:
   • `set_agent_count(n)` resizes the population between frames.
   • `reset_agents()` re-scatters the current population without resizing.

3. Per-frame stepping:
   • `step(...)` validates the config, clamps the delta and runs the ordered
     passes of `physarum.passes`.

Usage Example:
--------------
    from physarum import PhysarumEngine, SimulationConfig, SourceMarker

    engine = PhysarumEngine(agent_count=100_000)
    engine.initialize(1280, 720)
    for _ in range(600):
        engine.step(sources=[SourceMarker(640, 360, attract=True)], dt=1 / 60)
    image = engine.field        # read-only (H, W, 4) float32 view

Notes:
------
– The engine does no timing of its own; use `physarum.config.FrameClock`
  in the caller if frames are paced by wall-clock time.
– All methods must be called from the thread that owns the frame loop.
"""
import logging
from dataclasses import replace
from typing import Iterable, Optional

import numpy as np
from numba.core.errors import NumbaError

from physarum import kernels, passes
from physarum.config import POPULATION_LIMITS, SimulationConfig
from physarum.errors import AllocationError, DispatchError
from physarum.field import TrailField
from physarum.population import AgentPopulation
from physarum.species import SpeciesState

logger = logging.getLogger(__name__)


class PhysarumEngine:
    def __init__(self, agent_count: int = POPULATION_LIMITS['default_agents'],
                 config: Optional[SimulationConfig] = None, double_buffer: bool = True):
        self.config = (config or SimulationConfig.default()).validated()
        self.double_buffer = double_buffer
        self._population = AgentPopulation(agent_count)
        self._species = SpeciesState(self.config.species_count)
        self.context: Optional[passes.SimulationContext] = None

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------
    def initialize(self, width: int, height: int) -> None:
        """Allocate a zeroed width x height field; agents re-scatter on the next step."""
        try:
            kernels.compile_numba_kernels()
        except NumbaError as e:
            raise DispatchError(f"kernel compilation failed: {e}") from e

        if self.context is None:
            trail_field = TrailField(width, height, double_buffer=self.double_buffer)
            self.context = passes.SimulationContext(self._population, trail_field, self._species)
        else:
            self.context.field.allocate(width, height)
        self._population.invalidate()
        self._species.invalidate()

    def set_agent_count(self, requested: int) -> int:
        actual = self._population.resize(requested)
        self._species.invalidate()
        return actual

    def set_species_count(self, count: int) -> None:
        self.set_config(replace(self.config, species_count=count))

    def set_config(self, config: SimulationConfig) -> None:
        self.config = config.validated()

    def reset_agents(self) -> None:
        self._population.invalidate()
        self._species.invalidate()

    def clear_field(self) -> None:
        self._require_context().field.clear()

    # ------------------------------------------------------------------
    # stepping
    # ------------------------------------------------------------------
    def step(self, config: Optional[SimulationConfig] = None, sources: Iterable = (),
             interaction_points: Iterable = (), dt: Optional[float] = None,
             seed: Optional[int] = None) -> None:
        """Advance one frame; `config` overrides the stored config for this frame only."""
        context = self._require_context()
        passes.step(context, config if config is not None else self.config,
                    sources, interaction_points, dt, seed)

    def run(self, frames: int, dt: Optional[float] = None, **kwargs) -> None:
        for _ in range(int(frames)):
            self.step(dt=dt, **kwargs)

    # ------------------------------------------------------------------
    # read access
    # ------------------------------------------------------------------
    @property
    def field(self) -> np.ndarray:
        return self._require_context().field.data

    @property
    def population(self) -> AgentPopulation:
        return self._population

    @property
    def species(self) -> SpeciesState:
        return self._species

    @property
    def agent_count(self) -> int:
        return self._population.count

    @property
    def frame_index(self) -> int:
        return 0 if self.context is None else self.context.frame_index

    def _require_context(self) -> passes.SimulationContext:
        if self.context is None:
            raise AllocationError("trail field not allocated; call initialize(width, height) first")
        return self.context
