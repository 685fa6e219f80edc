"""Frame passes over an explicit simulation context.

A frame runs, strictly in order:

    1. population initializer   (only when the population is uninitialized)
    2. species reassignment     (only when the requested species count changed)
    3. interaction injection    (only when interaction points were supplied)
    4. agent update             (sense, steer, move, deposit)
    5. trail diffusion / decay / source injection

Each kernel call returns only after all of its work-items finished, which is
the barrier between passes. Everything that can be rejected (config, delta,
markers) is validated before the first pass runs, so a rejected frame leaves
the context untouched. After validation the agent arrays and the current
field buffer are copied; if a kernel fails part-way, the copies are written
back and the frame is not counted.
"""
import logging
import dataclasses
from dataclasses import dataclass
from typing import Iterable, Optional

import numpy as np
from numba.core.errors import NumbaError

from physarum import kernels
from physarum.config import POPULATION_LIMITS, SimulationConfig, clamp_frame_delta
from physarum.errors import DispatchError
from physarum.field import TrailField
from physarum.markers import pack_interaction_points, pack_sources
from physarum.population import AgentPopulation
from physarum.species import SpeciesPolicy, SpeciesState

logger = logging.getLogger(__name__)

_SEED_MASK = 0xFFFFFFFF


@dataclass
class SimulationContext:
    """Everything a frame reads and mutates, passed explicitly to each pass."""
    population: AgentPopulation
    field: TrailField
    species: SpeciesState = dataclasses.field(default_factory=SpeciesState)
    frame_index: int = 0

    @classmethod
    def create(cls, width: int, height: int,
               agent_count: int = POPULATION_LIMITS['default_agents'],
               species_count: int = 1, double_buffer: bool = True) -> 'SimulationContext':
        return cls(population=AgentPopulation(agent_count),
                   field=TrailField(width, height, double_buffer=double_buffer),
                   species=SpeciesState(species_count))


def initialize_population(context: SimulationContext) -> None:
    """Scatter agents into a disk centred on the field and assign species masks."""
    population = context.population
    policy = context.species.requested
    kernels.init_agents(population.positions, population.headings, population.affinity,
                        context.field.width, context.field.height, policy.value)
    population.mark_initialized()
    context.species.mark_applied(policy)
    logger.info("initialized %d agents on %sx%s field (%s)", population.count,
                context.field.width, context.field.height, policy.name)


def reassign_species(context: SimulationContext) -> bool:
    """Relabel agents if the requested species count changed; returns True when it ran."""
    state = context.species
    if not state.needs_reassignment:
        return False
    previous = state.current
    kernels.update_species(context.population.affinity, state.requested.value)
    state.mark_applied(state.requested)
    state.transitions += 1
    logger.info("species reassigned: %s -> %s", previous.name, state.requested.name)
    return True


def apply_interactions(context: SimulationContext, points: np.ndarray, seed: Optional[int] = None) -> None:
    if points.shape[0] == 0:
        return
    if seed is None:
        seed = context.frame_index
    population = context.population
    kernels.perform_interactions(population.positions, population.headings, points,
                                 int(seed) & _SEED_MASK)


def update_agents(context: SimulationContext, config: SimulationConfig, dt: float) -> None:
    population = context.population
    src, dst = context.field.begin_pass(carry=True)
    kernels.update_agents(population.positions, population.headings, population.affinity,
                          src, dst,
                          float(config.sensor_offset), int(config.sensor_size),
                          float(config.sensor_angle_spacing), float(config.turn_speed),
                          float(config.move_speed), float(config.trail_weight), float(dt))
    context.field.end_pass()


def update_trails(context: SimulationContext, config: SimulationConfig, sources: np.ndarray) -> None:
    src, dst = context.field.begin_pass()
    kernels.update_trails(src, dst, float(config.evaporation_speed), sources,
                          context.species.requested.value)
    context.field.end_pass()


@dataclass
class _Checkpoint:
    """Copies of everything the kernel passes mutate, taken after validation."""
    positions: np.ndarray
    headings: np.ndarray
    affinity: np.ndarray
    field: np.ndarray
    initialized: bool
    species_current: Optional[SpeciesPolicy]
    transitions: int

    @classmethod
    def take(cls, context: SimulationContext) -> '_Checkpoint':
        population = context.population
        return cls(population.positions.copy(), population.headings.copy(),
                   population.affinity.copy(), context.field.data.copy(),
                   population.initialized, context.species.current,
                   context.species.transitions)

    def restore(self, context: SimulationContext) -> None:
        population = context.population
        np.copyto(population.positions, self.positions)
        np.copyto(population.headings, self.headings)
        np.copyto(population.affinity, self.affinity)
        context.field.load(self.field)
        population.initialized = self.initialized
        context.species.current = self.species_current
        context.species.transitions = self.transitions


def step(context: SimulationContext, config: SimulationConfig, sources: Iterable = (),
         interaction_points: Iterable = (), dt: Optional[float] = None,
         seed: Optional[int] = None) -> None:
    """Advance the simulation by one frame."""
    config = config.validated()
    dt = clamp_frame_delta(dt)
    packed_sources = pack_sources(sources)
    packed_points = pack_interaction_points(interaction_points)
    context.species.request(config.species_count)

    checkpoint = _Checkpoint.take(context)
    try:
        if not context.population.initialized:
            initialize_population(context)
        reassign_species(context)
        apply_interactions(context, packed_points, seed)
        update_agents(context, config, dt)
        update_trails(context, config, packed_sources)
    except NumbaError as e:
        checkpoint.restore(context)
        logger.error("frame %d not advanced, agents and field restored: %s", context.frame_index, e)
        raise DispatchError(f"kernel dispatch failed at frame {context.frame_index}: {e}") from e

    logger.debug("frame %d: dt=%.4f agents=%d sources=%d points=%d", context.frame_index, dt,
                 context.population.count, packed_sources.shape[0], packed_points.shape[0])
    context.frame_index += 1
