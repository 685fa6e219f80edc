"""Agent population storage and its resize lifecycle.

Agents are stored as a structure of arrays (positions, headings, affinity
masks) so the kernels can walk them with `numba.prange` without touching
Python objects. The container never hands out references to individual
agents: `agent(i)` returns a copy.
"""
import logging
import numbers
from typing import NamedTuple, Tuple

import numpy as np

from physarum.config import POPULATION_LIMITS
from physarum.errors import AllocationError

logger = logging.getLogger(__name__)


class AgentRecord(NamedTuple):
    x: float
    y: float
    heading: float
    affinity: Tuple[int, int, int, int]


def round_agent_count(requested) -> int:
    """Round up to a whole number of work-groups, then clamp to the allowed range.

    The result is a fixed point: rounding an already rounded count returns it
    unchanged.
    """
    if isinstance(requested, bool) or not isinstance(requested, numbers.Integral):
        raise AllocationError(f"agent count must be an integer, got {requested!r}")
    requested = int(requested)
    if requested < 1:
        raise AllocationError(f"agent count must be positive, got {requested}")
    group = POPULATION_LIMITS['group_size']
    rounded = -(-requested // group) * group
    return min(max(rounded, POPULATION_LIMITS['min_agents']), POPULATION_LIMITS['max_agents'])


def _allocate(count: int):
    try:
        positions = np.zeros((count, 2), dtype=np.float32)
        headings = np.zeros(count, dtype=np.float32)
        affinity = np.zeros((count, 4), dtype=np.int8)
    except MemoryError as e:
        raise AllocationError(f"could not allocate {count} agents") from e
    return positions, headings, affinity


class AgentPopulation:
    """Owner of the agent arrays.

    `initialized` is False after every resize; the next frame must run the
    population initializer before any other pass touches the agents.
    """

    def __init__(self, requested: int = POPULATION_LIMITS['default_agents']):
        self.count = round_agent_count(requested)
        self.positions, self.headings, self.affinity = _allocate(self.count)
        self.initialized = False

    def resize(self, requested: int) -> int:
        count = round_agent_count(requested)
        positions, headings, affinity = _allocate(count)
        logger.info("agent population resized: requested=%s actual=%s", requested, count)
        self.count = count
        self.positions = positions
        self.headings = headings
        self.affinity = affinity
        self.initialized = False
        return count

    def invalidate(self) -> None:
        """Keep the buffers but force re-initialization on the next frame."""
        self.initialized = False

    def mark_initialized(self) -> None:
        self.initialized = True

    def agent(self, index: int) -> AgentRecord:
        if not 0 <= index < self.count:
            raise IndexError(f"agent index {index} outside [0, {self.count})")
        x, y = self.positions[index]
        return AgentRecord(float(x), float(y), float(self.headings[index]),
                           tuple(int(v) for v in self.affinity[index]))

    def __len__(self) -> int:
        return self.count
