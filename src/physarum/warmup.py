"""Public warmup helpers for the physarum package.

Tools and long-running callers can prime the Numba kernels before the first
timed frame. Kernels are compiled with `cache=True`, so a warmed process also
leaves compiled artifacts behind for the next one.
"""
from __future__ import annotations

import logging

from physarum import kernels
from physarum.engine import PhysarumEngine

logger = logging.getLogger(__name__)


def run_global_warmup(agent_count: int = 2048, width: int = 64, height: int = 64) -> PhysarumEngine:
    """Compile every kernel and run one frame on a throwaway engine."""
    kernels.compile_numba_kernels()
    engine = PhysarumEngine(agent_count=agent_count)
    engine.initialize(width, height)
    engine.step(sources=[(width / 2, height / 2, True)],
                interaction_points=[(width / 2, height / 2, 1.0, 0.0)])
    logger.info("numba warmup complete (%d agents, %dx%d field)", engine.agent_count, width, height)
    return engine
