"""Per-frame external inputs: source markers and interaction points.

Both are transient. The caller supplies a fresh list each frame and the
engine packs it into a small float64 array for the kernels, dropping
anything beyond the per-frame cap.
"""
import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Union

import numpy as np

from physarum.config import INTERACTION
from physarum.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceMarker:
    """Attracting (food) or repelling point applied during trail diffusion."""
    x: float
    y: float
    attract: bool = True


@dataclass(frozen=True)
class InteractionPoint:
    """Point agents may be teleported to, heading along (dx, dy)."""
    x: float
    y: float
    dx: float
    dy: float

    @property
    def direction(self) -> float:
        return math.atan2(self.dy, self.dx)


SourceLike = Union[SourceMarker, Sequence[float]]
PointLike = Union[InteractionPoint, Sequence[float]]


def _finite(*values):
    try:
        values = tuple(float(v) for v in values)
    except (TypeError, ValueError):
        raise ConfigurationError(f"marker coordinates must be numbers, got {values}") from None
    if not all(math.isfinite(v) for v in values):
        raise ConfigurationError(f"marker coordinates must be finite, got {values}")
    return values


def _unpack(values, size: int, kind: str):
    try:
        values = tuple(values)
    except TypeError:
        raise ConfigurationError(f"{kind} must be a sequence of {size} values, got {values!r}") from None
    if len(values) != size:
        raise ConfigurationError(f"{kind} must have {size} values, got {len(values)}: {values!r}")
    return values


def _source_row(source: SourceLike):
    if isinstance(source, SourceMarker):
        return _finite(source.x, source.y) + (1.0 if source.attract else -1.0,)
    x, y, attract = _unpack(source, 3, 'source marker')
    return _finite(x, y) + (1.0 if attract else -1.0,)


def _point_row(point: PointLike):
    if isinstance(point, InteractionPoint):
        return _finite(point.x, point.y, point.dx, point.dy)
    return _finite(*_unpack(point, 4, 'interaction point'))


def pack_sources(sources: Iterable[SourceLike]) -> np.ndarray:
    """Pack markers into rows of ``[x, y, polarity]``; keeps the most recent entries."""
    sources = [] if sources is None else list(sources)
    cap = INTERACTION['max_sources']
    if len(sources) > cap:
        logger.debug("dropping %d oldest source markers (cap %d)", len(sources) - cap, cap)
        sources = sources[-cap:]
    packed = np.zeros((len(sources), 3), dtype=np.float64)
    for i, source in enumerate(sources):
        packed[i] = _source_row(source)
    return packed


def pack_interaction_points(points: Iterable[PointLike]) -> np.ndarray:
    """Pack points into rows of ``[x, y, dx, dy]``; keeps the first entries."""
    points = [] if points is None else list(points)
    cap = INTERACTION['max_points']
    if len(points) > cap:
        logger.debug("ignoring %d interaction points beyond cap %d", len(points) - cap, cap)
        points = points[:cap]
    packed = np.zeros((len(points), 4), dtype=np.float64)
    for i, point in enumerate(points):
        packed[i] = _point_row(point)
    return packed
