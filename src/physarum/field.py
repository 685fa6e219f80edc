"""The trail field: a dense H x W grid of 4 float32 channels.

Cells are addressed as ``buffer[y, x, channel]``. By default the field keeps
two buffers and every pass reads one and writes the other, swapping when the
pass ends, so no work-item ever reads a cell another work-item is writing in
the same pass. With ``double_buffer=False`` a single buffer is both source
and target, which reproduces the aliasing of a shared read/write surface.
"""
import logging
import numbers
from typing import Tuple

import numpy as np

from physarum.config import FIELD_LIMITS
from physarum.errors import AllocationError

logger = logging.getLogger(__name__)


def _check_dimension(name, value) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise AllocationError(f"field {name} must be an integer, got {value!r}")
    value = int(value)
    if value < FIELD_LIMITS['min_dimension'] or value > FIELD_LIMITS['max_dimension']:
        raise AllocationError(
            f"field {name} {value} outside [{FIELD_LIMITS['min_dimension']}, {FIELD_LIMITS['max_dimension']}]")
    return value


class TrailField:
    def __init__(self, width: int, height: int, double_buffer: bool = True):
        self.double_buffer = bool(double_buffer)
        self._front = None
        self._back = None
        self.allocate(width, height)

    def allocate(self, width: int, height: int) -> None:
        """(Re)allocate zeroed buffers. Invalid sizes leave the current buffers untouched."""
        width = _check_dimension('width', width)
        height = _check_dimension('height', height)
        shape = (height, width, FIELD_LIMITS['channels'])
        try:
            front = np.zeros(shape, dtype=np.float32)
            back = np.zeros(shape, dtype=np.float32) if self.double_buffer else front
        except MemoryError as e:
            raise AllocationError(f"could not allocate a {width}x{height} field") from e
        self._front = front
        self._back = back
        logger.info("trail field allocated: %sx%s (double_buffer=%s)", width, height, self.double_buffer)

    def clear(self) -> None:
        self._front.fill(0.0)
        if self.double_buffer:
            self._back.fill(0.0)

    @property
    def width(self) -> int:
        return self._front.shape[1]

    @property
    def height(self) -> int:
        return self._front.shape[0]

    @property
    def shape(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def data(self) -> np.ndarray:
        """Read-only view of the buffer holding the latest completed pass."""
        view = self._front.view()
        view.flags.writeable = False
        return view

    def begin_pass(self, carry: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """Return ``(src, dst)`` for the next pass.

        ``carry`` copies the source into the target first, for passes that
        only write some cells (agent deposits).
        """
        if self.double_buffer and carry:
            np.copyto(self._back, self._front)
        return self._front, self._back

    def end_pass(self) -> None:
        if self.double_buffer:
            self._front, self._back = self._back, self._front

    def load(self, values: np.ndarray) -> None:
        """Overwrite the current buffer, e.g. to seed a pattern; shape must match."""
        values = np.asarray(values, dtype=np.float32)
        if values.shape != self._front.shape:
            raise AllocationError(f"expected field data of shape {self._front.shape}, got {values.shape}")
        np.copyto(self._front, values)
