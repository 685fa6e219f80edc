"""Species affinity masks and the lazy reassignment state machine.

An agent's affinity is a 4-channel 0/1 mask. The first three channels say
which trail colour the agent deposits and follows; the fourth is always set
so the deposit keeps the pixel layout uniform. Masks are a pure function of
the agent index and the species count, which lets the initializer and the
reassignment pass share one rule:

    1 species -> (0, 1, 1, 1) for every agent
    2 species -> (0, 0, 1, 1) for even indices, (0, 1, 0, 1) for odd ones
    3 species -> index % 3 selects exactly one of the first three channels
"""
import logging
from enum import Enum
from typing import Optional, Tuple

import numba

from physarum.errors import ConfigurationError

logger = logging.getLogger(__name__)


@numba.jit(nopython=True, cache=True)
def species_mask(count, index):
    m0 = 0
    m1 = 1
    m2 = 1
    if count == 2:
        m1 = index % 2
        m2 = 1 - m1
    elif count == 3:
        slot = index % 3
        m0 = 1 if slot == 2 else 0
        m1 = 1 if slot == 1 else 0
        m2 = 1 if slot == 0 else 0
    return m0, m1, m2, 1


class SpeciesPolicy(Enum):
    MONO = 1
    BINARY = 2
    TERNARY = 3

    @classmethod
    def from_count(cls, count: int) -> 'SpeciesPolicy':
        try:
            return cls(int(count))
        except (TypeError, ValueError):
            raise ConfigurationError(f"unsupported species count: {count!r}") from None

    def mask(self, index: int) -> Tuple[int, int, int, int]:
        return tuple(int(v) for v in species_mask(self.value, int(index)))


class SpeciesState:
    """Two-state machine tracking which species count the agents carry.

    `current` is the count last written into the affinity masks, or None
    when the population has been (re)allocated and carries nothing yet.
    A reassignment pass is due only when `requested` differs from it.
    """

    def __init__(self, requested: int = 1):
        self.requested = SpeciesPolicy.from_count(requested)
        self.current: Optional[SpeciesPolicy] = None
        self.transitions = 0

    def request(self, count: int) -> None:
        self.requested = SpeciesPolicy.from_count(count)

    @property
    def needs_reassignment(self) -> bool:
        return self.current is not None and self.current is not self.requested

    def mark_applied(self, policy: SpeciesPolicy) -> None:
        self.current = policy

    def invalidate(self) -> None:
        self.current = None
