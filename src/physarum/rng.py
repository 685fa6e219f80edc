"""Stateless hash-based randomness shared by every kernel.

Each agent derives its random numbers from its own index (and, where needed,
its position or a per-frame seed) through `hash_u32`, so no RNG state is
shared between parallel work-items. The arithmetic is done on 64-bit
unsigned integers masked back to 32 bits: the result is identical whether a
function runs compiled inside a kernel or is called from the interpreter.

Note: `unit_disk_sample` squares the uniform radius sample instead of taking
its square root, which concentrates points toward the disk centre. The
initial population shape depends on that bias.
"""
import math

import numba
import numpy as np

_MASK = np.uint64(0xFFFFFFFF)
_SALT = np.uint64(2447636419)
_MULTIPLIER = np.uint64(2654435769)
_SHIFT = np.uint64(16)
_UINT_MAX = 4294967295.0

TWO_PI = 2.0 * math.pi


@numba.jit(nopython=True, cache=True)
def hash_u32(seed):
    """Three-round xor-shift / multiply avalanche of a 32-bit seed."""
    s = np.uint64(seed) & _MASK
    s = s ^ _SALT
    s = (s * _MULTIPLIER) & _MASK
    s = s ^ (s >> _SHIFT)
    s = (s * _MULTIPLIER) & _MASK
    s = s ^ (s >> _SHIFT)
    s = (s * _MULTIPLIER) & _MASK
    return s


@numba.jit(nopython=True, cache=True)
def random_fraction(h):
    """Map a hash value onto [0, 1]."""
    return np.float64(h) / _UINT_MAX


@numba.jit(nopython=True, cache=True)
def unit_disk_sample_next(seed):
    """Sample the unit disk and return (x, y, angle + pi, next_seed).

    The returned seed is the last hash drawn, so consecutive samples can be
    chained without reusing values.
    """
    arg_seed = hash_u32(seed)
    abs_seed = hash_u32(arg_seed)
    arg = random_fraction(arg_seed) * TWO_PI
    root = random_fraction(abs_seed)
    radius = root * root
    return radius * math.cos(arg), radius * math.sin(arg), arg + math.pi, abs_seed


@numba.jit(nopython=True, cache=True)
def unit_disk_sample(seed):
    x, y, angle, _ = unit_disk_sample_next(seed)
    return x, y, angle


@numba.jit(nopython=True, cache=True)
def position_seed(x, y, width, index):
    """Seed for an agent's per-frame draws, mixing its cell key and index hash."""
    key = y * width + x
    if key < 0.0:
        key = 0.0
    return hash_u32((np.uint64(np.int64(key)) + hash_u32(index)) & _MASK)
