"""Numba kernels for the five simulation passes.

Every kernel is a `numba.prange` loop over independent work-items (agents,
or rows of field cells) and takes its read and write buffers explicitly.
When the caller passes the same array for both, the kernel behaves like a
shader reading and writing one surface; work-item ordering is then
unspecified, as on a GPU.

Array contracts (dtypes are fixed so numba compiles one specialization):
    positions  (N, 2) float32     headings  (N,) float32
    affinity   (N, 4) int8        field     (H, W, 4) float32
    sources    (K, 3) float64     points    (M, 4) float64
"""
import logging
import math

import numba
import numpy as np

from physarum.config import (BOUNDARY_EPSILON, EVAPORATION_FLOOR, INTERACTION,
                             REPEL_SOFTNESS, SOURCE_RADIUS_FRACTION)
from physarum.rng import (TWO_PI, hash_u32, position_seed, random_fraction,
                          unit_disk_sample_next)
from physarum.species import species_mask

logger = logging.getLogger(__name__)

_MASK = np.uint64(0xFFFFFFFF)
_PROBABILITY = INTERACTION['probability']
_JITTER_RADIUS = INTERACTION['jitter_radius']


@numba.jit(nopython=True, parallel=True, fastmath=True, cache=True)
def init_agents(positions, headings, affinity, width, height, species_count):
    n = positions.shape[0]
    mid_x = width / 2.0
    mid_y = height / 2.0
    radius = min(width, height) / 2.0
    for i in numba.prange(n):
        idx = np.int64(i)
        x, y, angle, _ = unit_disk_sample_next(np.uint64(idx))
        positions[idx, 0] = x * radius + mid_x
        positions[idx, 1] = y * radius + mid_y
        headings[idx] = angle
        m0, m1, m2, m3 = species_mask(species_count, idx)
        affinity[idx, 0] = m0
        affinity[idx, 1] = m1
        affinity[idx, 2] = m2
        affinity[idx, 3] = m3


@numba.jit(nopython=True, parallel=True, fastmath=True, cache=True)
def update_species(affinity, species_count):
    n = affinity.shape[0]
    for i in numba.prange(n):
        idx = np.int64(i)
        m0, m1, m2, m3 = species_mask(species_count, idx)
        affinity[idx, 0] = m0
        affinity[idx, 1] = m1
        affinity[idx, 2] = m2
        affinity[idx, 3] = m3


@numba.jit(nopython=True, fastmath=True, cache=True)
def sense(field, x, y, angle, sensor_offset, bound, w0, w1, w2, w3):
    """Sum of the species-weighted channels around one sensor point.

    The window is (2 * bound + 1) cells square, centred on the sensor and
    clipped to the field.
    """
    height = field.shape[0]
    width = field.shape[1]
    sx = x + math.cos(angle) * sensor_offset
    sy = y + math.sin(angle) * sensor_offset
    total = 0.0
    for dy in range(-bound, bound + 1):
        cy = int(sy + dy)
        if cy < 0 or cy >= height:
            continue
        for dx in range(-bound, bound + 1):
            cx = int(sx + dx)
            if cx < 0 or cx >= width:
                continue
            total += (field[cy, cx, 0] * w0 + field[cy, cx, 1] * w1
                      + field[cy, cx, 2] * w2 + field[cy, cx, 3] * w3)
    return total


@numba.jit(nopython=True, fastmath=True, cache=True)
def steer(heading, fwd, left, right, fraction, turn):
    """Noisy steering decision; checks forward-dominant, then forward-minimum, then sides."""
    if fwd >= left and fwd >= right:
        return heading
    if fwd < left and fwd < right:
        return heading + (fraction - 0.5) * 2.0 * turn
    if right > left:
        return heading - fraction * turn
    if left > right:
        return heading + fraction * turn
    return heading


@numba.jit(nopython=True, parallel=True, fastmath=True, cache=True)
def update_agents(positions, headings, affinity, src, dst, sensor_offset, sensor_size,
                  sensor_angle_spacing, turn_speed, move_speed, trail_weight, dt):
    n = positions.shape[0]
    height = src.shape[0]
    width = src.shape[1]
    bound = sensor_size - 1
    turn = turn_speed * dt
    step = move_speed * dt
    max_x = width - BOUNDARY_EPSILON
    max_y = height - BOUNDARY_EPSILON
    for i in numba.prange(n):
        idx = np.int64(i)
        x = np.float64(positions[idx, 0])
        y = np.float64(positions[idx, 1])
        heading = np.float64(headings[idx])
        w0 = affinity[idx, 0] * 2.0 - 1.0
        w1 = affinity[idx, 1] * 2.0 - 1.0
        w2 = affinity[idx, 2] * 2.0 - 1.0
        w3 = affinity[idx, 3] * 2.0 - 1.0

        fwd = sense(src, x, y, heading, sensor_offset, bound, w0, w1, w2, w3)
        left = sense(src, x, y, heading + sensor_angle_spacing, sensor_offset, bound, w0, w1, w2, w3)
        right = sense(src, x, y, heading - sensor_angle_spacing, sensor_offset, bound, w0, w1, w2, w3)

        rnd = position_seed(x, y, width, idx)
        heading = steer(heading, fwd, left, right, random_fraction(rnd), turn)

        # bounds are checked on the stored float32 values, which may round up
        nx = np.float32(x + step * math.cos(heading))
        ny = np.float32(y + step * math.sin(heading))
        if nx < 0.0 or ny < 0.0 or nx >= width or ny >= height:
            nx = np.float32(min(max(nx, 0.0), max_x))
            ny = np.float32(min(max(ny, 0.0), max_y))
            rnd = hash_u32(rnd)
            heading = random_fraction(rnd) * TWO_PI

        positions[idx, 0] = nx
        positions[idx, 1] = ny
        headings[idx] = heading

        cx = int(nx)
        cy = int(ny)
        for c in range(4):
            dst[cy, cx, c] = min(affinity[idx, c] * trail_weight, 1.0)


@numba.jit(nopython=True, parallel=True, fastmath=True, cache=True)
def update_trails(src, dst, evaporation_speed, sources, species_count):
    height = src.shape[0]
    width = src.shape[1]
    retain = max(EVAPORATION_FLOOR, 1.0 - evaporation_speed)
    source_radius = min(width, height) * SOURCE_RADIUS_FRACTION
    n_sources = sources.shape[0]
    for row in numba.prange(height):
        y = np.int64(row)
        for x in range(width):
            if 0 < x < width - 1 and 0 < y < height - 1:
                s0 = 0.0
                s1 = 0.0
                s2 = 0.0
                for dy in range(-1, 2):
                    for dx in range(-1, 2):
                        s0 += src[y + dy, x + dx, 0]
                        s1 += src[y + dy, x + dx, 1]
                        s2 += src[y + dy, x + dx, 2]
                s0 /= 9.0
                s1 /= 9.0
                s2 /= 9.0
            else:
                s0 = np.float64(src[y, x, 0])
                s1 = np.float64(src[y, x, 1])
                s2 = np.float64(src[y, x, 2])
            c0 = s0 * retain
            c1 = s1 * retain
            c2 = s2 * retain

            for k in range(n_sources):
                ddx = sources[k, 0] - x
                ddy = sources[k, 1] - y
                dist = math.sqrt(ddx * ddx + ddy * ddy) / source_radius
                if dist <= 1.0:
                    if sources[k, 2] < 0.0:
                        ceiling = max(dist - REPEL_SOFTNESS, 0.0)
                        c0 = min(ceiling, c0)
                        c1 = min(ceiling, c1)
                        c2 = min(ceiling, c2)
                    elif species_count == 1:
                        c1 = max(1.0 - dist, c1)
                        c2 = max(1.0 - dist, c2)
                    else:
                        c1 = max(1.0 - dist, c1)

            dst[y, x, 0] = min(max(c0, 0.0), 1.0)
            dst[y, x, 1] = min(max(c1, 0.0), 1.0)
            dst[y, x, 2] = min(max(c2, 0.0), 1.0)
            dst[y, x, 3] = 1.0


@numba.jit(nopython=True, parallel=True, fastmath=True, cache=True)
def perform_interactions(positions, headings, points, seed):
    n = positions.shape[0]
    n_points = points.shape[0]
    frame_seed = np.uint64(seed) & _MASK
    for i in numba.prange(n):
        idx = np.int64(i)
        rnd = hash_u32(hash_u32(np.uint64(idx)) ^ frame_seed)
        x = np.float64(positions[idx, 0])
        y = np.float64(positions[idx, 1])
        heading = np.float64(headings[idx])
        for k in range(n_points):
            rnd = hash_u32(rnd)
            if random_fraction(rnd) <= _PROBABILITY:
                jx, jy, _, rnd = unit_disk_sample_next(rnd)
                x = points[k, 0] + jx * _JITTER_RADIUS
                y = points[k, 1] + jy * _JITTER_RADIUS
                heading = math.atan2(points[k, 3], points[k, 2])
        positions[idx, 0] = x
        positions[idx, 1] = y
        headings[idx] = heading


def compile_numba_kernels():
    """Force Numba to compile every kernel using tiny arrays of the production dtypes.

    Call once at startup to pay the JIT cost early and to surface compile
    failures before any simulation state is touched.
    """
    positions = np.zeros((4, 2), dtype=np.float32)
    headings = np.zeros(4, dtype=np.float32)
    affinity = np.zeros((4, 4), dtype=np.int8)
    field_a = np.zeros((4, 4, 4), dtype=np.float32)
    field_b = np.zeros((4, 4, 4), dtype=np.float32)
    sources = np.zeros((1, 3), dtype=np.float64)
    points = np.zeros((1, 4), dtype=np.float64)
    init_agents(positions, headings, affinity, 4, 4, 1)
    update_species(affinity, 1)
    perform_interactions(positions, headings, points, 0)
    update_agents(positions, headings, affinity, field_a, field_b, 1.0, 1, 0.5, 1.0, 1.0, 1.0, 1.0 / 60.0)
    update_trails(field_b, field_a, 0.5, sources, 1)
    logger.debug("numba kernels compiled")
