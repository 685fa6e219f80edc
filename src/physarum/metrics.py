"""Summary statistics of the trail field and agent population.

numpy reductions over the field; connected trail regions use
`scipy.ndimage.label`.
"""
from typing import Dict

import numpy as np
from scipy import ndimage

from physarum.species import SpeciesPolicy


def _trail_intensity(field: np.ndarray) -> np.ndarray:
    field = np.asarray(field)
    if field.ndim != 3 or field.shape[2] < 3:
        raise ValueError('field must be shaped (H, W, C) with at least 3 channels')
    return field[:, :, :3].max(axis=2)


def trail_coverage(field: np.ndarray, threshold: float = 0.01) -> float:
    """Fraction of cells whose strongest species channel exceeds `threshold`."""
    intensity = _trail_intensity(field)
    if intensity.size == 0:
        return 0.0
    return float(np.count_nonzero(intensity > threshold)) / intensity.size


def trail_components(field: np.ndarray, threshold: float = 0.01) -> int:
    """Number of 8-connected regions of trail above `threshold`."""
    mask = _trail_intensity(field) > threshold
    _, count = ndimage.label(mask, structure=np.ones((3, 3), dtype=bool))
    return int(count)


def channel_means(field: np.ndarray) -> np.ndarray:
    field = np.asarray(field)
    return field.reshape(-1, field.shape[-1]).mean(axis=0)


def species_counts(affinity: np.ndarray, species_count: int) -> Dict[tuple, int]:
    """Number of agents carrying each mask the policy for `species_count` can produce."""
    policy = SpeciesPolicy.from_count(species_count)
    affinity = np.asarray(affinity)
    masks = {policy.mask(i) for i in range(policy.value)}
    return {mask: int(np.count_nonzero(np.all(affinity == np.array(mask), axis=1))) for mask in masks}


def positions_in_bounds(positions: np.ndarray, width: int, height: int) -> bool:
    positions = np.asarray(positions)
    x = positions[:, 0]
    y = positions[:, 1]
    return bool(np.all((x >= 0) & (x < width) & (y >= 0) & (y < height)))
