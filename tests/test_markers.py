import math
import numpy as np
import pytest
from physarum.errors import ConfigurationError
from physarum.markers import (InteractionPoint, SourceMarker, pack_interaction_points,
                              pack_sources)


def test_pack_sources_polarity():
    packed = pack_sources([SourceMarker(1.0, 2.0, attract=True), (3.0, 4.0, False)])
    assert packed.dtype == np.float64
    assert packed.tolist() == [[1.0, 2.0, 1.0], [3.0, 4.0, -1.0]]


def test_pack_sources_keeps_most_recent_256():
    sources = [SourceMarker(float(i), 0.0) for i in range(300)]
    packed = pack_sources(sources)
    assert packed.shape == (256, 3)
    assert packed[0, 0] == 44.0 and packed[-1, 0] == 299.0


def test_pack_points_keeps_first_256():
    points = [InteractionPoint(float(i), 1.0, 0.0, 1.0) for i in range(300)]
    packed = pack_interaction_points(points)
    assert packed.shape == (256, 4)
    assert packed[0, 0] == 0.0 and packed[-1, 0] == 255.0


def test_empty_inputs_pack_to_empty_arrays():
    assert pack_sources([]).shape == (0, 3)
    assert pack_sources(None).shape == (0, 3)
    assert pack_interaction_points(()).shape == (0, 4)


def test_non_finite_markers_rejected():
    with pytest.raises(ConfigurationError):
        pack_sources([(float('nan'), 0.0, True)])
    with pytest.raises(ConfigurationError):
        pack_interaction_points([InteractionPoint(0.0, 0.0, float('inf'), 0.0)])


def test_interaction_direction():
    assert InteractionPoint(0, 0, 0.0, 2.0).direction == pytest.approx(math.pi / 2)


@pytest.mark.parametrize('bad', [(1.0, 2.0), (1.0, 2.0, True, 4.0), 5.0, ('x', 1.0, True)])
def test_malformed_source_tuples_rejected(bad):
    with pytest.raises(ConfigurationError):
        pack_sources([bad])


@pytest.mark.parametrize('bad', [(1.0, 2.0), (1.0, 2.0, 3.0), None, (1.0, 2.0, 'a', 0.0)])
def test_malformed_interaction_points_rejected(bad):
    with pytest.raises(ConfigurationError):
        pack_interaction_points([bad])
