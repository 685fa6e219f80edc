import numpy as np
import pytest
from physarum.errors import AllocationError
from physarum.population import AgentPopulation, round_agent_count


@pytest.mark.parametrize('n', [1, 255, 256, 1023, 1024, 1025, 5000, 100_000, 7_000_001, 16_777_216, 50_000_000])
def test_round_agent_count_range_and_fixed_point(n):
    actual = round_agent_count(n)
    assert actual % 256 == 0
    assert 1024 <= actual <= 16_777_216
    assert round_agent_count(actual) == actual


def test_round_agent_count_rounds_up():
    assert round_agent_count(1025) == 1280
    assert round_agent_count(100_000) == 100_096
    assert round_agent_count(10) == 1024


@pytest.mark.parametrize('bad', [0, -5, 1.5, True, '1024', None])
def test_round_agent_count_rejects_invalid(bad):
    with pytest.raises(AllocationError):
        round_agent_count(bad)


def test_resize_reallocates_and_marks_uninitialized():
    pop = AgentPopulation(1024)
    pop.mark_initialized()
    actual = pop.resize(3000)
    assert actual == 3072
    assert len(pop) == 3072
    assert pop.positions.shape == (3072, 2) and pop.positions.dtype == np.float32
    assert pop.headings.shape == (3072,)
    assert pop.affinity.shape == (3072, 4) and pop.affinity.dtype == np.int8
    assert not pop.initialized


def test_failed_resize_leaves_state_untouched():
    pop = AgentPopulation(2048)
    pop.positions[:] = 5.0
    pop.mark_initialized()
    with pytest.raises(AllocationError):
        pop.resize(-1)
    assert pop.count == 2048
    assert pop.initialized
    assert np.all(pop.positions == 5.0)


def test_agent_accessor_bounds():
    pop = AgentPopulation(1024)
    pop.positions[3] = (1.5, 2.5)
    pop.headings[3] = 0.25
    rec = pop.agent(3)
    assert rec.x == 1.5 and rec.y == 2.5 and rec.heading == 0.25
    with pytest.raises(IndexError):
        pop.agent(1024)
    with pytest.raises(IndexError):
        pop.agent(-1)
