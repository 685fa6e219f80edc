import pytest
from physarum.errors import ConfigurationError
from physarum.species import SpeciesPolicy, SpeciesState, species_mask


def test_mono_mask():
    assert all(SpeciesPolicy.MONO.mask(i) == (0, 1, 1, 1) for i in range(10))


def test_binary_mask_alternates_by_parity():
    assert SpeciesPolicy.BINARY.mask(0) == (0, 0, 1, 1)
    assert SpeciesPolicy.BINARY.mask(1) == (0, 1, 0, 1)
    assert SpeciesPolicy.BINARY.mask(6) == (0, 0, 1, 1)


def test_ternary_masks_are_exclusive():
    assert SpeciesPolicy.TERNARY.mask(0) == (0, 0, 1, 1)
    assert SpeciesPolicy.TERNARY.mask(1) == (0, 1, 0, 1)
    assert SpeciesPolicy.TERNARY.mask(2) == (1, 0, 0, 1)
    for i in range(30):
        m = species_mask(3, i)
        assert sum(m[:3]) == 1 and m[3] == 1


def test_from_count_rejects_unsupported():
    assert SpeciesPolicy.from_count(2) is SpeciesPolicy.BINARY
    with pytest.raises(ConfigurationError):
        SpeciesPolicy.from_count(4)
    with pytest.raises(ConfigurationError):
        SpeciesPolicy.from_count(None)


def test_state_machine_is_edge_triggered():
    state = SpeciesState(1)
    # stale population carries no species yet: nothing to reassign
    state.request(3)
    assert not state.needs_reassignment
    state.mark_applied(SpeciesPolicy.MONO)
    assert state.needs_reassignment
    state.mark_applied(state.requested)
    assert not state.needs_reassignment
    state.request(3)
    assert not state.needs_reassignment
    state.invalidate()
    assert state.current is None and not state.needs_reassignment
