import logging
import math
import pytest
from physarum.config import (FrameClock, PARAMETER_RANGES, SimulationConfig,
                             clamp_frame_delta)
from physarum.errors import ConfigurationError


def test_defaults_match_reference_app():
    cfg = SimulationConfig.default()
    assert cfg.sensor_offset == 15
    assert cfg.sensor_size == 1
    assert cfg.sensor_angle_spacing == pytest.approx(0.2 * math.pi)
    assert cfg.turn_speed == 50
    assert cfg.evaporation_speed == 0.5
    assert cfg.move_speed == 60
    assert cfg.trail_weight == 1
    assert cfg.species_count == 1
    assert cfg.validated() == cfg


def test_validated_clamps_and_warns(caplog):
    cfg = SimulationConfig(evaporation_speed=1.5, trail_weight=0.0, sensor_size=0)
    with caplog.at_level(logging.WARNING, logger='physarum.config'):
        out = cfg.validated()
    assert out.evaporation_speed == PARAMETER_RANGES['evaporation_speed'][1]
    assert out.trail_weight == PARAMETER_RANGES['trail_weight'][0]
    assert out.sensor_size == 1
    assert 'evaporation_speed' in caplog.text


@pytest.mark.parametrize('kwargs', [
    {'species_count': 0},
    {'species_count': 4},
    {'turn_speed': float('nan')},
    {'move_speed': float('inf')},
    {'sensor_offset': 'far'},
])
def test_validated_rejects_out_of_domain(kwargs):
    with pytest.raises(ConfigurationError):
        SimulationConfig(**kwargs).validated()


def test_dict_round_trip():
    cfg = SimulationConfig(turn_speed=12.0, species_count=3)
    assert SimulationConfig.from_dict(cfg.to_dict()) == cfg
    with pytest.raises(ConfigurationError):
        SimulationConfig.from_dict({'turn_speed': 1.0, 'colour': 'red'})


def test_clamp_frame_delta():
    assert clamp_frame_delta(None) == pytest.approx(1 / 60)
    assert clamp_frame_delta(0.0) == pytest.approx(1 / 60)
    assert clamp_frame_delta(-1.0) == pytest.approx(1 / 60)
    assert clamp_frame_delta(float('nan')) == pytest.approx(1 / 60)
    assert clamp_frame_delta(0.01) == 0.01
    assert clamp_frame_delta(2.0) == pytest.approx(1 / 20)


def test_frame_clock_uses_nominal_first_delta():
    times = iter([10.0, 10.02, 12.0])
    clock = FrameClock(clock=lambda: next(times))
    assert clock.tick() == pytest.approx(1 / 60)
    assert clock.tick() == pytest.approx(0.02)
    assert clock.tick() == pytest.approx(1 / 20)
