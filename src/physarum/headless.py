"""Headless runner: steps the engine for a fixed number of frames without a display.

Usage: physarum-headless --width 512 --height 512 --agents 200000 --steps 600
"""
import argparse
import logging
import sys
import time

from physarum.config import FRAME_TIMING, POPULATION_LIMITS, SimulationConfig
from physarum.engine import PhysarumEngine
from physarum.errors import PhysarumError
from physarum.io.snapshot_writer import SnapshotWriter
from physarum.markers import SourceMarker
from physarum.metrics import trail_components, trail_coverage

log = logging.getLogger("physarum")


def _configure_logging(level: str) -> None:
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        log.addHandler(h)
    log.setLevel(getattr(logging, level.upper(), logging.INFO))


def _source(values):
    x, y, polarity = values
    if polarity not in ('attract', 'repel'):
        raise argparse.ArgumentTypeError(f"source polarity must be attract or repel, got {polarity!r}")
    return SourceMarker(float(x), float(y), attract=polarity == 'attract')


def build_parser() -> argparse.ArgumentParser:
    defaults = SimulationConfig.default()
    parser = argparse.ArgumentParser(prog='physarum-headless', description=__doc__.splitlines()[0])
    parser.add_argument('--width', type=int, default=512)
    parser.add_argument('--height', type=int, default=512)
    parser.add_argument('--agents', type=int, default=POPULATION_LIMITS['default_agents'])
    parser.add_argument('--species', type=int, default=defaults.species_count)
    parser.add_argument('--steps', type=int, default=600)
    parser.add_argument('--dt', type=float, default=FRAME_TIMING['default_dt'])
    parser.add_argument('--seed', type=int, default=None,
                        help='base seed for interaction draws (defaults to the frame index)')
    parser.add_argument('--sensor-offset', type=float, default=defaults.sensor_offset)
    parser.add_argument('--sensor-size', type=int, default=defaults.sensor_size)
    parser.add_argument('--sensor-angle-spacing', type=float, default=defaults.sensor_angle_spacing)
    parser.add_argument('--turn-speed', type=float, default=defaults.turn_speed)
    parser.add_argument('--evaporation-speed', type=float, default=defaults.evaporation_speed)
    parser.add_argument('--move-speed', type=float, default=defaults.move_speed)
    parser.add_argument('--trail-weight', type=float, default=defaults.trail_weight)
    parser.add_argument('--source', nargs=3, action='append', default=[], metavar=('X', 'Y', 'POLARITY'),
                        help='source marker applied every frame; POLARITY is attract or repel')
    parser.add_argument('--single-buffer', action='store_true',
                        help='read and write one field buffer per pass instead of ping-ponging')
    parser.add_argument('--snapshot-dir', type=str, default=None)
    parser.add_argument('--snapshot-every', type=int, default=100)
    parser.add_argument('--log-level', type=str, default='INFO')
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    try:
        sources = [_source(v) for v in args.source]
    except argparse.ArgumentTypeError as e:
        parser.error(str(e))

    config = SimulationConfig(
        sensor_offset=args.sensor_offset,
        sensor_size=args.sensor_size,
        sensor_angle_spacing=args.sensor_angle_spacing,
        turn_speed=args.turn_speed,
        evaporation_speed=args.evaporation_speed,
        move_speed=args.move_speed,
        trail_weight=args.trail_weight,
        species_count=args.species,
    )

    writer = None
    try:
        engine = PhysarumEngine(agent_count=args.agents, config=config,
                                double_buffer=not args.single_buffer)
        engine.initialize(args.width, args.height)
        if args.snapshot_dir:
            writer = SnapshotWriter(args.snapshot_dir)

        log.info("[SIM] Starting: %s agents, %sx%s field, dt=%s, steps=%s",
                 engine.agent_count, args.width, args.height, args.dt, args.steps)
        t0 = time.perf_counter()
        for frame in range(max(0, args.steps)):
            engine.step(sources=sources, dt=args.dt, seed=None if args.seed is None else args.seed + frame)
            if writer is not None and args.snapshot_every > 0 and (frame + 1) % args.snapshot_every == 0:
                writer.append(frame + 1, engine.field, positions=engine.population.positions)
        elapsed = time.perf_counter() - t0
    except PhysarumError as e:
        log.error("[SIM] Aborted: %s", e)
        return 2
    finally:
        if writer is not None:
            writer.close()

    field = engine.field
    log.info("[SIM] Completed %d frames in %.2f s (%.1f frames/s)", args.steps, elapsed,
             args.steps / elapsed if elapsed > 0 else float('inf'))
    log.info("[SIM] Trail coverage %.3f, %d connected trail regions",
             trail_coverage(field), trail_components(field))
    return 0


if __name__ == '__main__':
    sys.exit(main())
