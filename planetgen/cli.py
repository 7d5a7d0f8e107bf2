from __future__ import annotations

import argparse
import logging
import random

from planetgen.app import run_stream
from planetgen.config import (
    APP_VERSION,
    DEFAULT_CHUNK_LOAD_DISTANCE,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_DURATION,
    DEFAULT_LOAD_RADIUS,
    DEFAULT_MAX_CHUNKS_PER_FRAME,
    DEFAULT_NOISE,
    DEFAULT_NOISE_AMPLITUDE,
    DEFAULT_NOISE_FREQUENCY,
    DEFAULT_OCTAVES,
    DEFAULT_RADIUS,
    DEFAULT_SEED,
    DEFAULT_SPEED,
    DEFAULT_TARGET_FPS,
    DEFAULT_WORKERS,
    NOISE_MODES,
    ConfigError,
    PlanetParams,
    StreamingParams,
    default_lod_settings,
)
from planetgen.world.generator import ChunkMeshGenerator
from planetgen.world.sphere import SphereProjector

logger = logging.getLogger("planetgen")

def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="planetgen", description=f"Cube-sphere planet chunk streaming (headless) v{APP_VERSION}")
    p.add_argument("--seed", default=str(DEFAULT_SEED), help="int seed or 'random' (default: 12345)")
    p.add_argument("--noise", choices=list(NOISE_MODES), default=DEFAULT_NOISE, help="2D noise base (fast or simplex)")
    p.add_argument("--radius", type=float, default=DEFAULT_RADIUS, help="planet radius")
    p.add_argument("--noise-frequency", type=float, default=DEFAULT_NOISE_FREQUENCY, help="terrain noise frequency")
    p.add_argument("--noise-amplitude", type=float, default=DEFAULT_NOISE_AMPLITUDE, help="terrain displacement amplitude")
    p.add_argument("--octaves", type=int, default=DEFAULT_OCTAVES, help="noise octaves")
    p.add_argument("--chunk-size", type=float, default=DEFAULT_CHUNK_SIZE, help="chunk world size (default: 16.0)")
    p.add_argument("--load-radius", type=int, default=DEFAULT_LOAD_RADIUS, help="chunks loaded around the observer per axis")
    p.add_argument("--max-chunks-per-frame", type=int, default=DEFAULT_MAX_CHUNKS_PER_FRAME, help="finished chunks integrated per frame")
    p.add_argument("--chunk-load-distance", type=float, default=DEFAULT_CHUNK_LOAD_DISTANCE, help="eviction distance factor (times load radius)")
    p.add_argument("--workers", type=int, default=DEFAULT_WORKERS, help="mesh generation threads")
    p.add_argument("--speed", type=float, default=DEFAULT_SPEED, help="observer speed (world units / sec)")
    p.add_argument("--duration", type=float, default=DEFAULT_DURATION, help="seconds to stream before exiting")
    p.add_argument("--target-fps", type=int, default=DEFAULT_TARGET_FPS, help="frame pacing for the headless loop")
    p.add_argument("--sphere", type=int, metavar="RES", default=None, help="build one whole cube-sphere at RES and print a summary")
    p.add_argument("--debug", action="store_true", help="debug logs + periodic streaming counters")
    return p.parse_args(argv)

def _sphere_summary(planet: PlanetParams, res: int) -> None:
    gen = ChunkMeshGenerator(SphereProjector.from_params(planet), 1.0)
    buffers = gen.generate_planet(res).to_buffers()
    lo, hi = buffers.bounds
    logger.info(
        "cube-sphere res=%d: %d vertices, %d triangles, bounds=(%s)..(%s)",
        res, buffers.vertex_count, buffers.triangle_count,
        ", ".join(f"{v:.2f}" for v in lo), ", ".join(f"{v:.2f}" for v in hi),
    )

def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    if isinstance(args.seed, str) and args.seed.lower() == "random":
        seed = random.randint(0, 2**31 - 1)
    else:
        seed = int(args.seed)

    planet = PlanetParams(
        radius=float(args.radius),
        noise_frequency=float(args.noise_frequency),
        noise_amplitude=float(args.noise_amplitude),
        seed=seed,
        noise_mode=str(args.noise),
        octaves=int(args.octaves),
    )
    streaming = StreamingParams(
        chunk_size=float(args.chunk_size),
        load_radius=int(args.load_radius),
        max_chunks_per_frame=int(args.max_chunks_per_frame),
        chunk_load_distance=float(args.chunk_load_distance),
        lod_settings=default_lod_settings(),
        workers=int(args.workers),
    )
    try:
        planet.validate()
        streaming.validate()
    except ConfigError as e:
        logger.error("invalid configuration: %s", e)
        return 2

    logger.info("planetgen v%s seed=%d noise=%s", APP_VERSION, seed, planet.noise_mode)
    if args.sphere is not None:
        _sphere_summary(planet, int(args.sphere))
        return 0

    run_stream(
        planet=planet,
        streaming=streaming,
        speed=float(args.speed),
        duration=float(args.duration),
        target_fps=int(args.target_fps),
        debug=bool(args.debug),
    )
    return 0
