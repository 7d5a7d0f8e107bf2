from __future__ import annotations

import logging
import time

import numpy as np

from planetgen.config import (
    DEFAULT_HEIGHT_OFFSET,
    HEIGHT_SMOOTH_K,
    PlanetParams,
    StreamingParams,
)
from planetgen.util.math import exp_smooth
from planetgen.world.chunk_manager import ChunkStreamingEngine
from planetgen.world.presenter import HeadlessPresenter

logger = logging.getLogger(__name__)


class OrbitObserver:
    """Flies a great circle over the planet at a smoothed height above the terrain."""

    def __init__(self, *, speed: float, height_offset: float, smooth_k: float = HEIGHT_SMOOTH_K) -> None:
        self.speed = float(speed)
        self.height_offset = float(height_offset)
        self.smooth_k = float(smooth_k)
        self.angle = 0.0
        self.altitude: float | None = None

    def direction(self) -> np.ndarray:
        return np.array([np.sin(self.angle), np.cos(self.angle), 0.0], dtype=np.float64)

    def update(self, dt: float, surface_fn) -> None:
        target = float(surface_fn(self.direction())) + self.height_offset
        if self.altitude is None:
            self.altitude = target
        else:
            self.altitude = exp_smooth(self.altitude, target, self.smooth_k, dt)
        self.angle += self.speed * dt / max(self.altitude, 1e-6)

    def __call__(self) -> np.ndarray | None:
        if self.altitude is None:
            return None
        return self.direction() * self.altitude


def run_stream(
    *,
    planet: PlanetParams,
    streaming: StreamingParams,
    speed: float,
    duration: float,
    target_fps: int,
    debug: bool,
) -> HeadlessPresenter:
    presenter = HeadlessPresenter()
    observer = OrbitObserver(speed=speed, height_offset=DEFAULT_HEIGHT_OFFSET)
    engine = ChunkStreamingEngine.from_params(planet, streaming, presenter=presenter, observer=observer)
    surface = engine.generator.projector.height_at

    frame_dt = 1.0 / max(1, int(target_fps))
    try:
        observer.update(0.0, surface)
        ready = engine.warmup(min_chunks=1, timeout_s=2.0)
        logger.info("warmup done: %d active chunk(s)", ready)

        start_t = time.perf_counter()
        last_t = start_t
        last_log = start_t
        frames = 0
        while engine.lifecycle.running:
            now = time.perf_counter()
            if now - start_t >= duration:
                break
            dt = min(now - last_t, 0.05)
            last_t = now

            observer.update(dt, surface)
            engine.step(now)
            frames += 1

            if debug and now - last_log >= 1.0:
                last_log = now
                s = engine.stats()
                logger.debug(
                    "t=%.1fs chunks=%d active=%d queued=%d pending=%d evicted=%d verts=%d",
                    now - start_t, s.chunk_count, s.active_chunks, s.queued_tasks,
                    s.pending_results, s.evicted_total, presenter.vertex_total(),
                )

            spare = frame_dt - (time.perf_counter() - now)
            if spare > 0:
                time.sleep(spare)

        s = engine.stats()
        logger.info(
            "streamed %d frame(s): %d chunk(s), %d active, %d evicted, %d failed tier(s), %d mesh(es) created",
            frames, s.chunk_count, s.active_chunks, s.evicted_total, s.failed_total, presenter.meshes_created,
        )
    finally:
        engine.shutdown()
    return presenter
