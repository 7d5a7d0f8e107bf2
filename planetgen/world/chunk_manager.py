from __future__ import annotations

import logging
import queue
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional, Sequence

import numpy as np

from planetgen.config import LODSetting, PlanetParams, StreamingParams
from planetgen.util.math import distance, world_to_chunk
from planetgen.world.chunk import Chunk, ChunkCoord, GeneratedChunk, GenerationTask, MeshData
from planetgen.world.generator import ChunkMeshGenerator
from planetgen.world.lod import collider_enabled, make_lod_levels, select_lod
from planetgen.world.presenter import ChunkPresenter, HeadlessPresenter
from planetgen.world.sphere import SphereProjector

logger = logging.getLogger(__name__)

Observer = Callable[[], Optional[Sequence[float]]]


class Lifecycle:
    """Shared cancellation state for the engine and its workers."""

    def __init__(self) -> None:
        self._stop = threading.Event()

    @property
    def running(self) -> bool:
        return not self._stop.is_set()

    def stop(self) -> None:
        self._stop.set()

    def wait(self, timeout: float) -> bool:
        return self._stop.wait(timeout)


@dataclass(frozen=True)
class StreamingStats:
    chunk_count: int
    active_chunks: int
    queued_tasks: int
    pending_results: int
    evicted_total: int
    failed_total: int
    discarded_total: int


def generate_chunk(generator, coord: ChunkCoord, lod_settings: Sequence[LODSetting]) -> GeneratedChunk:
    """Run the mesh pipeline for every tier; a failing tier is logged and left as None."""
    meshes: List[Optional[MeshData]] = []
    errors: List[str] = []
    for i, s in enumerate(lod_settings):
        try:
            meshes.append(generator.generate_lod(coord, s.resolution))
        except Exception as e:
            logger.exception("chunk %s LOD %d generation failed", tuple(coord), i)
            meshes.append(None)
            errors.append(f"LOD {i}: {e}")
    return GeneratedChunk(coord=coord, meshes=meshes, errors=errors)


class ChunkWorker(threading.Thread):
    def __init__(
        self,
        task_q: "queue.Queue[GenerationTask]",
        lifecycle: Lifecycle,
        *,
        generator,
        lod_settings: Sequence[LODSetting],
        poll_timeout: float = 0.1,
        name: str | None = None,
    ) -> None:
        super().__init__(daemon=True, name=name)
        self.task_q = task_q
        self.lifecycle = lifecycle
        self.generator = generator
        self.lod_settings = tuple(lod_settings)
        self.poll_timeout = float(poll_timeout)

    def run(self) -> None:
        while self.lifecycle.running:
            try:
                task = self.task_q.get(timeout=self.poll_timeout)
            except queue.Empty:
                continue
            try:
                if task.cancelled.is_set():
                    continue
                task.started.set()
                task.on_done(task, generate_chunk(self.generator, task.coord, self.lod_settings))
            finally:
                self.task_q.task_done()


class ChunkStreamingEngine:
    """Keeps a cube of chunks around the observer generated, LOD'd and evicted.

    `update()` (the policy sweep) and `process_queue()` (the completion drain)
    must be called from one consuming thread; that thread is the only one that
    touches the chunk table or the presenter. Workers only run the mesh
    pipeline and hand results back through the completion queue.
    """

    def __init__(
        self,
        params: StreamingParams,
        generator,
        *,
        presenter: ChunkPresenter | None = None,
        observer: Observer | None = None,
        lifecycle: Lifecycle | None = None,
        autostart: bool = True,
    ) -> None:
        params.validate()
        self.params = params
        self.lod_settings = tuple(params.lod_settings)
        self.chunk_size = float(params.chunk_size)
        self.generator = generator
        self.presenter = presenter if presenter is not None else HeadlessPresenter()
        self.observer = observer
        self.lifecycle = lifecycle or Lifecycle()

        self.task_q: "queue.Queue[GenerationTask]" = queue.Queue()
        self.out_q: "queue.Queue[tuple[GenerationTask, GeneratedChunk]]" = queue.Queue()
        self.chunks: Dict[ChunkCoord, Chunk] = {}
        self._lock = threading.RLock()
        self.workers: List[ChunkWorker] = []

        self._paused = False
        self._last_update: float | None = None
        self._evicted_total = 0
        self._failed_total = 0
        self._discarded_total = 0

        if params.eviction_distance < params.desired_corner_distance:
            logger.warning(
                "eviction distance %.1f is below the load cube corner distance %.1f; edge chunks will be re-requested every sweep",
                params.eviction_distance,
                params.desired_corner_distance,
            )

        if autostart:
            self.start()

    @classmethod
    def from_params(cls, planet: PlanetParams, params: StreamingParams, **kwargs) -> "ChunkStreamingEngine":
        planet.validate()
        generator = ChunkMeshGenerator(SphereProjector.from_params(planet), params.chunk_size)
        return cls(params, generator, **kwargs)

    # --- lifecycle ---

    def start(self) -> None:
        if self.workers:
            return
        for i in range(self.params.workers):
            w = ChunkWorker(
                self.task_q,
                self.lifecycle,
                generator=self.generator,
                lod_settings=self.lod_settings,
                name=f"chunk-worker-{i}",
            )
            w.start()
            self.workers.append(w)
        logger.info("started %d chunk worker(s)", len(self.workers))

    def shutdown(self, *, timeout: float = 1.0, release: bool = True) -> None:
        self.lifecycle.stop()
        for w in self.workers:
            w.join(timeout=timeout)
        alive = [w.name for w in self.workers if w.is_alive()]
        if alive:
            logger.warning("workers still finishing after shutdown: %s", ", ".join(alive))
        if release:
            with self._lock:
                for chunk in list(self.chunks.values()):
                    self._evict(chunk)

    def __enter__(self) -> "ChunkStreamingEngine":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()

    def set_observer(self, observer: Observer | None) -> None:
        self.observer = observer

    # --- policy sweep ---

    def observer_position(self) -> np.ndarray | None:
        if self.observer is None:
            return None
        pos = self.observer()
        if pos is None:
            return None
        return np.asarray(pos, dtype=np.float64).reshape(3)

    def desired_coords(self, center: ChunkCoord) -> Iterator[ChunkCoord]:
        r = int(self.params.load_radius)
        for dx in range(-r, r + 1):
            for dy in range(-r, r + 1):
                for dz in range(-r, r + 1):
                    yield ChunkCoord(center.x + dx, center.y + dy, center.z + dz)

    def update(self) -> bool:
        """One policy sweep: request, evict, refresh LODs. False while paused or stopped."""
        if not self.lifecycle.running:
            return False
        pos = self.observer_position()
        if pos is None:
            if not self._paused:
                logger.debug("no observer position; streaming paused")
                self._paused = True
            return False
        if self._paused:
            logger.debug("observer available; streaming resumed")
            self._paused = False

        center = ChunkCoord(*world_to_chunk(pos, self.chunk_size))
        with self._lock:
            self._load_around(center)
            self._unload_distant(center)
            for chunk in self.chunks.values():
                if chunk.is_active:
                    self._refresh(chunk, pos)
        return True

    def request(self, coord: ChunkCoord) -> bool:
        coord = ChunkCoord(*coord)
        with self._lock:
            if coord in self.chunks:
                return False
            task = GenerationTask(coord=coord, on_done=self._on_generated)
            self.chunks[coord] = Chunk(coord=coord, lod_levels=make_lod_levels(self.lod_settings), task=task)
        self.task_q.put(task)
        return True

    def _load_around(self, center: ChunkCoord) -> None:
        requested = 0
        for coord in self.desired_coords(center):
            if coord not in self.chunks and self.request(coord):
                requested += 1
        if requested:
            logger.debug("requested %d chunk(s) around %s", requested, tuple(center))

    def _unload_distant(self, center: ChunkCoord) -> None:
        threshold = self.params.eviction_distance
        origin = center.origin(self.chunk_size)
        for coord, chunk in list(self.chunks.items()):
            if distance(coord.origin(self.chunk_size), origin) > threshold:
                self._evict(chunk)

    def _evict(self, chunk: Chunk) -> None:
        if chunk.task is not None:
            chunk.task.cancelled.set()
            chunk.task = None
        if chunk.has_collider:
            self.presenter.release_collider(chunk.coord)
            chunk.has_collider = False
        if chunk.is_active or any(level.handle is not None for level in chunk.lod_levels):
            self.presenter.destroy(chunk.coord)
        for level in chunk.lod_levels:
            level.mesh_data = None
            level.handle = None
        chunk.is_active = False
        chunk.evicted = True
        self.chunks.pop(chunk.coord, None)
        self._evicted_total += 1

    # --- completion drain ---

    def _on_generated(self, task: GenerationTask, result: GeneratedChunk) -> None:
        # Runs on a worker thread.
        self.out_q.put((task, result))

    def process_queue(self, max_items: int | None = None) -> int:
        """Integrate up to `max_chunks_per_frame` finished chunks. Never blocks."""
        if not self.lifecycle.running:
            return 0
        budget = int(max_items) if max_items is not None else self.params.max_chunks_per_frame
        processed = 0
        while processed < budget:
            try:
                task, result = self.out_q.get_nowait()
            except queue.Empty:
                break
            self._integrate(task, result)
            processed += 1
        return processed

    def _integrate(self, task: GenerationTask, result: GeneratedChunk) -> None:
        with self._lock:
            chunk = self.chunks.get(task.coord)
            if chunk is None or chunk.task is not task:
                logger.debug("discarding result for evicted chunk %s", tuple(task.coord))
                self._discarded_total += 1
                return
            chunk.task = None
            if result.failed:
                logger.error("chunk %s: every LOD failed (%s)", tuple(chunk.coord), "; ".join(result.errors))
            elif result.errors:
                logger.warning("chunk %s generated with errors (%s)", tuple(chunk.coord), "; ".join(result.errors))
            for i, level in enumerate(chunk.lod_levels):
                mesh = result.meshes[i] if i < len(result.meshes) else None
                if mesh is None:
                    logger.warning("chunk %s LOD %d has no mesh data; using an empty mesh", tuple(chunk.coord), i)
                    mesh = MeshData.empty()
                    self._failed_total += 1
                level.mesh_data = mesh
            # Active even if nothing could be shown yet; update() retries the display.
            chunk.is_active = True
            self._refresh(chunk, self.observer_position())

    def _realize(self, chunk: Chunk, lod_index: int):
        """Convert a tier on first use. Returns None if the presenter refuses even an empty mesh."""
        level = chunk.lod_levels[lod_index]
        if level.handle is None:
            try:
                level.handle = self.presenter.create_mesh(chunk.coord, lod_index, level.mesh_data.to_buffers())
            except Exception as e:
                logger.error("error creating mesh for chunk %s LOD %d: %s", tuple(chunk.coord), lod_index, e)
                try:
                    level.handle = self.presenter.create_mesh(chunk.coord, lod_index, MeshData.empty().to_buffers())
                except Exception as e2:
                    logger.error("error creating placeholder for chunk %s LOD %d: %s", tuple(chunk.coord), lod_index, e2)
                    return None
            # Converted; the raw data is no longer needed.
            level.mesh_data = None
        return level.handle

    def _refresh(self, chunk: Chunk, pos: np.ndarray | None) -> None:
        if pos is None:
            d = None
            lod_index = max(chunk.current_lod, 0)
        else:
            d = distance(pos, chunk.coord.origin(self.chunk_size))
            lod_index = select_lod(d, self.lod_settings)

        if lod_index != chunk.current_lod and chunk.lod_levels[lod_index].available:
            handle = self._realize(chunk, lod_index)
            if handle is not None:
                self.presenter.show_mesh(chunk.coord, lod_index, handle)
                chunk.current_lod = lod_index
                # an attached collider still uses the previous tier's mesh
                chunk.needs_collider = True

        if d is None:
            return
        if collider_enabled(d, self.lod_settings, lod_index):
            handle = chunk.lod_levels[lod_index].handle
            if handle is not None and chunk.needs_collider:
                self.presenter.attach_collider(chunk.coord, handle)
                chunk.has_collider = True
                chunk.needs_collider = False
        elif chunk.has_collider:
            self.presenter.release_collider(chunk.coord)
            chunk.has_collider = False
            chunk.needs_collider = True

    # --- per-frame driver ---

    def step(self, now: float | None = None) -> int:
        """Sweep at most every `update_interval` seconds, drain on every call."""
        now = time.perf_counter() if now is None else float(now)
        if self._last_update is None or now - self._last_update >= self.params.update_interval:
            self.update()
            self._last_update = now
        return self.process_queue()

    def warmup(self, *, min_chunks: int = 8, timeout_s: float = 2.0) -> int:
        """Block briefly so the first frame isn't empty; returns the active chunk count."""
        self.update()
        deadline = time.perf_counter() + float(timeout_s)
        while self.active_count() < int(min_chunks) and time.perf_counter() < deadline:
            if not self.lifecycle.running:
                break
            if self.process_queue() == 0:
                time.sleep(0.01)
        return self.active_count()

    # --- counters ---

    def active_count(self) -> int:
        with self._lock:
            return sum(1 for c in self.chunks.values() if c.is_active)

    def stats(self) -> StreamingStats:
        with self._lock:
            return StreamingStats(
                chunk_count=len(self.chunks),
                active_chunks=sum(1 for c in self.chunks.values() if c.is_active),
                queued_tasks=self.task_q.qsize(),
                pending_results=self.out_q.qsize(),
                evicted_total=self._evicted_total,
                failed_total=self._failed_total,
                discarded_total=self._discarded_total,
            )
