"""Shared fixtures for planetgen tests."""
from __future__ import annotations

import time
from typing import Callable, List

import pytest

from planetgen.config import LODSetting, StreamingParams
from planetgen.world.chunk_manager import ChunkStreamingEngine, generate_chunk
from planetgen.world.generator import ChunkMeshGenerator
from planetgen.world.sphere import SphereProjector

SCENARIO_LODS = (LODSetting(50.0, 8, 30.0), LODSetting(200.0, 4, 0.0))


class MovableObserver:
    def __init__(self, pos=(0.0, 0.0, 0.0)) -> None:
        self.pos = pos

    def __call__(self):
        return self.pos


def scenario_params(**overrides) -> StreamingParams:
    values = dict(
        chunk_size=16.0,
        load_radius=1,
        max_chunks_per_frame=4,
        chunk_load_distance=100.0,
        lod_settings=SCENARIO_LODS,
        workers=2,
    )
    values.update(overrides)
    return StreamingParams(**values)


def run_tasks(engine: ChunkStreamingEngine) -> int:
    """Generate every queued task on the calling thread, as a worker would."""
    done = 0
    while not engine.task_q.empty():
        task = engine.task_q.get_nowait()
        if not task.cancelled.is_set():
            task.started.set()
            task.on_done(task, generate_chunk(engine.generator, task.coord, engine.lod_settings))
            done += 1
        engine.task_q.task_done()
    return done


def pump(engine: ChunkStreamingEngine, until: Callable[[], bool], timeout: float = 20.0) -> bool:
    deadline = time.perf_counter() + timeout
    while time.perf_counter() < deadline:
        engine.process_queue(max_items=64)
        if until():
            return True
        time.sleep(0.005)
    return until()


@pytest.fixture
def projector() -> SphereProjector:
    return SphereProjector(radius=100.0, noise_frequency=0.1, noise_amplitude=10.0, seed=7)


@pytest.fixture
def generator(projector: SphereProjector) -> ChunkMeshGenerator:
    return ChunkMeshGenerator(projector, 16.0)


@pytest.fixture
def make_engine(generator: ChunkMeshGenerator):
    engines: List[ChunkStreamingEngine] = []

    def factory(params: StreamingParams | None = None, **kwargs) -> ChunkStreamingEngine:
        kwargs.setdefault("observer", MovableObserver())
        engine = ChunkStreamingEngine(params or scenario_params(), kwargs.pop("generator", generator), **kwargs)
        engines.append(engine)
        return engine

    yield factory
    for engine in engines:
        engine.shutdown(timeout=2.0)
