from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Sequence

# App
APP_VERSION = "0.4.0"

# Planet
DEFAULT_SEED = 12345
DEFAULT_RADIUS = 100.0
DEFAULT_NOISE_FREQUENCY = 0.1
DEFAULT_NOISE_AMPLITUDE = 10.0
DEFAULT_OCTAVES = 4
DEFAULT_NOISE = "fast"  # "fast" | "simplex"
NOISE_MODES = ("fast", "simplex")

# Chunks
DEFAULT_CHUNK_SIZE = 16.0
DEFAULT_LOAD_RADIUS = 3
DEFAULT_MAX_CHUNKS_PER_FRAME = 2
DEFAULT_CHUNK_LOAD_DISTANCE = 100.0
DEFAULT_WORKERS = 1
DEFAULT_UPDATE_INTERVAL = 0.1  # seconds between policy sweeps

# LOD tiers: (distance, resolution, collider_distance), nearest first
DEFAULT_LOD_TABLE = (
    (50.0, 16, 30.0),
    (120.0, 8, 0.0),
    (250.0, 4, 0.0),
)

# Headless runner
DEFAULT_SPEED = 20.0
DEFAULT_DURATION = 10.0
DEFAULT_TARGET_FPS = 60
DEFAULT_HEIGHT_OFFSET = 15.0
HEIGHT_SMOOTH_K = 8.0  # larger = faster follow


class ConfigError(ValueError):
    """Raised when streaming or planet parameters cannot be used."""


@dataclass(frozen=True)
class LODSetting:
    distance: float
    resolution: int
    collider_distance: float = 0.0


@dataclass(frozen=True)
class PlanetParams:
    radius: float = DEFAULT_RADIUS
    noise_frequency: float = DEFAULT_NOISE_FREQUENCY
    noise_amplitude: float = DEFAULT_NOISE_AMPLITUDE
    seed: int = DEFAULT_SEED
    noise_mode: str = DEFAULT_NOISE
    octaves: int = DEFAULT_OCTAVES

    def validate(self) -> None:
        if not self.radius > 0:
            raise ConfigError(f"planet radius must be > 0 (got {self.radius})")
        if self.octaves < 1:
            raise ConfigError(f"octaves must be >= 1 (got {self.octaves})")
        if self.noise_mode not in NOISE_MODES:
            raise ConfigError(f"unknown noise mode {self.noise_mode!r} (expected one of {NOISE_MODES})")


def default_lod_settings() -> tuple[LODSetting, ...]:
    return tuple(LODSetting(d, r, c) for d, r, c in DEFAULT_LOD_TABLE)


@dataclass(frozen=True)
class StreamingParams:
    chunk_size: float = DEFAULT_CHUNK_SIZE
    load_radius: int = DEFAULT_LOAD_RADIUS
    max_chunks_per_frame: int = DEFAULT_MAX_CHUNKS_PER_FRAME
    chunk_load_distance: float = DEFAULT_CHUNK_LOAD_DISTANCE
    lod_settings: Sequence[LODSetting] = field(default_factory=default_lod_settings)
    workers: int = DEFAULT_WORKERS
    update_interval: float = DEFAULT_UPDATE_INTERVAL

    @property
    def eviction_distance(self) -> float:
        # world distance times a chunk count
        return float(self.chunk_load_distance) * int(self.load_radius)

    @property
    def desired_corner_distance(self) -> float:
        """World distance from the observer chunk origin to the farthest desired chunk origin."""
        return math.sqrt(3.0) * int(self.load_radius) * float(self.chunk_size)

    def validate(self) -> None:
        if not self.chunk_size > 0:
            raise ConfigError(f"chunk_size must be > 0 (got {self.chunk_size})")
        if self.load_radius < 0:
            raise ConfigError(f"load_radius must be >= 0 (got {self.load_radius})")
        if self.max_chunks_per_frame < 1:
            raise ConfigError(f"max_chunks_per_frame must be >= 1 (got {self.max_chunks_per_frame})")
        if self.chunk_load_distance < 0:
            raise ConfigError(f"chunk_load_distance must be >= 0 (got {self.chunk_load_distance})")
        if self.workers < 1:
            raise ConfigError(f"workers must be >= 1 (got {self.workers})")
        if not self.lod_settings:
            raise ConfigError("at least one LOD tier is required")
        prev = -math.inf
        for i, lod in enumerate(self.lod_settings):
            if lod.resolution < 1:
                raise ConfigError(f"LOD {i}: resolution must be >= 1 (got {lod.resolution})")
            if lod.distance < 0 or lod.collider_distance < 0:
                raise ConfigError(f"LOD {i}: distances must be >= 0")
            if lod.distance < prev:
                raise ConfigError(f"LOD {i}: tiers must be ascending by distance ({lod.distance} < {prev})")
            prev = lod.distance
