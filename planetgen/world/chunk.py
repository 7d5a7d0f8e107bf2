from __future__ import annotations

import enum
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, List, NamedTuple, Optional

import numpy as np

from planetgen.util.math import recalculate_normals


class ChunkCoord(NamedTuple):
    x: int
    y: int
    z: int

    def origin(self, chunk_size: float) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=np.float64) * float(chunk_size)

    def center(self, chunk_size: float) -> np.ndarray:
        return (np.array([self.x, self.y, self.z], dtype=np.float64) + 0.5) * float(chunk_size)


@dataclass
class MeshBuffers:
    """Render-ready arrays for one mesh."""
    vertices: np.ndarray  # float32 (N,3)
    uvs: np.ndarray  # float32 (N,2)
    triangles: np.ndarray  # uint32 (M,3)
    normals: np.ndarray  # float32 (N,3)
    bounds: tuple[np.ndarray, np.ndarray]

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.triangles.shape[0])


@dataclass
class MeshData:
    """Vertex positions, UVs and a flat triangle index list.

    Built incrementally by the face builder, then handed off whole. Nothing
    mutates it after hand-off.
    """
    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.float64))
    uvs: np.ndarray = field(default_factory=lambda: np.zeros((0, 2), dtype=np.float64))
    triangles: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.int64))

    @classmethod
    def empty(cls) -> "MeshData":
        return cls()

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    def is_empty(self) -> bool:
        return self.vertex_count == 0

    def append(self, vertices: np.ndarray, uvs: np.ndarray, triangles: np.ndarray) -> None:
        """Append geometry; `triangles` must already be offset by the current vertex count."""
        self.vertices = np.concatenate([self.vertices, np.asarray(vertices, dtype=np.float64).reshape(-1, 3)], axis=0)
        self.uvs = np.concatenate([self.uvs, np.asarray(uvs, dtype=np.float64).reshape(-1, 2)], axis=0)
        self.triangles = np.concatenate([self.triangles, np.asarray(triangles, dtype=np.int64).reshape(-1)], axis=0)

    def extend(self, other: "MeshData") -> None:
        self.append(other.vertices, other.uvs, other.triangles + self.vertex_count)

    def to_buffers(self) -> MeshBuffers:
        tris = self.triangles.reshape(-1, 3)
        if self.is_empty():
            lo = hi = np.zeros(3, dtype=np.float32)
        else:
            lo = self.vertices.min(axis=0).astype(np.float32)
            hi = self.vertices.max(axis=0).astype(np.float32)
        return MeshBuffers(
            vertices=self.vertices.astype(np.float32),
            uvs=self.uvs.astype(np.float32),
            triangles=tris.astype(np.uint32),
            normals=recalculate_normals(self.vertices, tris),
            bounds=(lo, hi),
        )


@dataclass
class LODLevel:
    resolution: int
    distance: float
    collider_distance: float
    mesh_data: Optional[MeshData] = None
    handle: Any = None  # presenter-owned, opaque here

    @property
    def available(self) -> bool:
        return self.handle is not None or self.mesh_data is not None


class ChunkState(enum.Enum):
    REQUESTED = "requested"
    GENERATING = "generating"
    POPULATED = "populated"
    ACTIVE = "active"
    EVICTED = "evicted"


@dataclass
class GeneratedChunk:
    """Worker output for one chunk; `meshes[i]` is None when tier i failed."""
    coord: ChunkCoord
    meshes: List[Optional[MeshData]]
    errors: List[str] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return all(m is None for m in self.meshes)


@dataclass
class GenerationTask:
    coord: ChunkCoord
    on_done: Callable[["GenerationTask", GeneratedChunk], None]
    started: threading.Event = field(default_factory=threading.Event, repr=False)
    cancelled: threading.Event = field(default_factory=threading.Event, repr=False)


@dataclass
class Chunk:
    coord: ChunkCoord
    lod_levels: List[LODLevel] = field(default_factory=list)
    current_lod: int = -1
    is_active: bool = False
    needs_collider: bool = True
    has_collider: bool = False
    evicted: bool = False
    task: Optional[GenerationTask] = field(default=None, repr=False)

    @property
    def populated(self) -> bool:
        return any(level.available for level in self.lod_levels)

    @property
    def state(self) -> ChunkState:
        if self.evicted:
            return ChunkState.EVICTED
        if self.is_active:
            return ChunkState.ACTIVE
        if self.populated:
            return ChunkState.POPULATED
        if self.task is not None and self.task.started.is_set():
            return ChunkState.GENERATING
        return ChunkState.REQUESTED
