from __future__ import annotations

from typing import Sequence

import numpy as np

def normalize_rows(v: np.ndarray) -> np.ndarray:
    """Normalize each row of an (N,3) array; zero rows stay zero."""
    n = np.linalg.norm(v, axis=-1, keepdims=True)
    return v / np.maximum(n, 1e-12)

def world_to_chunk(pos: Sequence[float], chunk_size: float) -> tuple[int, int, int]:
    p = np.floor(np.asarray(pos, dtype=np.float64) / float(chunk_size)).astype(np.int64)
    return int(p[0]), int(p[1]), int(p[2])

def distance(a: Sequence[float], b: Sequence[float]) -> float:
    d = np.asarray(a, dtype=np.float64) - np.asarray(b, dtype=np.float64)
    return float(np.sqrt(np.dot(d, d)))

def recalculate_normals(vertices: np.ndarray, triangles: np.ndarray) -> np.ndarray:
    """Area-weighted vertex normals.

    Triangles are clockwise-front: the face normal of (a, b, c) is
    cross(c - a, b - a).
    """
    v = np.asarray(vertices, dtype=np.float64).reshape(-1, 3)
    t = np.asarray(triangles, dtype=np.int64).reshape(-1, 3)
    normals = np.zeros_like(v)
    if t.shape[0] == 0:
        return normals.astype(np.float32)
    a = v[t[:, 0]]
    b = v[t[:, 1]]
    c = v[t[:, 2]]
    face = np.cross(c - a, b - a)
    for k in range(3):
        np.add.at(normals, t[:, k], face)
    return normalize_rows(normals).astype(np.float32)

def exp_smooth(current: float, target: float, k: float, dt: float) -> float:
    alpha = 1.0 - float(np.exp(-k * dt))
    return current + (target - current) * alpha
