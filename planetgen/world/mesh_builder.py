from __future__ import annotations

import numpy as np

from planetgen.world.chunk import MeshData

FACE_NORMALS = (
    (1.0, 0.0, 0.0),
    (-1.0, 0.0, 0.0),
    (0.0, 1.0, 0.0),
    (0.0, -1.0, 0.0),
    (0.0, 0.0, 1.0),
    (0.0, 0.0, -1.0),
)

def face_axes(face_normal) -> tuple[np.ndarray, np.ndarray]:
    """Two in-plane axes for a face: a is the normal's components rotated, b = n x a."""
    n = np.asarray(face_normal, dtype=np.float64)
    axis_a = np.array([n[1], n[2], n[0]], dtype=np.float64)
    axis_b = np.cross(n, axis_a)
    return axis_a, axis_b

def build_indices(res: int, offset: int = 0) -> np.ndarray:
    """Build indices for a (res x res) row-major grid.

    Each cell (i0 top-left, i1 right, i2 below, i3 diagonal) becomes
    (i0, i2, i1) and (i1, i2, i3).
    """
    res = max(1, int(res))
    if res < 2:
        return np.zeros(0, dtype=np.uint32)
    j, i = np.meshgrid(np.arange(res - 1), np.arange(res - 1), indexing="ij")
    i0 = (j * res + i).reshape(-1) + int(offset)
    i1 = i0 + 1
    i2 = i0 + res
    i3 = i2 + 1
    return np.stack([i0, i2, i1, i1, i2, i3], axis=1).reshape(-1).astype(np.uint32)

def build_face(
    mesh: MeshData,
    face_normal,
    resolution: int,
    size: float,
    center_offset,
    projector,
) -> MeshData:
    """Append one projected quad-grid face to `mesh` and return it.

    Grid points span -size/2..+size/2 along both face axes, sit size/2 out
    along the normal from `center_offset`, and go through `projector.project`.
    """
    res = max(1, int(resolution))
    n = np.asarray(face_normal, dtype=np.float64)
    axis_a, axis_b = face_axes(n)
    size = float(size)
    center = np.asarray(center_offset, dtype=np.float64).reshape(3)

    pct = np.arange(res, dtype=np.float64) / max(1, res - 1)
    px, py = np.meshgrid(pct, pct, indexing="xy")
    px = px.reshape(-1, 1)
    py = py.reshape(-1, 1)

    cube = center + n * (size / 2.0) + (px - 0.5) * size * axis_a + (py - 0.5) * size * axis_b
    verts = projector.project(cube)
    uvs = np.concatenate([px, py], axis=1)

    mesh.append(verts, uvs, build_indices(res, offset=mesh.vertex_count))
    return mesh
