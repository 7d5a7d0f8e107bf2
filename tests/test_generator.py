"""Tests for whole-chunk and whole-planet mesh generation."""
from __future__ import annotations

import numpy as np

from planetgen.world.chunk import ChunkCoord
from planetgen.world.generator import ChunkMeshGenerator

from conftest import SCENARIO_LODS


def test_generate_returns_one_closed_mesh_per_tier(generator: ChunkMeshGenerator) -> None:
    meshes = generator.generate(ChunkCoord(1, -2, 0), SCENARIO_LODS)
    assert len(meshes) == len(SCENARIO_LODS)
    for mesh, lod in zip(meshes, SCENARIO_LODS):
        r = lod.resolution
        assert mesh.vertex_count == 6 * r * r
        assert mesh.triangles.size == 6 * 6 * (r - 1) ** 2
        assert mesh.triangles.max() < mesh.vertex_count


def test_generation_is_pure(generator: ChunkMeshGenerator) -> None:
    a = generator.generate_lod(ChunkCoord(0, 3, -1), 6)
    b = generator.generate_lod(ChunkCoord(0, 3, -1), 6)
    assert np.array_equal(a.vertices, b.vertices)
    assert np.array_equal(a.triangles, b.triangles)


def test_neighbouring_chunks_differ(generator: ChunkMeshGenerator) -> None:
    a = generator.generate_lod(ChunkCoord(0, 0, 0), 4)
    b = generator.generate_lod(ChunkCoord(1, 0, 0), 4)
    assert not np.allclose(a.vertices, b.vertices)


def test_planet_faces_meet_at_seams(generator: ChunkMeshGenerator) -> None:
    res = 5
    mesh = generator.generate_planet(res)
    per_face = res * res
    verts = mesh.vertices
    assert verts.shape[0] == 6 * per_face

    uv = mesh.uvs[:per_face]
    edge = (uv[:, 0] == 0.0) | (uv[:, 0] == 1.0) | (uv[:, 1] == 0.0) | (uv[:, 1] == 1.0)
    for f in range(6):
        own = verts[f * per_face:(f + 1) * per_face]
        others = np.delete(verts, np.s_[f * per_face:(f + 1) * per_face], axis=0)
        for p in own[edge]:
            gap = np.min(np.linalg.norm(others - p, axis=1))
            assert gap < 1e-6


def test_planet_surface_is_within_noise_band(generator: ChunkMeshGenerator) -> None:
    proj = generator.projector
    r = np.linalg.norm(generator.generate_planet(6).vertices, axis=1)
    assert r.min() >= proj.radius - proj.noise_amplitude
    assert r.max() <= proj.radius + proj.noise_amplitude
