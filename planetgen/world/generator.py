from __future__ import annotations

from typing import Sequence

import numpy as np

from planetgen.config import LODSetting
from planetgen.world.chunk import ChunkCoord, MeshData
from planetgen.world.mesh_builder import FACE_NORMALS, build_face
from planetgen.world.sphere import SphereProjector


class ChunkMeshGenerator:
    """Builds closed six-face chunk meshes, one per LOD tier.

    Holds only read-only parameters, so one instance is shared by all workers.
    """

    def __init__(self, projector: SphereProjector, chunk_size: float) -> None:
        self.projector = projector
        self.chunk_size = float(chunk_size)

    def generate_lod(self, coord: ChunkCoord, resolution: int) -> MeshData:
        center = ChunkCoord(*coord).center(self.chunk_size)
        mesh = MeshData()
        for normal in FACE_NORMALS:
            build_face(mesh, normal, resolution, self.chunk_size, center, self.projector)
        return mesh

    def generate(self, coord: ChunkCoord, lod_settings: Sequence[LODSetting]) -> list[MeshData]:
        return [self.generate_lod(coord, s.resolution) for s in lod_settings]

    def generate_planet(self, resolution: int) -> MeshData:
        """Whole cube-sphere: the unit cube's six faces around the origin."""
        mesh = MeshData()
        origin = np.zeros(3, dtype=np.float64)
        for normal in FACE_NORMALS:
            build_face(mesh, normal, resolution, 2.0, origin, self.projector)
        return mesh
