from __future__ import annotations

import logging
from collections import deque
from typing import Any, Deque, Dict, Protocol, Tuple

from planetgen.world.chunk import ChunkCoord, MeshBuffers

logger = logging.getLogger(__name__)

EVENT_HISTORY = 4096


class ChunkPresenter(Protocol):
    """Turns finished chunk meshes into host-runtime resources.

    Every method is called from the consuming context only.
    """

    def create_mesh(self, coord: ChunkCoord, lod_index: int, buffers: MeshBuffers) -> Any: ...

    def show_mesh(self, coord: ChunkCoord, lod_index: int, handle: Any) -> None: ...

    def attach_collider(self, coord: ChunkCoord, handle: Any) -> None: ...

    def release_collider(self, coord: ChunkCoord) -> None: ...

    def destroy(self, coord: ChunkCoord) -> None: ...


class HeadlessPresenter:
    """Keeps the buffers themselves as handles and records what was shown.

    Only the last `history` events are kept; the counters cover the whole run.
    """

    def __init__(self, history: int = EVENT_HISTORY) -> None:
        self.visible: Dict[ChunkCoord, Tuple[int, MeshBuffers]] = {}
        self.colliders: Dict[ChunkCoord, MeshBuffers] = {}
        self.events: Deque[Tuple[str, ChunkCoord]] = deque(maxlen=history)
        self.meshes_created = 0
        self.chunks_destroyed = 0

    def create_mesh(self, coord: ChunkCoord, lod_index: int, buffers: MeshBuffers) -> MeshBuffers:
        self.meshes_created += 1
        self.events.append(("create", coord))
        return buffers

    def show_mesh(self, coord: ChunkCoord, lod_index: int, handle: MeshBuffers) -> None:
        self.visible[coord] = (lod_index, handle)
        self.events.append(("show", coord))

    def attach_collider(self, coord: ChunkCoord, handle: MeshBuffers) -> None:
        self.colliders[coord] = handle
        self.events.append(("collider_on", coord))

    def release_collider(self, coord: ChunkCoord) -> None:
        self.colliders.pop(coord, None)
        self.events.append(("collider_off", coord))

    def destroy(self, coord: ChunkCoord) -> None:
        self.visible.pop(coord, None)
        self.colliders.pop(coord, None)
        self.chunks_destroyed += 1
        self.events.append(("destroy", coord))
        logger.debug("destroyed chunk %s", tuple(coord))

    def vertex_total(self) -> int:
        return sum(h.vertex_count for _lod, h in self.visible.values())
