from __future__ import annotations

from typing import Sequence

from planetgen.config import LODSetting
from planetgen.world.chunk import LODLevel


def select_lod(distance: float, lod_settings: Sequence[LODSetting]) -> int:
    """Index of the first tier whose distance reaches `distance`.

    Tiers are ascending; an observer beyond every threshold gets the last tier.
    """
    last = len(lod_settings) - 1
    for i in range(last):
        if distance <= lod_settings[i].distance:
            return i
    return last


def collider_enabled(distance: float, lod_settings: Sequence[LODSetting], lod_index: int) -> bool:
    # A zero collider distance disables colliders for that tier.
    limit = lod_settings[lod_index].collider_distance
    return limit > 0 and distance <= limit


def make_lod_levels(lod_settings: Sequence[LODSetting]) -> list[LODLevel]:
    return [
        LODLevel(resolution=int(s.resolution), distance=float(s.distance), collider_distance=float(s.collider_distance))
        for s in lod_settings
    ]
