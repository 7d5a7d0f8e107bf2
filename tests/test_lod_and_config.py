"""Tests for LOD selection, the collider gate and parameter validation."""
from __future__ import annotations

import numpy as np
import pytest

from planetgen.config import ConfigError, LODSetting, PlanetParams, StreamingParams, default_lod_settings
from planetgen.world.lod import collider_enabled, make_lod_levels, select_lod

from conftest import SCENARIO_LODS


@pytest.mark.parametrize(
    "distance, expected",
    [(0.0, 0), (27.7, 0), (50.0, 0), (50.01, 1), (120.0, 1), (200.0, 1), (5000.0, 1)],
)
def test_select_lod_thresholds(distance: float, expected: int) -> None:
    assert select_lod(distance, SCENARIO_LODS) == expected


def test_select_lod_is_monotonic() -> None:
    lods = default_lod_settings()
    picks = [select_lod(d, lods) for d in np.linspace(0.0, 600.0, 601)]
    assert picks == sorted(picks)
    assert picks[0] == 0
    assert picks[-1] == len(lods) - 1


def test_single_tier_is_always_selected() -> None:
    lods = (LODSetting(10.0, 4, 5.0),)
    assert select_lod(0.0, lods) == 0
    assert select_lod(1e6, lods) == 0


def test_collider_gate() -> None:
    assert collider_enabled(0.0, SCENARIO_LODS, 0)
    assert collider_enabled(30.0, SCENARIO_LODS, 0)
    assert not collider_enabled(30.5, SCENARIO_LODS, 0)
    # zero collider distance disables the tier outright
    assert not collider_enabled(120.0, SCENARIO_LODS, 1)
    assert not collider_enabled(0.0, SCENARIO_LODS, 1)


def test_make_lod_levels_copies_tiers() -> None:
    levels = make_lod_levels(SCENARIO_LODS)
    assert [lv.resolution for lv in levels] == [8, 4]
    assert all(lv.mesh_data is None and lv.handle is None for lv in levels)


@pytest.mark.parametrize(
    "overrides",
    [
        dict(chunk_size=0.0),
        dict(chunk_size=-16.0),
        dict(load_radius=-1),
        dict(max_chunks_per_frame=0),
        dict(chunk_load_distance=-1.0),
        dict(workers=0),
        dict(lod_settings=()),
        dict(lod_settings=(LODSetting(50.0, 0, 0.0),)),
        dict(lod_settings=(LODSetting(200.0, 8, 0.0), LODSetting(50.0, 4, 0.0))),
    ],
)
def test_streaming_params_fail_fast(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        StreamingParams(**overrides).validate()


@pytest.mark.parametrize(
    "overrides",
    [dict(radius=0.0), dict(octaves=0), dict(noise_mode="perlin")],
)
def test_planet_params_fail_fast(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        PlanetParams(**overrides).validate()


def test_defaults_are_valid() -> None:
    StreamingParams().validate()
    PlanetParams().validate()


def test_eviction_distance_is_load_distance_times_radius() -> None:
    params = StreamingParams(chunk_load_distance=100.0, load_radius=3)
    assert params.eviction_distance == 300.0
