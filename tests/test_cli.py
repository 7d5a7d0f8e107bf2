"""Tests for the headless runner and command line entry point."""
from __future__ import annotations

import numpy as np

from planetgen.app import OrbitObserver, run_stream
from planetgen.cli import main
from planetgen.config import PlanetParams

from conftest import scenario_params


def test_orbit_observer_follows_the_surface() -> None:
    obs = OrbitObserver(speed=10.0, height_offset=5.0)
    assert obs() is None
    obs.update(0.0, lambda d: 100.0)
    assert np.allclose(np.linalg.norm(obs()), 105.0)
    angle = obs.angle
    obs.update(0.5, lambda d: 100.0)
    assert obs.angle > angle


def test_run_stream_streams_and_shuts_down() -> None:
    presenter = run_stream(
        planet=PlanetParams(radius=60.0, noise_amplitude=3.0),
        streaming=scenario_params(load_radius=1, chunk_load_distance=60.0),
        speed=20.0,
        duration=0.5,
        target_fps=60,
        debug=True,
    )
    assert presenter.meshes_created > 0
    # shutdown releases everything that was shown
    assert not presenter.visible


def test_sphere_summary(caplog) -> None:
    with caplog.at_level("INFO"):
        assert main(["--sphere", "4", "--seed", "3"]) == 0
    assert "96 vertices" in caplog.text


def test_invalid_arguments_exit_with_error() -> None:
    assert main(["--chunk-size", "0", "--duration", "0"]) == 2
