"""Tests for cube-to-sphere projection."""
from __future__ import annotations

import numpy as np

from planetgen.config import PlanetParams
from planetgen.world.sphere import SphereProjector, project


def test_projected_radius_stays_within_noise_band(projector: SphereProjector) -> None:
    rng = np.random.default_rng(0)
    pts = rng.uniform(-50.0, 50.0, size=(1000, 3))
    r = np.linalg.norm(projector.project(pts), axis=1)
    assert np.all(r >= projector.radius - projector.noise_amplitude)
    assert np.all(r <= projector.radius + projector.noise_amplitude)


def test_zero_vector_is_guarded(projector: SphereProjector) -> None:
    out = projector.project(np.zeros(3))
    assert out.shape == (3,)
    assert np.all(np.isfinite(out))
    assert np.linalg.norm(out) >= projector.radius


def test_zero_rows_in_a_batch_are_guarded(projector: SphereProjector) -> None:
    pts = np.array([[0.0, 0.0, 0.0], [1.0, 2.0, 3.0]])
    out = projector.project(pts)
    assert out.shape == (2, 3)
    assert not np.any(np.isnan(out))
    # the input is left untouched
    assert np.array_equal(pts[0], np.zeros(3))


def test_displacement_is_along_the_projected_direction(projector: SphereProjector) -> None:
    p = np.array([3.0, -4.0, 12.0])
    out = projector.project(p)
    assert np.allclose(out / np.linalg.norm(out), p / np.linalg.norm(p))


def test_zero_amplitude_lands_on_the_ideal_sphere() -> None:
    flat = SphereProjector(radius=50.0, noise_amplitude=0.0)
    r = np.linalg.norm(flat.project(np.array([[1.0, 1.0, 1.0], [-7.0, 0.5, 2.0]])), axis=1)
    assert np.allclose(r, 50.0)


def test_function_and_class_agree(projector: SphereProjector) -> None:
    p = np.array([[5.0, 6.0, -2.0]])
    direct = project(p, projector.radius, projector.noise_frequency, projector.noise_amplitude, projector.noise)
    assert np.array_equal(direct, projector.project(p))


def test_from_params_copies_planet_settings() -> None:
    params = PlanetParams(radius=80.0, noise_frequency=0.2, noise_amplitude=4.0, seed=3, octaves=2)
    proj = SphereProjector.from_params(params)
    assert proj.radius == 80.0
    assert proj.noise.cfg.octaves == 2
    assert 80.0 <= proj.height_at(np.array([0.0, 1.0, 0.0])) <= 84.0
