from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from planetgen.config import PlanetParams
from planetgen.world.noise import NoiseConfig, NoiseField, make_noise

ZERO_GUARD = 0.001


def project(points: np.ndarray, radius: float, noise_frequency: float, noise_amplitude: float, noise: NoiseField) -> np.ndarray:
    """Map cube-space points onto the noise-displaced sphere.

    Accepts a single vector or an (N,3) array and returns the same shape.
    The point is normalized onto the ideal sphere first, then pushed outward
    along that normal by the noise sampled at the sphere location.
    """
    p = np.asarray(points, dtype=np.float64)
    single = p.ndim == 1
    p = p.reshape(-1, 3).copy()

    length = np.linalg.norm(p, axis=1)
    zero = length == 0.0
    if np.any(zero):
        p[zero] = ZERO_GUARD
        length[zero] = np.linalg.norm(p[zero], axis=1)

    direction = p / length[:, None]
    sphere = direction * float(radius)
    h = noise.sample3d(sphere * float(noise_frequency)) * float(noise_amplitude)
    out = sphere + direction * h[:, None]
    return out[0] if single else out


@dataclass
class SphereProjector:
    radius: float = 100.0
    noise_frequency: float = 0.1
    noise_amplitude: float = 10.0
    seed: int = 12345
    mode: str = "fast"  # "fast" | "simplex"
    octaves: int = 4
    noise: NoiseField = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.noise = make_noise(self.mode, self.seed, NoiseConfig(octaves=int(self.octaves)))

    @classmethod
    def from_params(cls, params: PlanetParams) -> "SphereProjector":
        return cls(
            radius=params.radius,
            noise_frequency=params.noise_frequency,
            noise_amplitude=params.noise_amplitude,
            seed=params.seed,
            mode=params.noise_mode,
            octaves=params.octaves,
        )

    def project(self, points: np.ndarray) -> np.ndarray:
        return project(points, self.radius, self.noise_frequency, self.noise_amplitude, self.noise)

    def height_at(self, direction: np.ndarray) -> float:
        """Surface distance from the planet centre along a direction."""
        return float(np.linalg.norm(self.project(np.asarray(direction, dtype=np.float64))))
