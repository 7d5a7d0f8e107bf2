from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from opensimplex import OpenSimplex

from planetgen.config import ConfigError, NOISE_MODES


@dataclass(frozen=True)
class NoiseConfig:
    octaves: int = 4
    lacunarity: float = 2.0
    gain: float = 0.5


class FastValueNoise2D:
    """Fast 2D value noise with fully vectorized numpy implementation.

    Uses an integer hash on lattice points and smooth interpolation.
    Deterministic for a given seed. Output is in [0,1).
    """

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._seed32 = np.uint32(self.seed & 0xFFFFFFFF)

    @staticmethod
    def _fade(t: np.ndarray) -> np.ndarray:
        # smootherstep
        return t * t * t * (t * (t * 6 - 15) + 10)

    def _hash(self, xi: np.ndarray, yi: np.ndarray) -> np.ndarray:
        # Vectorized integer hash -> uint32 -> [0,1)
        x = (xi.astype(np.uint32) * np.uint32(374761393)) ^ (yi.astype(np.uint32) * np.uint32(668265263)) ^ self._seed32
        x ^= (x >> np.uint32(13))
        x *= np.uint32(1274126177)
        x ^= (x >> np.uint32(16))
        return x.astype(np.float64) / 2.0**32

    def noise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        xf = np.floor(x)
        yf = np.floor(y)
        xi0 = xf.astype(np.int64)
        yi0 = yf.astype(np.int64)
        xi1 = xi0 + 1
        yi1 = yi0 + 1

        u = self._fade(x - xf)
        v = self._fade(y - yf)

        a = self._hash(xi0, yi0)
        b = self._hash(xi1, yi0)
        c = self._hash(xi0, yi1)
        d = self._hash(xi1, yi1)

        # bilinear interpolation with fade
        ab = a + (b - a) * u
        cd = c + (d - c) * u
        return ab + (cd - ab) * v


class SimplexNoise2D:
    """opensimplex-backed 2D noise remapped to [0,1]. Slower, kept for quality."""

    def __init__(self, seed: int) -> None:
        self.seed = int(seed)
        self._simp = OpenSimplex(self.seed)
        self._noise2 = np.vectorize(self._simp.noise2, otypes=[np.float64])

    def noise(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        n = self._noise2(np.asarray(x, dtype=np.float64), np.asarray(y, dtype=np.float64))
        return np.clip((n + 1.0) * 0.5, 0.0, 1.0)


class NoiseField:
    """Fractal 3D noise built from 2D noise on the xy, yz and zx planes.

    Each octave halves the amplitude and doubles the frequency; the sum is
    divided by the largest value it could reach, so output stays in [0,1)
    for any octave count. Holds no mutable state after construction and is
    safe to share between worker threads.
    """

    def __init__(self, base, cfg: NoiseConfig | None = None) -> None:
        self.base = base
        self.cfg = cfg or NoiseConfig()

    def sample3d(self, points: np.ndarray) -> np.ndarray:
        p = np.asarray(points, dtype=np.float64).reshape(-1, 3)
        x, y, z = p[:, 0], p[:, 1], p[:, 2]
        freq = 1.0
        amp = 1.0
        total = np.zeros(p.shape[0], dtype=np.float64)
        max_value = 0.0
        for _ in range(self.cfg.octaves):
            total += self.base.noise(x * freq, y * freq) * amp
            total += self.base.noise(y * freq, z * freq) * amp
            total += self.base.noise(z * freq, x * freq) * amp
            max_value += 3.0 * amp
            amp *= self.cfg.gain
            freq *= self.cfg.lacunarity
        return total / max(max_value, 1e-9)

    def sample(self, x: float, y: float, z: float) -> float:
        return float(self.sample3d(np.array([[x, y, z]], dtype=np.float64))[0])


def make_noise(mode: str, seed: int, cfg: NoiseConfig | None = None) -> NoiseField:
    if mode == "fast":
        base = FastValueNoise2D(seed)
    elif mode == "simplex":
        base = SimplexNoise2D(seed)
    else:
        raise ConfigError(f"unknown noise mode {mode!r} (expected one of {NOISE_MODES})")
    return NoiseField(base, cfg)
