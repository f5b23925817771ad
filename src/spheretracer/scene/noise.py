"""Perlin gradient noise for procedural scene layout.

Random unit gradients sit on an integer lattice, selected by hashing the
lattice coordinates through three permutation tables, and are blended with
Hermite-smoothed trilinear weights. Evaluated on the host with numpy, so a
whole grid of positions is computed in one call.

Example:
    >>> from spheretracer.scene.noise import Perlin
    >>> noise = Perlin(seed=0)
    >>> float(noise(1.0, 2.0, 3.0))
    0.0
"""

import numpy as np
import numpy.typing as npt

# Lattice period; table indices wrap with & (POINT_COUNT - 1)
POINT_COUNT = 256


class Perlin:
    """Three-dimensional Perlin noise over a fixed random lattice.

    Values lie roughly in [-1, 1] and are exactly 0 at lattice points.

    Args:
        seed: Seed for the gradient and permutation tables.
    """

    def __init__(self, seed: int = 0) -> None:
        rng = np.random.default_rng(seed)
        gradients = rng.normal(size=(POINT_COUNT, 3))
        self.gradients = gradients / np.linalg.norm(gradients, axis=1, keepdims=True)
        self.perm = np.stack([rng.permutation(POINT_COUNT) for _ in range(3)])

    def __call__(self, x, y, z) -> npt.NDArray[np.float64]:
        """Noise at the points (x, y, z). Arguments broadcast against each other."""
        p = np.stack(np.broadcast_arrays(*(np.asarray(c, dtype=np.float64) for c in (x, y, z))), axis=-1)
        cell = np.floor(p)
        frac = p - cell
        lattice = cell.astype(np.int64)
        smooth = frac * frac * (3.0 - 2.0 * frac)

        accum = np.zeros(p.shape[:-1])
        for di in (0, 1):
            for dj in (0, 1):
                for dk in (0, 1):
                    corner = np.array([di, dj, dk])
                    h = (
                        self.perm[0][(lattice[..., 0] + di) & (POINT_COUNT - 1)]
                        ^ self.perm[1][(lattice[..., 1] + dj) & (POINT_COUNT - 1)]
                        ^ self.perm[2][(lattice[..., 2] + dk) & (POINT_COUNT - 1)]
                    )
                    weight = np.prod(np.where(corner == 1, smooth, 1.0 - smooth), axis=-1)
                    accum += weight * np.sum(self.gradients[h] * (frac - corner), axis=-1)
        return accum

    def __repr__(self) -> str:
        return f"Perlin(points={POINT_COUNT})"
