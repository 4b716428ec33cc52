"""
D2Q9 lattice: constants, the channel-major lattice state and the
macroscopic moments shared by the kernel and the diagnostics.

Speeds are numbered as follows:

    6   2   5
      \\ | /
    3 - 0 - 1
      / | \\
    7   4   8

A state holds the 9 channels as one contiguous (9, ny, nx) array, so each
channel flattened is a dense buffer addressed by ``col + row * nx``.
"""

from typing import NamedTuple

import jax
import jax.numpy as jnp
import numpy as np

NSPEEDS = 9

C_SQ = 1.0 / 3.0

WT = jnp.array([4 / 9] + [1 / 9] * 4 + [1 / 36] * 4, dtype=jnp.float32)

EX = jnp.array([0, 1, 0, -1, 0, 1, -1, -1, 1], dtype=jnp.int32)
EY = jnp.array([0, 0, 1, 0, -1, 1, 1, -1, -1], dtype=jnp.int32)

BOUNCE = jnp.array([0, 3, 4, 1, 2, 7, 8, 5, 6], dtype=jnp.int32)


class LatticeState(NamedTuple):
    speeds: jnp.ndarray

    @property
    def ny(self) -> int:
        return self.speeds.shape[1]

    @property
    def nx(self) -> int:
        return self.speeds.shape[2]

    def index(self, row: int, col: int) -> int:
        if not (0 <= row < self.ny and 0 <= col < self.nx):
            raise IndexError(
                f"Cell ({row}, {col}) outside grid ({self.ny} rows, {self.nx} cols)"
            )

        return col + row * self.nx

    def channel(self, k: int) -> jnp.ndarray:
        return self.speeds[k].reshape(-1)


def check_dimensions(nx: int, ny: int) -> None:
    if int(nx) != nx or int(ny) != ny or nx <= 0 or ny <= 0:
        raise ValueError(f"Grid dimensions must be positive integers, got ({nx}, {ny})")


def initialize(nx: int, ny: int, density: float) -> LatticeState:
    """
    Uniform density at rest: every cell holds the zero velocity equilibrium.
    """
    check_dimensions(nx, ny)

    speeds = jnp.ones((NSPEEDS, ny, nx), dtype=jnp.float32) * (WT * density)[
        :, None, None
    ]

    return LatticeState(speeds)


def obstacle_mask(nx: int, ny: int, cells=()) -> jnp.ndarray:
    """
    Boolean (ny, nx) mask, True on solid cells. ``cells`` holds (x, y) pairs,
    x being the column and y the row.
    """
    check_dimensions(nx, ny)

    mask = np.zeros((ny, nx), dtype=bool)

    for x, y in cells:
        if not (0 <= x < nx and 0 <= y < ny):
            raise ValueError(f"Obstacle ({x}, {y}) outside grid ({nx}, {ny})")

        mask[y, x] = True

    return jnp.asarray(mask)


@jax.jit
def macroscopic(f: jnp.ndarray) -> tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray]:
    rho = jnp.sum(f, axis=0)
    ux = (f[1] + f[5] + f[8] - (f[3] + f[6] + f[7])) / rho
    uy = (f[2] + f[5] + f[6] - (f[4] + f[7] + f[8])) / rho

    return rho, ux, uy


@jax.jit
def equilibrium(rho: jnp.ndarray, ux: jnp.ndarray, uy: jnp.ndarray) -> jnp.ndarray:
    usq = ux**2 + uy**2
    cu = ux[None] * EX[:, None, None] + uy[None] * EY[:, None, None]

    return (
        WT[:, None, None]
        * rho[None]
        * (1 + cu / C_SQ + cu**2 / (2 * C_SQ**2) - usq[None] / (2 * C_SQ))
    )


@jax.jit
def mean_speed(ux: jnp.ndarray, uy: jnp.ndarray, mask: jnp.ndarray) -> jnp.ndarray:
    # an all-solid grid gives 0 / 0, i.e. NaN
    fluid = ~mask
    tot_u = jnp.sum(jnp.where(fluid, jnp.sqrt(ux * ux + uy * uy), 0.0))
    tot_cells = jnp.sum(fluid)

    return tot_u / tot_cells
