import os
import time

import jax.numpy as jnp

from d2q9bgk.lbm import LBM
from d2q9bgk.plot import plotter


def build_periodic_cylinder_mask(nx, ny, l, h, n_cylinders, radius):
    """
    nx, ny: domain size
    l, h: spacings used to place cylinder rows/columns (in grid cells)
    n_cylinders: cylinders per row (staggered 2-row layout)
    radius: cylinder radius in grid cells

    Returns: (ny, nx) mask, cylinders wrapping across the periodic edges.
    """

    J, I = jnp.meshgrid(jnp.arange(ny), jnp.arange(nx), indexing="ij")

    def pbc_delta(a, b, L):
        # Minimum-image displacement on periodic domain of length L
        return jnp.mod(a - b + 0.5 * L, L) - 0.5 * L

    mask = jnp.zeros((ny, nx), dtype=bool)

    top = True
    for k in range(n_cylinders):
        cx = (k + 0.5) * l
        cy = 1.5 * h if top else 0.5 * h

        dx = pbc_delta(I, cx, nx)
        dy = pbc_delta(J, cy, ny)
        mask = mask | (dx**2 + dy**2 <= radius**2)

        top = not top

    return mask


if __name__ == "__main__":
    start = time.perf_counter()

    l = 32
    radius = l / 4
    n_cylinders = 4

    nx = n_cylinders * l
    ny = 2 * l

    mask = build_periodic_cylinder_mask(nx, ny, l, l, n_cylinders, radius)

    params = {
        "nx": nx,
        "ny": ny,
        "maxIters": 4000,
        "reynolds_dim": int(2 * radius),
        "density": 0.1,
        "accel": 0.005,
        "omega": 1.7,
    }

    simulation = LBM(params, mask, prefix="cylinders")
    simulation.run()

    dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), "results")
    final_state, _ = simulation.save(dir)

    plotter(final_state, rewrite=True)

    print(f"Reynolds number: {simulation.reynolds():.6e}")
    print(f"Done ({(time.perf_counter() - start):.3f}s)")
