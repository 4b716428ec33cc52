import math

import jax
import jax.numpy as jnp

from d2q9bgk.lattice import LatticeState, macroscopic, mean_speed


@jax.jit
def total_density(state: LatticeState) -> jnp.ndarray:
    """
    Sum of every channel over the whole grid. Constant from one timestep
    to the next.
    """
    return jnp.sum(state.speeds)


@jax.jit
def average_velocity(state: LatticeState, mask: jnp.ndarray) -> jnp.ndarray:
    """
    Mean velocity magnitude over fluid cells, taken on the state as it is
    (no streaming). Uses the same moments and reduction as the kernel.
    """
    _, ux, uy = macroscopic(state.speeds)

    return mean_speed(ux, uy, mask)


def viscosity(omega: float) -> float:
    return 1.0 / 6.0 * (2.0 / omega - 1.0)


def reynolds_from_velocity(
    av_velocity: float, omega: float, reynolds_dim: float
) -> float:
    visc = viscosity(omega)
    numerator = av_velocity * reynolds_dim

    if visc == 0.0:
        # IEEE x / 0
        if numerator == 0.0 or math.isnan(numerator):
            return math.nan
        return math.copysign(math.inf, numerator)

    return numerator / visc


def reynolds_number(
    state: LatticeState, mask: jnp.ndarray, omega: float, reynolds_dim: float
) -> float:
    return reynolds_from_velocity(
        float(average_velocity(state, mask)), omega, reynolds_dim
    )
