import copy
import os
from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
from tqdm import tqdm

from d2q9bgk.diagnostics import reynolds_number, total_density
from d2q9bgk.fileio import write_av_vels, write_final_state
from d2q9bgk.lattice import (
    BOUNCE,
    EX,
    EY,
    NSPEEDS,
    LatticeState,
    equilibrium,
    initialize,
    macroscopic,
    mean_speed,
)


class LBM:
    def __init__(
        self,
        params: dict,
        mask: jnp.ndarray = None,
        state: LatticeState = None,
        prefix: str = None,
    ):

        self.params = copy.deepcopy(params)
        self.nx = self.params["nx"]
        self.ny = self.params["ny"]
        self.density = float(self.params["density"])
        self.accel = float(self.params.get("accel", 0.0))
        self.omega = float(self.params["omega"])
        self.max_iters = int(self.params.get("maxIters", 0))
        self.reynolds_dim = self.params.get("reynolds_dim", self.ny)

        if self.ny < 2:
            # forcing acts on row ny - 2
            raise ValueError(f"ny must be at least 2, got {self.ny}")

        self.prefix = prefix + "_" if prefix else ""

        self.state = initialize(self.nx, self.ny, self.density)

        if state is not None:
            self.check(state)
            self.state = state

        expected = (self.ny, self.nx)

        if mask is None:
            self.mask = jnp.zeros(expected, dtype=bool)
        elif jnp.shape(mask) == expected:
            self.mask = jnp.asarray(mask, dtype=bool)
        else:
            raise ValueError(
                f"Obstacle mask shape {jnp.shape(mask)} does not match grid {expected}"
            )

        self.iteration = 0
        self.av_vels = []

    def check(self, state: LatticeState) -> None:
        expected = (NSPEEDS, self.ny, self.nx)

        if state.speeds.shape != expected:
            raise ValueError(
                f"Lattice state shape {state.speeds.shape} does not match {expected}"
            )

    @partial(jax.jit, static_argnums=0)
    def accelerate(self, state: LatticeState) -> LatticeState:
        """
        Push the row below the top towards +x. A cell is skipped when the
        west-side densities would go negative, and the cell density
        is unchanged either way.
        """
        self.check(state)

        jj = self.ny - 2
        w1 = self.density * self.accel / 9.0
        w2 = self.density * self.accel / 36.0

        row = state.speeds[:, jj, :]

        apply = (
            ~self.mask[jj]
            & (row[3] - w1 >= 0.0)
            & (row[6] - w2 >= 0.0)
            & (row[7] - w2 >= 0.0)
        )

        delta = jnp.array(
            [0.0, w1, 0.0, -w1, 0.0, w2, -w2, -w2, w2], dtype=state.speeds.dtype
        )
        row = jnp.where(apply[None], row + delta[:, None], row)

        return LatticeState(state.speeds.at[:, jj, :].set(row))

    def stream(self, f: jnp.ndarray) -> jnp.ndarray:
        """
        Periodic pull: channel k at (row, col) comes from
        (row - ey[k], col - ex[k]) wrapped around the torus.
        """
        shifts = [(int(dy), int(dx)) for dy, dx in zip(np.asarray(EY), np.asarray(EX))]

        return jnp.stack(
            [
                jnp.roll(jnp.roll(f[k], dy, axis=0), dx, axis=1)
                for k, (dy, dx) in enumerate(shifts)
            ]
        )

    @partial(jax.jit, static_argnums=0)
    def stream_collide(self, state: LatticeState) -> tuple[LatticeState, jnp.ndarray]:
        """
        Streaming, bounce-back and BGK collision fused in one pass.

        Returns the next state and the mean velocity magnitude over fluid
        cells, measured on the streamed populations. NaN when every cell
        is solid.
        """
        self.check(state)

        fstr = self.stream(state.speeds)
        rho, ux, uy = macroscopic(fstr)

        feq = equilibrium(rho, ux, uy)
        fcol = fstr + self.omega * (feq - fstr)

        fout = jnp.where(self.mask[None], fstr[BOUNCE], fcol)

        return LatticeState(fout), mean_speed(ux, uy, self.mask)

    @partial(jax.jit, static_argnums=0)
    def timestep(self, state: LatticeState) -> tuple[LatticeState, jnp.ndarray]:
        return self.stream_collide(self.accelerate(state))

    def reynolds(self) -> float:
        return reynolds_number(self.state, self.mask, self.omega, self.reynolds_dim)

    def run(
        self, steps: int = None, progress: bool = True, debug: bool = False
    ) -> np.ndarray:
        steps = self.max_iters if steps is None else steps

        state = self.state

        for it in tqdm(
            range(self.iteration, self.iteration + steps), disable=not progress
        ):
            state, av_vel = self.timestep(state)

            self.av_vels.append(av_vel)

            if debug:
                tqdm.write(f"==timestep: {it}==")
                tqdm.write(f"av velocity: {float(av_vel):.12E}")
                tqdm.write(f"tot density: {float(total_density(state)):.12E}")

        self.state = jax.block_until_ready(state)
        self.iteration += steps

        return np.asarray(jax.device_get(self.av_vels), dtype=np.float32)

    def save(self, dir: str = ".") -> tuple[str, str]:
        os.makedirs(dir, exist_ok=True)

        final_state = os.path.join(dir, f"{self.prefix}final_state.dat")
        av_vels = os.path.join(dir, f"{self.prefix}av_vels.dat")

        write_final_state(final_state, self.state, self.mask, self.density)
        write_av_vels(av_vels, jax.device_get(self.av_vels))

        return final_state, av_vels
