import os

import jax.numpy as jnp
import numpy as np

from d2q9bgk.lattice import C_SQ, LatticeState, macroscopic, obstacle_mask

PARAMS = (
    ("nx", int),
    ("ny", int),
    ("maxIters", int),
    ("reynolds_dim", int),
    ("density", float),
    ("accel", float),
    ("omega", float),
)

FINAL_STATE_FMT = ["%d", "%d", "%.12E", "%.12E", "%.12E", "%.12E", "%d"]


def load_params(file_path: str) -> dict:
    """
    Read the seven whitespace separated values of a parameter file, in
    order: nx, ny, maxIters, reynolds_dim, density, accel, omega.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"could not open input parameter file: {file_path}")

    with open(file_path, "r") as f:
        values = f.read().split()

    params = {}

    for i, (name, cast) in enumerate(PARAMS):
        try:
            params[name] = cast(values[i])
        except (IndexError, ValueError):
            raise ValueError(f"could not read param file: {name}") from None

    if len(values) > len(PARAMS):
        raise ValueError(
            f"expected {len(PARAMS)} values in param file, found {len(values)}"
        )

    if params["nx"] <= 0:
        raise ValueError(f"nx must be positive, got {params['nx']}")
    if params["ny"] < 2:
        raise ValueError(f"ny must be at least 2, got {params['ny']}")
    if params["maxIters"] < 0:
        raise ValueError(f"maxIters must not be negative, got {params['maxIters']}")
    if params["omega"] <= 0.0:
        raise ValueError(f"omega must be positive, got {params['omega']}")

    return params


def load_obstacles(file_path: str, nx: int, ny: int) -> jnp.ndarray:
    """
    Read ``x y 1`` lines listing the blocked cells. Cells not listed are
    fluid; blank lines are skipped.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"could not open input obstacles file: {file_path}")

    cells = []

    with open(file_path, "r") as f:
        for number, line in enumerate(f, start=1):
            parts = line.split()

            if not parts:
                continue

            message = f"expected 3 values per line in obstacle file (line {number})"

            if len(parts) != 3:
                raise ValueError(message)

            try:
                xx, yy, blocked = (int(p) for p in parts)
            except ValueError:
                raise ValueError(message) from None

            if xx < 0 or xx > nx - 1:
                raise ValueError(f"obstacle x-coord out of range (line {number})")
            if yy < 0 or yy > ny - 1:
                raise ValueError(f"obstacle y-coord out of range (line {number})")
            if blocked != 1:
                raise ValueError(
                    f"obstacle blocked value should be 1 (line {number})"
                )

            cells.append((xx, yy))

    return obstacle_mask(nx, ny, cells)


def write_final_state(
    file_path: str, state: LatticeState, mask: jnp.ndarray, density: float
) -> None:
    """
    One row-major line per cell: ``col row ux uy |u| pressure obstacle``.
    Solid cells report zero velocity and the reference pressure.
    """
    rho, ux, uy = (np.asarray(a, dtype=np.float64) for a in macroscopic(state.speeds))
    masknp = np.asarray(mask, dtype=bool)

    ux = np.where(masknp, 0.0, ux)
    uy = np.where(masknp, 0.0, uy)
    speed = np.sqrt(ux**2 + uy**2)
    pressure = np.where(masknp, density * C_SQ, rho * C_SQ)

    J, I = np.indices(masknp.shape)

    out = np.column_stack(
        [
            I.ravel(),
            J.ravel(),
            ux.ravel(),
            uy.ravel(),
            speed.ravel(),
            pressure.ravel(),
            masknp.ravel().astype(int),
        ]
    )

    np.savetxt(file_path, out, fmt=FINAL_STATE_FMT)


def write_av_vels(file_path: str, av_vels) -> None:
    av = np.asarray(av_vels, dtype=np.float64).ravel()

    out = np.column_stack([np.arange(av.size), av])

    np.savetxt(file_path, out, fmt="%d:\t%.12E")


def load_final_state(file_path: str):
    """
    Read a final state file back into (ny, nx) arrays.

    Returns X, Y, ux, uy, speed, pressure, mask.
    """
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"File does not exist: {file_path}")

    data_rows = []

    with open(file_path, "r") as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()

            if len(parts) != 7:
                raise ValueError(
                    f"Expected 7 columns per line in {file_path}, found {len(parts)}"
                )

            data_rows.append([float(p) for p in parts])

    if not data_rows:
        raise ValueError(f"No valid data found in {file_path}")

    data = np.array(data_rows)
    i_idx = data[:, 0].astype(int)
    j_idx = data[:, 1].astype(int)

    nx = i_idx.max() + 1
    ny = j_idx.max() + 1

    ux = np.zeros((ny, nx))
    uy = np.zeros((ny, nx))
    speed = np.zeros((ny, nx))
    pressure = np.zeros((ny, nx))
    mask = np.zeros((ny, nx), dtype=bool)

    ux[j_idx, i_idx] = data[:, 2]
    uy[j_idx, i_idx] = data[:, 3]
    speed[j_idx, i_idx] = data[:, 4]
    pressure[j_idx, i_idx] = data[:, 5]
    mask[j_idx, i_idx] = data[:, 6].astype(int) == 1

    X, Y = np.meshgrid(np.arange(nx), np.arange(ny))

    return X, Y, ux, uy, speed, pressure, mask


def load_av_vels(file_path: str) -> np.ndarray:
    if not os.path.isfile(file_path):
        raise FileNotFoundError(f"File does not exist: {file_path}")

    values = []

    with open(file_path, "r") as f:
        for line in f:
            if not line.strip():
                continue

            _, value = line.split(":", 1)
            values.append(float(value))

    return np.array(values)
