import os
from pathlib import Path

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
from matplotlib.colors import ListedColormap

from d2q9bgk.fileio import load_av_vels, load_final_state

matplotlib.use("Agg")


def create_plot(
    file_path, X, Y, data, mask=None, u=None, v=None, title: str = "", label: str = ""
):
    width = X.max() - X.min()
    height = max(Y.max() - Y.min(), 1)
    aspect_ratio = max(width / height, 1.0)

    base_height = 6

    fig, ax = plt.subplots(figsize=(aspect_ratio * base_height, base_height))

    mesh = ax.pcolormesh(X, Y, data, shading="auto", cmap="rainbow")

    fig.colorbar(mesh, ax=ax, label=label)

    if u is not None and v is not None:
        ax.streamplot(X, Y, u, v, density=1, color="k", linewidth=0.7, arrowsize=0.5)

    if mask is not None:
        black_cmap = ListedColormap(["none", "white"])
        ax.pcolormesh(
            X, Y, mask.astype(float), shading="auto", cmap=black_cmap, vmin=0, vmax=1
        )

    ax.set_title(title)
    ax.set_xlabel("X")
    ax.set_ylabel("Y")

    ax.set_aspect("equal", "box")

    fig.savefig(file_path, dpi=150, bbox_inches="tight")
    plt.close(fig)


def plotter(
    file_path: str = "final_state.dat",
    save_dir: str = None,
    rewrite: bool = False,
    velocity: bool = True,
    vorticity: bool = True,
    pressure: bool = True,
) -> list[str]:
    """
    Render a final state file. Images go to ``save_dir`` (default: a
    ``plots/<file stem>`` directory beside the file). Returns the paths
    written.
    """
    base = Path(file_path).stem
    save = save_dir or os.path.join(
        os.path.dirname(os.path.abspath(file_path)), "plots", base
    )

    os.makedirs(save, exist_ok=True)

    X, Y, ux, uy, speed, p, mask = load_final_state(file_path)

    ny, nx = ux.shape
    name = f"{base} ({nx}, {ny})"

    velocity_path = os.path.join(save, "Velocity.png")
    vorticity_path = os.path.join(save, "Vorticity.png")
    pressure_path = os.path.join(save, "Pressure.png")

    written = []

    if velocity and (rewrite or not os.path.exists(velocity_path)):
        create_plot(velocity_path, X, Y, speed, mask, ux, uy, name, "Velocity")
        written.append(velocity_path)

    if vorticity and (rewrite or not os.path.exists(vorticity_path)):
        data = np.gradient(uy, axis=1) - np.gradient(ux, axis=0)
        create_plot(vorticity_path, X, Y, data, mask, None, None, name, "Vorticity")
        written.append(vorticity_path)

    if pressure and (rewrite or not os.path.exists(pressure_path)):
        # solid cells carry the reference pressure, hide them
        create_plot(pressure_path, X, Y, p, mask, None, None, name, "Pressure")
        written.append(pressure_path)

    return written


def plot_av_vels(file_path: str = "av_vels.dat", save_path: str = None) -> str:
    av_vels = load_av_vels(file_path)

    save_path = save_path or str(Path(file_path).with_suffix(".png"))

    fig, ax = plt.subplots(figsize=(8, 4))

    ax.plot(np.arange(av_vels.size), av_vels, color="k", linewidth=0.9)
    ax.set_xlabel("Timestep")
    ax.set_ylabel("Average velocity")
    ax.grid(True)

    fig.savefig(save_path, dpi=150, bbox_inches="tight")
    plt.close(fig)

    return save_path
