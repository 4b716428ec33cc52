import os
import time

from d2q9bgk.fileio import load_obstacles, load_params
from d2q9bgk.lbm import LBM
from d2q9bgk.plot import plot_av_vels, plotter

if __name__ == "__main__":
    start = time.perf_counter()

    here = os.path.dirname(os.path.abspath(__file__))

    params = load_params(os.path.join(here, "input.params"))
    mask = load_obstacles(
        os.path.join(here, "obstacles.dat"), params["nx"], params["ny"]
    )

    simulation = LBM(params, mask)
    simulation.run()

    final_state, av_vels = simulation.save(os.path.join(here, "results"))

    plotter(final_state, rewrite=True)
    plot_av_vels(av_vels)

    print(f"Reynolds number: {simulation.reynolds():.6e}")
    print(f"Done ({(time.perf_counter() - start):.3f}s)")
