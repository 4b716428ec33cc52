import argparse
import os
import sys
import time
import traceback

from d2q9bgk.fileio import load_obstacles, load_params
from d2q9bgk.lbm import LBM


def die(err: BaseException) -> None:
    frame = traceback.extract_tb(err.__traceback__)[-1]

    print(f"Error at line {frame.lineno} of file {frame.filename}:", file=sys.stderr)
    print(err, file=sys.stderr)
    sys.stderr.flush()

    sys.exit(1)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="d2q9-bgk", description="D2Q9 lattice Boltzmann BGK simulation"
    )
    parser.add_argument("paramfile", help="Input parameter file")
    parser.add_argument("obstaclefile", help="Input obstacle file")
    parser.add_argument(
        "--output-dir", default=".", help="Where final_state.dat and av_vels.dat go"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Report average velocity and total density every timestep",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Hide the progress bar"
    )
    parser.add_argument(
        "--plot", action="store_true", help="Render the final state once written"
    )

    args = parser.parse_args(argv)

    try:
        params = load_params(args.paramfile)
        mask = load_obstacles(args.obstaclefile, params["nx"], params["ny"])
    except (OSError, ValueError) as err:
        die(err)

    simulation = LBM(params, mask)

    cpu_start = os.times()
    tic = time.perf_counter()

    simulation.run(progress=not args.no_progress, debug=args.debug)

    toc = time.perf_counter()
    cpu_end = os.times()

    print("==done==")
    print(f"Reynolds number:\t\t{simulation.reynolds():.12E}")
    print(f"Elapsed time:\t\t\t{toc - tic:.6f} (s)")
    print(f"Elapsed user CPU time:\t\t{cpu_end.user - cpu_start.user:.6f} (s)")
    print(f"Elapsed system CPU time:\t{cpu_end.system - cpu_start.system:.6f} (s)")

    try:
        final_state, av_vels = simulation.save(args.output_dir)
    except OSError as err:
        die(err)

    if args.plot:
        from d2q9bgk.plot import plot_av_vels, plotter

        plotter(final_state, rewrite=True)
        plot_av_vels(av_vels)

    return 0


if __name__ == "__main__":
    sys.exit(main())
