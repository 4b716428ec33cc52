from pathlib import Path

import jax.numpy as jnp
import numpy as np
import pytest

from d2q9bgk.fileio import (
    load_av_vels,
    load_final_state,
    load_obstacles,
    load_params,
    write_av_vels,
    write_final_state,
)
from d2q9bgk.lattice import C_SQ, NSPEEDS, LatticeState, initialize, obstacle_mask


def write(path, text):
    path.write_text(text)
    return str(path)


def test_load_params(tmp_path):
    path = write(tmp_path / "input.params", "128\n64\n40000\n128\n0.1\n0.005\n1.7\n")

    params = load_params(path)

    assert params == {
        "nx": 128,
        "ny": 64,
        "maxIters": 40000,
        "reynolds_dim": 128,
        "density": 0.1,
        "accel": 0.005,
        "omega": 1.7,
    }
    assert isinstance(params["nx"], int)
    assert isinstance(params["omega"], float)


def test_load_params_any_whitespace(tmp_path):
    path = write(tmp_path / "input.params", "4 3 10\t4\n\n0.1 0.0 1.0")

    assert load_params(path)["ny"] == 3


def test_load_params_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="could not open input parameter file"):
        load_params(str(tmp_path / "missing.params"))


@pytest.mark.parametrize(
    "text, field",
    [
        ("4\n3\n10\n4\n0.1\n0.005\n", "omega"),
        ("4\n", "ny"),
        ("", "nx"),
        ("4.5\n3\n10\n4\n0.1\n0.005\n1.7\n", "nx"),
        ("4\n3\n10\n4\nabc\n0.005\n1.7\n", "density"),
    ],
)
def test_load_params_bad_field(tmp_path, text, field):
    path = write(tmp_path / "input.params", text)

    with pytest.raises(ValueError, match=f"could not read param file: {field}"):
        load_params(path)


def test_load_params_too_many_values(tmp_path):
    path = write(tmp_path / "input.params", "4 3 10 4 0.1 0.005 1.7 9")

    with pytest.raises(ValueError, match="expected 7 values"):
        load_params(path)


@pytest.mark.parametrize(
    "text",
    [
        "0 3 10 4 0.1 0.005 1.7",
        "4 1 10 4 0.1 0.005 1.7",
        "4 3 -1 4 0.1 0.005 1.7",
        "4 3 10 4 0.1 0.005 0.0",
    ],
)
def test_load_params_invalid_values(tmp_path, text):
    path = write(tmp_path / "input.params", text)

    with pytest.raises(ValueError):
        load_params(path)


def test_load_obstacles(tmp_path):
    path = write(tmp_path / "obstacles.dat", "0 0 1\n3 2 1\n\n1 2 1\n")

    mask = load_obstacles(path, 4, 3)

    assert mask.shape == (3, 4)
    assert bool(mask[0, 0])
    assert bool(mask[2, 3])
    assert bool(mask[2, 1])
    assert int(jnp.sum(mask)) == 3


def test_load_obstacles_empty_file(tmp_path):
    path = write(tmp_path / "obstacles.dat", "")

    assert not bool(jnp.any(load_obstacles(path, 4, 3)))


def test_load_obstacles_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError, match="could not open input obstacles file"):
        load_obstacles(str(tmp_path / "missing.dat"), 4, 3)


@pytest.mark.parametrize(
    "text, message",
    [
        ("0 0\n", "expected 3 values per line"),
        ("0 0 1 1\n", "expected 3 values per line"),
        ("a 0 1\n", "expected 3 values per line"),
        ("4 0 1\n", "obstacle x-coord out of range"),
        ("-1 0 1\n", "obstacle x-coord out of range"),
        ("0 3 1\n", "obstacle y-coord out of range"),
        ("0 0 0\n", "obstacle blocked value should be 1"),
        ("0 0 1\n1 1 2\n", r"obstacle blocked value should be 1 \(line 2\)"),
    ],
)
def test_load_obstacles_errors(tmp_path, text, message):
    path = write(tmp_path / "obstacles.dat", text)

    with pytest.raises(ValueError, match=message):
        load_obstacles(path, 4, 3)


def test_write_final_state_format(tmp_path):
    path = str(tmp_path / "final_state.dat")
    state = initialize(3, 2, 0.1)
    mask = obstacle_mask(3, 2, [(2, 1)])

    write_final_state(path, state, mask, 0.1)

    lines = Path(path).read_text().splitlines()

    assert len(lines) == 6
    # row-major: columns vary fastest
    assert [tuple(line.split()[:2]) for line in lines] == [
        ("0", "0"),
        ("1", "0"),
        ("2", "0"),
        ("0", "1"),
        ("1", "1"),
        ("2", "1"),
    ]

    first = lines[0].split()
    assert len(first) == 7
    assert first[2] == "0.000000000000E+00"
    assert float(first[5]) == pytest.approx(0.1 * C_SQ, rel=1e-5)
    assert first[6] == "0"

    assert lines[5].split()[6] == "1"
    assert [line.split()[6] for line in lines[:5]] == ["0"] * 5


def test_write_final_state_obstacle_reports_rest(tmp_path):
    path = str(tmp_path / "final_state.dat")
    speeds = np.full((NSPEEDS, 2, 2), 0.01, dtype=np.float32)
    speeds[1] = 0.2
    state = LatticeState(jnp.asarray(speeds))
    mask = obstacle_mask(2, 2, [(1, 0)])

    write_final_state(path, state, mask, 0.3)

    X, Y, ux, uy, speed, pressure, loaded_mask = load_final_state(path)

    assert ux[0, 1] == 0.0
    assert uy[0, 1] == 0.0
    assert speed[0, 1] == 0.0
    assert pressure[0, 1] == pytest.approx(0.3 * C_SQ)
    assert ux[0, 0] > 0.0
    assert pressure[0, 0] == pytest.approx(float(speeds[:, 0, 0].sum()) * C_SQ, rel=1e-5)
    np.testing.assert_array_equal(loaded_mask, np.asarray(mask))
    assert X.shape == Y.shape == (2, 2)


def test_write_and_load_av_vels(tmp_path):
    path = str(tmp_path / "av_vels.dat")

    write_av_vels(path, [0.0, 1.5e-3, 2.25e-3])

    lines = Path(path).read_text().splitlines()

    assert lines[0] == "0:\t0.000000000000E+00"
    assert lines[1] == "1:\t1.500000000000E-03"
    np.testing.assert_allclose(load_av_vels(path), [0.0, 1.5e-3, 2.25e-3])


def test_load_final_state_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_final_state(str(tmp_path / "missing.dat"))
