from __future__ import annotations

import itertools
import os
import sys

import numpy as np
import pytest
from scipy import ndimage

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
import lee_thin
from lee_thin import ThinResult, _delete_candidates, skeletonize_volume, thin
from skeleton_metrics import component_count, euler_characteristic, neighbor_degree
from synthetic_shapes import make_box, make_point, make_rod, make_torus
from voxel_grid import VoxelGrid


def test_isolated_voxel_is_kept():
    vol = make_point()
    before = vol.copy()
    result = thin(vol)
    np.testing.assert_array_equal(vol, before)
    assert result.iterations == 1
    assert result.deleted == 0
    assert result.converged


@pytest.mark.parametrize("axis", [0, 1, 2])
def test_thin_rod_is_unchanged(axis):
    vol = make_rod(length=5, axis=axis)
    before = vol.copy()
    result = thin(vol)
    np.testing.assert_array_equal(vol, before)
    assert result.deleted == 0


def test_rod_touching_grid_boundary_is_unchanged():
    vol = np.ones((5, 1, 1), dtype=np.uint8)
    thin(vol)
    assert vol.sum() == 5


def test_solid_cube_thins_to_connected_skeleton():
    vol = make_box((5, 5, 5))
    before = vol.copy()
    result = thin(vol)
    n_after = int(vol.sum())
    assert 0 < n_after < int(before.sum())
    assert result.deleted == int(before.sum()) - n_after
    assert component_count(vol) == 1
    assert euler_characteristic(vol) == 1
    assert result.converged and result.iterations >= 2


def test_cube_filling_whole_grid():
    vol = np.ones((5, 5, 5), dtype=np.int32)
    thin(vol)
    assert 0 < vol.sum() < 125
    assert component_count(vol) == 1


def test_torus_keeps_its_hole():
    vol = make_torus()
    assert component_count(vol) == 1
    assert euler_characteristic(vol) == 0
    n_before = int(vol.sum())
    thin(vol)
    assert int(vol.sum()) < n_before
    assert component_count(vol) == 1
    assert euler_characteristic(vol) == 0


def test_idempotent():
    vol = make_torus(major=5.0, minor=2.0)
    thin(vol)
    once = vol.copy()
    result = thin(vol)
    np.testing.assert_array_equal(vol, once)
    assert result.deleted == 0
    assert result.iterations == 1


def test_output_is_binary_subset_of_input():
    rng = np.random.default_rng(7)
    vol = (rng.random((10, 9, 8)) < 0.55).astype(np.uint8)
    before = vol.copy()
    thin(vol)
    assert set(np.unique(vol).tolist()) <= {0, 1}
    assert not np.any((vol == 1) & (before == 0))


def test_endpoints_are_never_deleted():
    vol = make_box((5, 5, 5), pad=4)
    vol[9:12, 6, 6] = 1  # rod sticking out of the +x face
    rng = np.random.default_rng(3)
    noise = (rng.random(vol.shape) < 0.05).astype(np.uint8)
    noise[3:13, 3:10, 3:10] = 0
    vol |= noise
    deg = neighbor_degree(vol)
    endpoints = np.argwhere((vol == 1) & (deg == 1))
    assert len(endpoints) > 0
    thin(vol)
    for x, y, z in endpoints:
        assert vol[x, y, z] == 1


# Independent driver: numpy neighborhoods, Euler change from the cube complex
# of each 2x2x2 block, connectivity from scipy. Shares no code with lee_thin.

_DIRECTIONS = [(0, -1, 0), (0, 1, 0), (1, 0, 0), (-1, 0, 0), (0, 0, 1), (0, 0, -1)]
_FULL_26 = np.ones((3, 3, 3), dtype=int)


def _vertex_weight(cubes) -> int:
    if not cubes:
        return 0
    edges = {(axis, u[axis]) for u in cubes for axis in range(3)}
    faces = {(axis, tuple(u[a] for a in range(3) if a != axis)) for u in cubes for axis in range(3)}
    return 8 - 4 * len(edges) + 2 * len(faces) - len(cubes)


def _euler_invariant(block) -> bool:
    total = 0
    for sx, sy, sz in itertools.product((-1, 1), repeat=3):
        present = set()
        for u in itertools.product((0, 1), repeat=3):
            if u != (0, 0, 0) and block[1 + sx * u[0], 1 + sy * u[1], 1 + sz * u[2]] == 1:
                present.add(u)
        total += _vertex_weight(present | {(0, 0, 0)}) - _vertex_weight(present)
    return total == 0


def _simple(block) -> bool:
    rest = (block == 1).copy()
    rest[1, 1, 1] = False
    _, n = ndimage.label(rest, structure=_FULL_26)
    return n <= 1


def _independent_thin(vol):
    """Return (skeleton, iterations) for a binary [x, y, z] volume."""
    work = np.pad(vol.astype(np.int64), 1)
    nx, ny, nz = vol.shape
    iterations = 0
    unchanged = 0
    while unchanged < 6:
        unchanged = 0
        iterations += 1
        for dx, dy, dz in _DIRECTIONS:
            queued = []
            for z in range(nz):
                for y in range(ny):
                    for x in range(nx):
                        if work[x + 1, y + 1, z + 1] != 1:
                            continue
                        if work[x + 1 + dx, y + 1 + dy, z + 1 + dz] > 0:
                            continue
                        block = work[x:x + 3, y:y + 3, z:z + 3]
                        if int((block == 1).sum()) - 1 == 1:
                            continue
                        if _euler_invariant(block) and _simple(block):
                            queued.append((x, y, z))
            changed = False
            for x, y, z in queued:
                if _simple(work[x:x + 3, y:y + 3, z:z + 3]):
                    work[x + 1, y + 1, z + 1] = 0
                    changed = True
            if not changed:
                unchanged += 1
    return work[1:-1, 1:-1, 1:-1].astype(np.uint8), iterations


def _agreement_volumes():
    rng = np.random.default_rng(0)
    vols = []
    for _ in range(10):
        shape = tuple(int(s) for s in rng.integers(5, 10, size=3))
        density = float(rng.uniform(0.35, 0.7))
        vols.append((rng.random(shape) < density).astype(np.uint8))
    vols.append((rng.random((10, 12, 10)) < 0.5).astype(np.uint8))
    vols.append(make_box((5, 5, 5)))
    vols.append(make_box((6, 3, 4), pad=0))
    vols.append(make_torus(major=4.0, minor=1.5, pad=1))
    return vols


def test_matches_independent_driver_voxel_for_voxel():
    for case, vol in enumerate(_agreement_volumes()):
        expected, iterations = _independent_thin(vol)
        got = vol.copy()
        result = thin(got)
        np.testing.assert_array_equal(got, expected, err_msg=f"case {case}")
        assert result.iterations == iterations, case


def test_queued_voxels_are_rechecked_before_deletion():
    # rod along x with a bump over its middle voxel; bump and middle are both
    # simple on their own, but only one of them may go
    for order in ([(2, 2, 1), (2, 1, 1)], [(2, 1, 1), (2, 2, 1)]):
        vol = np.zeros((5, 4, 3), dtype=np.uint8)
        vol[1:4, 1, 1] = 1
        vol[2, 2, 1] = 1
        cand = np.array(order, dtype=np.int64)
        assert _delete_candidates(vol, cand, 2) == 1
        first, second = order
        assert vol[first] == 0
        assert vol[second] == 1
        assert component_count(vol) == 1


def test_convergence_needs_one_fully_clean_iteration(monkeypatch):
    # each of the first three iterations deletes in a single direction, so
    # clean directions pile up long before an all-clean iteration happens
    deletions = iter([1, 0, 0, 0, 0, 0,
                      0, 1, 0, 0, 0, 0,
                      0, 0, 0, 0, 0, 1])
    monkeypatch.setattr(lee_thin, "_collect_candidates", lambda vol, dx, dy, dz, out: 1)
    monkeypatch.setattr(lee_thin, "_delete_candidates", lambda vol, cand, n: next(deletions, 0))
    result = thin(make_box((3, 3, 3)))
    assert result.iterations == 4
    assert result.converged
    assert result.deleted_per_direction == {"N": 1, "S": 1, "E": 0, "W": 0, "U": 0, "B": 1}


def test_voxelgrid_and_array_inputs_agree():
    a = make_box((4, 6, 3), pad=2)
    b = VoxelGrid(a.copy())
    thin(a)
    thin(b)
    np.testing.assert_array_equal(a, b.data)


def test_max_iterations_stops_early():
    vol = make_box((5, 5, 5))
    result = thin(vol, max_iterations=1)
    assert isinstance(result, ThinResult)
    assert result.iterations == 1
    assert not result.converged
    assert result.deleted > 0
    assert sum(result.deleted_per_direction.values()) == result.deleted


def test_verbose_reports_iterations(capsys):
    thin(make_box((3, 3, 3)), verbose=True)
    out = capsys.readouterr().out
    assert "iteration=1 " in out
    assert "N=" in out and "B=" in out


def test_skeletonize_volume_leaves_input_alone():
    field = make_box((5, 5, 5)).astype(np.float64) * 0.8
    copy = field.copy()
    skel = skeletonize_volume(field, threshold=0.5)
    np.testing.assert_array_equal(field, copy)
    assert skel.dtype == np.uint8
    expected = make_box((5, 5, 5))
    thin(expected)
    np.testing.assert_array_equal(skel, expected)


def test_rejects_unsupported_grids():
    with pytest.raises(TypeError):
        thin([[[1]]])
    with pytest.raises(TypeError):
        thin(np.ones((2, 2, 2), dtype=bool))
    with pytest.raises(ValueError):
        thin(np.ones((2, 2), dtype=np.uint8))


def main():
    test_isolated_voxel_is_kept()
    for axis in range(3):
        test_thin_rod_is_unchanged(axis)
    test_rod_touching_grid_boundary_is_unchanged()
    test_solid_cube_thins_to_connected_skeleton()
    test_cube_filling_whole_grid()
    test_torus_keeps_its_hole()
    test_idempotent()
    test_output_is_binary_subset_of_input()
    test_endpoints_are_never_deleted()
    test_matches_independent_driver_voxel_for_voxel()
    test_queued_voxels_are_rechecked_before_deletion()
    test_voxelgrid_and_array_inputs_agree()
    test_max_iterations_stops_early()
    test_skeletonize_volume_leaves_input_alone()
    test_rejects_unsupported_grids()
    print("thinning tests passed")


if __name__ == "__main__":
    main()
