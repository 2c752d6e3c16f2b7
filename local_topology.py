"""
local_topology.py

Per-voxel topology tests on the 3x3x3 neighborhood.

The compiled kernels (leading underscore) take numpy arrays and are called
from the thinning loop. The public functions accept a VoxelGrid or array and
plain Python sequences, validate them, and call the same kernels.
"""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np
from numba import njit

from topology_tables import (
    CELL_OCTANTS,
    CELL_SEED_OCTANT,
    EULER_LUT,
    FILL_STACK_SIZE,
    OCTANT_BIT_WEIGHTS,
    OCTANT_CUBE_CELLS,
    OCTANT_EULER_POSITIONS,
    OCTANT_INDEX,
)
from voxel_grid import VoxelGrid, _voxel


GridLike = Union[VoxelGrid, np.ndarray]


# ---------------------------------------------------------------------------
# Kernels
# ---------------------------------------------------------------------------

@njit
def _fill_neighborhood(vol, x, y, z, nb):
    i = 0
    for dz in range(-1, 2):
        for dy in range(-1, 2):
            for dx in range(-1, 2):
                nb[i] = _voxel(vol, x + dx, y + dy, z + dz)
                i += 1


@njit
def _count_foreground_neighbors(nb):
    n = 0
    for i in range(27):
        if i != 13 and nb[i] == 1:
            n += 1
    return n


@njit
def _octant_index(nb, octant):
    v = 1
    for j in range(7):
        if nb[OCTANT_EULER_POSITIONS[octant, j]] != 0:
            v |= OCTANT_BIT_WEIGHTS[j]
    return v


@njit
def _euler_change(nb):
    s = 0
    for octant in range(8):
        s += EULER_LUT[_octant_index(nb, octant)]
    return s


@njit
def _is_euler_invariant(nb):
    return _euler_change(nb) == 0


@njit
def _octree_fill(cube, seed_octant, label, stack):
    """Give `label` to every 1-cell reachable from `seed_octant`.

    Cells of one octant are mutually 26-adjacent, so the fill walks octants:
    labeling a cell queues the other octants that contain it.
    """
    top = 0
    stack[top] = seed_octant
    top += 1
    while top > 0:
        top -= 1
        octant = stack[top]
        for j in range(7):
            c = OCTANT_CUBE_CELLS[octant, j]
            if cube[c] != 1:
                continue
            cube[c] = label
            for m in range(CELL_OCTANTS.shape[1]):
                other = CELL_OCTANTS[c, m]
                if other >= 0 and other != octant:
                    stack[top] = other
                    top += 1


@njit
def _is_simple_point(nb):
    cube = np.empty(26, dtype=np.int64)
    for i in range(13):
        cube[i] = nb[i]
    for i in range(14, 27):
        cube[i - 1] = nb[i]

    stack = np.empty(FILL_STACK_SIZE, dtype=np.int64)
    label = 2
    for i in range(26):
        if cube[i] != 1:
            continue
        _octree_fill(cube, CELL_SEED_OCTANT[i], label, stack)
        label += 1
        if label - 2 >= 2:
            return False
    return True


# ---------------------------------------------------------------------------
# Python-facing API
# ---------------------------------------------------------------------------

def _as_volume(grid: GridLike) -> np.ndarray:
    if isinstance(grid, VoxelGrid):
        return grid.data
    if isinstance(grid, np.ndarray) and grid.ndim == 3:
        return grid
    raise TypeError("expected a VoxelGrid or a 3-D numpy array")


def _as_neighborhood(neighborhood: Sequence[int]) -> np.ndarray:
    nb = np.ascontiguousarray(neighborhood, dtype=np.int64).ravel()
    if nb.size != 27:
        raise ValueError(f"a neighborhood has 27 entries, got {nb.size}")
    return nb


def get_neighborhood(grid: GridLike, x: int, y: int, z: int) -> np.ndarray:
    """Return the 27 values around (x, y, z), 0 outside the grid, center at index 13."""
    nb = np.empty(27, dtype=np.int64)
    _fill_neighborhood(_as_volume(grid), int(x), int(y), int(z), nb)
    return nb


def is_endpoint(grid: GridLike, x: int, y: int, z: int) -> bool:
    """True iff exactly one of the 26 neighbors of (x, y, z) is foreground."""
    return _count_foreground_neighbors(get_neighborhood(grid, x, y, z)) == 1


def octant_index(neighborhood: Sequence[int], octant: Union[int, str]) -> int:
    """LUT index of one octant: sentinel bit 0 plus one bit per occupied voxel."""
    if isinstance(octant, str):
        octant = OCTANT_INDEX[octant]
    octant = int(octant)
    if not 0 <= octant < 8:
        raise IndexError(f"octant {octant} out of range")
    return int(_octant_index(_as_neighborhood(neighborhood), octant))


def euler_change(neighborhood: Sequence[int]) -> int:
    return int(_euler_change(_as_neighborhood(neighborhood)))


def is_euler_invariant(neighborhood: Sequence[int]) -> bool:
    return bool(_is_euler_invariant(_as_neighborhood(neighborhood)))


def is_simple_point(neighborhood: Sequence[int]) -> bool:
    """True iff the foreground among the 26 neighbors forms at most one 26-connected component."""
    return bool(_is_simple_point(_as_neighborhood(neighborhood)))
