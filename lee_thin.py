"""
lee_thin.py

Topology-preserving 3-D thinning of a binary volume (Lee, Kashyap & Chu 1994).

Each iteration sweeps the six border directions N, S, E, W, U, B. For one
direction the whole volume is scanned in (z, y, x) order and every foreground
voxel that

  1. is a border voxel for that direction (its neighbor there is background
     or outside the grid),
  2. is not an endpoint (exactly one foreground neighbor),
  3. is Euler invariant, and
  4. is a simple point

is queued. The queue is then replayed in scan order: each voxel is tested
again for simplicity against the current volume (earlier deletions of the
same sweep are visible) and deleted if it still passes. The run stops after
an iteration in which none of the six directions deleted anything.

Usage
-----

    from voxel_grid import VoxelGrid
    from lee_thin import thin

    grid = VoxelGrid.binarized(field)
    result = thin(grid)          # grid.data now holds the skeleton
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import numpy as np
from numba import njit

from local_topology import (
    _count_foreground_neighbors,
    _fill_neighborhood,
    _is_euler_invariant,
    _is_simple_point,
)
from topology_tables import BORDER_DIRECTIONS
from voxel_grid import VoxelGrid, _voxel, binarize


@dataclass
class ThinResult:
    iterations: int
    deleted: int
    foreground_before: int
    foreground_after: int
    converged: bool = True
    deleted_per_direction: Dict[str, int] = field(default_factory=dict)


@njit
def _collect_candidates(vol, dx, dy, dz, out):
    """Scan for deletable border voxels in one direction; return how many were written to out."""
    ni, nj, nk = vol.shape
    nb = np.empty(27, dtype=np.int64)
    n = 0
    for z in range(nk):
        for y in range(nj):
            for x in range(ni):
                if vol[x, y, z] != 1:
                    continue
                if _voxel(vol, x + dx, y + dy, z + dz) > 0:
                    continue
                _fill_neighborhood(vol, x, y, z, nb)
                if _count_foreground_neighbors(nb) == 1:
                    continue
                if not _is_euler_invariant(nb):
                    continue
                if not _is_simple_point(nb):
                    continue
                out[n, 0] = x
                out[n, 1] = y
                out[n, 2] = z
                n += 1
    return n


@njit
def _delete_candidates(vol, cand, n):
    """Re-check each queued voxel against the current volume and delete it if still simple."""
    nb = np.empty(27, dtype=np.int64)
    deleted = 0
    for t in range(n):
        x = cand[t, 0]
        y = cand[t, 1]
        z = cand[t, 2]
        _fill_neighborhood(vol, x, y, z, nb)
        if _is_simple_point(nb):
            vol[x, y, z] = 0
            deleted += 1
    return deleted


def _volume_of(grid: Union[VoxelGrid, np.ndarray]) -> np.ndarray:
    if isinstance(grid, VoxelGrid):
        return grid.data
    if not isinstance(grid, np.ndarray):
        raise TypeError("thin() mutates its input in place and needs a VoxelGrid or numpy array")
    if grid.ndim != 3:
        raise ValueError(f"grid must be 3-D, got shape {grid.shape}")
    if not np.issubdtype(grid.dtype, np.integer):
        raise TypeError(f"grid must hold integers, got dtype {grid.dtype}")
    return grid


def thin(grid: Union[VoxelGrid, np.ndarray],
         verbose: bool = False,
         max_iterations: Optional[int] = None) -> ThinResult:
    """Thin `grid` in place to its topological skeleton.

    The grid must already be binary (0/1). Returns a ThinResult with
    iteration and deletion counts; `converged` is False only when
    max_iterations stopped the loop early.
    """
    vol = _volume_of(grid)
    fg_before = int(np.count_nonzero(vol == 1))
    # every candidate is a foreground voxel and the foreground only shrinks
    cand = np.empty((max(fg_before, 1), 3), dtype=np.int64)

    per_direction = {name: 0 for name, _ in BORDER_DIRECTIONS}
    iterations = 0
    unchanged_borders = 0
    converged = True
    while unchanged_borders < 6:
        if max_iterations is not None and iterations >= max_iterations:
            converged = False
            break
        unchanged_borders = 0
        iterations += 1
        this_iter = {}
        for name, (dx, dy, dz) in BORDER_DIRECTIONS:
            n = _collect_candidates(vol, dx, dy, dz, cand)
            deleted = int(_delete_candidates(vol, cand, n)) if n > 0 else 0
            if deleted == 0:
                unchanged_borders += 1
            this_iter[name] = deleted
            per_direction[name] += deleted
        if verbose:
            counts = " ".join(f"{k}={v}" for k, v in this_iter.items())
            print(f"iteration={iterations} deleted={sum(this_iter.values())} {counts}")

    fg_after = int(np.count_nonzero(vol == 1))
    return ThinResult(
        iterations=iterations,
        deleted=fg_before - fg_after,
        foreground_before=fg_before,
        foreground_after=fg_after,
        converged=converged,
        deleted_per_direction=per_direction,
    )


def skeletonize_volume(field: np.ndarray,
                       threshold: Optional[float] = None,
                       verbose: bool = False) -> np.ndarray:
    """Binarize a copy of `field`, thin it and return the uint8 skeleton."""
    vol = binarize(field, threshold)
    thin(vol, verbose=verbose)
    return vol
