from __future__ import annotations

from itertools import product
from typing import Dict, Tuple

import numpy as np

from local_label import label_3d


def _foreground(volume: np.ndarray) -> np.ndarray:
    vol = np.asarray(volume)
    if vol.ndim != 3:
        raise ValueError(f"volume must be 3-D, got shape {vol.shape}")
    return vol == 1


def voxel_count(volume: np.ndarray) -> int:
    return int(np.count_nonzero(_foreground(volume)))


def _cells_present(padded: np.ndarray, window_axes: Tuple[bool, bool, bool]) -> int:
    """Count lattice cells touched by at least one foreground voxel.

    A cell spans a window of 2 voxels along each axis in `window_axes`
    (vertex-like directions) and exactly one voxel along the others.
    `padded` carries a one-voxel background frame.
    """
    n = [s - 2 for s in padded.shape]
    ranges = []
    for axis, windowed in enumerate(window_axes):
        if windowed:
            ranges.append([slice(o, o + n[axis] + 1) for o in (0, 1)])
        else:
            ranges.append([slice(1, 1 + n[axis])])
    hit = None
    for si, sj, sk in product(*ranges):
        part = padded[si, sj, sk]
        hit = part.copy() if hit is None else (hit | part)
    return int(np.count_nonzero(hit))


def euler_characteristic(volume: np.ndarray) -> int:
    """Euler characteristic of the foreground as a union of closed unit cubes.

    chi = V - E + F - C counted over the cubical complex, which is the
    topology of 26-connected foreground against 6-connected background.

    For a single voxel chi = 1, for a solid torus chi = 0, for a closed
    shell around a cavity chi = 2.
    """
    fg = _foreground(volume)
    padded = np.zeros(tuple(s + 2 for s in fg.shape), dtype=bool)
    padded[1:-1, 1:-1, 1:-1] = fg

    n_vertices = _cells_present(padded, (True, True, True))
    n_edges = sum(_cells_present(padded, w) for w in ((False, True, True),
                                                      (True, False, True),
                                                      (True, True, False)))
    n_faces = sum(_cells_present(padded, w) for w in ((True, False, False),
                                                      (False, True, False),
                                                      (False, False, True)))
    n_cubes = int(np.count_nonzero(fg))
    return n_vertices - n_edges + n_faces - n_cubes


def component_count(volume: np.ndarray, connectivity: int = 26) -> int:
    _, K = label_3d(_foreground(volume), connectivity=connectivity)
    return K


def neighbor_degree(volume: np.ndarray) -> np.ndarray:
    """Number of foreground 26-neighbors of each foreground voxel (0 on background)."""
    fg = _foreground(volume)
    ni, nj, nk = fg.shape
    padded = np.zeros((ni + 2, nj + 2, nk + 2), dtype=np.int32)
    padded[1:-1, 1:-1, 1:-1] = fg
    deg = np.zeros((ni, nj, nk), dtype=np.int32)
    for di, dj, dk in product((0, 1, 2), repeat=3):
        if (di, dj, dk) == (1, 1, 1):
            continue
        deg += padded[di:di + ni, dj:dj + nj, dk:dk + nk]
    deg[~fg] = 0
    return deg


def endpoint_count(volume: np.ndarray) -> int:
    fg = _foreground(volume)
    return int(np.count_nonzero(fg & (neighbor_degree(volume) == 1)))


def junction_count(volume: np.ndarray) -> int:
    return int(np.count_nonzero(neighbor_degree(volume) >= 3))


def skeleton_summary(before: np.ndarray, after: np.ndarray) -> Dict[str, int]:
    """Counts and topology of the input foreground and of its skeleton."""
    return {
        "input_foreground": voxel_count(before),
        "skeleton_voxels": voxel_count(after),
        "euler_before": euler_characteristic(before),
        "euler_after": euler_characteristic(after),
        "components_before": component_count(before),
        "components_after": component_count(after),
        "endpoints": endpoint_count(after),
        "junctions": junction_count(after),
    }
