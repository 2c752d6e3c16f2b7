"""
voxel_grid.py

Dense binary voxel grid used by the thinning kernels.

- Arrays are indexed [x, y, z] (x fastest varying in the scan loops).
- Foreground is 1, background is 0. Only `binarize` produces values; the
  thinning core never writes anything other than 0.
- Reads outside the grid return 0 (zero-padding boundary), writes outside the
  grid are ignored.
- The compiled kernels bypass the VoxelGrid methods: they read `grid.data`
  through `_voxel` (checked) or index it directly inside scan loops whose
  bounds are the array shape (the unchecked read).

Primary API
-----------

    from voxel_grid import VoxelGrid, binarize

    grid = VoxelGrid.binarized(field)           # copy, strictly {0, 1}
    grid.get(-1, 0, 0)                          # -> 0, out of range is background
    grid.set(2, 3, 4, 0)
    grid.width(), grid.height(), grid.depth()
"""

from __future__ import annotations

from typing import Optional, Tuple

import numpy as np
from numba import njit


@njit(inline='always')
def _voxel(vol, x, y, z):
    """Bounds-checked read for use inside compiled kernels."""
    if x < 0 or y < 0 or z < 0 or x >= vol.shape[0] or y >= vol.shape[1] or z >= vol.shape[2]:
        return np.int64(0)
    return np.int64(vol[x, y, z])


def binarize(field: np.ndarray, threshold: Optional[float] = None) -> np.ndarray:
    """Return a new uint8 array that is 1 on the foreground and 0 elsewhere.

    With threshold=None every nonzero cell is foreground; otherwise cells with
    field > threshold are.
    """
    arr = np.asarray(field)
    if arr.ndim != 3:
        raise ValueError(f"expected a 3-D field, got shape {arr.shape}")
    if threshold is None:
        mask = arr != 0
    else:
        mask = arr > threshold
    return mask.astype(np.uint8)


class VoxelGrid:
    """Mutable 3-D grid of small integers with checked and unchecked access.

    The grid wraps `data` without copying, so kernels that mutate `data`
    mutate the grid.
    """

    __slots__ = ("data",)

    def __init__(self, data: np.ndarray) -> None:
        if not isinstance(data, np.ndarray):
            raise TypeError("VoxelGrid wraps a numpy array; use VoxelGrid.binarized for other inputs")
        if data.ndim != 3:
            raise ValueError(f"grid must be 3-D, got shape {data.shape}")
        if not np.issubdtype(data.dtype, np.integer):
            raise TypeError(f"grid must hold integers, got dtype {data.dtype}")
        self.data = data

    @classmethod
    def zeros(cls, shape: Tuple[int, int, int]) -> "VoxelGrid":
        if len(shape) != 3 or any(int(s) <= 0 for s in shape):
            raise ValueError("shape must contain three positive integers")
        return cls(np.zeros(tuple(int(s) for s in shape), dtype=np.uint8))

    @classmethod
    def binarized(cls, field: np.ndarray, threshold: Optional[float] = None) -> "VoxelGrid":
        return cls(binarize(field, threshold))

    # Extents ------------------------------------------------------------
    def width(self) -> int:
        return int(self.data.shape[0])

    def height(self) -> int:
        return int(self.data.shape[1])

    def depth(self) -> int:
        return int(self.data.shape[2])

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.width(), self.height(), self.depth()

    def _inside(self, x: int, y: int, z: int) -> bool:
        return 0 <= x < self.data.shape[0] and 0 <= y < self.data.shape[1] and 0 <= z < self.data.shape[2]

    # Access -------------------------------------------------------------
    def get(self, x: int, y: int, z: int) -> int:
        if not self._inside(x, y, z):
            return 0
        return int(self.data[x, y, z])

    def get_unchecked(self, x: int, y: int, z: int) -> int:
        # caller guarantees 0 <= x < width etc.; negative indices would wrap.
        # Kernel equivalent: vol[x, y, z] in lee_thin._collect_candidates.
        return int(self.data[x, y, z])

    def set(self, x: int, y: int, z: int, value: int) -> None:
        if self._inside(x, y, z):
            self.data[x, y, z] = int(value)

    def foreground_count(self) -> int:
        return int(np.count_nonzero(self.data == 1))

    def copy_into(self, out: np.ndarray) -> np.ndarray:
        if out.shape != self.data.shape:
            raise ValueError(f"output shape {out.shape} does not match grid shape {self.data.shape}")
        out[...] = self.data
        return out
