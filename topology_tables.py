"""
topology_tables.py

Constant tables for the 3x3x3 neighborhood tests (Lee, Kashyap & Chu 1994).

Neighborhood layout
-------------------
A neighborhood is 27 integers in (z, y, x) nested order:

    index = (dz + 1) * 9 + (dy + 1) * 3 + (dx + 1),   dx, dy, dz in {-1, 0, 1}

so index 13 is the center. The labeling cube drops the center: cube indices
0..12 equal neighborhood indices 0..12 and cube index c >= 13 is
neighborhood index c + 1.

Octants are the eight 2x2x2 sub-cubes that contain the center. Naming uses
N/S for -y/+y, W/E for -x/+x and B/U for -z/+z.

All tables are built once at import and must not be modified.
"""

from __future__ import annotations

from typing import Dict, Tuple

import numpy as np


# ---------------------------------------------------------------------------
# Euler characteristic LUT
# ---------------------------------------------------------------------------

# Values of the odd entries 1, 3, 5, ..., 255. Each row covers 16 consecutive
# indices (8 odd ones). Even entries are zero because bit 0 is the center
# sentinel and is always set by the octant indexers.
_EULER_ODD_ENTRIES = (
     1, -1, -1,  1, -3, -1, -1,  1,   # 1-15
    -1,  1,  1, -1,  3,  1,  1, -1,   # 17-31
    -3, -1,  3,  1,  1, -1,  3,  1,   # 33-47
    -1,  1,  1, -1,  3,  1,  1, -1,   # 49-63
    -3,  3, -1,  1,  1,  3, -1,  1,   # 65-79
    -1,  1,  1, -1,  3,  1,  1, -1,   # 81-95
     1,  3,  3,  1,  5,  3,  3,  1,   # 97-111
    -1,  1,  1, -1,  3,  1,  1, -1,   # 113-127
    -7, -1, -1,  1, -3, -1, -1,  1,   # 129-143
    -1,  1,  1, -1,  3,  1,  1, -1,   # 145-159
    -3, -1,  3,  1,  1, -1,  3,  1,   # 161-175
    -1,  1,  1, -1,  3,  1,  1, -1,   # 177-191
    -3,  3, -1,  1,  1,  3, -1,  1,   # 193-207
    -1,  1,  1, -1,  3,  1,  1, -1,   # 209-223
     1,  3,  3,  1,  5,  3,  3,  1,   # 225-239
    -1,  1,  1, -1,  3,  1,  1, -1,   # 241-255
)


def build_euler_lut() -> np.ndarray:
    """Return the 256-entry Euler characteristic change table.

    Index: 8-bit occupancy of a 2x2x2 octant, bit 0 = center (always set),
    bits 1..7 = the other seven voxels as produced by `octant_index`.
    Value: signed contribution of the octant to the Euler characteristic
    change when the center is removed. Values lie in [-7, 5].
    """
    lut = np.zeros(256, dtype=np.int64)
    lut[1::2] = np.asarray(_EULER_ODD_ENTRIES, dtype=np.int64)
    return lut


EULER_LUT = build_euler_lut()
EULER_LUT.setflags(write=False)


# ---------------------------------------------------------------------------
# Octant indexers
# ---------------------------------------------------------------------------

OCTANT_NAMES: Tuple[str, ...] = ("NEB", "NWB", "SEB", "SWB", "NEU", "NWU", "SEU", "SWU")

# Bit weight of each listed position; the +1 sentinel is added separately.
OCTANT_BIT_WEIGHTS = np.array([128, 64, 32, 16, 8, 4, 2], dtype=np.int64)

# Neighborhood positions read by each octant indexer, in bit-weight order.
# The mapping is fixed by the LUT above; reordering a row corrupts the test.
OCTANT_EULER_POSITIONS = np.array([
    [2, 1, 11, 10, 5, 4, 14],      # NEB
    [0, 9, 3, 12, 1, 10, 4],       # NWB
    [8, 7, 17, 16, 5, 4, 14],      # SEB
    [6, 15, 7, 16, 3, 12, 4],      # SWB
    [20, 23, 19, 22, 11, 14, 10],  # NEU
    [18, 21, 9, 12, 19, 22, 10],   # NWU
    [26, 23, 17, 14, 25, 22, 16],  # SEU
    [24, 25, 15, 16, 21, 22, 12],  # SWU
], dtype=np.int64)

OCTANT_INDEX: Dict[str, int] = {name: i for i, name in enumerate(OCTANT_NAMES)}


# ---------------------------------------------------------------------------
# Octree labeling adjacency
# ---------------------------------------------------------------------------

# Cube cells (center removed) belonging to each octant. Octant k holds the
# cells whose offsets lie on the (+) side of x when bit 0 of k is set, of y
# for bit 1 and of z for bit 2, and on the (-) side otherwise.
OCTANT_CUBE_CELLS = np.array([
    [0, 1, 3, 4, 9, 10, 12],
    [1, 2, 4, 5, 10, 11, 13],
    [3, 4, 6, 7, 12, 14, 15],
    [4, 5, 7, 8, 13, 15, 16],
    [9, 10, 12, 17, 18, 20, 21],
    [10, 11, 13, 18, 19, 21, 22],
    [12, 14, 15, 20, 21, 23, 24],
    [13, 15, 16, 21, 22, 24, 25],
], dtype=np.int64)


def _cell_octants(octant_cells: np.ndarray) -> np.ndarray:
    """Invert OCTANT_CUBE_CELLS: octants containing each cube cell, padded with -1."""
    members = [[] for _ in range(26)]
    for octant in range(octant_cells.shape[0]):
        for cell in octant_cells[octant]:
            members[int(cell)].append(octant)
    width = max(len(m) for m in members)
    out = np.full((26, width), -1, dtype=np.int64)
    for cell, octs in enumerate(members):
        out[cell, :len(octs)] = octs
    return out


CELL_OCTANTS = _cell_octants(OCTANT_CUBE_CELLS)

# Octant a flood fill starts from when a cell is found as a new seed.
CELL_SEED_OCTANT = CELL_OCTANTS[:, 0].copy()

# Upper bound on pending octants in one fill: the seed plus at most three
# further octants per labeled cell.
FILL_STACK_SIZE = 1 + 26 * (CELL_OCTANTS.shape[1] - 1)

for _table in (OCTANT_BIT_WEIGHTS, OCTANT_EULER_POSITIONS, OCTANT_CUBE_CELLS, CELL_OCTANTS, CELL_SEED_OCTANT):
    _table.setflags(write=False)


# ---------------------------------------------------------------------------
# Border directions
# ---------------------------------------------------------------------------

# Sweep order and the (dx, dy, dz) step to the neighbor that must be
# background for a voxel to be a border voxel in that direction.
BORDER_DIRECTIONS: Tuple[Tuple[str, Tuple[int, int, int]], ...] = (
    ("N", (0, -1, 0)),
    ("S", (0, 1, 0)),
    ("E", (1, 0, 0)),
    ("W", (-1, 0, 0)),
    ("U", (0, 0, 1)),
    ("B", (0, 0, -1)),
)


def neighborhood_offset(index: int) -> Tuple[int, int, int]:
    """Return (dx, dy, dz) of a neighborhood index 0..26."""
    if not 0 <= index < 27:
        raise IndexError(f"neighborhood index {index} out of range")
    dz, rem = divmod(index, 9)
    dy, dx = divmod(rem, 3)
    return dx - 1, dy - 1, dz - 1


def cube_to_neighborhood(cell: int) -> int:
    """Map a labeling-cube cell (0..25) to its neighborhood index."""
    if not 0 <= cell < 26:
        raise IndexError(f"cube cell {cell} out of range")
    return cell if cell < 13 else cell + 1
