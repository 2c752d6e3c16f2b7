from __future__ import annotations

from typing import Tuple

import numpy as np
from numba import njit


@njit(inline='always')
def uf_find(parent, x):
    while parent[x] != x:
        parent[x] = parent[parent[x]]
        x = parent[x]
    return x


@njit(inline='always')
def uf_union(parent, a, b):
    ra = uf_find(parent, a)
    rb = uf_find(parent, b)
    if ra != rb:
        if ra < rb:
            parent[rb] = ra
        else:
            parent[ra] = rb


def _backward_offsets(connectivity: int) -> np.ndarray:
    """Offsets (dx,dy,dz) of already-visited neighbors for a z-outer, x-inner scan."""
    if connectivity not in (6, 18, 26):
        raise ValueError("connectivity must be 6, 18, or 26")
    offs = []
    for dz in (-1, 0):
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dz == 0 and (dy > 0 or (dy == 0 and dx >= 0)):
                    continue
                order = abs(dx) + abs(dy) + abs(dz)
                if connectivity == 6 and order > 1:
                    continue
                if connectivity == 18 and order > 2:
                    continue
                offs.append((dx, dy, dz))
    return np.asarray(offs, dtype=np.int64)


@njit
def _ccl(mask, neigh):
    """Two-pass union-find labeling. Returns (labels, number of provisional labels)."""
    ni, nj, nk = mask.shape
    labels = np.zeros((ni, nj, nk), dtype=np.int64)
    parent = np.arange(ni * nj * nk + 1, dtype=np.int64)
    next_label = 1

    for k in range(nk):
        for j in range(nj):
            for i in range(ni):
                if not mask[i, j, k]:
                    continue
                lbl = 0
                for t in range(neigh.shape[0]):
                    di = i + neigh[t, 0]
                    dj = j + neigh[t, 1]
                    dk = k + neigh[t, 2]
                    if di < 0 or dj < 0 or dk < 0 or di >= ni or dj >= nj or dk >= nk:
                        continue
                    nb = labels[di, dj, dk]
                    if nb == 0:
                        continue
                    if lbl == 0:
                        lbl = nb
                    elif nb != lbl:
                        uf_union(parent, lbl, nb)
                if lbl == 0:
                    lbl = next_label
                    next_label += 1
                labels[i, j, k] = lbl

    for k in range(nk):
        for j in range(nj):
            for i in range(ni):
                l = labels[i, j, k]
                if l != 0:
                    labels[i, j, k] = uf_find(parent, l)

    return labels, next_label - 1


def _compact_labels_inplace(labels: np.ndarray) -> int:
    """Relabel positive labels in-place to compact 1..K. Return K."""
    if labels.size == 0:
        return 0
    u = np.unique(labels)
    u = u[u != 0]
    if u.size == 0:
        return 0
    lut = np.zeros(int(u.max()) + 1, dtype=np.int64)
    lut[u] = np.arange(1, u.size + 1, dtype=np.int64)
    pos = labels > 0
    labels[pos] = lut[labels[pos]]
    return int(u.size)


def label_3d(mask: np.ndarray, connectivity: int = 26) -> Tuple[np.ndarray, int]:
    """Label the connected foreground components of a 3-D volume.

    - mask: array, nonzero = foreground, indexed [x, y, z].
    - connectivity: 6, 18 or 26 (26 matches the thinning topology).

    Returns (labels, K): int64 labels compacted to 1..K, 0 on background.
    """
    mask = np.asarray(mask)
    if mask.ndim != 3:
        raise ValueError(f"mask must be 3-D, got shape {mask.shape}")
    neigh = _backward_offsets(connectivity)
    labels, _ = _ccl(np.ascontiguousarray(mask != 0), neigh)
    K = _compact_labels_inplace(labels)
    return labels, K
