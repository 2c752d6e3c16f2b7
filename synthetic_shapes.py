from __future__ import annotations

import numpy as np

from lee_thin import thin
from skeleton_metrics import skeleton_summary


def make_point(shape=(5, 5, 5), at=(2, 2, 2)) -> np.ndarray:
    vol = np.zeros(shape, dtype=np.uint8)
    vol[at] = 1
    return vol


def make_rod(length: int = 5, axis: int = 0, pad: int = 1) -> np.ndarray:
    """One-voxel-wide straight rod along `axis`, surrounded by `pad` background."""
    shape = [1 + 2 * pad] * 3
    shape[axis] = length + 2 * pad
    vol = np.zeros(tuple(shape), dtype=np.uint8)
    idx = [pad, pad, pad]
    idx[axis] = slice(pad, pad + length)
    vol[tuple(idx)] = 1
    return vol


def make_box(size=(5, 5, 5), pad: int = 1) -> np.ndarray:
    shape = tuple(s + 2 * pad for s in size)
    vol = np.zeros(shape, dtype=np.uint8)
    vol[pad:pad + size[0], pad:pad + size[1], pad:pad + size[2]] = 1
    return vol


def make_hollow_box(size: int = 7, wall: int = 1, pad: int = 1) -> np.ndarray:
    vol = make_box((size, size, size), pad=pad)
    lo, hi = pad + wall, pad + size - wall
    vol[lo:hi, lo:hi, lo:hi] = 0
    return vol


def make_torus(major: float = 7.0, minor: float = 2.5, pad: int = 2) -> np.ndarray:
    """Solid torus around the z axis: (rho - major)^2 + z^2 <= minor^2."""
    half_xy = int(np.ceil(major + minor)) + pad
    half_z = int(np.ceil(minor)) + pad
    x = np.arange(-half_xy, half_xy + 1, dtype=np.float64)
    z = np.arange(-half_z, half_z + 1, dtype=np.float64)
    X, Y, Z = np.meshgrid(x, x, z, indexing="ij")
    rho = np.sqrt(X * X + Y * Y)
    return (((rho - major) ** 2 + Z * Z) <= minor * minor).astype(np.uint8)


SHAPES = {
    "point": make_point,
    "rod": make_rod,
    "box": make_box,
    "hollow_box": make_hollow_box,
    "torus": make_torus,
}


def main():
    for name, make in SHAPES.items():
        vol = make()
        before = vol.copy()
        result = thin(vol)
        s = skeleton_summary(before, vol)
        print(f"{name:>10s}: shape={vol.shape} iterations={result.iterations} "
              f"voxels {s['input_foreground']} -> {s['skeleton_voxels']} "
              f"euler {s['euler_before']} -> {s['euler_after']} "
              f"components {s['components_before']} -> {s['components_after']}")


if __name__ == "__main__":
    main()
