from __future__ import annotations

import argparse
import os

import numpy as np
import matplotlib
matplotlib.use("agg")
import matplotlib.pyplot as plt


def _load(path: str) -> dict[str, np.ndarray]:
    with np.load(path) as d:
        return {k: d[k] for k in d.files}


def _projection(ax, vol: np.ndarray, axis: int, title: str):
    proj = vol.max(axis=axis) if vol.size else vol
    ax.imshow(proj.T, origin='lower', cmap='gray_r', interpolation='nearest')
    names = ('x', 'y', 'z')
    rest = [n for i, n in enumerate(names) if i != axis]
    ax.set_xlabel(rest[0])
    ax.set_ylabel(rest[1])
    ax.set_title(title)


def make_pngs(npz_path: str, outdir: str, input_volume: np.ndarray | None = None, prefix: str | None = None):
    d = _load(npz_path)
    skel = d['skeleton']
    os.makedirs(outdir, exist_ok=True)
    base = prefix or (os.path.splitext(os.path.basename(npz_path))[0])

    rows = 2 if input_volume is not None else 1
    fig, axes = plt.subplots(rows, 3, figsize=(12, 4 * rows), dpi=150, squeeze=False)
    for axis in range(3):
        if input_volume is not None:
            _projection(axes[0, axis], (input_volume == 1).astype(np.uint8), axis,
                        f'input max-projection along {"xyz"[axis]}')
        _projection(axes[rows - 1, axis], skel, axis,
                    f'skeleton max-projection along {"xyz"[axis]}')
    n_vox = int(d['skeleton_voxels']) if 'skeleton_voxels' in d else int(skel.sum())
    fig.suptitle(f'{base}: {n_vox} skeleton voxels')
    out_path = os.path.join(outdir, f"{base}_projections.png")
    fig.savefig(out_path, bbox_inches='tight')
    plt.close(fig)

    print(f"Wrote PNGs to {outdir}")
    return out_path


def main():
    ap = argparse.ArgumentParser()
    ap.add_argument('--input', required=True, help='path to a *_skeleton.npz written by skeletonize.py')
    ap.add_argument('--outdir', default=None, help='output directory for PNGs (default next to input)')
    args = ap.parse_args()

    outdir = args.outdir or os.path.dirname(args.input) or '.'
    make_pngs(args.input, outdir)


if __name__ == '__main__':
    main()
