from __future__ import annotations

import argparse
import os
import time

import yaml

from lee_thin import thin
from skeleton_metrics import skeleton_summary
from voxel_grid import VoxelGrid
from volume_io import io_config_from_dict, load_volume, save_skeleton


def parse_config(path: str) -> dict:
    with open(path, "r") as f:
        cfg = yaml.safe_load(f)
    if cfg is None:
        cfg = {}
    if not isinstance(cfg, dict):
        raise ValueError(f"config {path} must be a mapping of keys to values")
    return cfg


def run(cfg: dict, verbose: bool = False, plot: bool = False) -> dict:
    """Load, binarize, thin and save according to cfg. Returns the summary dict."""
    io_cfg = io_config_from_dict(cfg)
    verbose = bool(cfg.get("verbose", False)) or verbose
    plot = bool(cfg.get("plot", False)) or plot

    threshold = cfg.get("threshold")
    if threshold is not None:
        threshold = float(threshold)
    max_iter_raw = cfg.get("max_iterations")
    max_iterations = None if max_iter_raw is None else int(max_iter_raw)
    if max_iterations is not None and max_iterations < 1:
        raise ValueError("max_iterations must be >= 1 (or omitted to run to convergence)")

    t0 = time.time()
    field = load_volume(io_cfg)
    t_load = time.time()

    grid = VoxelGrid.binarized(field, threshold)
    before = grid.data.copy()
    if grid.foreground_count() == 0:
        print(f"WARNING: no foreground voxels in {io_cfg.input_path} (threshold={threshold}).")
    result = thin(grid, verbose=verbose, max_iterations=max_iterations)
    t_thin = time.time()
    if not result.converged:
        print(f"WARNING: stopped after max_iterations={max_iterations} before convergence.")

    summary = skeleton_summary(before, grid.data)
    t_metrics = time.time()
    if summary["euler_before"] != summary["euler_after"]:
        print(f"WARNING: Euler characteristic changed {summary['euler_before']} -> {summary['euler_after']}.")

    out_dir = cfg.get("output_dir", "./skeleton_out")
    name = cfg.get("output_name") or os.path.splitext(os.path.basename(io_cfg.input_path))[0]
    meta = {
        "input_path": io_cfg.input_path,
        "input_key": io_cfg.input_key,
        "axis_order": io_cfg.axis_order,
        "threshold": threshold,
        "converged": bool(result.converged),
        "deleted_per_direction": dict(result.deleted_per_direction),
        "times": {
            "load": float(t_load - t0),
            "thin": float(t_thin - t_load),
            "metrics": float(t_metrics - t_thin),
        },
        "config": cfg,
    }
    npz_path, _ = save_skeleton(out_dir, name, grid.data, summary, result.iterations, meta=meta)

    if plot:
        from plot_skeleton import make_pngs
        make_pngs(npz_path, out_dir, input_volume=before)

    print(f"times: load={t_load-t0:.2f}s thin={t_thin-t_load:.2f}s metrics={t_metrics-t_thin:.2f}s "
          f"iterations={result.iterations}")
    print(f"voxels {summary['input_foreground']} -> {summary['skeleton_voxels']}  "
          f"euler {summary['euler_before']} -> {summary['euler_after']}  "
          f"components {summary['components_before']} -> {summary['components_after']}  "
          f"endpoints={summary['endpoints']} junctions={summary['junctions']}")
    print(f"Wrote {npz_path}")
    return summary


def main():
    ap = argparse.ArgumentParser(description="Topology-preserving 3-D skeletonization of a binary volume")
    ap.add_argument("--config", required=True)
    ap.add_argument("--verbose", action="store_true", help="print deletions per iteration")
    ap.add_argument("--plot", action="store_true", help="also write projection PNGs")
    args = ap.parse_args()

    cfg = parse_config(args.config)
    run(cfg, verbose=args.verbose, plot=args.plot)


if __name__ == "__main__":
    main()
