"""
volume_io.py

Thin I/O wrapper for dense volumes stored as numpy files.

- Input: `.npy` (single array) or `.npz` (named arrays; `input_key` selects one,
  default the first array in the archive).
- Returned arrays are indexed [x, y, z]. Data written in [z, y, x] order
  (image stacks, openPMD-style dumps) is transposed when axis_order="zyx".
- Output: one `.npz` with the skeleton and its summary scalars, plus a JSON
  sidecar with timings, configuration and provenance.

Primary API
-----------

    from volume_io import IOConfig, load_volume, save_skeleton

    cfg = IOConfig(input_path="./vessels.npz", input_key="mask", axis_order="zyx")
    field = load_volume(cfg)
"""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

import numpy as np


@dataclass
class IOConfig:
    """Configuration for load_volume.

    - input_path: `.npy` or `.npz` file
    - input_key: array name inside an `.npz`; None picks the first array
    - axis_order: "xyz" if the stored array is already [x, y, z], "zyx" to transpose
    """

    input_path: str
    input_key: Optional[str] = None
    axis_order: str = "xyz"


def io_config_from_dict(cfg: Dict[str, Any]) -> IOConfig:
    if "input_path" not in cfg:
        raise KeyError("config is missing required key 'input_path'")
    key = cfg.get("input_key")
    return IOConfig(
        input_path=str(cfg["input_path"]),
        input_key=None if key is None else str(key),
        axis_order=str(cfg.get("axis_order", "xyz")).lower(),
    )


def load_volume(cfg: IOConfig) -> np.ndarray:
    """Read the configured array and return it indexed [x, y, z]."""
    if cfg.axis_order not in ("xyz", "zyx"):
        raise ValueError("axis_order must be 'xyz' or 'zyx'")
    path = cfg.input_path
    if not os.path.exists(path):
        raise FileNotFoundError(path)

    if path.endswith(".npz"):
        with np.load(path) as d:
            if not d.files:
                raise ValueError(f"{path} contains no arrays")
            key = cfg.input_key if cfg.input_key is not None else d.files[0]
            if key not in d.files:
                raise KeyError(f"input_key '{key}' not found in {path}; available: {', '.join(d.files)}")
            arr = d[key]
    else:
        arr = np.load(path)

    if arr.ndim != 3:
        raise ValueError(f"expected a 3-D array in {path}, got shape {arr.shape}")
    if cfg.axis_order == "zyx":
        arr = np.ascontiguousarray(arr.transpose(2, 1, 0))
    return arr


def _git_rev() -> str:
    try:
        return subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL).decode().strip()
    except (OSError, subprocess.CalledProcessError):
        return "unknown"


def save_skeleton(out_dir: str,
                  name: str,
                  skeleton: np.ndarray,
                  summary: Dict[str, int],
                  iterations: int,
                  meta: Optional[Dict[str, Any]] = None) -> Tuple[str, str]:
    """Write <name>_skeleton.npz and <name>_skeleton.meta.json; return both paths."""
    os.makedirs(out_dir, exist_ok=True)
    npz_path = os.path.join(out_dir, f"{name}_skeleton.npz")
    out = {
        "skeleton": np.asarray(skeleton, dtype=np.uint8),
        "iterations": np.int32(iterations),
    }
    for k, v in summary.items():
        out[k] = np.int64(v)
    np.savez(npz_path, **out)

    sidecar = dict(meta or {})
    sidecar.update({
        "shape": [int(s) for s in skeleton.shape],
        "iterations": int(iterations),
        "summary": {k: int(v) for k, v in summary.items()},
        "git_rev": _git_rev(),
        "output_npz": os.path.basename(npz_path),
    })
    meta_path = os.path.join(out_dir, f"{name}_skeleton.meta.json")
    with open(meta_path, "w") as f:
        json.dump(sidecar, f, indent=2, default=str)
    return npz_path, meta_path
