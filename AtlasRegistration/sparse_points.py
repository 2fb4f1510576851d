from __future__ import annotations

import re
import tempfile
from pathlib import Path
from typing import List, Optional

import numpy as np
import SimpleITK as sitk
from tqdm import tqdm

from AtlasRegistration.config import ToolboxSettings
from AtlasRegistration.elastix import moving_and_target_names
from AtlasRegistration.inversion import InvertedTransform


OUTPUT_INDEX_RE = re.compile(r"OutputIndexFixed\s*=\s*\[([^\]]*)\]")


def invert_exported_sparse_files(
    inverted: InvertedTransform,
    experiment_dir: Optional[Path] = None,
    settings: Optional[ToolboxSettings] = None,
) -> List[Path]:
    """Map every exported sparse point file of an experiment into ARA space.

    Reads `<experiment>/<sparse_dir>/*.csv` (x,y,z voxel indices, optional
    header row) and writes the transformed points with the same file name to
    `<experiment>/<sparse_dir>/<sparse_ara_subdir>/`.
    """
    settings = settings or ToolboxSettings()
    experiment_dir = Path(experiment_dir) if experiment_dir is not None else Path.cwd()
    sparse_dir = experiment_dir / settings.sparse_dir
    if not sparse_dir.is_dir():
        print(f"[sparse_points] No exported sparse directory at {sparse_dir}; nothing to transform.")
        return []
    point_files = sorted(p for p in sparse_dir.glob("*.csv") if p.is_file())
    if not point_files:
        print(f"[sparse_points] No sparse point files found in {sparse_dir}.")
        return []

    out_dir = sparse_dir / settings.sparse_ara_subdir
    out_dir.mkdir(parents=True, exist_ok=True)
    parameter_maps = inverted.to_parameter_maps()
    reference = _reference_image(inverted.source_dir)

    written: List[Path] = []
    for path in tqdm(point_files, desc="sparse files"):
        points = read_sparse_points(path)
        out_path = out_dir / path.name
        if points.shape[0] == 0:
            write_sparse_points(points, out_path)
            written.append(out_path)
            continue
        transformed = transform_points(points, parameter_maps, reference)
        write_sparse_points(transformed, out_path)
        print(f"[sparse_points] {path.name}: wrote {len(transformed)} points to {out_path}")
        written.append(out_path)
    return written


def transform_points(
    points: np.ndarray,
    parameter_maps: sitk.VectorOfParameterMap,
    reference: sitk.Image,
) -> np.ndarray:
    with tempfile.TemporaryDirectory(prefix="transformix_") as tmp:
        work = Path(tmp)
        point_file = write_elastix_points(points, work / "inputpoints.txt")
        transformix = sitk.TransformixImageFilter()
        transformix.LogToConsoleOff()
        transformix.SetTransformParameterMap(parameter_maps)
        transformix.SetMovingImage(reference)
        transformix.SetFixedPointSetFileName(str(point_file))
        transformix.SetOutputDirectory(str(work))
        transformix.Execute()
        return read_transformix_points(work / "outputpoints.txt")


def read_sparse_points(path: Path) -> np.ndarray:
    """Read an N x 3 table of x,y,z voxel indices, skipping a header row if present."""
    lines = [ln for ln in Path(path).read_text(encoding="utf-8").splitlines() if ln.strip()]
    if lines and not _is_numeric_row(lines[0]):
        lines = lines[1:]
    if not lines:
        return np.zeros((0, 3), dtype=float)
    points = np.loadtxt(lines, delimiter=",", dtype=float, ndmin=2)
    if points.shape[1] < 3:
        raise ValueError(f"Expected at least 3 columns (x,y,z) in {path}, got {points.shape[1]}")
    return points[:, :3]


def write_sparse_points(points: np.ndarray, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    np.savetxt(path, np.asarray(points, dtype=float).reshape(-1, 3), delimiter=",", header="x,y,z", comments="", fmt="%g")
    return path


def write_elastix_points(points: np.ndarray, path: Path) -> Path:
    """Write points in elastix's `index` point-set format."""
    points = np.asarray(points, dtype=float).reshape(-1, 3)
    body = "\n".join(" ".join(f"{v:g}" for v in row) for row in points)
    Path(path).write_text(f"index\n{len(points)}\n{body}\n", encoding="utf-8")
    return Path(path)


def read_transformix_points(path: Path) -> np.ndarray:
    """Parse `OutputIndexFixed` coordinates from a transformix `outputpoints.txt`."""
    rows = []
    for line in Path(path).read_text(encoding="utf-8").splitlines():
        match = OUTPUT_INDEX_RE.search(line)
        if match is None:
            continue
        rows.append([float(v) for v in match.group(1).split()])
    if not rows:
        return np.zeros((0, 3), dtype=float)
    return np.array(rows, dtype=float)


def _reference_image(source_dir: Path) -> sitk.Image:
    source_dir = Path(source_dir)
    candidates = [source_dir / moving_and_target_names(source_dir.name)["target"], source_dir / "result.mhd"]
    for candidate in candidates:
        if candidate.exists():
            return sitk.ReadImage(str(candidate))
    raise FileNotFoundError(f"No reference image for transformix in {source_dir}")


def _is_numeric_row(line: str) -> bool:
    try:
        [float(v) for v in line.split(",") if v.strip()]
        return True
    except ValueError:
        return False
