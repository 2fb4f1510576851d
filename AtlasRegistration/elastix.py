from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Sequence

import SimpleITK as sitk


TRANSFORM_FILE_TEMPLATE = "TransformParameters.{index}.txt"


def read_volume(path: Path) -> sitk.Image:
    """Read an MHD (or any ITK-readable) volume. Read errors propagate."""
    return sitk.ReadImage(str(path))


def check_parameter_files(parameter_files: Sequence[Path]) -> None:
    for path in parameter_files:
        if not Path(path).is_file():
            raise FileNotFoundError(f"Can not find elastix param file {path}")


def load_parameter_maps(parameter_files: Sequence[Path]) -> sitk.VectorOfParameterMap:
    check_parameter_files(parameter_files)
    params = sitk.VectorOfParameterMap()
    for path in parameter_files:
        params.append(sitk.ReadParameterFile(str(path)))
    return params


def moving_and_target_names(prefix: str) -> Dict[str, str]:
    return {"moving": f"{prefix}_moving.mhd", "target": f"{prefix}_target.mhd"}


def run_elastix(
    fixed: sitk.Image,
    moving: sitk.Image,
    out_dir: Path,
    parameter_files: Sequence[Path],
) -> sitk.VectorOfParameterMap:
    """Register `moving` onto `fixed`, writing all artifacts into `out_dir`.

    The fixed and moving volumes are copied into `out_dir` as `<dir>_target.mhd`
    and `<dir>_moving.mhd`; the resampled moving image is written as `result.mhd`
    and the transform chain as `TransformParameters.<i>.txt`.
    """
    out_dir = Path(out_dir)
    names = moving_and_target_names(out_dir.name)
    sitk.WriteImage(fixed, str(out_dir / names["target"]))
    sitk.WriteImage(moving, str(out_dir / names["moving"]))

    elastix = sitk.ElastixImageFilter()
    elastix.LogToConsoleOn()
    elastix.LogToFileOn()
    elastix.SetOutputDirectory(str(out_dir))
    elastix.SetFixedImage(fixed)
    elastix.SetMovingImage(moving)
    elastix.SetParameterMap(load_parameter_maps(parameter_files))
    elastix.Execute()

    sitk.WriteImage(elastix.GetResultImage(), str(out_dir / "result.mhd"))
    result = elastix.GetTransformParameterMap()
    write_transform_chain(result, out_dir)
    return result


def write_transform_chain(parameter_maps: sitk.VectorOfParameterMap, out_dir: Path) -> List[Path]:
    """Write `TransformParameters.<i>.txt` files, each pointing at its predecessor."""
    written: List[Path] = []
    previous = "NoInitialTransform"
    for index, param_map in enumerate(parameter_maps):
        path = Path(out_dir) / TRANSFORM_FILE_TEMPLATE.format(index=index)
        param_map["InitialTransformParametersFileName"] = [previous]
        sitk.WriteParameterFile(param_map, str(path))
        written.append(path)
        previous = str(path)
    return written


def find_transform_chain(elastix_dir: Path) -> List[Path]:
    """Return the `TransformParameters.<i>.txt` files of a registration directory, in chain order."""

    def _index(path: Path) -> int:
        try:
            return int(path.name.split(".")[1])
        except (IndexError, ValueError):
            return 10**9

    return sorted(Path(elastix_dir).glob("TransformParameters.*.txt"), key=_index)


def remove_moving_and_fixed(out_dir: Path, prefix: str) -> List[Path]:
    """Delete the `<prefix>_moving*` and `<prefix>_target*` copies left in `out_dir`."""
    removed: List[Path] = []
    for pattern in (f"{prefix}_moving*", f"{prefix}_target*"):
        for path in sorted(Path(out_dir).glob(pattern)):
            if path.is_file():
                path.unlink()
                removed.append(path)
    return removed
