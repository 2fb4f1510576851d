from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Sequence

import SimpleITK as sitk

from AtlasRegistration.elastix import find_transform_chain, load_parameter_maps, moving_and_target_names


ParameterDict = Dict[str, List[str]]


@dataclass
class InvertedTransform:
    """Inverse of a sample-to-ARA registration, as elastix parameter maps."""

    source_dir: Path
    parameter_maps: List[ParameterDict] = field(default_factory=list)

    def to_parameter_maps(self) -> sitk.VectorOfParameterMap:
        return dicts_to_parameter_maps(self.parameter_maps)

    def to_dict(self) -> Dict:
        return {"source_dir": str(self.source_dir), "parameter_maps": self.parameter_maps}

    @classmethod
    def from_dict(cls, data: Dict) -> "InvertedTransform":
        maps = data.get("parameter_maps", [])
        if not isinstance(maps, list):
            raise ValueError("parameter_maps must be a list of parameter maps.")
        return cls(
            source_dir=Path(data["source_dir"]),
            parameter_maps=[{str(k): [str(v) for v in vals] for k, vals in m.items()} for m in maps],
        )


def invert_elastix_transform(elastix_dir: Path, parameter_files: Sequence[Path]) -> InvertedTransform:
    """Invert the transform chain found in `elastix_dir`.

    Elastix's standard recipe: rerun the registration parameter files with the
    fixed image as both fixed and moving, the forward transform as the initial
    transform and the DisplacementMagnitudePenalty metric, then drop the
    initial transform from the result.
    """
    elastix_dir = Path(elastix_dir)
    chain = find_transform_chain(elastix_dir)
    if not chain:
        raise FileNotFoundError(f"No TransformParameters files found in {elastix_dir}")
    target_path = elastix_dir / moving_and_target_names(elastix_dir.name)["target"]
    if not target_path.exists():
        raise FileNotFoundError(f"Registration target image not found at {target_path}")
    params = dicts_to_parameter_maps(inversion_parameter_dicts(parameter_files))
    fixed = sitk.ReadImage(str(target_path))

    inversion_dir = elastix_dir / "inversion"
    inversion_dir.mkdir(parents=True, exist_ok=True)

    elastix = sitk.ElastixImageFilter()
    elastix.LogToConsoleOn()
    elastix.LogToFileOn()
    elastix.SetOutputDirectory(str(inversion_dir))
    elastix.SetFixedImage(fixed)
    elastix.SetMovingImage(fixed)
    elastix.SetInitialTransformParameterFileName(str(chain[-1]))
    elastix.SetParameterMap(params)
    elastix.Execute()

    result = elastix.GetTransformParameterMap()
    inverted = [parameter_map_to_dict(pm) for pm in result]
    if inverted:
        inverted[0]["InitialTransformParametersFileName"] = ["NoInitialTransform"]
    return InvertedTransform(source_dir=elastix_dir, parameter_maps=inverted)


def inversion_parameter_dicts(parameter_files: Sequence[Path]) -> List[ParameterDict]:
    """Registration parameter files with the metric swapped for DisplacementMagnitudePenalty."""
    inverted: List[ParameterDict] = []
    for param_map in load_parameter_maps(parameter_files):
        data = parameter_map_to_dict(param_map)
        data.pop("InitialTransformParametersFileName", None)
        data["Metric"] = ["DisplacementMagnitudePenalty"]
        data["HowToCombineTransforms"] = ["Compose"]
        inverted.append(data)
    return inverted


def dicts_to_parameter_maps(maps: Sequence[ParameterDict]) -> sitk.VectorOfParameterMap:
    vec = sitk.VectorOfParameterMap()
    for data in maps:
        param_map = sitk.ParameterMap()
        for key, values in data.items():
            param_map[key] = [str(v) for v in values]
        vec.append(param_map)
    return vec


def parameter_map_to_dict(param_map: sitk.ParameterMap) -> ParameterDict:
    return {str(key): [_decode(v) for v in param_map[key]] for key in param_map.keys()}


def save_inverted_transform(inverted: InvertedTransform, path: Path) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(inverted.to_dict(), indent=2), encoding="utf-8")
    return path


def load_inverted_transform(path: Path) -> InvertedTransform:
    return InvertedTransform.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))


def _decode(value: object) -> str:
    if isinstance(value, (bytes, bytearray)):
        return value.decode()
    return str(value)
