from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


PARAMETER_DIR = Path(__file__).resolve().parent / "parameter_files"
DEFAULT_PARAMETER_FILES = ("01_ARA_affine.txt", "02_ARA_bspline.txt")

SETTING_ALIASES: Dict[str, str] = {
    "downsampleddir": "downsampled_dir",
    "downsampleglob": "downsampled_glob",
    "downsampledglob": "downsampled_glob",
    "ara2sampledir": "ara2sample_dir",
    "sample2aradir": "sample2ara_dir",
    "removemovingandfixed": "remove_moving_and_fixed",
    "invertedmatname": "inverted_name",
    "invertedname": "inverted_name",
    "aradir": "ara_dir",
    "templatename": "template_name",
    "sparsedir": "sparse_dir",
    "sparseexportdir": "sparse_dir",
    "sparseatlasdir": "sparse_ara_subdir",
}

OPTION_ALIASES: Dict[str, str] = {
    "downsampledir": "downsample_dir",
    "downsampleddir": "downsample_dir",
    "ara2sample": "ara2sample",
    "sample2ara": "sample2ara",
    "suppressinvertsample2ara": "suppress_invert_sample2ara",
    "elastixparams": "elastix_params",
    "experimentdir": "experiment_dir",
    "expdir": "experiment_dir",
}


def default_parameter_files() -> List[Path]:
    """Affine then B-spline parameter files shipped with the package."""
    return [PARAMETER_DIR / name for name in DEFAULT_PARAMETER_FILES]


def _as_flag(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise TypeError(f"{name} must be a bool or 0/1, got {value!r}")


def _normalize_key(raw: str, aliases: Dict[str, str]) -> str:
    key = str(raw).strip()
    compact = key.replace("_", "").replace("-", "").lower()
    return aliases.get(compact, key)


@dataclass
class ToolboxSettings:
    """Toolbox-wide settings: directory names, cleanup and atlas locations."""

    downsampled_dir: str = "downsampled"
    downsampled_glob: str = "ds*.mhd"
    ara2sample_dir: str = "ARA_to_sample"
    sample2ara_dir: str = "sample_to_ARA"
    remove_moving_and_fixed: bool = True
    inverted_name: str = "inverted_transform.json"
    ara_dir: Path = Path("ARA")
    template_name: str = "template.mhd"
    sparse_dir: str = "exported_sparse"
    sparse_ara_subdir: str = "ARA"

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "ToolboxSettings":
        """Parse settings from a YAML mapping.

        Legacy camelCase keys (`downSampledDir`, `invertedMatName`, ...) are
        accepted through `SETTING_ALIASES`.
        """
        if data is not None and not isinstance(data, dict):
            raise ValueError(f"Settings must be a mapping, got {type(data).__name__}.")
        default = cls()
        known = set(default.__dict__.keys())
        merged = dict(default.__dict__)
        for raw_key, value in (data or {}).items():
            key = _normalize_key(raw_key, SETTING_ALIASES)
            if key not in known:
                print(f"[config] Ignoring unknown setting '{raw_key}'.")
                continue
            merged[key] = value
        merged["ara_dir"] = Path(merged["ara_dir"])
        merged["remove_moving_and_fixed"] = _as_flag("remove_moving_and_fixed", merged["remove_moving_and_fixed"])
        return cls(**merged)


@dataclass
class RegisterOptions:
    """Every option accepted by `ara_register`, with its default."""

    downsample_dir: Optional[Path] = None
    ara2sample: bool = True
    sample2ara: bool = True
    suppress_invert_sample2ara: bool = False
    elastix_params: List[Path] = field(default_factory=default_parameter_files)
    experiment_dir: Optional[Path] = None

    @property
    def invert_sample2ara(self) -> bool:
        # Only consulted when sample2ara runs.
        return not (self.sample2ara and self.suppress_invert_sample2ara)

    def resolve_downsample_dir(self, settings: ToolboxSettings) -> Path:
        if self.downsample_dir is not None:
            return Path(self.downsample_dir)
        return Path.cwd() / settings.downsampled_dir

    def resolve_experiment_dir(self) -> Path:
        if self.experiment_dir is not None:
            return Path(self.experiment_dir)
        return Path.cwd()

    @classmethod
    def from_dict(cls, data: Optional[Dict]) -> "RegisterOptions":
        """Parse options from a mapping; option names are case-insensitive."""
        default = cls()
        known = set(default.__dict__.keys())
        merged = dict(default.__dict__)
        for raw_key, value in (data or {}).items():
            key = _normalize_key(raw_key, OPTION_ALIASES)
            if key not in known:
                raise ValueError(f"Unknown registration option '{raw_key}'. Known options: {sorted(known)}")
            merged[key] = value
        for flag in ("ara2sample", "sample2ara", "suppress_invert_sample2ara"):
            merged[flag] = _as_flag(flag, merged[flag])
        params = merged["elastix_params"]
        if isinstance(params, (str, Path)):
            params = [params]
        if not isinstance(params, (list, tuple)):
            raise TypeError("elastix_params must be a list of parameter file paths.")
        merged["elastix_params"] = [Path(p) for p in params]
        for key in ("downsample_dir", "experiment_dir"):
            if merged[key] is not None:
                merged[key] = Path(merged[key])
        return cls(**merged)


def load_settings(settings_path: Optional[Path] = None) -> ToolboxSettings:
    """Load toolbox settings from YAML, or return the defaults when no path is given."""
    if settings_path is None:
        return ToolboxSettings()
    with open(settings_path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {settings_path} must contain a mapping, got {type(data).__name__}.")
    return ToolboxSettings.from_dict(data)
