from __future__ import annotations

from pathlib import Path
from typing import Optional

from AtlasRegistration.config import ToolboxSettings
from AtlasRegistration.voxel_size import parse_voxel_size


def ara_resolution_dir(settings: ToolboxSettings, voxel_size: str) -> Path:
    return settings.ara_dir / f"ARA_{voxel_size}_micron_mhd"


def get_ara_fnames(sample_file_name: str, settings: Optional[ToolboxSettings] = None) -> Optional[Path]:
    """Return the ARA template matching the resolution of `sample_file_name`.

    The atlas resolution is inferred from the voxel size embedded in the sample
    name; returns None (after printing why) when no such atlas is installed.
    """
    settings = settings or ToolboxSettings()
    outcome = parse_voxel_size(sample_file_name)
    if not outcome.ok:
        print(f"[atlas] {outcome.message}")
        return None
    template = ara_resolution_dir(settings, outcome.value) / settings.template_name
    if not template.exists():
        print(f"[atlas] No {outcome.value} micron ARA template found at {template}")
        return None
    return template
