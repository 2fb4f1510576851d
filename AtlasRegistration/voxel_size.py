from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from AtlasRegistration.config import ToolboxSettings
from AtlasRegistration.files import get_downsampled_mhd_file
from AtlasRegistration.results import Outcome


# A run of `_<digits>` tokens closed by an underscore.
VOXEL_TOKENS_RE = re.compile(r"((?:_\d+)+)_")


def parse_voxel_size(file_name: str) -> Outcome:
    """Recover the voxel size encoded in a downsampled file name.

    `sample_25_25_raw.mhd` -> Outcome(ok, value="25"). The last run of numeric
    tokens is used. Tokens are compared as strings, so `025` and `25` do not match.
    """
    runs = VOXEL_TOKENS_RE.findall(file_name)
    if not runs:
        return Outcome.not_found("no_match", f"Can not find voxel size from file name {file_name}")
    tokens = [t for t in runs[-1].split("_") if t]
    if len(tokens) != 2:
        return Outcome.not_found("token_count", f"Did not find two voxel size numbers in file name {file_name}")
    if tokens[0] != tokens[1]:
        return Outcome.not_found(
            "not_square",
            f"Voxel sizes {tokens[0]} and {tokens[1]} are not equal so voxels not square. No such ARA. Quitting",
        )
    return Outcome.success(value=tokens[0])


def get_sample_voxel_size(exp_dir: Optional[Path] = None, settings: Optional[ToolboxSettings] = None) -> Optional[str]:
    """Return the downsampled voxel size of a sample directory as a string (e.g. "25").

    `exp_dir` defaults to the current directory. Returns None when the
    downsampled file cannot be found or its name does not encode square voxels.
    """
    settings = settings or ToolboxSettings()
    exp_dir = Path(exp_dir) if exp_dir else Path(".")
    mhd_file = get_downsampled_mhd_file(exp_dir / settings.downsampled_dir, settings.downsampled_glob)
    if mhd_file is None:
        return None
    outcome = parse_voxel_size(mhd_file)
    if not outcome.ok:
        print(f"[voxel_size] {outcome.message}")
        return None
    return outcome.value
