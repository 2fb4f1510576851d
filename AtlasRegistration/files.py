from __future__ import annotations

from pathlib import Path
from typing import List, Optional


def get_downsampled_mhd_file(downsample_dir: Path, pattern: str = "ds*.mhd") -> Optional[str]:
    """Return the file name of the downsampled MHD volume inside `downsample_dir`.

    Returns None (after printing why) when the directory or the file is missing.
    When several files match, the first in sorted order is used.
    """
    downsample_dir = Path(downsample_dir)
    if not downsample_dir.is_dir():
        print(f"[files] Downsampled directory {downsample_dir} does not exist.")
        return None
    matches: List[Path] = sorted(p for p in downsample_dir.glob(pattern) if p.is_file())
    if not matches:
        print(f"[files] No downsampled MHD file matching '{pattern}' in {downsample_dir}.")
        return None
    if len(matches) > 1:
        names = ", ".join(p.name for p in matches)
        print(f"[files] Found {len(matches)} downsampled MHD files ({names}); using {matches[0].name}.")
    return matches[0].name
