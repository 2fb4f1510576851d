"""ARA registration toolbox.

Keep imports lightweight so submodules can be used without eagerly importing
SimpleITK at package import time.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from AtlasRegistration.register import ara_register as ara_register
    from AtlasRegistration.voxel_size import get_sample_voxel_size as get_sample_voxel_size

__all__ = ["ara_register", "get_sample_voxel_size"]


def __getattr__(name: str) -> Any:
    if name == "ara_register":
        from AtlasRegistration.register import ara_register as _ara_register

        return _ara_register
    if name == "get_sample_voxel_size":
        from AtlasRegistration.voxel_size import get_sample_voxel_size as _get_sample_voxel_size

        return _get_sample_voxel_size
    raise AttributeError(name)
