from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from AtlasRegistration.atlas import get_ara_fnames
from AtlasRegistration.config import RegisterOptions, ToolboxSettings
from AtlasRegistration.elastix import check_parameter_files, read_volume, remove_moving_and_fixed, run_elastix
from AtlasRegistration.files import get_downsampled_mhd_file
from AtlasRegistration.inversion import invert_elastix_transform, save_inverted_transform
from AtlasRegistration.results import Outcome
from AtlasRegistration.sparse_points import invert_exported_sparse_files


ARA2SAMPLE = "ara2sample"
SAMPLE2ARA = "sample2ara"


def ara_register(options: Optional[RegisterOptions] = None, settings: Optional[ToolboxSettings] = None) -> Outcome:
    """Register a sample brain to the ARA and the ARA to the sample.

    By default:
    1. registers the ARA template to the sample (`<downsample_dir>/<ara2sample_dir>`),
    2. registers the sample to the ARA template (`<downsample_dir>/<sample2ara_dir>`),
    3. inverts (2), saves the inverse and maps exported sparse points with it.

    Missing elastix parameter files raise FileNotFoundError before anything is
    read. Other precondition failures print a message and return an `aborted`
    or `not_found` outcome. A direction whose output directory cannot be
    created is skipped and the outcome is `partial`.
    """
    options = options or RegisterOptions()
    settings = settings or ToolboxSettings()
    downsample_dir = options.resolve_downsample_dir(settings)

    if not downsample_dir.is_dir():
        message = f"Failed to find downsampled directory {downsample_dir}"
        print(f"[ara_register] {message}")
        return Outcome.aborted("missing_downsample_dir", message)

    check_parameter_files(options.elastix_params)

    mhd_file = get_downsampled_mhd_file(downsample_dir, settings.downsampled_glob)
    if mhd_file is None:
        return Outcome.not_found("no_sample_file")

    sample_file = downsample_dir / mhd_file
    if not sample_file.exists():
        message = f"Can not find sample file at {sample_file}"
        print(f"[ara_register] {message}")
        return Outcome.aborted("missing_sample_file", message)

    template_file = get_ara_fnames(mhd_file, settings)
    if template_file is None:
        return Outcome.not_found("no_template")

    print("[ara_register] Loading image volumes...")
    template_vol = read_volume(template_file)
    sample_vol = read_volume(sample_file)

    completed: List[str] = []
    skipped: List[str] = []

    if options.ara2sample:
        print("[ara_register] Beginning registration of ARA to sample")
        elastix_dir = _make_registration_dir(downsample_dir / settings.ara2sample_dir)
        if elastix_dir is None:
            skipped.append(ARA2SAMPLE)
        else:
            print(f"[ara_register] Conducting registration in {elastix_dir}")
            run_elastix(template_vol, sample_vol, elastix_dir, options.elastix_params)
            if settings.remove_moving_and_fixed:
                remove_moving_and_fixed(elastix_dir, settings.ara2sample_dir)
            completed.append(ARA2SAMPLE)

    if options.sample2ara:
        print("[ara_register] Beginning registration of sample to ARA")
        elastix_dir = _make_registration_dir(downsample_dir / settings.sample2ara_dir)
        if elastix_dir is None:
            skipped.append(SAMPLE2ARA)
        else:
            print(f"[ara_register] Conducting registration in {elastix_dir}")
            run_elastix(sample_vol, template_vol, elastix_dir, options.elastix_params)
            if options.invert_sample2ara:
                _invert_sample2ara(elastix_dir, options, settings)
            if settings.remove_moving_and_fixed:
                remove_moving_and_fixed(elastix_dir, settings.sample2ara_dir)
            completed.append(SAMPLE2ARA)

    print("[ara_register] Finished")
    if skipped:
        return Outcome.partial(
            "direction_skipped",
            f"Skipped registration direction(s): {', '.join(skipped)}",
            value=completed,
        )
    return Outcome.success(value=completed)


def _make_registration_dir(path: Path) -> Optional[Path]:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        print(f"[ara_register] Failed to make directory {path} ({exc})")
        return None
    return path


def _invert_sample2ara(elastix_dir: Path, options: RegisterOptions, settings: ToolboxSettings) -> None:
    print("[ara_register] Beginning inversion of sample to ARA")
    inverted = invert_elastix_transform(elastix_dir, options.elastix_params)
    save_inverted_transform(inverted, elastix_dir / settings.inverted_name)
    invert_exported_sparse_files(inverted, options.resolve_experiment_dir(), settings)

