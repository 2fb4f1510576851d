from __future__ import annotations

import argparse
from pathlib import Path
from typing import List, Optional, Sequence

from AtlasRegistration.config import RegisterOptions, load_settings
from AtlasRegistration.results import ABORTED


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Register sample brains to the Allen Reference Atlas")
    sub = parser.add_subparsers(dest="command", required=True)

    reg = sub.add_parser("register", help="Register the ARA to the sample and the sample to the ARA")
    reg.add_argument("--settings", type=Path, default=None, help="Toolbox settings YAML (default: built-in settings)")
    reg.add_argument("--downsample-dir", type=Path, default=None, help="Directory with the downsampled data (default: ./<downsampled_dir>)")
    reg.add_argument("--experiment-dir", type=Path, default=None, help="Experiment root holding exported sparse points (default: cwd)")
    reg.add_argument("--no-ara2sample", action="store_true", help="Do not register the ARA to the sample")
    reg.add_argument("--no-sample2ara", action="store_true", help="Do not register the sample to the ARA")
    reg.add_argument("--suppress-invert", action="store_true", help="Do not invert the sample-to-ARA transform")
    reg.add_argument("--elastix-params", type=Path, nargs="+", default=None, help="Elastix parameter files, in order")

    vox = sub.add_parser("voxel-size", help="Print the downsampled voxel size of a sample directory")
    vox.add_argument("exp_dir", type=Path, nargs="?", default=Path("."), help="Sample directory (default: cwd)")
    vox.add_argument("--settings", type=Path, default=None, help="Toolbox settings YAML")

    inv = sub.add_parser("invert-sparse", help="Re-map exported sparse points with a saved inverted transform")
    inv.add_argument("--settings", type=Path, default=None, help="Toolbox settings YAML")
    inv.add_argument("--downsample-dir", type=Path, default=None, help="Directory with the downsampled data (default: ./<downsampled_dir>)")
    inv.add_argument("--experiment-dir", type=Path, default=None, help="Experiment root holding exported sparse points (default: cwd)")

    return parser.parse_args(argv)


def _cmd_register(args: argparse.Namespace) -> int:
    from AtlasRegistration.register import ara_register

    settings = load_settings(args.settings)
    data = {
        "downsample_dir": args.downsample_dir,
        "ara2sample": not args.no_ara2sample,
        "sample2ara": not args.no_sample2ara,
        "suppress_invert_sample2ara": args.suppress_invert,
        "experiment_dir": args.experiment_dir,
    }
    if args.elastix_params:
        data["elastix_params"] = list(args.elastix_params)
    options = RegisterOptions.from_dict(data)
    outcome = ara_register(options, settings)
    if outcome.message and not outcome.ok:
        print(f"[register] {outcome.status}: {outcome.message}")
    return 1 if outcome.status == ABORTED else 0


def _cmd_voxel_size(args: argparse.Namespace) -> int:
    from AtlasRegistration.voxel_size import get_sample_voxel_size

    voxel_size = get_sample_voxel_size(args.exp_dir, load_settings(args.settings))
    if voxel_size is None:
        return 1
    print(voxel_size)
    return 0


def _cmd_invert_sparse(args: argparse.Namespace) -> int:
    from AtlasRegistration.inversion import load_inverted_transform
    from AtlasRegistration.sparse_points import invert_exported_sparse_files

    settings = load_settings(args.settings)
    options = RegisterOptions.from_dict({"downsample_dir": args.downsample_dir, "experiment_dir": args.experiment_dir})
    record = options.resolve_downsample_dir(settings) / settings.sample2ara_dir / settings.inverted_name
    if not record.exists():
        print(f"[invert-sparse] No inverted transform at {record}. Run `register` first.")
        return 1
    written: List[Path] = invert_exported_sparse_files(
        load_inverted_transform(record), options.resolve_experiment_dir(), settings
    )
    print(f"[invert-sparse] Wrote {len(written)} sparse point files")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    if args.command == "register":
        return _cmd_register(args)
    if args.command == "voxel-size":
        return _cmd_voxel_size(args)
    if args.command == "invert-sparse":
        return _cmd_invert_sparse(args)
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
