from __future__ import annotations

from pathlib import Path

import pytest

from AtlasRegistration.elastix import check_parameter_files, find_transform_chain, remove_moving_and_fixed


def test_check_parameter_files_names_the_missing_file(tmp_path: Path) -> None:
    present = tmp_path / "01.txt"
    present.write_text("", encoding="utf-8")
    with pytest.raises(FileNotFoundError, match="02.txt"):
        check_parameter_files([present, tmp_path / "02.txt"])


def test_transform_chain_sorted_numerically(tmp_path: Path) -> None:
    for idx in (10, 2, 0, 1):
        (tmp_path / f"TransformParameters.{idx}.txt").write_text("", encoding="utf-8")
    chain = find_transform_chain(tmp_path)
    assert [p.name for p in chain] == [
        "TransformParameters.0.txt",
        "TransformParameters.1.txt",
        "TransformParameters.2.txt",
        "TransformParameters.10.txt",
    ]


def test_remove_moving_and_fixed_only_touches_prefixed_copies(tmp_path: Path) -> None:
    for name in ("reg_moving.mhd", "reg_moving.raw", "reg_target.mhd", "result.mhd", "other_moving.mhd"):
        (tmp_path / name).write_text("", encoding="utf-8")

    removed = remove_moving_and_fixed(tmp_path, "reg")

    assert sorted(p.name for p in removed) == ["reg_moving.mhd", "reg_moving.raw", "reg_target.mhd"]
    assert (tmp_path / "result.mhd").exists()
    assert (tmp_path / "other_moving.mhd").exists()
