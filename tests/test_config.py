from __future__ import annotations

from pathlib import Path

import pytest

from AtlasRegistration.config import RegisterOptions, ToolboxSettings, default_parameter_files, load_settings


def test_default_options_run_both_directions_and_invert() -> None:
    opts = RegisterOptions()
    assert opts.ara2sample is True
    assert opts.sample2ara is True
    assert opts.suppress_invert_sample2ara is False
    assert opts.invert_sample2ara is True
    assert [p.name for p in opts.elastix_params] == ["01_ARA_affine.txt", "02_ARA_bspline.txt"]


def test_packaged_parameter_files_exist() -> None:
    for path in default_parameter_files():
        assert path.is_file()


def test_suppression_only_applies_with_sample2ara() -> None:
    assert RegisterOptions(suppress_invert_sample2ara=True).invert_sample2ara is False
    assert RegisterOptions(sample2ara=False, suppress_invert_sample2ara=True).invert_sample2ara is True


def test_options_accept_legacy_names_case_insensitively() -> None:
    opts = RegisterOptions.from_dict(
        {"downsampleDir": "ds", "ARA2SAMPLE": 0, "suppressInvertSample2ara": 1, "elastixParams": ["a.txt", "b.txt"]}
    )
    assert opts.downsample_dir == Path("ds")
    assert opts.ara2sample is False
    assert opts.suppress_invert_sample2ara is True
    assert opts.elastix_params == [Path("a.txt"), Path("b.txt")]


def test_options_reject_non_boolean_flags() -> None:
    with pytest.raises(TypeError):
        RegisterOptions.from_dict({"sample2ara": "yes"})


def test_options_reject_unknown_names() -> None:
    with pytest.raises(ValueError):
        RegisterOptions.from_dict({"invert": True})


def test_downsample_dir_defaults_under_cwd(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    settings = ToolboxSettings(downsampled_dir="ds")
    assert RegisterOptions().resolve_downsample_dir(settings) == tmp_path / "ds"


def test_load_settings_supports_legacy_keys(tmp_path: Path, capsys) -> None:
    path = tmp_path / "settings.yml"
    path.write_text(
        "downSampledDir: ds\n"
        "ara2sampleDir: ara2sample\n"
        "sample2araDir: sample2ara\n"
        "removeMovingAndFixed: 0\n"
        "invertedMatName: inv.json\n"
        "araDir: /atlas\n"
        "colour: blue\n",
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.downsampled_dir == "ds"
    assert settings.ara2sample_dir == "ara2sample"
    assert settings.sample2ara_dir == "sample2ara"
    assert settings.remove_moving_and_fixed is False
    assert settings.inverted_name == "inv.json"
    assert settings.ara_dir == Path("/atlas")
    assert "Ignoring unknown setting 'colour'" in capsys.readouterr().out


def test_load_settings_without_path_returns_defaults() -> None:
    assert load_settings(None) == ToolboxSettings()


def test_load_settings_rejects_non_mapping_root(tmp_path: Path) -> None:
    path = tmp_path / "settings.yml"
    path.write_text("- downSampledDir\n- ds\n", encoding="utf-8")
    with pytest.raises(ValueError, match="settings.yml must contain a mapping"):
        load_settings(path)


def test_settings_from_dict_rejects_non_mapping() -> None:
    with pytest.raises(ValueError, match="Settings must be a mapping"):
        ToolboxSettings.from_dict(["downsampled_dir", "ds"])
