from __future__ import annotations

from pathlib import Path

import numpy as np

from AtlasRegistration.config import ToolboxSettings
from AtlasRegistration.inversion import InvertedTransform
from AtlasRegistration.sparse_points import (
    invert_exported_sparse_files,
    read_sparse_points,
    read_transformix_points,
    write_elastix_points,
)


def test_read_sparse_points_skips_header(tmp_path: Path) -> None:
    path = tmp_path / "cells.csv"
    path.write_text("x,y,z,label\n1,2,3,7\n4,5,6,7\n", encoding="utf-8")
    points = read_sparse_points(path)
    assert points.shape == (2, 3)
    assert points[1].tolist() == [4.0, 5.0, 6.0]


def test_read_sparse_points_single_row_without_header(tmp_path: Path) -> None:
    path = tmp_path / "cells.csv"
    path.write_text("10,20,30\n", encoding="utf-8")
    assert read_sparse_points(path).tolist() == [[10.0, 20.0, 30.0]]


def test_elastix_point_file_format(tmp_path: Path) -> None:
    path = write_elastix_points(np.array([[1, 2, 3], [4.5, 5, 6]]), tmp_path / "pts.txt")
    assert path.read_text(encoding="utf-8") == "index\n2\n1 2 3\n4.5 5 6\n"


def test_transformix_output_parsed_from_output_index(tmp_path: Path) -> None:
    path = tmp_path / "outputpoints.txt"
    path.write_text(
        "Point\t0\t; InputIndex = [ 1 2 3 ]\t; InputPoint = [ 25.0 50.0 75.0 ]\t; "
        "OutputIndexFixed = [ 4 5 6 ]\t; OutputPoint = [ 100.0 125.0 150.0 ]\t; Deformation = [ 1 1 1 ]\n"
        "Point\t1\t; InputIndex = [ 0 0 0 ]\t; InputPoint = [ 0 0 0 ]\t; "
        "OutputIndexFixed = [ -1 0 2 ]\t; OutputPoint = [ 0 0 0 ]\t; Deformation = [ 0 0 0 ]\n",
        encoding="utf-8",
    )
    assert read_transformix_points(path).tolist() == [[4.0, 5.0, 6.0], [-1.0, 0.0, 2.0]]


def test_missing_sparse_dir_is_a_noop(tmp_path: Path, capsys) -> None:
    inverted = InvertedTransform(source_dir=tmp_path)
    assert invert_exported_sparse_files(inverted, tmp_path, ToolboxSettings()) == []
    assert "No exported sparse directory" in capsys.readouterr().out


def test_sparse_files_written_to_ara_subdir(tmp_path: Path, monkeypatch) -> None:
    sparse = tmp_path / "exported_sparse"
    sparse.mkdir()
    (sparse / "cells.csv").write_text("x,y,z\n1,2,3\n4,5,6\n", encoding="utf-8")
    (sparse / "empty.csv").write_text("x,y,z\n", encoding="utf-8")

    seen = []

    def fake_transform(points, parameter_maps, reference):
        seen.append((points.shape, parameter_maps, reference))
        return points + 1

    monkeypatch.setattr("AtlasRegistration.sparse_points.transform_points", fake_transform)
    monkeypatch.setattr("AtlasRegistration.sparse_points._reference_image", lambda source_dir: "reference")
    monkeypatch.setattr(InvertedTransform, "to_parameter_maps", lambda self: "maps")

    inverted = InvertedTransform(source_dir=tmp_path / "sample_to_ARA")
    written = invert_exported_sparse_files(inverted, tmp_path, ToolboxSettings())

    out_dir = sparse / "ARA"
    assert sorted(p.name for p in written) == ["cells.csv", "empty.csv"]
    assert seen == [((2, 3), "maps", "reference")]
    assert read_sparse_points(out_dir / "cells.csv").tolist() == [[2.0, 3.0, 4.0], [5.0, 6.0, 7.0]]
    assert read_sparse_points(out_dir / "empty.csv").shape == (0, 3)
