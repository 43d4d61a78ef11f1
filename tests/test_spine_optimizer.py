import io
import json
import zipfile

import pytest
from PIL import Image

from spine_optimizer import spine_optimizer

from conftest import make_png


def write_analysis(folder, animations):
    (folder / "analysis.json").write_text(json.dumps(animations), encoding="utf-8")


def test_end_to_end(tmp_path):
    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "body.png").write_bytes(make_png(200, 200))
    (tmp_path / "images" / "head.png").write_bytes(make_png(64, 64))
    (tmp_path / "images" / "unused.png").write_bytes(make_png(32, 32))
    write_analysis(tmp_path, [
        {"name": "walk", "foundImages": [
            {"lookupKey": "images/body.png", "maxRenderWidth": 50, "maxRenderHeight": 50},
            {"lookupKey": "images/head.png", "maxRenderWidth": 64, "maxRenderHeight": 63},
        ]},
    ])

    tasks = spine_optimizer(str(tmp_path))

    assert [(task.file_name, task.is_resize) for task in tasks] == [("images/body.png", True), ("images/head.png", False)]
    with zipfile.ZipFile(tmp_path / "images_resized.zip") as archive:
        names = set(archive.namelist())
        assert "images_optimized/images/unused.png" not in names
        assert Image.open(io.BytesIO(archive.read("images_optimized/images/body.png"))).size == (50, 50)
        assert archive.read("images_optimized/images/head.png") == (tmp_path / "images" / "head.png").read_bytes()


def test_buffer_argument(tmp_path):
    (tmp_path / "body.png").write_bytes(make_png(200, 200))
    write_analysis(tmp_path, [{"name": "walk", "foundImages": [{"lookupKey": "body.png", "maxRenderWidth": 50, "maxRenderHeight": 50}]}])

    task = spine_optimizer(str(tmp_path), buffer_percent=100)[0]

    assert (task.target_width, task.target_height) == (100, 100)


def test_atlas_page_is_not_packaged(tmp_path):
    (tmp_path / "skeleton.png").write_bytes(make_png(64, 64))
    (tmp_path / "skeleton.atlas").write_text("skeleton.png\nhead\n  size: 32, 32\n", encoding="utf-8")
    (tmp_path / "head.png").write_bytes(make_png(32, 32))
    write_analysis(tmp_path, [{"name": "idle", "foundImages": [{"lookupKey": "head.png", "maxRenderWidth": 8, "maxRenderHeight": 8}]}])

    tasks = spine_optimizer(str(tmp_path))

    assert [task.file_name for task in tasks] == ["head.png"]


def test_missing_analysis_aborts(tmp_path):
    (tmp_path / "body.png").write_bytes(make_png(10, 10))

    with pytest.raises(SystemExit):
        spine_optimizer(str(tmp_path))


def test_invalid_analysis_aborts(tmp_path):
    (tmp_path / "body.png").write_bytes(make_png(10, 10))
    (tmp_path / "analysis.json").write_text("{broken", encoding="utf-8")

    with pytest.raises(SystemExit):
        spine_optimizer(str(tmp_path))


def test_negative_buffer_aborts(tmp_path):
    (tmp_path / "body.png").write_bytes(make_png(10, 10))
    write_analysis(tmp_path, [])

    with pytest.raises(SystemExit):
        spine_optimizer(str(tmp_path), buffer_percent=-5)


def test_no_referenced_images_writes_nothing(tmp_path):
    (tmp_path / "body.png").write_bytes(make_png(10, 10))
    write_analysis(tmp_path, [{"name": "idle", "foundImages": []}])

    assert spine_optimizer(str(tmp_path)) == []
    assert not (tmp_path / "images_resized.zip").exists()
