import io
import zipfile

import pytest
from PIL import Image

import archive_generator
from archive_generator import ArchiveAssemblyError, generate_optimized_archive
from backend.asset_classes import OptimizationTask

from conftest import make_png


def make_task(file_name: str, data: bytes, *, target=(10, 10), original=(20, 20), is_resize=True) -> OptimizationTask:
    return OptimizationTask(
        file_name=file_name,
        relative_path=file_name,
        original_width=original[0],
        original_height=original[1],
        target_width=target[0],
        target_height=target[1],
        data=data,
        max_scale_used=1.0,
        is_resize=is_resize,
    )


def open_archive(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


def test_resized_and_copied_entries():
    original = make_png(20, 20)
    tasks = [
        make_task("arm.png", original, target=(8, 6)),
        make_task("leg.png", original, is_resize=False),
    ]
    with open_archive(generate_optimized_archive(tasks)) as archive:
        resized = Image.open(io.BytesIO(archive.read("images_optimized/arm.png")))
        assert resized.size == (8, 6)
        assert archive.read("images_optimized/leg.png") == original


def test_nested_paths_are_preserved():
    data = make_png(4, 4)
    tasks = [make_task("CHICKEN/BODY.png", data, is_resize=False), make_task("fx\\sparks\\star.png", data, is_resize=False)]

    with open_archive(generate_optimized_archive(tasks)) as archive:
        names = archive.namelist()
    assert "images_optimized/CHICKEN/BODY.png" in names
    assert "images_optimized/fx/sparks/star.png" in names
    assert all(name.startswith("images_optimized/") for name in names)


def test_extensions_are_normalized():
    data = make_png(20, 20)
    tasks = [
        make_task("no_extension", data, is_resize=False),
        make_task("photo.jpg", data, is_resize=False),
        make_task("resized.jpg", data, target=(5, 5)),
        make_task("dotted.name", data, is_resize=False),
    ]
    with open_archive(generate_optimized_archive(tasks)) as archive:
        names = set(archive.namelist())

    assert "images_optimized/no_extension.png" in names
    assert "images_optimized/photo.jpg" in names
    assert "images_optimized/resized.png" in names
    assert "images_optimized/dotted.name.png" in names


def test_resample_failure_falls_back_to_original():
    corrupt = b"not an image at all"
    with open_archive(generate_optimized_archive([make_task("broken.png", corrupt)])) as archive:
        assert archive.read("images_optimized/broken.png") == corrupt


def test_progress_reports_every_task():
    data = make_png(20, 20)
    tasks = [make_task(f"img{index}.png", data, is_resize=index % 2 == 0) for index in range(5)]
    calls = []

    generate_optimized_archive(tasks, lambda completed, total: calls.append((completed, total)))

    assert calls == [(1, 5), (2, 5), (3, 5), (4, 5), (5, 5)]


def test_no_tasks_gives_empty_root_folder():
    calls = []
    data = generate_optimized_archive([], lambda completed, total: calls.append((completed, total)))

    with open_archive(data) as archive:
        assert archive.namelist() == ["images_optimized/"]
    assert calls == []


def test_custom_root_folder():
    with open_archive(generate_optimized_archive([make_task("a.png", b"x", is_resize=False)], root_folder_name="out")) as archive:
        assert archive.namelist() == ["out/", "out/a.png"]


@pytest.mark.parametrize("root_folder_name", ["", "   ", "bad:name", "a/b"])
def test_invalid_root_folder_raises(root_folder_name):
    with pytest.raises(ArchiveAssemblyError):
        generate_optimized_archive([make_task("a.png", b"x", is_resize=False)], root_folder_name=root_folder_name)


def test_write_failure_stops_progress(monkeypatch):
    calls = []
    original_writestr = zipfile.ZipFile.writestr

    def failing_writestr(self, name, data, *args, **kwargs):
        if str(name).endswith("b.png"):
            raise OSError("disk full")
        return original_writestr(self, name, data, *args, **kwargs)

    monkeypatch.setattr(zipfile.ZipFile, "writestr", failing_writestr)
    tasks = [make_task(name, b"x", is_resize=False) for name in ("a.png", "b.png", "c.png")]

    with pytest.raises(ArchiveAssemblyError):
        generate_optimized_archive(tasks, lambda completed, total: calls.append((completed, total)))
    assert calls == [(1, 3)]


def test_resampler_called_only_for_resize_tasks(monkeypatch):
    calls = []

    def fake_resample(data, width, height):
        calls.append((width, height))
        return b"resized"

    monkeypatch.setattr(archive_generator, "resample_image", fake_resample)
    tasks = [make_task("a.png", b"a", target=(3, 4)), make_task("b.png", b"b", is_resize=False)]

    with open_archive(generate_optimized_archive(tasks)) as archive:
        assert archive.read("images_optimized/a.png") == b"resized"
        assert archive.read("images_optimized/b.png") == b"b"
    assert calls == [(3, 4)]


def test_resized_name_does_not_overwrite_existing_entry():
    original = make_png(20, 20)
    tasks = [
        make_task("photo.jpg", original, target=(5, 5)),
        make_task("photo.png", original, is_resize=False),
        make_task("photo", original, is_resize=False),
        make_task("PHOTO.PNG", original, is_resize=False),
    ]
    with open_archive(generate_optimized_archive(tasks)) as archive:
        names = archive.namelist()
        assert Image.open(io.BytesIO(archive.read("images_optimized/photo.png"))).size == (5, 5)
        assert archive.read("images_optimized/photo_2.png") == original

    assert names == [
        "images_optimized/",
        "images_optimized/photo.png",
        "images_optimized/photo_2.png",
        "images_optimized/photo_3.png",
        "images_optimized/PHOTO_4.PNG",
    ]
    assert len(set(name.lower() for name in names)) == len(names)


def test_progress_callback_errors_are_not_wrapped():
    def failing_progress(completed, total):
        raise ValueError("callback broke")

    with pytest.raises(ValueError, match="callback broke"):
        generate_optimized_archive([make_task("a.png", b"x", is_resize=False)], failing_progress)
