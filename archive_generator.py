""" Packs the optimization tasks into a single zip archive, resampling the images that need it. """

import io
import posixpath
import zipfile
from typing import Callable, List, Optional, Sequence, Set

from backend.asset_classes import OptimizationTask

from resampler import resample_image
from settings import ROOT_FOLDER_NAME, SHOW_DETAILS
from utils import ensure_image_extension, is_safe_folder_name, log, normalize_path, with_output_extension


ProgressCallback = Callable[[int, int], None] # (completed, total)


class ArchiveAssemblyError(Exception):
# The archive itself could not be built; progress reported so far belongs to a partial, unusable archive.
    pass


def generate_optimized_archive(tasks: Sequence[OptimizationTask], on_progress: Optional[ProgressCallback] = None, *, root_folder_name: str = ROOT_FOLDER_NAME) -> bytes:
# Processes the tasks strictly one after another, so only one decoded image is held in memory at a time.
# Images flagged for resize are resampled, everything else is stored byte for byte.
# A failed resample falls back to the original bytes, the asset is never dropped.

    root_folder: str = (root_folder_name or "").strip().strip("/")
    if not root_folder or not is_safe_folder_name(root_folder):
        raise ArchiveAssemblyError(f"Invalid archive root folder name: '{root_folder_name}'")

    total: int = len(tasks)
    completed: int = 0
    written_names: Set[str] = set() # Lowercase entry names, so case-insensitive file systems cannot merge two entries either.
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        _write_entry(archive, f"{root_folder}/", b"", completed, total)

        for task in tasks:
            entry_name, entry_data = _process_task(task)
            entry_name = _make_unique_entry_name(entry_name, written_names)
            _write_entry(archive, f"{root_folder}/{entry_name}", entry_data, completed, total)

            completed += 1
            if on_progress is not None:
                on_progress(completed, total)
        # Errors raised by the callback belong to the caller and are not wrapped.

    return buffer.getvalue()


def _write_entry(archive: zipfile.ZipFile, entry_path: str, entry_data: bytes, completed: int, total: int) -> None:
    try:
        archive.writestr(entry_path, entry_data)
    except (OSError, ValueError, zipfile.LargeZipFile) as error:
        log(f"Archive generation stopped after {completed} of {total} image(s): {error}", "error")
        raise ArchiveAssemblyError(str(error)) from error


def _make_unique_entry_name(entry_name: str, written_names: Set[str]) -> str:
# Adds a numeric suffix when two images end up with the same name, e.g., a resized "photo.jpg" next to "photo.png".
# Extracting the archive would otherwise overwrite one of them.

    unique_name: str = entry_name
    stem, extension = posixpath.splitext(entry_name)
    i = 2
    while unique_name.lower() in written_names:
        unique_name = f"{stem}_{i}{extension}"
        i += 1

    if unique_name != entry_name:
        log(f"Duplicate archive entry '{entry_name}', stored as '{unique_name}'.", "warn")
    written_names.add(unique_name.lower())
    return unique_name


def _process_task(task: OptimizationTask) -> tuple[str, bytes]:
# Returns the archive entry name (relative to the root folder) and the bytes to store.

    entry_name: str = _normalize_entry_name(task.file_name)

    if not task.is_resize:
        return ensure_image_extension(entry_name), task.data

    resized_data: Optional[bytes] = resample_image(task.data, task.target_width, task.target_height)
    if resized_data is None:
        log(f"Could not resize '{task.file_name}', keeping the original image.", "warn")
        return ensure_image_extension(entry_name), task.data

    if SHOW_DETAILS:
        log(f"Resized: {entry_name} ({task.original_width}x{task.original_height} -> {task.target_width}x{task.target_height})", "info")
    return with_output_extension(entry_name), resized_data
    # Resampled bytes are PNG, the name has to say so.


def _split_entry_path(file_name: str) -> List[str]:
    return [segment for segment in normalize_path(file_name).split("/") if segment and segment not in (".", "..")]


def _normalize_entry_name(file_name: str) -> str:
# Keeps nested folders, e.g., "CHICKEN\\BODY.png" > "CHICKEN/BODY.png"; drops empty and leading segments.
    return "/".join(_split_entry_path(file_name)) or "image"
