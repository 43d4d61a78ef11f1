""" Optimizer utilities: logging, path normalization and small helpers shared by the core and the CLI. """

import os
from typing import Iterable, Optional, Set

from settings import IMAGE_FILE_TYPES, OUTPUT_FILE_TYPE

from backend.image_lib import close_image


LOG_TYPES: list[str] = ["info", "warn", "error", "skip", "complete"]
# Defines log types printed by the CLI.

def log(message: str, message_kind: LOG_TYPES = "info") -> None:
# Maps different log types.

    if message == "":
        print("")
        return

    if message_kind not in LOG_TYPES:
        message_kind = "info"

    if message_kind == "info":
        print(f"   {message}")
    elif message_kind == "warn":
        print(f"⚠️ {message}")
    elif message_kind == "error":
        print(f"⛔ {message}")
    elif message_kind == "skip":
        print(f"❌ {message}")
    elif message_kind == "complete":
        print(f"✅ {message}")
    else:
        print(message)  # fallback

    # Print styles:
    # info: 3 whitespaces + message
    # warn: ⚠️ + message
    # error: ⛔ + message
    # skip: ❌ + message
    # complete: ✅ + message


def close_image_files(images: Iterable[Optional[object]]) -> None:
# Safely closes all opened images even if there is an error during image processing.

    processed_ids: Set[int] = set()
    for image in images:
        if image is None:
            continue
        image_id = id(image)
        if image_id in processed_ids:
            continue
        processed_ids.add(image_id)
        try:
            close_image(image) # Function from image_lib
        except (OSError, ValueError):
            pass


def normalize_path(path: str) -> str:
# Forward slashes only, e.g., "images\\arm.png" > "images/arm.png"
    return (path or "").replace("\\", "/")


def normalize_lookup_key(path: str) -> str:
# The lookup key joining analysis records to loaded images: forward slashes, lowercase.
    return normalize_path(path).strip().lower()


def get_extension(file_name: str) -> str:
# Returns the lowercase extension without the dot, "" if there is none.
    _, extension = os.path.splitext(os.path.basename(normalize_path(file_name)))
    return extension.lower().lstrip(".")


def has_image_extension(file_name: str) -> bool:
    return get_extension(file_name) in IMAGE_FILE_TYPES


def ensure_image_extension(file_name: str) -> str:
# Appends the output extension if the name lacks a recognized image one, e.g., "CHICKEN/BODY" > "CHICKEN/BODY.png"
    if has_image_extension(file_name):
        return file_name
    return f"{file_name}.{OUTPUT_FILE_TYPE}"


def with_output_extension(file_name: str) -> str:
# Replaces a recognized image extension with the output one; used for re-encoded images.
    extension: str = get_extension(file_name)
    if extension == OUTPUT_FILE_TYPE:
        return file_name
    if extension in IMAGE_FILE_TYPES:
        return f"{file_name[:-(len(extension) + 1)]}.{OUTPUT_FILE_TYPE}"
    return f"{file_name}.{OUTPUT_FILE_TYPE}"


def is_safe_folder_name(raw_folder_name: Optional[str]) -> bool:
# Checks that the folder name doesn't include unsupported characters.
    folder_name: str = (raw_folder_name or "")
    return not any(invalid_character in folder_name for invalid_character in '\\/:*?"<>|')


def validate_safe_folder_name(raw_folder_name: Optional[str]) -> None:
# Validates that the custom folder name doesn't include unsupported characters.

    folder_name: str = (raw_folder_name or "")
    if folder_name.strip() == "":
        return

    if not is_safe_folder_name(folder_name):
        log(f"Aborted: invalid folder name '{raw_folder_name}'. It cannot contain \\ / : * ? \" < > |", "error")
        # Prints error.
        raise SystemExit(1)
    return
