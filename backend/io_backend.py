""" Input/output backend: collects the asset bundle from disk, so the optimizer core only sees in-memory data. """

import os
import json
import math
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from backend.asset_classes import AnimationAnalysis, AtlasRegion, FoundImage, ImageSourceKind, LoadedImage
from backend.image_lib import DECODE_ERRORS, read_image_size

from atlas_parser import parse_atlas
from settings import ANALYSIS_FILE, ARCHIVE_NAME, ATLAS_FILE_TYPE, IMAGE_FILE_TYPES, OUTPUT_FOLDER_NAME, SHOW_DETAILS
from utils import ensure_image_extension, log, normalize_lookup_key, normalize_path


@dataclass
class OptimizerContext:
    work_directory: str = None # Absolute path of the processed asset folder.
    image_paths_map: Dict[str, str] = field(default_factory=dict) # Maps image paths relative to the work directory to their absolute file paths.
    atlas_path: Optional[str] = None # Absolute path of the .atlas file, if the bundle has one.
    analysis_path: Optional[str] = None # Absolute path of the skeleton analysis .json file.
    atlas_regions: Dict[str, AtlasRegion] = field(default_factory=dict) # Parsed atlas regions by region name.
    excluded_atlas_pages: List[str] = field(default_factory=list) # Relative paths of page images removed from the image selection.




#                                     === Collecting input files ===

def list_initial_files(input_folder: str, context: "OptimizerContext") -> List[str]:
# Lists image files under input_folder (recursive) and locates the atlas and analysis files.
# Returns image paths relative to the work directory, sorted.

    if not input_folder:
        context.image_paths_map = {}
        return []

    root_directory: str = os.path.abspath(input_folder)
    context.work_directory = root_directory

    blocked_directories = {OUTPUT_FOLDER_NAME.strip()} if OUTPUT_FOLDER_NAME and OUTPUT_FOLDER_NAME.strip() else set()
    image_extensions = tuple(f".{file_type}" for file_type in IMAGE_FILE_TYPES)
    analysis_name: str = os.path.basename(ANALYSIS_FILE)

    relative_paths: List[str] = []
    atlas_candidates: List[str] = []

    for root, subdirectories, filenames in os.walk(root_directory):
        subdirectories[:] = sorted(subdirectory for subdirectory in subdirectories if subdirectory not in blocked_directories)
        for filename in sorted(filenames):
            absolute_path = os.path.join(root, filename)
            filename_lower = filename.lower()

            if filename_lower.endswith(image_extensions):
                relative_paths.append(normalize_path(os.path.relpath(absolute_path, root_directory)))
            elif filename_lower.endswith(f".{ATLAS_FILE_TYPE}"):
                atlas_candidates.append(absolute_path)
            elif filename == analysis_name and context.analysis_path is None:
                context.analysis_path = absolute_path

    configured_analysis = os.path.join(root_directory, ANALYSIS_FILE)
    if os.path.isfile(configured_analysis):
        context.analysis_path = configured_analysis
    # A path given in config wins over a same-named file found deeper in the tree.

    if atlas_candidates:
        context.atlas_path = atlas_candidates[0]
        if len(atlas_candidates) > 1:
            log(f"Multiple .{ATLAS_FILE_TYPE} files found, using '{os.path.basename(atlas_candidates[0])}'.", "warn")

    relative_paths.sort()
    context.image_paths_map = {relative_path: os.path.join(root_directory, relative_path) for relative_path in relative_paths}
    return relative_paths


def load_atlas(context: "OptimizerContext") -> Dict[str, AtlasRegion]:
# Reads and parses the atlas file, if the bundle has one.

    if not context.atlas_path:
        return {}
    try:
        with open(context.atlas_path, "r", encoding="utf-8-sig") as f:
            context.atlas_regions = parse_atlas(f.read())
    except (OSError, UnicodeDecodeError) as error:
        log(f"Cannot read atlas file: {context.atlas_path} – {error}", "error")
        context.atlas_regions = {}
    return context.atlas_regions


def remove_atlas_pages(context: "OptimizerContext") -> List[str]:
# Atlas pages are containers, not assets; keeping them would report every page as an unused image.
# Only raw files are considered: regions cut from a page never carry the page's file name.

    page_names = {region.page_name for region in context.atlas_regions.values()}
    if not page_names:
        return []

    for relative_path in list(context.image_paths_map.keys()):
        if os.path.basename(relative_path) in page_names:
            context.image_paths_map.pop(relative_path, None)
            context.excluded_atlas_pages.append(relative_path)

    if SHOW_DETAILS and context.excluded_atlas_pages:
        log(f"Atlas pages excluded from the image list: {', '.join(context.excluded_atlas_pages)}", "info")
    return context.excluded_atlas_pages


def load_images(context: "OptimizerContext") -> Dict[str, LoadedImage]:
# Reads every selected image into memory, keyed by its lookup key. Undecodable files are skipped.

    loaded_images: Dict[str, LoadedImage] = {}

    for relative_path, absolute_path in context.image_paths_map.items():
        try:
            with open(absolute_path, "rb") as f:
                data: bytes = f.read()
            width, height = read_image_size(data)
        except DECODE_ERRORS as error:
            log(f"Cannot open image file: {absolute_path} – {error}", "error")
            continue

        loaded_images[normalize_lookup_key(relative_path)] = LoadedImage(
            width = width,
            height = height,
            data = data,
            original_path = relative_path,
            file_name = ensure_image_extension(relative_path),
            source_kind = ImageSourceKind.RAW_FILE,
        )
    return loaded_images


def load_analysis(context: "OptimizerContext") -> List[AnimationAnalysis]:
# Reads the skeleton analyzer's export: a list of animations, or {"animations": [...]}.

    if not context.analysis_path:
        return []
    with open(context.analysis_path, "r", encoding="utf-8-sig") as f:
        raw_data: Any = json.load(f)
    return parse_analysis(raw_data)


def parse_analysis(raw_data: Any) -> List[AnimationAnalysis]:
# Converts the analyzer's camelCase JSON into AnimationAnalysis records. Malformed image records are skipped.

    raw_animations = raw_data.get("animations", []) if isinstance(raw_data, dict) else raw_data
    if not isinstance(raw_animations, list):
        return []

    animations: List[AnimationAnalysis] = []
    for raw_animation in raw_animations:
        if not isinstance(raw_animation, dict):
            continue
        animation_name: str = str(raw_animation.get("name", ""))
        found_images: List[FoundImage] = []

        raw_images: Any = raw_animation.get("foundImages") or []
        if not isinstance(raw_images, list):
            log(f"Ignoring 'foundImages' of animation '{animation_name}': expected a list, got {type(raw_images).__name__}.", "warn")
            raw_images = []

        for raw_image in raw_images:
            try:
                found_images.append(FoundImage(
                    lookup_key = normalize_lookup_key(str(raw_image["lookupKey"])),
                    max_render_width = _finite_float(raw_image.get("maxRenderWidth", 0)),
                    max_render_height = _finite_float(raw_image.get("maxRenderHeight", 0)),
                    max_scale_x = _optional_float(raw_image.get("maxScaleX")),
                    max_scale_y = _optional_float(raw_image.get("maxScaleY")),
                    override_percentage = _optional_float(raw_image.get("overridePercentage")),
                ))
            except (KeyError, TypeError, ValueError, AttributeError) as error:
                log(f"Skipping malformed image record in animation '{animation_name}': {error}", "warn")

        animations.append(AnimationAnalysis(name = animation_name, found_images = found_images))
    return animations


def _finite_float(value: Any) -> float:
# json accepts NaN and Infinity literals; a size that is not a real number makes the record malformed.
    number = float(value)
    if not math.isfinite(number):
        raise ValueError(f"non-finite number {value!r}")
    return number


def _optional_float(value: Any) -> Optional[float]:
    if value is None:
        return None
    return _finite_float(value)




#                                     === Writing the output ===

def save_archive(archive_data: bytes, context: "OptimizerContext") -> str:
# Writes the archive into the output folder (or the work directory) and returns its absolute path.

    output_directory: str = context.work_directory
    if OUTPUT_FOLDER_NAME and OUTPUT_FOLDER_NAME.strip():
        output_directory = os.path.join(context.work_directory, OUTPUT_FOLDER_NAME.strip())
    os.makedirs(output_directory, exist_ok=True)

    archive_path: str = os.path.join(output_directory, ARCHIVE_NAME)
    with open(archive_path, "wb") as f:
        f.write(archive_data)
    return os.path.abspath(archive_path).replace("\\", "/")
