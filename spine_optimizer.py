""" Shrinks the images of a Spine asset bundle to the largest size they are ever rendered at and packs them into a zip. """

import os
import sys
import time
from typing import Dict, List, Optional

from backend.asset_classes import AnimationAnalysis, AtlasRegion, LoadedImage, OptimizationTask

from backend.io_backend import (OptimizerContext, list_initial_files, load_analysis, load_atlas, load_images, remove_atlas_pages, save_archive)

from archive_generator import ArchiveAssemblyError, generate_optimized_archive
from optimizer import calculate_optimization_targets
from settings import (ANALYSIS_FILE, ARCHIVE_NAME, BUFFER_PERCENT, CHECK_OVERRIDE_CONSISTENCY, DRY_RUN, IMAGE_FILE_TYPES,
                      INPUT_FOLDER, OUTPUT_FOLDER_NAME, ROOT_FOLDER_NAME, SHOW_DETAILS)
from utils import log, validate_safe_folder_name




# Basic data flow for a single run:
# analysis.json  -> [AnimationAnalysis(name="walk", found_images=[FoundImage(lookup_key="images/arm.png", max_render_width=64, ...)])]
# skeleton.atlas -> {"arm": AtlasRegion(page_name="skeleton.png", ...)}   (pages removed from the image list)
# images/*.png   -> {"images/arm.png": LoadedImage(width=256, height=128, ...)}
#                -> [OptimizationTask(file_name="images/arm.png", target_width=64, target_height=32, is_resize=True), ...]
#                -> images_resized.zip / images_optimized / images / arm.png


#                                           === Pipeline ===


def spine_optimizer(input_folder: Optional[str] = None, buffer_percent: Optional[float] = None) -> List[OptimizationTask]:
# Runs the whole bundle: collects the files, calculates the targets and writes the archive.
# Returns the calculated tasks, which is all a dry run produces.

    context = OptimizerContext() # Context object holding the runtime state for the currently processed files.
    start_time = time.time()
    effective_buffer: float = BUFFER_PERCENT if buffer_percent is None else buffer_percent


# Validating config and setting up the files:
    _validate_config(effective_buffer)
    _validate_and_setup_files(input_folder or "", context)


# Loading the bundle:
    atlas_regions: Dict[str, AtlasRegion] = load_atlas(context)
    if context.atlas_path:
        log(f"Atlas: {os.path.basename(context.atlas_path)} ({len(atlas_regions)} regions)", "info")
    remove_atlas_pages(context)
    # Texture pages would otherwise show up as unused images.

    loaded_images: Dict[str, LoadedImage] = load_images(context)
    animation_results: List[AnimationAnalysis] = _load_animation_results(context)
    log(f"Loaded {len(loaded_images)} image(s) and {len(animation_results)} animation(s).", "info")


# Calculating the targets:
    tasks: List[OptimizationTask] = calculate_optimization_targets(
        animation_results,
        loaded_images,
        effective_buffer,
        check_override_consistency = CHECK_OVERRIDE_CONSISTENCY,
    )
    _summarize_tasks(tasks, len(loaded_images), effective_buffer)

    if DRY_RUN:
        log("", "info")
        log("Dry run: no archive written.", "complete")
        return tasks


# Generating the archive:
    if not tasks:
        log("Nothing to package: no loaded image is referenced by the analysis.", "skip")
        return tasks

    log("", "info")  # Visual separator
    try:
        archive_data: bytes = generate_optimized_archive(tasks, _print_progress, root_folder_name = ROOT_FOLDER_NAME)
    except ArchiveAssemblyError as error:
        log(f"Aborted: archive could not be created – {error}", "error")
        raise SystemExit(1)

    try:
        archive_path: str = save_archive(archive_data, context)
    except OSError as error:
        log(f"Aborted: cannot write '{ARCHIVE_NAME}' – {error}", "error")
        raise SystemExit(1)

    log("", "info")
    log("All processing done.", "complete")
    log(f"Optimized images saved to: {archive_path}", "info")

    if SHOW_DETAILS:
        elapsed_time = time.time() - start_time
        log(f"Execution time: {elapsed_time:.2f} seconds", "info")
        # Prints info.

    return tasks




#                                       === Validation & Setup ===

def _validate_config(buffer_percent: float) -> None:
# Runs initial validation for the config.

    validate_safe_folder_name(OUTPUT_FOLDER_NAME)
    # Checks if folder names don't contain unsupported characters.

    if not (ROOT_FOLDER_NAME or "").strip():
        log("Aborted: ROOT_FOLDER_NAME cannot be empty.", "error")
        raise SystemExit(1)
    validate_safe_folder_name(ROOT_FOLDER_NAME)

    if not (ARCHIVE_NAME or "").strip() or any(character in ARCHIVE_NAME for character in '\\/:*?"<>|'):
        log(f"Aborted: invalid ARCHIVE_NAME '{ARCHIVE_NAME}'.", "error")
        raise SystemExit(1)

    if buffer_percent < 0:
        log(f"Aborted: BUFFER_PERCENT must not be negative, got {buffer_percent}.", "error")
        raise SystemExit(1)
    return


def _validate_and_setup_files(input_folder: str, context: OptimizerContext) -> None:
# Collects the image files into the context and makes sure the analysis exists.

    initial_files: List[str] = list_initial_files(input_folder, context)

    if not initial_files:
        valid_file_extensions: str = ", ".join(f".{file_type}" for file_type in IMAGE_FILE_TYPES)
        log(f"Aborted: No input files matching {valid_file_extensions} in: {input_folder}", "error")
        raise SystemExit(1)

    if not context.analysis_path:
        log(f"Aborted: Skeleton analysis '{ANALYSIS_FILE}' not found in: {input_folder}", "error")
        raise SystemExit(1)


def _load_animation_results(context: OptimizerContext) -> List[AnimationAnalysis]:
    try:
        return load_analysis(context)
    except (OSError, ValueError) as error:
        log(f"Aborted: cannot read skeleton analysis '{context.analysis_path}' – {error}", "error")
        raise SystemExit(1)




#                                        === Reporting / Summary ===

def _summarize_tasks(tasks: List[OptimizationTask], loaded_count: int, buffer_percent: float) -> None:
# Lists the images that will be changed first, then the totals.

    resized_tasks = [task for task in tasks if task.is_resize]
    unused_count: int = loaded_count - len(tasks)

    log("", "info")
    log(f"Buffer: {buffer_percent:g}%", "info")

    for task in resized_tasks:
        override_info = f", override {task.override_percentage:g}%" if task.override_percentage is not None else ""
        if SHOW_DETAILS:
            log(f"Resize: {task.file_name} ({task.original_width}x{task.original_height} -> {task.target_width}x{task.target_height}, max scale {task.max_scale_used:.2f}{override_info})", "info")
        else:
            log(f"Resize: {task.file_name} ({task.target_width}x{task.target_height}{override_info})", "info")

    if SHOW_DETAILS:
        for task in tasks:
            if not task.is_resize:
                log(f"Keep: {task.file_name} ({task.original_width}x{task.original_height})", "info")

    original_pixels: int = sum(task.original_width * task.original_height for task in tasks)
    target_pixels: int = sum(task.target_width * task.target_height for task in tasks)
    saved_percent: float = (1 - target_pixels / original_pixels) * 100 if original_pixels else 0.0

    log(f"{len(resized_tasks)} to resize, {len(tasks) - len(resized_tasks)} unchanged, {unused_count} unused (excluded).", "complete")
    if resized_tasks:
        log(f"Pixel count reduced by {saved_percent:.1f}%.", "info")


def _print_progress(completed: int, total: int) -> None:
    if SHOW_DETAILS or completed == total:
        log(f"Packed {completed}/{total}", "info")




#                                         === CLI entry point ===

def main() -> None:
    cli_arg = " ".join(sys.argv[1:]).strip() or None
    # Allows a CLI path to override INPUT_FOLDER.
    input_folder = (cli_arg or INPUT_FOLDER or "").strip()
    if not input_folder or not os.path.isdir(input_folder):
        log("Aborted: No valid input folder provided (CLI/config).", "error")
        # Prints error.
        sys.exit(1)


    spine_optimizer(input_folder)

if __name__ == "__main__":
    main()
