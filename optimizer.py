""" Calculates, per loaded image, the size it can be shrunk to without losing visible quality. """

import math
from typing import Dict, Iterable, List, Mapping

from backend.asset_classes import AnimationAnalysis, GlobalRequirement, LoadedImage, OptimizationTask

from settings import RESIZE_TOLERANCE_PX, SHOW_DETAILS
from utils import log



#                                           === Calculator ===

def calculate_optimization_targets(
    animation_results: Iterable[AnimationAnalysis],
    loaded_images: Mapping[str, LoadedImage],
    buffer_percent: float = 0,
    *,
    check_override_consistency: bool = False,
) -> List[OptimizationTask]:
# Joins the per-animation requirements with the loaded images and returns one task per referenced image.
# Tasks that need a resize come first; within each group the loaded images order is kept.
# Pure function: the inputs are only read, so calling it again with a new buffer is safe.

    requirements: Dict[str, GlobalRequirement] = _aggregate_requirements(animation_results, loaded_images, check_override_consistency)

    tasks: List[OptimizationTask] = []
    unused_images: int = 0

    for key, original in loaded_images.items():
        requirement = requirements.get(key)
        if requirement is None:
            unused_images += 1
            continue
        # Images not shown by any animation are dead assets and are left out of the package.

        tasks.append(_build_task(original, requirement, buffer_percent))

    if SHOW_DETAILS and unused_images:
        log(f"Excluded {unused_images} unused image(s) not referenced by any animation.", "info")

    return sorted(tasks, key=lambda task: not task.is_resize)
    # sorted() is stable, so this is a partition and not a reorder.


def _aggregate_requirements(animation_results: Iterable[AnimationAnalysis], loaded_images: Mapping[str, LoadedImage], check_override_consistency: bool) -> Dict[str, GlobalRequirement]:
# Folds every animation's found images into one running maximum per lookup key.

    requirements: Dict[str, GlobalRequirement] = {}

    for animation in animation_results:
        for found_image in animation.found_images:
            key: str = found_image.lookup_key
            if not key or key not in loaded_images:
                continue

            if not (math.isfinite(found_image.max_render_width) and math.isfinite(found_image.max_render_height)):
                log(f"Skipping '{key}' in '{animation.name}': render size is not a finite number.", "warn")
                continue
            # An infinite or NaN size has no pixel target and would poison the running maximum.

            requirement = requirements.setdefault(key, GlobalRequirement())
            scale: float = max(found_image.max_scale_x or 1, found_image.max_scale_y or 1)

            requirement.width = max(requirement.width, found_image.max_render_width)
            requirement.height = max(requirement.height, found_image.max_render_height)
            requirement.max_scale = max(requirement.max_scale, scale)

            if found_image.override_percentage is not None:
                if (check_override_consistency and requirement.override_percentage is not None
                        and requirement.override_percentage != found_image.override_percentage):
                    log(f"Override mismatch for '{key}' in '{animation.name}': {requirement.override_percentage}% vs {found_image.override_percentage}%, using the latter.", "warn")
                requirement.override_percentage = found_image.override_percentage
            # Override is per asset; the last animation carrying one wins.

    return requirements


def _build_task(original: LoadedImage, requirement: GlobalRequirement, buffer_percent: float) -> OptimizationTask:
# Applies the resize policy to a single image.

    target_width, target_height = original.width, original.height
    is_resize: bool = False

    if requirement.override_percentage is not None:
        override_width: int = math.ceil(requirement.width)
        override_height: int = math.ceil(requirement.height)
        if override_width != original.width or override_height != original.height:
            target_width, target_height = override_width, override_height
            is_resize = True
        # The requirement already holds the overridden size; upscaling is allowed here.

    else:
        buffer_factor: float = 1 + buffer_percent / 100
        buffered_width: int = math.ceil(math.ceil(requirement.width) * buffer_factor)
        buffered_height: int = math.ceil(math.ceil(requirement.height) * buffer_factor)

        calculated_width: int = min(original.width, buffered_width)
        calculated_height: int = min(original.height, buffered_height)

        if calculated_width < original.width - RESIZE_TOLERANCE_PX or calculated_height < original.height - RESIZE_TOLERANCE_PX:
            target_width, target_height = calculated_width, calculated_height
            is_resize = True
        # Never upscales; a saving within the tolerance keeps the original untouched.

    return OptimizationTask(
        file_name = original.file_name,
        relative_path = original.original_path,
        original_width = original.width,
        original_height = original.height,
        target_width = target_width,
        target_height = target_height,
        data = original.data,
        max_scale_used = requirement.max_scale,
        is_resize = is_resize,
        override_percentage = requirement.override_percentage,
    )
