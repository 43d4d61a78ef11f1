""" Spine Image Optimizer settings. """

import json
import os
from typing import Tuple


def _as_bool(v) -> bool:
# Converts .json input (bool/int/str/None) to a real bool;
# Avoids the case where a non-empty string like "False" is treated as True.

    if isinstance(v, bool): return v
    if isinstance(v, str):
        input_str = v.strip().lower()
        if input_str == "": return False
        return input_str in ("1","true","yes","on")
    return bool(v)


def _as_number(v, default: float = 0.0) -> float:
# Converts .json input (int/float/str) to a float; falls back to the default on garbage.

    if isinstance(v, bool): return default
    if isinstance(v, (int, float)): return float(v)
    if isinstance(v, str):
        try:
            return float(v.strip())
        except ValueError:
            return default
    return default



#                                           === Loading JSON file ===

_config_path = os.path.join(os.path.dirname(__file__), "config.json")
_config_data: dict = {}
if os.path.isfile(_config_path):
    with open(_config_path, "r", encoding="utf-8") as f:
        _config_data = json.load(f)


# Assigning config values:
INPUT_FOLDER: str = _config_data.get("INPUT_FOLDER", "").strip() # Folder containing the skeleton analysis, atlas and images.
ANALYSIS_FILE: str = _config_data.get("ANALYSIS_FILE", "analysis.json").strip() # Per-animation analysis records exported by the skeleton analyzer.
BUFFER_PERCENT: float = _as_number(_config_data.get("BUFFER_PERCENT", 0)) # Headroom added to the measured render size before clamping to the original size.
ROOT_FOLDER_NAME: str = _config_data.get("ROOT_FOLDER_NAME", "images_optimized") # Folder inside the archive holding all the images.
ARCHIVE_NAME: str = _config_data.get("ARCHIVE_NAME", "images_resized.zip") # File name of the generated archive.
OUTPUT_FOLDER_NAME: str = _config_data.get("OUTPUT_FOLDER_NAME", "") # If provided, places the archive into a custom subfolder of the input folder.
CHECK_OVERRIDE_CONSISTENCY: bool = _as_bool(_config_data.get("CHECK_OVERRIDE_CONSISTENCY", False)) # Warns when animations disagree on an asset's override percentage.
DRY_RUN: bool = _as_bool(_config_data.get("DRY_RUN", False)) # Only calculates and reports the targets, no archive is written.

SHOW_DETAILS: bool = _as_bool(_config_data.get("SHOW_DETAILS", False)) # Shows details like exact resolution when printing logs.




#                                           === Constants ===

ATLAS_PROPERTY_KEYS: Tuple[str, ...] = ("rotate", "xy", "size", "orig", "offset", "index", "format", "filter", "repeat", "bounds", "split", "pad")
# Property keys found in LibGDX/Spine atlas files; any other "key: value" line is a region name.

IMAGE_FILE_TYPES: Tuple[str, ...] = ("png", "jpg", "jpeg", "webp")
OUTPUT_FILE_TYPE: str = "png" # Resampled images are always encoded as PNG.
ATLAS_FILE_TYPE: str = "atlas"

RESIZE_TOLERANCE_PX: int = 2
# Savings of this many pixels or less on both axes are not worth a recompression.
