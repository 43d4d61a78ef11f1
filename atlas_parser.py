""" Parses LibGDX/Spine .atlas text into region packing geometry. """

import re
from typing import Dict, List, Optional

from backend.asset_classes import AtlasNumber, AtlasRegion

from settings import ATLAS_PROPERTY_KEYS


_LEADING_INTEGER = re.compile(r"[+-]?\d+")


# Basic structure of the parsed text:
# skeleton.png              <- page name, first line of a block
# size: 1024,512            <- page property, no region yet: ignored
# filter: Linear,Linear
# arm                       <- region name
#   rotate: false
#   xy: 2, 2
#   size: 120, 64
#                           <- blank line closes the page block



def parse_atlas(content: str) -> Dict[str, AtlasRegion]:
# Single forward scan over the lines. Never raises on malformed text:
# unknown "key: value" lines become region names, unparsable numbers become NaN.

    regions: Dict[str, AtlasRegion] = {}
    current_page: Optional[str] = None
    current_region: Optional[dict] = None # Field values of the region in progress, frozen into an AtlasRegion on flush.

    def flush_region() -> None:
        nonlocal current_region
        if current_region is not None:
            regions[current_region["name"]] = AtlasRegion(**current_region)
            current_region = None


    for raw_line in re.split(r"\r?\n", content or ""):
        line: str = raw_line.strip()

        if not line:
            flush_region()
            current_page = None
            continue
        # A blank line ends the page block.

        if current_page is None:
            current_page = line
            continue
        # First line of a block is the page name.

        key, separator, value = line.partition(":")
        key, value = key.strip(), value.strip()

        if separator and key in ATLAS_PROPERTY_KEYS:
            if current_region is not None:
                _apply_property(current_region, key, value)
            continue
        # Properties before the first region belong to the page (format, filter, repeat...) and are not needed.

        flush_region()
        current_region = {"page_name": current_page, "name": line}
        # Any other line starts a new region; geometry defaults come from AtlasRegion.

    flush_region()
    return regions


def _apply_property(region: dict, key: str, value: str) -> None:
# Writes a single recognized property onto the region in progress.

    if key == "rotate":
        region["rotated"] = value.lower() == "true" or value in ("90", "270")
    elif key == "xy":
        region["x"], region["y"] = _parse_numbers(value, 2)
    elif key == "size":
        region["width"], region["height"] = _parse_numbers(value, 2)
    elif key == "orig":
        region["original_width"], region["original_height"] = _parse_numbers(value, 2)
    elif key == "offset":
        region["offset_x"], region["offset_y"] = _parse_numbers(value, 2)
    elif key == "index":
        region["index"] = _parse_integer(value)
    elif key == "bounds":
        region["x"], region["y"], region["width"], region["height"] = _parse_numbers(value, 4)
    # format, filter, repeat, split and pad are recognized but carry nothing the optimizer uses.


def _parse_integer(token: str) -> AtlasNumber:
# Base-10 integer from the leading digits of the token, NaN when there are none.
    match: Optional[re.Match[str]] = _LEADING_INTEGER.match(token.strip())
    if match is None:
        return float("nan")
    return int(match.group(0))


def _parse_numbers(value: str, count: int) -> List[AtlasNumber]:
# Comma separated integers, padded with NaN when the value has fewer than `count` tokens.
    tokens: List[str] = value.split(",")
    numbers: List[AtlasNumber] = [_parse_integer(token) for token in tokens[:count]]
    numbers.extend(float("nan") for _ in range(count - len(numbers)))
    return numbers
