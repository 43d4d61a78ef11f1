import math
from enum import Enum
from typing import List, Optional, Union
from dataclasses import dataclass, field


AtlasNumber = Union[int, float] # Plain int, or float('nan') when the atlas token could not be parsed.


@dataclass(frozen=True)
class AtlasRegion:
    page_name: str # Texture page file this region is cut from, e.g., "skeleton.png"
    name: str # Region name, unique within one atlas (last occurrence wins).
    rotated: bool = False # Region is stored rotated by 90 degrees in the page.
    x: AtlasNumber = 0 # Top-left offset into the page.
    y: AtlasNumber = 0
    width: AtlasNumber = 0 # Packed pixel size.
    height: AtlasNumber = 0
    original_width: AtlasNumber = 0 # Logical size before whitespace trimming.
    original_height: AtlasNumber = 0
    offset_x: AtlasNumber = 0 # Trim offset.
    offset_y: AtlasNumber = 0
    index: AtlasNumber = -1 # Frame index for multi-part regions, -1 if absent.

    @property
    def has_geometry(self) -> bool:
    # False when any packing value failed to parse, the region cannot be cut reliably.
        packing_values = (self.x, self.y, self.width, self.height)
        return not any(isinstance(value, float) and math.isnan(value) for value in packing_values)


class ImageSourceKind(Enum):
    RAW_FILE = "raw_file" # Image loaded directly from a file on disk.
    ATLAS_REGION = "atlas_region" # Image cut out of an atlas page by the unpacking step.


@dataclass
class LoadedImage:
    width: int # Logical render-reference width used for requirement comparisons.
    height: int # Logical render-reference height.
    data: bytes # Encoded image bytes.
    original_path: str # Stable identity, e.g., "images/arm.png"
    file_name: str # Output file name, always with an extension.
    source_kind: ImageSourceKind = ImageSourceKind.RAW_FILE


@dataclass
class FoundImage:
    lookup_key: str # Must match a key of the loaded images collection.
    max_render_width: float # Largest on-screen width observed across the animation's keyframes.
    max_render_height: float
    max_scale_x: Optional[float] = None # Largest absolute scale factors observed.
    max_scale_y: Optional[float] = None
    override_percentage: Optional[float] = None # Set when the user fixed a target size for this asset.


@dataclass
class AnimationAnalysis:
    name: str # Animation name.
    found_images: List[FoundImage] = field(default_factory=list) # Requirement records for every image the animation shows.


@dataclass
class GlobalRequirement:
    width: float = 0 # Running maximum across all animations.
    height: float = 0
    max_scale: float = 0
    override_percentage: Optional[float] = None # Last override seen for the key.


@dataclass
class OptimizationTask:
    file_name: str # Output file name.
    relative_path: str # Original path of the loaded image.
    original_width: int
    original_height: int
    target_width: int
    target_height: int
    data: bytes # Original encoded bytes.
    max_scale_used: float
    is_resize: bool
    override_percentage: Optional[float] = None
