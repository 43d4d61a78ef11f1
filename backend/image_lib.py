""" Image processing backend. Currently implemented using Pillow (PIL). PIL exports 8bit images only."""



#                                           === Backend ===

import io
from typing import Tuple, TypeAlias

from PIL import Image as _PIL
from PIL.Image import Image as PILImage

ImageObject: TypeAlias = PILImage

DECODE_ERRORS: Tuple[type, ...] = (OSError, ValueError, SyntaxError, _PIL.DecompressionBombError)
# Pillow raises these for corrupt, truncated or unsupported data; UnidentifiedImageError is an OSError.


def close_image(image: object) -> None:
    close = getattr(image, "close", None)
    if callable(close):
        close()


def open_image_bytes(data: bytes) -> ImageObject:
# Decodes encoded image bytes. Forces the full decode so corrupt data fails here and not later.
    image = _PIL.open(io.BytesIO(data))
    try:
        image.load()
    except Exception:
        close_image(image)
        raise
    return image


def get_size(image: ImageObject) -> Tuple[int, int]:
# Returns the image size as (width, height)
    return image.size


def read_image_size(data: bytes) -> Tuple[int, int]:
# Reads the size from the header only, without decoding the pixels.
    with _PIL.open(io.BytesIO(data)) as image:
        return get_size(image)


def to_rgba(image: ImageObject) -> ImageObject:
    if image.mode == "RGBA":
        return image
    return image.convert("RGBA")


def new_image_transparent(size: Tuple[int, int]) -> ImageObject:
# Create a new, fully cleared RGBA canvas.
    return _PIL.new("RGBA", size, (0, 0, 0, 0))


def resize(image: ImageObject, size: Tuple[int, int]) -> ImageObject:
# Resize an image using Lanczos resampling.
    return image.resize(size, _PIL.Resampling.LANCZOS)


def paste(canvas: ImageObject, image: ImageObject) -> None:
# Draws the image into the top-left corner of the canvas.
    canvas.paste(image, (0, 0))


def encode_image(image: ImageObject, file_type: str = "png") -> bytes:
# Encodes the image into memory.
    buffer = io.BytesIO()
    image.save(buffer, format=file_type.upper())
    return buffer.getvalue()
