""" Image resampler: decodes one image, draws it scaled onto a cleared canvas and re-encodes it. """

import math
from typing import List, Optional

from backend.image_lib import (DECODE_ERRORS, ImageObject, encode_image, new_image_transparent, open_image_bytes, paste, resize, to_rgba)

from settings import OUTPUT_FILE_TYPE
from utils import close_image_files


def resample_image(image_bytes: bytes, target_width: float, target_height: float) -> Optional[bytes]:
# Returns the resized image encoded as PNG, or None when the image cannot be decoded or encoded.
# Holds no shared state, so any number of calls may run side by side.

    width: int = math.floor(target_width)
    height: int = math.floor(target_height)
    if width < 1 or height < 1:
        return None

    handles_to_close: List[Optional[ImageObject]] = []
    try:
        source = open_image_bytes(image_bytes)
        handles_to_close.append(source)

        rgba_source = to_rgba(source)
        handles_to_close.append(rgba_source)

        scaled = resize(rgba_source, (width, height))
        handles_to_close.append(scaled)

        canvas = new_image_transparent((width, height))
        handles_to_close.append(canvas)
        paste(canvas, scaled)
        # The canvas starts fully transparent, so pixels the scaled image does not cover stay clear.

        return encode_image(canvas, OUTPUT_FILE_TYPE)

    except DECODE_ERRORS:
        return None

    finally:
        close_image_files(handles_to_close)
