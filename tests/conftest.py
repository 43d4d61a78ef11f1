import io

import pytest
from PIL import Image

from backend.asset_classes import AnimationAnalysis, FoundImage, LoadedImage


def make_png(width: int, height: int, color=(200, 40, 40, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", (width, height), color).save(buffer, format="PNG")
    return buffer.getvalue()


def make_loaded_image(path: str, width: int, height: int, data: bytes = b"") -> LoadedImage:
    return LoadedImage(width=width, height=height, data=data or make_png(width, height), original_path=path, file_name=path)


def make_animation(name: str, *found_images: FoundImage) -> AnimationAnalysis:
    return AnimationAnalysis(name=name, found_images=list(found_images))


@pytest.fixture
def png_200() -> bytes:
    return make_png(200, 200)
