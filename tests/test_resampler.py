import io

from PIL import Image

from resampler import resample_image

from conftest import make_png


def decode(data: bytes) -> Image.Image:
    image = Image.open(io.BytesIO(data))
    image.load()
    return image


def test_resamples_to_target_size(png_200):
    result = resample_image(png_200, 50, 40)

    assert result is not None
    image = decode(result)
    assert image.format == "PNG"
    assert image.size == (50, 40)
    assert image.mode == "RGBA"


def test_fractional_target_is_floored(png_200):
    image = decode(resample_image(png_200, 10.9, 20.5))

    assert image.size == (10, 20)


def test_keeps_colors_and_transparency():
    opaque = decode(resample_image(make_png(64, 64, (10, 200, 30, 255)), 16, 16))
    translucent = decode(resample_image(make_png(64, 64, (10, 200, 30, 128)), 16, 16))

    assert opaque.getpixel((8, 8)) == (10, 200, 30, 255)
    assert translucent.getpixel((8, 8))[3] == 128


def test_upscale_works(png_200):
    assert decode(resample_image(png_200, 300, 250)).size == (300, 250)


def test_palette_and_rgb_sources_are_converted():
    buffer = io.BytesIO()
    Image.new("RGB", (30, 30), (255, 0, 0)).convert("P").save(buffer, format="PNG")
    image = decode(resample_image(buffer.getvalue(), 15, 15))

    assert image.mode == "RGBA"
    assert image.getpixel((7, 7))[3] == 255


def test_jpeg_source_is_encoded_as_png():
    buffer = io.BytesIO()
    Image.new("RGB", (40, 40), (0, 0, 255)).save(buffer, format="JPEG")

    assert decode(resample_image(buffer.getvalue(), 20, 20)).format == "PNG"


def test_corrupt_bytes_return_none():
    assert resample_image(b"definitely not an image", 10, 10) is None
    assert resample_image(b"", 10, 10) is None


def test_truncated_png_returns_none(png_200):
    assert resample_image(png_200[: len(png_200) // 2], 10, 10) is None


def test_sub_pixel_target_returns_none(png_200):
    assert resample_image(png_200, 0.5, 10) is None
    assert resample_image(png_200, 10, 0) is None
