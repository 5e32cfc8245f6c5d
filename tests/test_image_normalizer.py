"""Tests for the Pillow-backed image normalizer."""

import base64
import io

import pytest
from PIL import Image

from services.image_normalizer import ImageNormalizer


def _encode(image: Image.Image, fmt: str) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return base64.b64encode(buffer.getvalue())


def test_png_with_alpha_becomes_jpeg():
    source = _encode(Image.new("RGBA", (20, 10), (255, 0, 0, 128)), "PNG")

    result = ImageNormalizer().to_jpeg_base64(source)

    image = Image.open(io.BytesIO(base64.b64decode(result)))
    assert image.format == "JPEG"
    assert image.mode == "RGB"
    assert image.size == (20, 10)


def test_large_image_is_downscaled_preserving_aspect():
    source = _encode(Image.new("RGB", (400, 200), (0, 0, 255)), "JPEG")

    result = ImageNormalizer(max_size=(100, 100)).to_jpeg_base64(source.decode("utf-8"))

    image = Image.open(io.BytesIO(base64.b64decode(result)))
    assert image.size == (100, 50)


def test_invalid_base64_raises():
    with pytest.raises(ValueError):
        ImageNormalizer().to_jpeg_base64("not base64!!")


def test_non_image_bytes_raise():
    with pytest.raises(ValueError):
        ImageNormalizer().to_jpeg_base64(base64.b64encode(b"plain text, not an image"))
