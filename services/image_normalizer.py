"""Image normalizer service.

Wraps Pillow to turn an uploaded homework photo (expected base64-encoded
input, any format Pillow can open) into base64-encoded JPEG data, so the
`data:image/jpeg;base64,...` URL sent to the gateway is always truthful.
Large photos are downscaled to fit within `max_size`.

Example:
    normalizer = ImageNormalizer(max_size=(1568, 1568))
    jpeg_b64 = normalizer.to_jpeg_base64(b64_input)
"""
from __future__ import annotations

import base64
import io
from typing import Tuple

from PIL import Image


class ImageNormalizer:
    """Re-encode images as JPEG.

    Args:
        max_size: Maximum width and height of the output; aspect ratio is preserved.
        quality: JPEG quality passed to Pillow.
        background: Color used when flattening images with alpha to RGB.
    """

    def __init__(
        self,
        max_size: Tuple[int, int] = (1568, 1568),
        quality: int = 80,
        background: Tuple[int, int, int] | None = None,
    ):
        self.max_size = max_size
        self.quality = quality
        self.background = background or (255, 255, 255)

    def to_jpeg_base64(self, data: str | bytes) -> str:
        """Convert base64-encoded image data into base64-encoded JPEG text.

        Args:
            data: Base64-encoded image data (either `str` or `bytes`).

        Returns:
            A base64-encoded JPEG string (UTF-8 text, no data URL prefix).

        Raises:
            ValueError: If the provided data cannot be decoded or opened as an image.
        """
        if isinstance(data, str):
            data_bytes = data.encode("utf-8")
        else:
            data_bytes = data

        try:
            raw = base64.b64decode(data_bytes, validate=True)
        except Exception as exc:
            raise ValueError("Invalid base64 data provided") from exc

        try:
            src = Image.open(io.BytesIO(raw))
            src.load()
        except Exception as exc:
            raise ValueError("Decoded bytes are not a supported image format") from exc

        src = src.convert("RGBA")
        src.thumbnail(self.max_size, Image.LANCZOS)

        # Flatten alpha against the background color
        flattened = Image.new("RGB", src.size, self.background)
        flattened.paste(src, mask=src.split()[3])

        out_io = io.BytesIO()
        flattened.save(out_io, format="JPEG", quality=self.quality)
        return base64.b64encode(out_io.getvalue()).decode("utf-8")
