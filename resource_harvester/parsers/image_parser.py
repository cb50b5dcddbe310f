# ==============================================================================
# IMAGE PARSER MODULE
# ==============================================================================
# Reads basic information (size, pixel format) from image resources using
# Pillow. Pixel data is never converted; images are written out as-is.
#
# DST images are shuffled DDS files that Pillow cannot open; they decode to a
# raw fallback, which is not treated as corruption.
# ==============================================================================

import io
from dataclasses import dataclass
from typing import ClassVar

from PIL import Image, UnidentifiedImageError

from ..core.errors import DecodeError


@dataclass(frozen=True)
class ImageInfo:
    """
    Attributes:
        width (int):  Width in pixels
        height (int): Height in pixels
        format (str): Pillow format name (e.g. "DDS", "PNG")
        mode (str):   Pillow mode (e.g. "RGBA")
    """
    kind: ClassVar[str] = "Image"

    width: int
    height: int
    format: str
    mode: str = ""

    @property
    def dimensions(self) -> str:
        return f"{self.width}x{self.height}"


def read_image_info(data: bytes) -> ImageInfo:
    """
    Open an image payload and read its header.

    Raises:
        DecodeError: If Pillow cannot identify or open the image
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            return ImageInfo(img.width, img.height, img.format or "", img.mode)
    except (UnidentifiedImageError, OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"unreadable image: {e}")
