"""
Header-level image metadata extraction.
"""
import io
from PIL import Image
import pillow_heif

from converter.models import ImageMetadata
from converter.utils.errors import DecodeError

# Registers the HEIF/HEIC opener with Pillow
pillow_heif.register_heif_opener()

# Multi-picture JPEGs from cameras are plain JPEGs to clients
FORMAT_ALIASES = {
    'mpo': 'jpeg',
}


def read_metadata(image_bytes: bytes) -> ImageMetadata:
    """
    Read format and dimensions from an image buffer without decoding pixel data.

    Args:
        image_bytes: Raw uploaded image bytes

    Returns:
        ImageMetadata whose size is the length of the given buffer

    Raises:
        DecodeError: If the buffer is not a recognized image
    """
    if not image_bytes:
        raise DecodeError("Image buffer is empty")

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            width, height = img.size
            format = (img.format or 'unknown').lower()
            format = FORMAT_ALIASES.get(format, format)
    except Exception as e:
        raise DecodeError(f"Unable to read image metadata: {str(e)}") from e

    return ImageMetadata(
        format=format,
        width=width or 0,
        height=height or 0,
        size=len(image_bytes)
    )


def is_valid_image(image_bytes: bytes) -> bool:
    """Return True if the buffer can be identified as an image."""
    try:
        read_metadata(image_bytes)
        return True
    except DecodeError:
        return False
