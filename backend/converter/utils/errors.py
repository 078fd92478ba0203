"""
Exceptions raised by the image processing utilities.
"""


class ImageProcessingError(Exception):
    """Base class for image processing failures."""


class DecodeError(ImageProcessingError):
    """The buffer is not a recognized image container."""


# Callers at the HTTP boundary speak in terms of invalid uploads
InvalidImageError = DecodeError


class EncodeError(ImageProcessingError):
    """The codec failed while resizing or encoding."""


class UnsupportedFormatError(EncodeError):
    """The requested output format is not one the encoder knows."""

    def __init__(self, format: str):
        self.format = format
        super().__init__(f"Unsupported format: {format}")
