"""
Request-scoped data model for conversions, metadata and previews.
"""
import base64
from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class ImageMetadata:
    """Format and dimensions of an image, plus sizes when it is a conversion output."""
    format: str
    width: int
    height: int
    size: int
    original_size: Optional[int] = None
    compression_ratio: Optional[float] = None

    @classmethod
    def for_output(cls, format: str, width: int, height: int, size: int,
                   original_size: int) -> 'ImageMetadata':
        """
        Build metadata for an encoded output relative to its source.

        Args:
            format: Format reported by the codec for the output
            width: Output width in pixels
            height: Output height in pixels
            size: Output size in bytes
            original_size: Size of the source buffer in bytes

        Returns:
            ImageMetadata with compression_ratio set when original_size is nonzero
        """
        ratio = None
        if original_size:
            ratio = (original_size - size) / original_size * 100
        return cls(
            format=format,
            width=width,
            height=height,
            size=size,
            original_size=original_size,
            compression_ratio=ratio
        )

    def to_dict(self) -> Dict:
        data = {
            'format': self.format,
            'width': self.width,
            'height': self.height,
            'size': self.size,
        }
        if self.original_size is not None:
            data['originalSize'] = self.original_size
        if self.compression_ratio is not None:
            data['compressionRatio'] = self.compression_ratio
        return data


@dataclass(frozen=True)
class ConversionOptions:
    """
    Options for a single conversion.

    Unset fields are resolved to their defaults by the conversion pipeline.
    Quality is handed to the codec as-is.
    """
    target_format: str
    quality: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    fit: Optional[str] = None
    optimize: Optional[bool] = None


@dataclass(frozen=True)
class ConversionRequest:
    """One item of a batch conversion."""
    image: bytes
    options: ConversionOptions


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a conversion: either encoded output with metadata, or an error message."""
    success: bool
    buffer: Optional[bytes] = None
    base64: Optional[str] = None
    metadata: Optional[ImageMetadata] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, buffer: bytes, metadata: ImageMetadata) -> 'ConversionResult':
        return cls(
            success=True,
            buffer=buffer,
            base64=base64.b64encode(buffer).decode('utf-8'),
            metadata=metadata
        )

    @classmethod
    def fail(cls, error: str) -> 'ConversionResult':
        return cls(success=False, error=error)


@dataclass(frozen=True)
class PreviewOptions:
    """Options for the preview endpoint. Defaults favour small, fast-loading previews."""
    quality: int = 75
    max_width: int = 1920
    max_height: int = 1080
    detect_browser: bool = False


@dataclass(frozen=True)
class PreviewDecision:
    """
    Result of a preview request.

    When converted is False, buffer is the uploaded image unchanged and
    metadata describes it; otherwise both describe the JPEG preview.
    """
    converted: bool
    metadata: ImageMetadata
    buffer: bytes
    browser: Optional[str] = None

    @property
    def base64(self) -> str:
        return base64.b64encode(self.buffer).decode('utf-8')
