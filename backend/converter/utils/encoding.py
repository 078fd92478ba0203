"""
Per-format encode parameters and encoding through Pillow.
"""
import io
from dataclasses import dataclass
from typing import Dict, NamedTuple, Optional
from PIL import Image

from converter.utils.errors import EncodeError, UnsupportedFormatError


@dataclass(frozen=True)
class EncodeParams:
    """
    Codec-neutral encode settings for one output format.

    Not every setting has a Pillow counterpart: optimize_scans,
    adaptive_filtering and smart_subsample are recorded but only the
    settings listed in save_kwargs reach the codec.
    """
    format: str
    quality: Optional[int] = None
    progressive: bool = False
    optimize_scans: bool = False
    optimize_coding: bool = False
    compression_level: Optional[int] = None
    adaptive_filtering: bool = False
    effort: Optional[int] = None
    smart_subsample: bool = False

    def save_kwargs(self) -> Dict:
        """Translate to keyword arguments for PIL.Image.Image.save."""
        kwargs = {'format': self.format}

        if self.format == 'JPEG':
            kwargs.update(quality=self.quality, progressive=self.progressive,
                          optimize=self.optimize_coding)
        elif self.format == 'PNG':
            kwargs.update(compress_level=self.compression_level, optimize=self.adaptive_filtering)
        elif self.format == 'WEBP':
            kwargs.update(quality=self.quality, method=self.effort)
        elif self.format == 'AVIF':
            # libavif speed runs the opposite way to effort
            kwargs.update(quality=self.quality, speed=9 - self.effort)
        elif self.format == 'GIF':
            kwargs.update(optimize=self.effort >= 10)

        return kwargs


class EncodedImage(NamedTuple):
    data: bytes
    format: str
    width: int
    height: int


def build_encode_params(target_format: str, quality: int, optimize: bool) -> EncodeParams:
    """
    Map a target format and optimization flag to encode parameters.

    Args:
        target_format: Requested output format (case-insensitive)
        quality: Quality 1-100, passed through unchecked
        optimize: Trade encode time for smaller output

    Returns:
        EncodeParams for the format

    Raises:
        UnsupportedFormatError: If the format is not supported
    """
    key = (target_format or '').lower()

    if key in ('jpeg', 'jpg'):
        return EncodeParams(
            format='JPEG',
            quality=quality,
            progressive=True,
            optimize_scans=optimize,
            optimize_coding=optimize
        )
    if key == 'png':
        return EncodeParams(
            format='PNG',
            quality=quality,
            progressive=True,
            compression_level=9 if optimize else 6,
            adaptive_filtering=optimize
        )
    if key == 'webp':
        return EncodeParams(
            format='WEBP',
            quality=quality,
            effort=6 if optimize else 4,
            smart_subsample=optimize
        )
    if key == 'avif':
        return EncodeParams(format='AVIF', quality=quality, effort=9 if optimize else 4)
    if key == 'gif':
        return EncodeParams(format='GIF', effort=10 if optimize else 7)

    raise UnsupportedFormatError(target_format)


def _prepare_mode(img: Image.Image, pillow_format: str) -> Image.Image:
    """Convert the image to a mode the target encoder accepts."""
    has_alpha = 'A' in img.getbands() or 'transparency' in img.info

    if pillow_format == 'JPEG':
        if img.mode not in ('RGB', 'L', 'CMYK'):
            return img.convert('RGB')
    elif pillow_format in ('WEBP', 'AVIF'):
        if img.mode not in ('RGB', 'RGBA'):
            return img.convert('RGBA' if has_alpha else 'RGB')
    elif pillow_format == 'PNG':
        if img.mode in ('CMYK', 'YCbCr', 'LAB', 'HSV'):
            return img.convert('RGB')
    return img


def encode(img: Image.Image, target_format: str, quality: int, optimize: bool) -> EncodedImage:
    """
    Encode a decoded image to the target format.

    Args:
        img: Decoded (and possibly resized) Pillow image
        target_format: jpeg, jpg, png, webp, avif or gif, case-insensitive
        quality: Quality passed through to the codec
        optimize: Whether to use the slower, smaller settings

    Returns:
        EncodedImage with the output bytes and the format and dimensions
        read back from the output

    Raises:
        UnsupportedFormatError: If the format is not supported
        EncodeError: If the codec fails
    """
    params = build_encode_params(target_format, quality, optimize)

    output = io.BytesIO()
    try:
        _prepare_mode(img, params.format).save(output, **params.save_kwargs())
        data = output.getvalue()
        with Image.open(io.BytesIO(data)) as encoded:
            width, height = encoded.size
            format = (encoded.format or params.format).lower()
    except Exception as e:
        raise EncodeError(f"Failed to encode {params.format}: {str(e)}") from e

    return EncodedImage(data=data, format=format, width=width, height=height)
