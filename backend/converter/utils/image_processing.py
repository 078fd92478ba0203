"""
Image conversion pipeline: decode, optional resize, encode, metadata.
"""
import io
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional
from PIL import Image

from converter.models import ConversionOptions, ConversionRequest, ConversionResult, ImageMetadata
from converter.utils.encoding import encode
from converter.utils.errors import DecodeError
from converter.utils.metadata import read_metadata
from converter.utils.resize import apply_resize, plan_resize

logger = logging.getLogger(__name__)

DEFAULT_QUALITY = 85
DEFAULT_FIT = 'inside'
DEFAULT_OPTIMIZE = True
DEFAULT_THUMBNAIL_SIZE = 200
DEFAULT_THUMBNAIL_FORMAT = 'webp'


def convert(image_bytes: bytes, options: ConversionOptions) -> ConversionResult:
    """
    Convert an image to the requested format, resizing first if asked to.

    Failures of any step are returned as a failed ConversionResult rather
    than raised.

    Args:
        image_bytes: Source image bytes
        options: Target format and optional quality, dimensions, fit and optimize flag

    Returns:
        ConversionResult with the encoded bytes, base64 payload and metadata,
        or the error message
    """
    quality = options.quality if options.quality is not None else DEFAULT_QUALITY
    fit = options.fit or DEFAULT_FIT
    optimize = options.optimize if options.optimize is not None else DEFAULT_OPTIMIZE

    try:
        original_size = len(image_bytes)

        try:
            source = Image.open(io.BytesIO(image_bytes))
        except Exception as e:
            raise DecodeError(f"Invalid image file: {str(e)}") from e

        with source as img:
            try:
                img.load()
            except Exception as e:
                raise DecodeError(f"Invalid image file: {str(e)}") from e

            if options.width or options.height:
                directive = plan_resize(img.width, img.height, options.width, options.height, fit)
                if directive is not None:
                    img = apply_resize(img, directive)

            encoded = encode(img, options.target_format, quality, optimize)

        metadata = ImageMetadata.for_output(
            format=encoded.format,
            width=encoded.width,
            height=encoded.height,
            size=len(encoded.data),
            original_size=original_size
        )
        return ConversionResult.ok(encoded.data, metadata)

    except Exception as e:
        logger.error(f'Image conversion failed: {str(e)}', extra={
            'format': options.target_format,
            'original_size': len(image_bytes) if image_bytes else 0,
            'status': 'error'
        })
        return ConversionResult.fail(str(e))


def optimize_in_place(image_bytes: bytes, quality: int = DEFAULT_QUALITY) -> ConversionResult:
    """Re-encode an image in its own format with optimization enabled."""
    try:
        metadata = read_metadata(image_bytes)
    except DecodeError as e:
        return ConversionResult.fail(str(e))

    if metadata.format == 'unknown':
        return ConversionResult.fail('Unable to detect image format')

    return convert(image_bytes, ConversionOptions(
        target_format=metadata.format,
        quality=quality,
        optimize=True
    ))


def create_thumbnail(image_bytes: bytes, size: int = DEFAULT_THUMBNAIL_SIZE,
                     target_format: str = DEFAULT_THUMBNAIL_FORMAT) -> ConversionResult:
    """Create a square, center-cropped thumbnail."""
    return convert(image_bytes, ConversionOptions(
        target_format=target_format,
        quality=DEFAULT_QUALITY,
        width=size,
        height=size,
        fit='cover',
        optimize=True
    ))


def convert_batch(requests: Iterable[ConversionRequest],
                  max_workers: Optional[int] = None) -> List[ConversionResult]:
    """
    Convert several images concurrently.

    Each item succeeds or fails on its own; results are in input order.

    Args:
        requests: Items to convert
        max_workers: Thread pool size (defaults to the executor's choice)

    Returns:
        One ConversionResult per request
    """
    requests = list(requests)
    if not requests:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        return list(executor.map(lambda item: convert(item.image, item.options), requests))
