"""
Browser-aware preview generation.

Safari renders HEIC natively, so HEIC uploads can be returned untouched
when the caller asks for browser detection. Everything else becomes a
bounded-size JPEG.
"""
from typing import Optional

from converter.models import ConversionOptions, PreviewDecision, PreviewOptions
from converter.utils.browser import SAFARI, classify_browser
from converter.utils.errors import DecodeError, EncodeError, InvalidImageError
from converter.utils.image_processing import convert
from converter.utils.metadata import read_metadata
from converter.utils.resize import plan_bounding_box

PREVIEW_FORMAT = 'jpeg'
NATIVE_HEIC_BROWSERS = (SAFARI,)


def decide_preview(image_bytes: bytes, options: Optional[PreviewOptions] = None,
                   user_agent: Optional[str] = None) -> PreviewDecision:
    """
    Produce a preview for an uploaded image.

    Args:
        image_bytes: Uploaded image bytes
        options: Preview quality, bounding box and browser detection flag
        user_agent: User-Agent header, only consulted when detect_browser is set

    Returns:
        PreviewDecision with either the original bytes (converted=False)
        or a JPEG preview (converted=True)

    Raises:
        InvalidImageError: If the upload is not a readable image
        EncodeError: If the preview conversion fails
    """
    options = options or PreviewOptions()

    try:
        original = read_metadata(image_bytes)
    except DecodeError as e:
        raise InvalidImageError('Invalid image file') from e

    browser = None
    should_convert = True

    if options.detect_browser:
        browser = classify_browser(user_agent or '')
        if browser in NATIVE_HEIC_BROWSERS and original.format == 'heif':
            should_convert = False

    if not should_convert:
        return PreviewDecision(
            converted=False,
            metadata=original,
            buffer=image_bytes,
            browser=browser
        )

    directive = plan_bounding_box(original.width, original.height, options.max_width, options.max_height)

    result = convert(image_bytes, ConversionOptions(
        target_format=PREVIEW_FORMAT,
        quality=options.quality,
        width=directive.width if directive else None,
        height=directive.height if directive else None,
        # the box already keeps the aspect ratio
        fit='fill',
        optimize=True
    ))

    if not result.success:
        raise EncodeError(result.error or 'Conversion failed')

    return PreviewDecision(
        converted=True,
        metadata=result.metadata,
        buffer=result.buffer,
        browser=browser
    )
