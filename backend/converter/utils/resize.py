"""
Resize planning and application.

Planning is pure arithmetic on dimensions so it can be checked without
decoding anything; apply_resize performs the planned resize with Pillow.
"""
import math
from dataclasses import dataclass
from typing import Optional
from PIL import Image, ImageOps

FIT_MODES = ('cover', 'contain', 'fill', 'inside', 'outside')


@dataclass(frozen=True)
class ResizeDirective:
    """Final output dimensions and how the source is fitted into them."""
    width: int
    height: int
    fit: str = 'inside'


def _round(value: float) -> int:
    # Half-up, not Python's banker's rounding
    return max(1, int(math.floor(value + 0.5)))


def plan_resize(source_width: int, source_height: int, width: Optional[int] = None,
                height: Optional[int] = None, fit: str = 'inside') -> Optional[ResizeDirective]:
    """
    Plan a resize towards explicitly requested dimensions.

    If only one dimension is given, the other follows the source aspect
    ratio. The output never exceeds the source in either axis.

    Args:
        source_width: Width of the decoded source
        source_height: Height of the decoded source
        width: Requested width (optional)
        height: Requested height (optional)
        fit: One of FIT_MODES

    Returns:
        ResizeDirective, or None if the image should be left as is

    Raises:
        ValueError: If fit is not a known fit mode
    """
    if fit not in FIT_MODES:
        raise ValueError(f"Unsupported fit mode: {fit}")
    if not width and not height:
        return None
    if source_width <= 0 or source_height <= 0:
        return None

    if not width or not height:
        ratio = min(1.0, (width or height) / (source_width if width else source_height))
        target = (_round(source_width * ratio), _round(source_height * ratio))
        fit = 'fill'
    elif fit in ('inside', 'outside'):
        pick = min if fit == 'inside' else max
        ratio = min(1.0, pick(width / source_width, height / source_height))
        target = (_round(source_width * ratio), _round(source_height * ratio))
    else:
        target = (min(width, source_width), min(height, source_height))

    if target == (source_width, source_height):
        return None
    return ResizeDirective(width=target[0], height=target[1], fit=fit)


def plan_bounding_box(source_width: int, source_height: int, max_width: int,
                      max_height: int) -> Optional[ResizeDirective]:
    """
    Plan a resize that fits the source inside a bounding box, keeping aspect ratio.

    Returns None when the source already fits.
    """
    if source_width <= 0 or source_height <= 0:
        return None
    if source_width <= max_width and source_height <= max_height:
        return None

    width_ratio = max_width / source_width
    height_ratio = max_height / source_height
    ratio = min(width_ratio, height_ratio)

    return ResizeDirective(
        width=_round(source_width * ratio),
        height=_round(source_height * ratio),
        fit='inside'
    )


def apply_resize(img: Image.Image, directive: ResizeDirective) -> Image.Image:
    """
    Resize a decoded image according to a directive.

    Args:
        img: Decoded Pillow image
        directive: Planned output dimensions and fit mode

    Returns:
        The resized image
    """
    size = (directive.width, directive.height)

    if directive.fit == 'cover':
        return ImageOps.fit(img, size, Image.Resampling.LANCZOS)

    if directive.fit == 'contain':
        has_alpha = 'A' in img.getbands() or 'transparency' in img.info
        if has_alpha:
            img = img.convert('RGBA')
            color = (0, 0, 0, 0)
        else:
            img = img.convert('RGB')
            color = (0, 0, 0)
        return ImageOps.pad(img, size, Image.Resampling.LANCZOS, color=color)

    return img.resize(size, Image.Resampling.LANCZOS)
