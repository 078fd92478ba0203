"""
Input validation for multipart form uploads.

Form values arrive as strings; these helpers turn them into the typed
option objects the image utilities accept.
"""
from typing import Optional, Tuple

from converter.models import ConversionOptions, PreviewOptions
from converter.utils.resize import FIT_MODES

TRUE_VALUES = ('true', '1')


def read_upload(files, field: str = 'file') -> Tuple[bool, bytes, str]:
    """
    Read the uploaded file from the request.

    Args:
        files: request.files from Flask
        field: Name of the file field

    Returns:
        Tuple of (is_valid, file_bytes, error_message)
    """
    if field not in files:
        return False, b'', "No file provided"

    data = files[field].read()
    if not data:
        return False, b'', "No file provided"

    return True, data, ""


def parse_int(value: Optional[str], name: str) -> Tuple[bool, Optional[int], str]:
    """
    Parse an optional positive integer form field.

    Empty values and 0 count as not provided.

    Returns:
        Tuple of (is_valid, parsed_value, error_message)
    """
    if value is None or value.strip() == '':
        return True, None, ""

    try:
        number = int(value.strip())
    except ValueError:
        return False, None, f"Invalid {name}: must be an integer"

    if number < 0:
        return False, None, f"Invalid {name}: must be a positive integer"

    return True, number or None, ""


def parse_bool(value: Optional[str], default: bool) -> bool:
    """Parse a boolean form field; only 'true' and '1' are truthy."""
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def parse_convert_options(form) -> Tuple[bool, Optional[ConversionOptions], str]:
    """
    Build ConversionOptions from the /convert form fields.

    Args:
        form: request.form from Flask

    Returns:
        Tuple of (is_valid, options, error_message)
    """
    target_format = (form.get('format') or '').strip()
    if not target_format:
        return False, None, "Format parameter is required"

    values = {}
    for field in ('quality', 'width', 'height'):
        is_valid, number, error_msg = parse_int(form.get(field), field)
        if not is_valid:
            return False, None, error_msg
        values[field] = number

    fit = (form.get('fit') or '').strip().lower() or None
    if fit is not None and fit not in FIT_MODES:
        return False, None, f"Invalid fit: must be one of {', '.join(FIT_MODES)}"

    return True, ConversionOptions(
        target_format=target_format,
        quality=values['quality'],
        width=values['width'],
        height=values['height'],
        fit=fit,
        optimize=parse_bool(form.get('optimize'), True)
    ), ""


def parse_preview_options(form) -> Tuple[bool, Optional[PreviewOptions], str]:
    """
    Build PreviewOptions from the /preview form fields, applying preview defaults.

    Returns:
        Tuple of (is_valid, options, error_message)
    """
    defaults = PreviewOptions()
    values = {}
    for field, key in (('quality', 'quality'), ('maxWidth', 'max_width'), ('maxHeight', 'max_height')):
        is_valid, number, error_msg = parse_int(form.get(field), field)
        if not is_valid:
            return False, None, error_msg
        values[key] = number if number is not None else getattr(defaults, key)

    return True, PreviewOptions(
        detect_browser=parse_bool(form.get('detectBrowser'), defaults.detect_browser),
        **values
    ), ""
