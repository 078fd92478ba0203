"""
Coarse browser detection from User-Agent strings.
"""
import re

SAFARI = 'Safari'
CHROME = 'Chrome'
FIREFOX = 'Firefox'
EDGE = 'Edge'
UNKNOWN = 'Unknown'


def _has(pattern: str, user_agent: str) -> bool:
    return re.search(pattern, user_agent, re.IGNORECASE) is not None


def classify_browser(user_agent: str) -> str:
    """
    Map a User-Agent string to a browser family.

    Checks run in order and the first match wins. Chromium-based browsers
    also advertise "Safari", so Chrome/Chromium tokens exclude Safari.
    Chromium-based Edge advertises "Chrome" too and is reported as Chrome.

    Args:
        user_agent: Raw User-Agent header value (may be empty)

    Returns:
        One of SAFARI, CHROME, FIREFOX, EDGE, UNKNOWN
    """
    if not user_agent:
        return UNKNOWN

    if _has('Safari', user_agent) and not _has('Chrome', user_agent) and not _has('Chromium', user_agent):
        return SAFARI
    if _has('Chrome', user_agent) or _has('Chromium', user_agent):
        return CHROME
    if _has('Firefox', user_agent):
        return FIREFOX
    if _has('Edg', user_agent):
        return EDGE
    return UNKNOWN
