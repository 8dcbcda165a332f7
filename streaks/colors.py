import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_COLOR_HEX = "#FF5A5F"

PRESET_COLORS = {
    "coral": "#FF5A5F",
    "emerald": "#00A699",
    "sunflower": "#FFB400",
    "lavender": "#914669",
    "ocean": "#007AFF",
    "mint": "#34C759",
    "peach": "#FF9500",
    "berry": "#AF52DE",
}

_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")


def normalize_color_hex(value) -> str:
    """
    Canonical ``#RRGGBB`` form of a habit color. Input is case-insensitive and
    the leading ``#`` is optional; anything else falls back to the default.
    """
    if not isinstance(value, str):
        logger.debug("Non-string color %r, using default", value)
        return DEFAULT_COLOR_HEX

    match = _HEX_RE.match(value.strip())
    if match is None:
        logger.debug("Malformed color %r, using default", value)
        return DEFAULT_COLOR_HEX
    return "#" + match.group(1).upper()
