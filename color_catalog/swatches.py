"""
Swatch palette extraction from an image color report.

An external image-analysis step samples a photo and reports a handful
of named color channels (dominant, vibrant, muted, ...), any of which
may be missing. This module turns that report into an ordered list of
unique hex swatches to use as match queries.
"""

import os
import logging
from dataclasses import dataclass, fields
from typing import Callable, List, Mapping, Optional, Tuple, Union

from .colorspace import is_valid_hex

logger = logging.getLogger(__name__)

MAX_SWATCHES = int(os.environ.get("MAX_SWATCHES", "8"))


@dataclass(frozen=True)
class ImageColorReport:
    """Named color channels reported for one image. Values are hex or None."""

    dominant: Optional[str] = None
    average: Optional[str] = None
    vibrant: Optional[str] = None
    dark_vibrant: Optional[str] = None
    light_vibrant: Optional[str] = None
    muted: Optional[str] = None
    dark_muted: Optional[str] = None
    light_muted: Optional[str] = None
    primary: Optional[str] = None
    secondary: Optional[str] = None
    background: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, object]) -> "ImageColorReport":
        """
        Build from a mapping with camelCase (darkVibrant) or snake_case keys.

        Unknown keys and non-string values are ignored.
        """
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            name = _snake_case(key)
            if name in known and isinstance(value, str):
                values[name] = value
        return cls(**values)


def _snake_case(key: str) -> str:
    return "".join("_" + ch.lower() if ch.isupper() else ch for ch in key)


# Priority order; the first channels win when the cap is reached.
CHANNELS: Tuple[Tuple[str, Callable[[ImageColorReport], Optional[str]]], ...] = (
    ("dominant", lambda r: r.dominant),
    ("primary", lambda r: r.primary),
    ("secondary", lambda r: r.secondary),
    ("vibrant", lambda r: r.vibrant),
    ("darkVibrant", lambda r: r.dark_vibrant),
    ("lightVibrant", lambda r: r.light_vibrant),
    ("muted", lambda r: r.muted),
    ("darkMuted", lambda r: r.dark_muted),
    ("lightMuted", lambda r: r.light_muted),
    ("average", lambda r: r.average),
    ("background", lambda r: r.background),
    ("detail", lambda r: r.detail),
)


def extract_hex_palette(report: Union[ImageColorReport, Mapping[str, object]],
                        cap: int = None) -> List[str]:
    """
    Collect unique hex swatches from an image color report.

    Channels are read in CHANNELS order. Missing or malformed values are
    skipped. Duplicates are detected case-insensitively but the first
    occurrence keeps its original casing.

    Args:
        report: ImageColorReport, or a mapping with channel keys.
        cap: Maximum number of swatches (defaults to MAX_SWATCHES).

    Returns:
        Ordered list of at most cap hex strings.
    """
    cap = MAX_SWATCHES if cap is None else cap
    if isinstance(report, Mapping):
        report = ImageColorReport.from_mapping(report)

    palette = []
    seen = set()
    if cap <= 0:
        return palette

    for name, extract in CHANNELS:
        value = extract(report)
        if value is None:
            continue
        if not is_valid_hex(value):
            logger.debug(f"Skipping channel {name}: invalid color {value!r}")
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        palette.append(value)
        if len(palette) >= cap:
            break

    return palette
