"""Normalization and bucketing primitives used by grouping signatures.

Bucketing absorbs sub-pixel and sub-tolerance noise between captures of the
same element so that visually identical components produce equal keys.
"""

from __future__ import annotations

import math
import re
import unicodedata
from typing import Any, Mapping, Optional

from ..capture.models import Rgba

_RE_WHITESPACE = re.compile(r"\s+")
_RE_PADDING_PX = re.compile(r"^([\d.]+)px$")
_RE_FLOAT_PREFIX = re.compile(r"\d*\.?\d*")
_RE_RGB_FUNC = re.compile(r"^rgba?\((\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?\)$")
_RE_RGB_BARE = re.compile(r"^(\d+),\s*(\d+),\s*(\d+)(?:,\s*([\d.]+))?$")

CHANNEL_STEP = 16
CHANNEL_MAX = 240
PADDING_STEP = 4
NO_COLOR = "none"
NO_SHADOW = "noshadow"


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _is_word_char(ch: str) -> bool:
    return unicodedata.category(ch)[0] in ("L", "N")


def normalize_accessible_name(name: Optional[str]) -> str:
    """Lowercase, trim, collapse whitespace and strip surrounding punctuation."""

    if not name:
        return ""
    collapsed = _RE_WHITESPACE.sub(" ", name.lower().strip())
    start = 0
    end = len(collapsed)
    while start < end and not _is_word_char(collapsed[start]):
        start += 1
    while end > start and not _is_word_char(collapsed[end - 1]):
        end -= 1
    return collapsed[start:end]


def _parse_float(text: str) -> Optional[float]:
    """Parse a leading decimal; non-finite results count as unparsable."""

    try:
        value = float(text)
    except ValueError:
        prefix = _RE_FLOAT_PREFIX.match(text)
        if not prefix or prefix.group(0) in ("", "."):
            return None
        value = float(prefix.group(0).rstrip(".") or "0")
    return value if math.isfinite(value) else None


def bucket_padding(value: Optional[str]) -> str:
    """Round a ``<n>px`` length to the nearest multiple of 4; anything else is ``"0"``."""

    if not value or value == "0":
        return "0"
    match = _RE_PADDING_PX.match(value)
    if not match:
        return "0"
    px = _parse_float(match.group(1))
    if px is None:
        return "0"
    return str(_round_half_up(px / PADDING_STEP) * PADDING_STEP)


def _bucket_channel(value: float) -> int:
    return min(CHANNEL_MAX, _round_half_up(value / CHANNEL_STEP) * CHANNEL_STEP)


def _format_alpha(value: float) -> str:
    rounded = _round_half_up(value * 10) / 10
    if float(rounded).is_integer():
        return str(int(rounded))
    return repr(rounded)


def _finite_channels(
    r: Any, g: Any, b: Any, a: Any = 1
) -> Optional[tuple[float, float, float, float]]:
    """Coerce four channels to floats; None when any is missing, unparsable or non-finite."""

    try:
        channels = (float(r), float(g), float(b), float(a))
    except (TypeError, ValueError, OverflowError):
        return None
    if not all(math.isfinite(channel) for channel in channels):
        return None
    return channels


def _bucket_channels(r: Any, g: Any, b: Any, a: Any) -> str:
    channels = _finite_channels(r, g, b, a)
    if channels is None:
        return NO_COLOR
    r, g, b, a = channels
    a = min(1.0, max(0.0, a))
    return (
        f"{_bucket_channel(r)},{_bucket_channel(g)},{_bucket_channel(b)},"
        f"{_format_alpha(a)}"
    )


def bucket_rgba(value: Any) -> str:
    """Bucket a color into ``"R,G,B,A"`` with 16-step channels and 0.1 alpha.

    Accepts an ``Rgba``, a mapping with ``r``/``g``/``b``/``a`` keys, an
    ``rgb()``/``rgba()`` string, or a bare ``"r,g,b[,a]"`` string. Anything
    else buckets to ``"none"``.
    """

    if not value:
        return NO_COLOR
    if isinstance(value, Rgba):
        return _bucket_channels(value.r, value.g, value.b, value.a)
    if isinstance(value, Mapping):
        if not all(channel in value for channel in ("r", "g", "b")):
            return NO_COLOR
        return _bucket_channels(value["r"], value["g"], value["b"], value.get("a", 1))
    if isinstance(value, str):
        match = _RE_RGB_FUNC.match(value) or _RE_RGB_BARE.match(value)
        if match:
            r, g, b, a = match.groups()
            alpha = _parse_float(a) if a else 1.0
            if alpha is None:
                return NO_COLOR
            return _bucket_channels(int(r), int(g), int(b), alpha)
    return NO_COLOR


def bucket_shadow(presence: Optional[str], layer_count: Optional[int]) -> str:
    if not presence or presence == "none":
        return NO_SHADOW
    return f"{presence}-{layer_count if layer_count is not None else 0}"
