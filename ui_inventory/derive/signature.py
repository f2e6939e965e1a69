"""Grouping signatures, variant keys and their human-readable explanation."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..capture.models import CaptureRecord, StylePrimitives
from .normalize import bucket_padding, bucket_rgba, bucket_shadow, normalize_accessible_name

KEY_SEPARATOR = "::"
UNKNOWN_TAG = "unknown"
NO_ROLE = "norole"
NO_NAME_LABEL = "(no name)"
UNKNOWN_VARIANT = "unknown"
SIGNATURE_VERSION = 1

_RE_PADDING_TOKEN = re.compile(r"^p(\d+)-(\d+)-(\d+)-(\d+)$")
_RE_COLOR_TOKEN = re.compile(r"^c\d")


class GroupingMode(str, Enum):
    NAME_ONLY = "nameOnly"
    NAME_PLUS_TYPE = "namePlusType"
    NAME_TYPE_PRIMITIVES = "nameTypePrimitives"


@dataclass(frozen=True)
class PrimitiveExplanation:
    padding: Optional[str] = None
    colors: Optional[str] = None
    shadow: Optional[str] = None


@dataclass(frozen=True)
class GroupExplanation:
    tag: str
    role: Optional[str] = None
    name: Optional[str] = None
    primitives: Optional[PrimitiveExplanation] = None


def _primitive_tokens(prims: Optional[StylePrimitives]) -> list[str]:
    if prims is None:
        prims = StylePrimitives()
    padding = "-".join(
        bucket_padding(side)
        for side in (
            prims.padding_top,
            prims.padding_right,
            prims.padding_bottom,
            prims.padding_left,
        )
    )
    return [
        f"p{padding}",
        f"bg{bucket_rgba(prims.background_color.rgba if prims.background_color else None)}",
        f"bd{bucket_rgba(prims.border_color.rgba if prims.border_color else None)}",
        f"c{bucket_rgba(prims.color.rgba if prims.color else None)}",
        f"sh{bucket_shadow(prims.shadow_presence, prims.shadow_layer_count)}",
    ]


def compute_group_key(capture: CaptureRecord, mode: GroupingMode | str) -> str:
    """Return the grouping signature of ``capture`` under ``mode``."""

    mode = GroupingMode(mode)
    tag = capture.tag_name or UNKNOWN_TAG
    name = normalize_accessible_name(capture.accessible_name)
    if mode is GroupingMode.NAME_ONLY:
        return KEY_SEPARATOR.join([tag, name])
    role = capture.role or NO_ROLE
    if mode is GroupingMode.NAME_PLUS_TYPE:
        return KEY_SEPARATOR.join([tag, role, name])
    return KEY_SEPARATOR.join([tag, role, name, *_primitive_tokens(capture.primitives)])


def compute_variant_key(capture: CaptureRecord) -> str:
    """Key over bucketed primitives only; captures without primitives share one variant."""

    if capture.primitives is None:
        return UNKNOWN_VARIANT
    return KEY_SEPARATOR.join(_primitive_tokens(capture.primitives))


def explain_group_key(group_key: str) -> GroupExplanation:
    parts = group_key.split(KEY_SEPARATOR)
    if len(parts) == 2:
        return GroupExplanation(tag=parts[0], name=parts[1] or NO_NAME_LABEL)

    if len(parts) == 3:
        return GroupExplanation(
            tag=parts[0],
            role=None if parts[1] == NO_ROLE else parts[1],
            name=parts[2] or NO_NAME_LABEL,
        )

    if len(parts) > 3:
        padding: list[str] = []
        colors: list[str] = []
        shadow: list[str] = []
        for token in parts[3:]:
            if token.startswith("bg") or token.startswith("bd"):
                colors.append(token)
            elif token.startswith("sh"):
                shadow.append(token)
            elif token == "cnone" or _RE_COLOR_TOKEN.match(token):
                colors.append(token)
            elif token.startswith("p"):
                match = _RE_PADDING_TOKEN.match(token)
                if match:
                    pt, pr, pb, pl = match.groups()
                    padding.append(f"pt{pt} pr{pr} pb{pb} pl{pl}")
        return GroupExplanation(
            tag=parts[0],
            role=None if parts[1] == NO_ROLE else parts[1],
            name=parts[2] or NO_NAME_LABEL,
            primitives=PrimitiveExplanation(
                padding=" ".join(padding) or None,
                colors=" ".join(colors) or None,
                shadow=" ".join(shadow) or None,
            ),
        )

    return GroupExplanation(tag=parts[0] or UNKNOWN_TAG)


def hash_signature(signature: str, prefix: str = "comp") -> str:
    """32-bit djb2 over UTF-16 code units, rendered as ``<prefix>_<hex>``."""

    value = 5381
    encoded = signature.encode("utf-16-le")
    for index in range(0, len(encoded), 2):
        unit = encoded[index] | (encoded[index + 1] << 8)
        value = (value * 33 + unit) & 0xFFFFFFFF
    return f"{prefix}_{value:x}"


def component_key(group_key: str) -> str:
    """Stable overlay key for the component identified by ``group_key``."""

    return hash_signature(group_key, "comp")
