"""Fold captures into signature groups and split groups into variants."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from ..capture.models import CaptureRecord
from .signature import (
    GroupExplanation,
    GroupingMode,
    compute_group_key,
    compute_variant_key,
    explain_group_key,
)


@dataclass(frozen=True)
class CaptureGroup:
    key: str
    members: tuple[CaptureRecord, ...]
    explanation: GroupExplanation

    @property
    def count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class CaptureVariant:
    key: str
    members: tuple[CaptureRecord, ...]
    index: int

    @property
    def count(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class VariantBreakdown:
    variants: tuple[CaptureVariant, ...]
    variant_by_capture: dict[str, str]

    def index_of(self, variant_key: str) -> Optional[int]:
        for variant in self.variants:
            if variant.key == variant_key:
                return variant.index
        return None

    def members_of(self, variant_key: Optional[str]) -> tuple[CaptureRecord, ...]:
        """Members of one variant, or every member when ``variant_key`` is None."""

        if variant_key is None:
            return tuple(c for v in self.variants for c in v.members)
        for variant in self.variants:
            if variant.key == variant_key:
                return variant.members
        return ()


def group_captures(
    captures: Iterable[CaptureRecord], mode: GroupingMode | str
) -> list[CaptureGroup]:
    """Partition captures by group key, largest group first.

    Ties keep first-encountered order; members keep input order.
    """

    buckets: dict[str, list[CaptureRecord]] = {}
    for capture in captures:
        buckets.setdefault(compute_group_key(capture, mode), []).append(capture)
    groups = [
        CaptureGroup(key=key, members=tuple(items), explanation=explain_group_key(key))
        for key, items in buckets.items()
    ]
    # list.sort is stable, so equal counts stay in insertion order.
    groups.sort(key=lambda group: -group.count)
    return groups


def find_group(groups: Sequence[CaptureGroup], key: Optional[str]) -> Optional[CaptureGroup]:
    if key is None:
        return None
    for group in groups:
        if group.key == key:
            return group
    return None


def derive_variants(members: Iterable[CaptureRecord]) -> VariantBreakdown:
    """Split a group into variants ordered by count desc then key asc, numbered from 1."""

    buckets: dict[str, list[CaptureRecord]] = {}
    variant_by_capture: dict[str, str] = {}
    for capture in members:
        variant_key = compute_variant_key(capture)
        variant_by_capture[capture.id] = variant_key
        buckets.setdefault(variant_key, []).append(capture)

    ordered = sorted(buckets.items(), key=lambda item: (-len(item[1]), item[0]))
    variants = tuple(
        CaptureVariant(key=key, members=tuple(items), index=position)
        for position, (key, items) in enumerate(ordered, start=1)
    )
    return VariantBreakdown(variants=variants, variant_by_capture=variant_by_capture)
