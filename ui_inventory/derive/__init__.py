"""Pure derivation engine: signatures, groups, variants, inventories, drawer queries."""

from .drawer import (
    RELATED_COMPONENTS_LIMIT,
    ComponentCaptureRow,
    StyleLocation,
    component_captures,
    related_components,
    style_locations,
)
from .grouping import CaptureGroup, CaptureVariant, VariantBreakdown, derive_variants, find_group, group_captures
from .inventory import Component, derive_component_inventory, designer_category, infer_category, page_label
from .normalize import bucket_padding, bucket_rgba, bucket_shadow, normalize_accessible_name
from .signature import (
    SIGNATURE_VERSION,
    GroupExplanation,
    GroupingMode,
    component_key,
    compute_group_key,
    compute_variant_key,
    explain_group_key,
)
from .styles import StyleEntry, derive_style_inventory, extract_token

__all__ = [
    "RELATED_COMPONENTS_LIMIT",
    "SIGNATURE_VERSION",
    "CaptureGroup",
    "CaptureVariant",
    "Component",
    "ComponentCaptureRow",
    "GroupExplanation",
    "GroupingMode",
    "StyleEntry",
    "StyleLocation",
    "VariantBreakdown",
    "bucket_padding",
    "bucket_rgba",
    "bucket_shadow",
    "component_captures",
    "component_key",
    "compute_group_key",
    "compute_variant_key",
    "derive_component_inventory",
    "derive_style_inventory",
    "derive_variants",
    "designer_category",
    "explain_group_key",
    "extract_token",
    "find_group",
    "group_captures",
    "infer_category",
    "normalize_accessible_name",
    "page_label",
    "related_components",
    "style_locations",
]
