"""User-authored overlays keyed by ``projectId:componentKey``."""

from .models import Annotation, ComponentOverride, Project, ProjectSessionLink, ProjectTag, SessionInfo
from .resolve import ResolvedComponent, apply_overlays, merge_annotation, resolve_component_labels

__all__ = [
    "Annotation",
    "ComponentOverride",
    "Project",
    "ProjectSessionLink",
    "ProjectTag",
    "ResolvedComponent",
    "SessionInfo",
    "apply_overlays",
    "merge_annotation",
    "resolve_component_labels",
]
