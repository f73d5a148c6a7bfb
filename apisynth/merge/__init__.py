"""Merge steps that fold per-service generated trees into one client library."""

from .collisions import CollisionResolver
from .enums import EnumNamer, EnumNamespaceLifter, EnumRegistry, SpecEnumHarvester
from .imports import ImportGraphRewriter, RewriteReport, rebase_relative_imports
from .responses import ResponseWrapperCollapser
from .shared import ArtifactRelocator, SharedArtifactDetector

__all__ = [
    "ArtifactRelocator",
    "CollisionResolver",
    "EnumNamer",
    "EnumNamespaceLifter",
    "EnumRegistry",
    "ImportGraphRewriter",
    "ResponseWrapperCollapser",
    "RewriteReport",
    "SharedArtifactDetector",
    "SpecEnumHarvester",
    "rebase_relative_imports",
]
