"""Core domain models and types.

Barrel export for clean imports across the application.
"""

from .types import (
    Language,
    Text,
    AreaKind,
    ResearchArea,
    Diagnostic,
    PackageDescriptor,
    TechnologyData,
    Technology,
)

__all__ = [
    "Language",
    "Text",
    "AreaKind",
    "ResearchArea",
    "Diagnostic",
    "PackageDescriptor",
    "TechnologyData",
    "Technology",
]
