"""Storage layer: script parsing, loaders, ingestion and export.

Barrel export for loaders, launcher data and ingest.
"""

from .script import ScriptBlock, ScriptEntry, parse_script, load_script
from .loaders import (
    LoaderFactory,
    DescriptorLoader,
    ScriptedVariablesLoader,
    TechnologyLoader,
    LocalisationLoader,
    PackageLayout,
)
from .launcher import (
    IronyModCollection,
    parse_irony_collections,
    parse_paradox_launcher_registry,
    parse_paradox_launcher_load_order,
)
from .ingest import IngestService, IngestConfig, IngestStats, run_pipeline
from .exporters import export_all

__all__ = [
    # Script
    "ScriptBlock",
    "ScriptEntry",
    "parse_script",
    "load_script",
    # Loaders
    "LoaderFactory",
    "DescriptorLoader",
    "ScriptedVariablesLoader",
    "TechnologyLoader",
    "LocalisationLoader",
    "PackageLayout",
    # Launcher
    "IronyModCollection",
    "parse_irony_collections",
    "parse_paradox_launcher_registry",
    "parse_paradox_launcher_load_order",
    # Ingest
    "IngestService",
    "IngestConfig",
    "IngestStats",
    "run_pipeline",
    # Export
    "export_all",
]
