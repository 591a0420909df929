"""Stellaris technology tree extraction.

Parses mod packages (scripted variables, technologies, localisation),
resolves them in load order and builds the prerequisite graph.
"""

__version__ = "0.1.0"

# Observability exports for convenience
from techtree.observ import get_logger, timer, timed
from techtree.errors import (
    TechTreeError,
    ErrorCode,
    ParseError,
    LocalisationSyntaxError,
    ScriptSyntaxError,
    DescriptorError,
    ResourceNotFoundError,
    PackageLayoutError,
    FatalError,
    CorpusUnavailableError,
    ExportError,
    LauncherDataError,
)

__all__ = [
    # Version
    "__version__",
    # Logging
    "get_logger",
    "timer",
    "timed",
    # Errors
    "TechTreeError",
    "ErrorCode",
    "ParseError",
    "LocalisationSyntaxError",
    "ScriptSyntaxError",
    "DescriptorError",
    "ResourceNotFoundError",
    "PackageLayoutError",
    "FatalError",
    "CorpusUnavailableError",
    "ExportError",
    "LauncherDataError",
]
