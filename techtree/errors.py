"""Type-safe exception hierarchy and error codes.

Provides structured error handling with:
- Domain-specific exception taxonomy
- Structured error details
- A split between per-file failures (recoverable) and fatal run failures
"""

from enum import Enum
from pathlib import Path
from typing import Optional, Union
from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Type-safe error codes for diagnostics and failures."""

    # Parse errors (recoverable, per file)
    LOCALISATION_SYNTAX = "localisation_syntax"
    SCRIPT_SYNTAX = "script_syntax"
    INVALID_DESCRIPTOR = "invalid_descriptor"
    ENCODING_ERROR = "encoding_error"

    # Layout errors (recoverable, per package)
    PACKAGE_LAYOUT = "package_layout"
    FILE_NOT_FOUND = "file_not_found"

    # Diagnostics (recoverable, per field)
    INVALID_UNICODE_ESCAPE = "invalid_unicode_escape"
    UNKNOWN_COLOR_CODE = "unknown_color_code"
    UNPARSABLE_SCALAR = "unparsable_scalar"
    SHADOWED_TECHNOLOGY = "shadowed_technology"

    # Fatal errors
    CORPUS_UNAVAILABLE = "corpus_unavailable"
    EXPORT_FAILED = "export_failed"
    LAUNCHER_DATA = "launcher_data"


class ErrorDetail(BaseModel):
    """Structured error information for logs and reports."""

    code: ErrorCode
    message: str
    field: Optional[str] = None
    context: dict = Field(default_factory=dict)


class TechTreeError(Exception):
    """Base exception for all application errors.

    Provides structured error information.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        field: Optional[str] = None,
        **context
    ):
        self.code = code
        self.message = message
        self.field = field
        self.context = context
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Convert to error detail."""
        return ErrorDetail(
            code=self.code,
            message=self.message,
            field=self.field,
            context={k: str(v) for k, v in self.context.items()}
        )


# ═════════════════════════════════════════════════════════════════════════════
# Parse Errors (recoverable per file)
# ═════════════════════════════════════════════════════════════════════════════

class ParseError(TechTreeError):
    """Input data could not be parsed."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.SCRIPT_SYNTAX,
        field: Optional[str] = None,
        **context
    ):
        super().__init__(
            code=code,
            message=message,
            field=field,
            **context
        )


class LocalisationSyntaxError(ParseError):
    """Localisation file violates the line grammar."""

    def __init__(
        self,
        reason: str,
        line: int,
        column: int = 1,
        path: Optional[Union[str, Path]] = None
    ):
        location = f"{path}:{line}:{column}" if path else f"line {line}, column {column}"
        super().__init__(
            message=f"Invalid localisation at {location}: {reason}",
            code=ErrorCode.LOCALISATION_SYNTAX,
            reason=reason,
            line=line,
            column=column,
            path=path
        )
        self.reason = reason
        self.line = line
        self.column = column
        self.path = path


class ScriptSyntaxError(ParseError):
    """Script file has unbalanced braces or unterminated strings."""

    def __init__(
        self,
        reason: str,
        line: int,
        path: Optional[Union[str, Path]] = None
    ):
        location = f"{path}:{line}" if path else f"line {line}"
        super().__init__(
            message=f"Invalid script at {location}: {reason}",
            code=ErrorCode.SCRIPT_SYNTAX,
            reason=reason,
            line=line,
            path=path
        )
        self.reason = reason
        self.line = line
        self.path = path


class DescriptorError(ParseError):
    """Package descriptor is missing required fields."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            message=f"Invalid descriptor {path}: {reason}",
            code=ErrorCode.INVALID_DESCRIPTOR,
            field="descriptor",
            path=path,
            reason=reason
        )


# ═════════════════════════════════════════════════════════════════════════════
# Resource Errors (recoverable per package)
# ═════════════════════════════════════════════════════════════════════════════

class ResourceNotFoundError(TechTreeError):
    """Requested resource does not exist."""

    def __init__(
        self,
        resource_type: str,
        identifier: str,
        code: ErrorCode = ErrorCode.FILE_NOT_FOUND
    ):
        super().__init__(
            code=code,
            message=f"{resource_type} not found: {identifier}",
            resource_type=resource_type,
            identifier=identifier
        )


class PackageLayoutError(ResourceNotFoundError):
    """Package directory lacks an expected file or directory."""

    def __init__(self, package: Union[str, Path], missing: str):
        super().__init__(
            resource_type=f"Package component '{missing}'",
            identifier=str(package),
            code=ErrorCode.PACKAGE_LAYOUT
        )


# ═════════════════════════════════════════════════════════════════════════════
# Fatal Errors (abort the run)
# ═════════════════════════════════════════════════════════════════════════════

class FatalError(TechTreeError):
    """Corpus-wide failure; the run cannot produce artifacts."""


class CorpusUnavailableError(FatalError):
    """Corpus root cannot be read."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            code=ErrorCode.CORPUS_UNAVAILABLE,
            message=f"Cannot read corpus at {path}: {reason}",
            path=path,
            reason=reason
        )


class ExportError(FatalError):
    """Output artifact could not be written."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            code=ErrorCode.EXPORT_FAILED,
            message=f"Cannot write {path}: {reason}",
            path=path,
            reason=reason
        )


class LauncherDataError(FatalError):
    """Launcher registry or collection data is malformed."""

    def __init__(self, path: Union[str, Path], reason: str):
        super().__init__(
            code=ErrorCode.LAUNCHER_DATA,
            message=f"Broken launcher data {path}: {reason}",
            path=path,
            reason=reason
        )
