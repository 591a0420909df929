"""Core type definitions for the technology tree system.

Provides immutable domain models with strict typing.
All entities are Pydantic models for validation and serialization.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field, ConfigDict, model_serializer, model_validator

from techtree.errors import ErrorCode


class Language(str, Enum):
    """Supported localisation languages, keyed by their file header tag."""
    PORTUGUESE = "braz_por"
    ENGLISH = "english"
    FRENCH = "french"
    GERMAN = "german"
    POLISH = "polish"
    RUSSIAN = "russian"
    SPANISH = "spanish"
    SIMPLIFIED_CHINESE = "simp_chinese"
    JAPANESE = "japanese"
    KOREAN = "korean"
    UNKNOWN = "unknown"

    @classmethod
    def from_tag(cls, tag: str) -> "Language":
        """Map a header identifier (without ``l_``) to a language."""
        try:
            return cls(tag)
        except ValueError:
            return cls.UNKNOWN


class Text(BaseModel):
    """Resolved localisation record folded from one key stem."""
    model_config = ConfigDict(frozen=True)

    value: str
    name: Optional[str] = None
    description: Optional[str] = None

    @model_serializer(mode="wrap")
    def _omit_absent(self, handler) -> dict[str, Any]:
        return {k: v for k, v in handler(self).items() if v is not None}


class AreaKind(str, Enum):
    """Recognized research areas, plus a catch-all."""
    SOCIETY = "society"
    PHYSICS = "physics"
    ENGINEERING = "engineering"
    ANOMALY = "anomaly"
    OTHER = "other"


_KNOWN_AREAS = {kind.value: kind for kind in AreaKind if kind is not AreaKind.OTHER}


class ResearchArea(BaseModel):
    """Research area with a lossless fallback for unrecognized tags.

    Serializes as its tag: the lowercase name for known areas, the
    original text for anything else.
    """
    model_config = ConfigDict(frozen=True)

    kind: AreaKind
    text: str

    @classmethod
    def parse(cls, raw: str) -> "ResearchArea":
        return cls(kind=_KNOWN_AREAS.get(raw, AreaKind.OTHER), text=raw)

    @classmethod
    def unknown(cls) -> "ResearchArea":
        return cls.parse("unknown")

    @property
    def tag(self) -> str:
        return self.text

    @property
    def is_known(self) -> bool:
        return self.kind is not AreaKind.OTHER

    @model_validator(mode="before")
    @classmethod
    def _from_tag(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"kind": _KNOWN_AREAS.get(data, AreaKind.OTHER), "text": data}
        return data

    @model_serializer
    def _as_tag(self) -> str:
        return self.text

    def __str__(self) -> str:
        return self.text


class Diagnostic(BaseModel):
    """Recoverable anomaly found while parsing or resolving."""
    model_config = ConfigDict(frozen=True)

    code: ErrorCode
    message: str
    line: Optional[int] = None


class PackageDescriptor(BaseModel):
    """Package metadata from ``descriptor.mod``."""
    model_config = ConfigDict(frozen=True)

    name: str
    tags: list[str] = Field(default_factory=list)
    version: Optional[str] = None
    dependencies: Optional[list[str]] = None
    picture: Optional[str] = None
    supported_version: Optional[str] = None
    remote_file_id: Optional[str] = None


class TechnologyData(BaseModel):
    """Technology definition as written in one package, before resolution.

    ``cost``, ``tier`` and ``weight`` may still be variable references.
    """
    model_config = ConfigDict(frozen=True)

    cost: Optional[str] = None
    tier: Optional[str] = None
    category: list[str] = Field(default_factory=list)
    weight: list[str] = Field(default_factory=list)  # one item per duplicated key
    area: ResearchArea = Field(default_factory=ResearchArea.unknown)
    prerequisites: list[str] = Field(default_factory=list)
    start_tech: bool = False


class Technology(BaseModel):
    """Resolved technology record.

    Identity is the ``id`` alone: two records with the same id are the
    same technology regardless of their other fields.
    """
    model_config = ConfigDict(frozen=True)

    package_id: str
    id: str
    localisation: dict[Language, Text] = Field(default_factory=dict)
    cost: int = Field(default=0, ge=0)
    tier: Optional[str] = None
    category: Optional[str] = None
    weight: Optional[str] = None
    area: ResearchArea = Field(default_factory=ResearchArea.unknown)
    prerequisites: list[str] = Field(default_factory=list)
    start_tech: bool = False

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Technology):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)
