"""Per-file loaders for package content.

Each loader reads one file and returns an owned result, or raises a
``ParseError``/``OSError`` for the ingestion layer to record. Loaders
hold no state, so they are safe to call from worker threads.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import orjson

from techtree.core.contracts import IFileLoader
from techtree.core.types import PackageDescriptor, ResearchArea, TechnologyData
from techtree.errors import CorpusUnavailableError, DescriptorError
from techtree.observ import get_logger
from techtree.services.grammar import LocalisationFile, parse_localisation_bytes
from techtree.storage.script import ScriptBlock, ScriptValue, load_script


logger = get_logger(__name__)

DESCRIPTOR_FILE = "descriptor.mod"
SCRIPTED_VARIABLES_DIR = Path("common") / "scripted_variables"
TECHNOLOGY_DIR = Path("common") / "technology"
LOCALISATION_DIR = Path("localisation")
LAUNCHER_SETTINGS_FILE = "launcher-settings.json"

BASE_GAME_NAME = "Stellaris"


@dataclass(frozen=True)
class TechnologyFile:
    """Contents of one technology file.

    Top-level entries with a scalar value are not technologies: they
    alias a variable and are returned as ``redirects`` for the variable
    merge.
    """
    technologies: dict[str, TechnologyData] = field(default_factory=dict)
    redirects: list[tuple[str, str]] = field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════════════
# Field extraction
# ═════════════════════════════════════════════════════════════════════════════

def _scalar(block: ScriptBlock, key: str) -> Optional[str]:
    """First scalar bound to ``key``; blocks are skipped."""
    for value in block.get_all(key):
        if isinstance(value, str):
            return value
    return None


def _scalar_list(block: ScriptBlock, key: str) -> list[str]:
    """``key = { a b }`` or ``key = a`` as a list of scalars."""
    value = block.get(key)
    if isinstance(value, ScriptBlock):
        return value.scalars()
    if isinstance(value, str):
        return [value]
    return []


def _bool(block: ScriptBlock, key: str) -> bool:
    return (_scalar(block, key) or "no").lower() == "yes"


def technology_from_block(block: ScriptBlock) -> TechnologyData:
    """Map a technology definition block onto ``TechnologyData``."""
    area = _scalar(block, "area")
    return TechnologyData(
        cost=_scalar(block, "cost"),
        tier=_scalar(block, "tier"),
        category=_scalar_list(block, "category"),
        weight=[v for v in block.get_all("weight") if isinstance(v, str)],
        area=ResearchArea.parse(area) if area is not None else ResearchArea.unknown(),
        prerequisites=_scalar_list(block, "prerequisites"),
        start_tech=_bool(block, "start_tech")
    )


# ═════════════════════════════════════════════════════════════════════════════
# Loaders
# ═════════════════════════════════════════════════════════════════════════════

class DescriptorLoader:
    """Load ``descriptor.mod`` metadata."""

    def load(self, path: Path) -> PackageDescriptor:
        block = load_script(path)
        name = _scalar(block, "name")
        if not name:
            raise DescriptorError(path, "missing 'name'")

        dependencies = block.get("dependencies")
        return PackageDescriptor(
            name=name,
            tags=_scalar_list(block, "tags"),
            version=_scalar(block, "version"),
            dependencies=dependencies.scalars() if isinstance(dependencies, ScriptBlock) else None,
            picture=_scalar(block, "picture"),
            supported_version=_scalar(block, "supported_version"),
            remote_file_id=_scalar(block, "remote_file_id")
        )


class ScriptedVariablesLoader:
    """Load top-level ``@name = value`` scalars."""

    def load(self, path: Path) -> dict[str, str]:
        variables = {}
        for entry in load_script(path):
            if isinstance(entry.value, str):
                variables[entry.key] = entry.value
        return variables


class TechnologyLoader:
    """Load technology definitions and variable redirects."""

    def load(self, path: Path) -> TechnologyFile:
        result = TechnologyFile()
        for entry in load_script(path):
            value: ScriptValue = entry.value
            if isinstance(value, str):
                result.redirects.append((entry.key, value))
            else:
                result.technologies[entry.key] = technology_from_block(value)
        return result


class LocalisationLoader:
    """Load one localisation ``.yml`` file."""

    def load(self, path: Path) -> LocalisationFile:
        return parse_localisation_bytes(path.read_bytes(), path)


class LoaderFactory:
    """Factory for selecting appropriate loader."""

    @staticmethod
    def get_loader(kind: str) -> IFileLoader:
        """Get loader for the given content kind."""
        loaders = {
            'descriptor': DescriptorLoader,
            'scripted_variables': ScriptedVariablesLoader,
            'technology': TechnologyLoader,
            'localisation': LocalisationLoader,
        }

        loader_cls = loaders.get(kind.lower())
        if not loader_cls:
            raise ValueError(f"Unknown content kind: {kind}")

        return loader_cls()


# ═════════════════════════════════════════════════════════════════════════════
# Discovery
# ═════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class PackageLayout:
    """Files of one package, each list in sorted path order."""
    root: Path
    descriptor: Optional[Path]
    scripted_variables: list[Path]
    technologies: list[Path]
    localisations: list[Path]

    @classmethod
    def discover(cls, root: Path) -> "PackageLayout":
        descriptor = root / DESCRIPTOR_FILE
        return cls(
            root=root,
            descriptor=descriptor if descriptor.is_file() else None,
            scripted_variables=_sorted_files(root / SCRIPTED_VARIABLES_DIR, "*.txt"),
            technologies=_sorted_files(root / TECHNOLOGY_DIR, "*.txt"),
            localisations=_sorted_files(root / LOCALISATION_DIR, "*.yml", recursive=True)
        )

    @property
    def is_empty(self) -> bool:
        return not (self.scripted_variables or self.technologies or self.localisations)

    def missing_directories(self) -> list[str]:
        """Content directories absent from this package, as relative paths."""
        expected = (SCRIPTED_VARIABLES_DIR, TECHNOLOGY_DIR, LOCALISATION_DIR)
        return [d.as_posix() for d in expected if not (self.root / d).is_dir()]


def _sorted_files(directory: Path, pattern: str, recursive: bool = False) -> list[Path]:
    if not directory.is_dir():
        return []
    found = directory.rglob(pattern) if recursive else directory.glob(pattern)
    return sorted(p for p in found if p.is_file())


def discover_packages(workshop_path: Path) -> list[Path]:
    """Immediate subdirectories of the corpus root, sorted by name.

    Raises:
        CorpusUnavailableError: root missing or unreadable
    """
    if not workshop_path.is_dir():
        raise CorpusUnavailableError(workshop_path, "not a directory")
    try:
        return sorted(p for p in workshop_path.iterdir() if p.is_dir())
    except OSError as e:
        raise CorpusUnavailableError(workshop_path, str(e)) from e


def read_game_version(game_path: Path) -> Optional[str]:
    """``rawVersion`` from the game's launcher settings, if readable."""
    settings_file = game_path / LAUNCHER_SETTINGS_FILE
    try:
        data = orjson.loads(settings_file.read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        logger.warning("game_version_unavailable", path=str(settings_file), error=str(e))
        return None

    version = data.get("rawVersion") if isinstance(data, dict) else None
    return str(version) if version is not None else None


def base_game_descriptor(game_path: Path) -> PackageDescriptor:
    """Descriptor standing in for the base game, which ships none."""
    return PackageDescriptor(
        name=BASE_GAME_NAME,
        version=read_game_version(game_path),
        remote_file_id=BASE_GAME_NAME
    )
