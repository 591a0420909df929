"""Load-order discovery from third-party launcher data.

Two sources are understood:

- the Paradox launcher's ``mods_registry.json`` (mod id -> directory)
  and ``game_data.json`` (``modsOrder``);
- an Irony Mod Manager JSON export listing named mod collections.

Both return package directories in load order. Choosing between
collections is left to the caller.
"""

from pathlib import Path
from typing import Any, Optional

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from techtree.errors import LauncherDataError
from techtree.observ import get_logger


logger = get_logger(__name__)

MODS_REGISTRY_FILE = "mods_registry.json"
GAME_DATA_FILE = "game_data.json"

GAME_NAME = "Stellaris"
WORKSHOP_APP_ID = "281990"


def _read_json(path: Path) -> Any:
    try:
        return orjson.loads(Path(path).read_bytes())
    except (OSError, orjson.JSONDecodeError) as e:
        raise LauncherDataError(path, str(e)) from e


# ═════════════════════════════════════════════════════════════════════════════
# Paradox launcher
# ═════════════════════════════════════════════════════════════════════════════

def parse_paradox_launcher_registry(path: Path) -> dict[str, str]:
    """Map mod ids to their ``dirPath``."""
    data = _read_json(path)
    if not isinstance(data, dict):
        raise LauncherDataError(path, "expected a JSON object")

    registry = {}
    for mod_id, record in data.items():
        dir_path = record.get("dirPath") if isinstance(record, dict) else None
        if not isinstance(dir_path, str):
            raise LauncherDataError(path, f"entry {mod_id} has no 'dirPath'")
        registry[mod_id] = dir_path
    return registry


def parse_paradox_launcher_load_order(path: Path, registry: dict[str, str]) -> list[str]:
    """Directories from ``modsOrder``; ids missing from the registry are skipped."""
    data = _read_json(path)
    order = data.get("modsOrder") if isinstance(data, dict) else None
    if not isinstance(order, list):
        raise LauncherDataError(path, "missing 'modsOrder'")

    return [registry[mod_id] for mod_id in order if isinstance(mod_id, str) and mod_id in registry]


def paradox_load_order(data_dir: Path) -> list[Path]:
    """Package directories enabled in the Paradox launcher, in load order."""
    registry = parse_paradox_launcher_registry(data_dir / MODS_REGISTRY_FILE)
    order = parse_paradox_launcher_load_order(data_dir / GAME_DATA_FILE, registry)
    logger.info("paradox_load_order_read", registered=len(registry), enabled=len(order))
    return [Path(p) for p in order]


# ═════════════════════════════════════════════════════════════════════════════
# Irony Mod Manager
# ═════════════════════════════════════════════════════════════════════════════

class IronyModCollection(BaseModel):
    """Named mod collection from an Irony export."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    game: str = Field(alias="Game")
    name: str = Field(alias="Name")
    is_selected: bool = Field(alias="IsSelected")
    mod_registry_ids: list[str] = Field(alias="Mods")

    def mod_ids(self) -> list[int]:
        """Workshop ids from entries like ``mod/ugc_1121692237.mod``."""
        ids = []
        for entry in self.mod_registry_ids:
            stripped = entry.removeprefix("mod/ugc_").removesuffix(".mod")
            if stripped.isdigit():
                ids.append(int(stripped))
        return ids

    def __str__(self) -> str:
        return self.name


def _named_value(records: list, name: str) -> Optional[list]:
    for record in records:
        if isinstance(record, dict) and record.get("Name") == name:
            value = record.get("Value")
            return value if isinstance(value, list) else None
    return None


def _workshop_from_settings(settings: list) -> Optional[Path]:
    for game in settings:
        if not isinstance(game, dict) or game.get("Type") != GAME_NAME:
            continue
        executable = game.get("ExecutableLocation")
        if not isinstance(executable, str):
            return None
        # <library>/steamapps/common/Stellaris/stellaris.exe
        library = Path(executable).parent.parent.parent
        return library / "workshop" / "content" / WORKSHOP_APP_ID
    return None


def parse_irony_collections(path: Path) -> tuple[Optional[Path], list[IronyModCollection]]:
    """Workshop directory and game collections from an Irony export."""
    data = _read_json(path)
    if not isinstance(data, list):
        raise LauncherDataError(path, "expected a JSON array")

    settings = _named_value(data, "GameSettings")
    workshop = _workshop_from_settings(settings) if settings else None

    collections = []
    for record in _named_value(data, "ModCollection") or []:
        try:
            collection = IronyModCollection.model_validate(record)
        except ValidationError as e:
            logger.debug("irony_collection_skipped", path=str(path), error=str(e))
            continue
        if collection.game == GAME_NAME:
            collections.append(collection)

    return workshop, collections


def irony_load_order(
    path: Path,
    collection_name: str,
    workshop_path: Optional[Path] = None
) -> list[Path]:
    """Package directories of one Irony collection, in load order.

    Raises:
        LauncherDataError: collection missing, or no workshop directory known
    """
    detected, collections = parse_irony_collections(path)
    workshop = workshop_path or detected
    if workshop is None:
        raise LauncherDataError(path, "cannot determine the workshop directory")

    for collection in collections:
        if collection.name == collection_name:
            return [workshop / str(mod_id) for mod_id in collection.mod_ids()]

    available = ", ".join(c.name for c in collections) or "none"
    raise LauncherDataError(path, f"no collection named '{collection_name}' (available: {available})")
