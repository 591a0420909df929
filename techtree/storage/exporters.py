"""Output artifacts.

Four files are written under the output directory:

- ``localisation.json``: language -> stem -> text record
- ``all_technologies.json``: every resolved technology, in load order
- ``technologies_map.json``: id -> technology with prerequisites inlined
- ``tech_tree.txt``: plain-text dump of the prerequisite graph
"""

from pathlib import Path
from typing import Any, Mapping, Sequence

import orjson

from techtree.config import Settings
from techtree.core.types import Language, Technology, Text
from techtree.errors import ExportError
from techtree.observ import get_logger, timed
from techtree.services.tech_tree import TechnologyTree


logger = get_logger(__name__)

JSON_OPTIONS = orjson.OPT_INDENT_2


def _write(path: Path, payload: bytes) -> None:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
    except OSError as e:
        raise ExportError(path, str(e)) from e
    logger.info("artifact_written", path=str(path), bytes=len(payload))


def _dump(data: Any) -> bytes:
    return orjson.dumps(data, option=JSON_OPTIONS)


def localisation_document(localisations: Mapping[Language, Mapping[str, Text]]) -> dict:
    return {
        language.value: {stem: text.model_dump() for stem, text in texts.items()}
        for language, texts in localisations.items()
    }


def technologies_document(technologies: Sequence[Technology]) -> list:
    return [tech.model_dump(mode="json") for tech in technologies]


def technologies_map_document(
    technology_map: Mapping[str, Technology],
    tree: TechnologyTree
) -> dict:
    """``id -> {id, data, prerequisites}``; dangling prerequisites are left out."""
    document = {}
    for tech_id, tech in technology_map.items():
        prerequisites = [
            node.data.model_dump(mode="json")
            for node in tree.predecessors(tech_id)
            if node.data is not None
        ]
        document[tech_id] = {
            "id": tech_id,
            "data": tech.model_dump(mode="json"),
            "prerequisites": prerequisites,
        }
    return document


def write_localisation(path: Path, localisations: Mapping[Language, Mapping[str, Text]]) -> None:
    _write(path, _dump(localisation_document(localisations)))


def write_technologies(path: Path, technologies: Sequence[Technology]) -> None:
    _write(path, _dump(technologies_document(technologies)))


def write_technologies_map(
    path: Path,
    technology_map: Mapping[str, Technology],
    tree: TechnologyTree
) -> None:
    _write(path, _dump(technologies_map_document(technology_map, tree)))


def write_tech_tree(path: Path, tree: TechnologyTree) -> None:
    _write(path, tree.dump().encode("utf-8"))


@timed(logger)
def export_all(
    settings: Settings,
    localisations: Mapping[Language, Mapping[str, Text]],
    technologies: Sequence[Technology],
    technology_map: Mapping[str, Technology],
    tree: TechnologyTree
) -> None:
    """Write all four artifacts.

    Raises:
        ExportError: an artifact could not be written
    """
    write_localisation(settings.localisation_output, localisations)
    write_technologies(settings.technologies_output, technologies)
    write_technologies_map(settings.technologies_map_output, technology_map, tree)
    write_tech_tree(settings.tech_tree_output, tree)
