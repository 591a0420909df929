"""Fold flat localisation keys into value/name/description records.

Localisation families share a stem::

    tech_lasers_1        -> value
    tech_lasers_1_name   -> name   (or tech_lasers_1.name)
    tech_lasers_1_desc   -> description (or tech_lasers_1.desc)

The stem is inferred from naming convention alone, so unrelated keys
that happen to share a stem fold together.
"""

from typing import Mapping, Optional

from techtree.core.types import Text


_SEPARATORS = ":_."


def stem_of(key: str) -> str:
    """Strip trailing ``name``/``desc`` suffixes and separators."""
    stem = key
    while stem.endswith("name"):
        stem = stem[:-4]
    while stem.endswith("desc"):
        stem = stem[:-4]
    return stem.rstrip(_SEPARATORS)


def unquote(value: str) -> str:
    """Trim one layer of literal double quotes."""
    if value.startswith('"'):
        value = value[1:]
    if value.endswith('"'):
        value = value[:-1]
    return value


def _lookup(entries: Mapping[str, str], *keys: str) -> Optional[str]:
    for key in keys:
        if key in entries:
            return unquote(entries[key])
    return None


def fold_localisation_map(entries: Mapping[str, str]) -> dict[str, Text]:
    """Collapse one language's key map into ``stem -> Text``.

    Stems are returned in sorted order. A stem with no value, name or
    description entry is dropped.
    """
    folded: dict[str, Text] = {}

    for stem in sorted({stem_of(key) for key in entries}):
        value = _lookup(entries, stem)
        name = _lookup(entries, f"{stem}_name", f"{stem}.name")
        description = _lookup(entries, f"{stem}_desc", f"{stem}.desc")

        if value is None:
            value = name if name is not None else description
        if value is None:
            continue

        folded[stem] = Text(value=value, name=name, description=description)

    return folded
