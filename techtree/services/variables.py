"""Variable merging, ``$name$`` substitution and technology resolution.

All merges follow load order: packages are folded in discovery order and
the last package to define a key wins. Substitution is a single pass;
a replacement that itself contains ``$ref$`` is not expanded again.
"""

import re
from collections import ChainMap
from typing import Iterable, Mapping, Optional

from techtree.core.contracts import ScalarLookup
from techtree.core.types import Language, Technology, TechnologyData, Text
from techtree.observ import get_logger
from techtree.errors import ErrorCode
from techtree.services.folding import fold_localisation_map
from techtree.services.grammar import LocalisationFile


logger = get_logger(__name__)

VARIABLE_PATTERN = re.compile(r"\$(\w+)\$")


# ═════════════════════════════════════════════════════════════════════════════
# Merging
# ═════════════════════════════════════════════════════════════════════════════

def merge_variables(sources: Iterable[ScalarLookup]) -> dict[str, str]:
    """Merge per-package variable maps; later sources override earlier ones."""
    merged: dict[str, str] = {}
    for source in sources:
        merged.update(source)
    return merged


def merge_localisations(files: Iterable[LocalisationFile]) -> dict[Language, dict[str, str]]:
    """Group localisation entries by language, last file wins per key.

    ``files`` must already be in load order: package order, then file
    order within each package.
    """
    merged: dict[Language, dict[str, str]] = {}
    for parsed in files:
        merged.setdefault(parsed.language, {}).update(parsed.entries)
    return merged


# ═════════════════════════════════════════════════════════════════════════════
# Substitution
# ═════════════════════════════════════════════════════════════════════════════

def substitute(text: str, lookup: ScalarLookup) -> str:
    """Replace every ``$name$`` found in ``lookup``; leave the rest verbatim."""
    def replace(match: re.Match) -> str:
        return lookup.get(match.group(1), match.group(0))

    return VARIABLE_PATTERN.sub(replace, text)


def resolve_scalar(value: str, variables: ScalarLookup) -> str:
    """Resolve a script scalar such as ``@tier1cost1`` or ``$x$``.

    A value that is itself a variable name is replaced whole; anything
    else goes through ``substitute``.
    """
    if value in variables:
        return variables[value]
    return substitute(value, variables)


def parse_cost(value: Optional[str]) -> int:
    """Interpret a resolved cost as a non-negative integer, else 0."""
    if value is None:
        return 0
    digits = value.strip()
    if not (digits.isascii() and digits.isdigit()):
        logger.debug(
            "unparsable_scalar",
            code=ErrorCode.UNPARSABLE_SCALAR.value,
            field="cost",
            value=value
        )
        return 0
    return int(digits)


# ═════════════════════════════════════════════════════════════════════════════
# Resolver
# ═════════════════════════════════════════════════════════════════════════════

class VariableResolver:
    """Resolve localisation and technology records against merged maps.

    Args:
        variables: Merged scalar variables
        localisations: Merged raw localisation entries, per language
    """

    def __init__(
        self,
        variables: Mapping[str, str],
        localisations: Mapping[Language, Mapping[str, str]]
    ):
        self.variables = dict(variables)
        self.raw_localisations = localisations
        self.localisations = self._resolve_localisations()

    def _resolve_localisations(self) -> dict[Language, dict[str, Text]]:
        resolved = {}
        for language, entries in self.raw_localisations.items():
            # Scalar variables shadow same-named localisation keys.
            lookup = ChainMap(self.variables, entries)
            substituted = {key: substitute(text, lookup) for key, text in entries.items()}
            resolved[language] = fold_localisation_map(substituted)
        return resolved

    def localisation_for(self, stem: str) -> dict[Language, Text]:
        """Every language's folded record for ``stem``."""
        return {
            language: texts[stem]
            for language, texts in self.localisations.items()
            if stem in texts
        }

    def scalar(self, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return resolve_scalar(value, self.variables)

    def resolve_technology(
        self,
        package_id: str,
        tech_id: str,
        data: TechnologyData
    ) -> Technology:
        """Build the resolved record for one technology definition."""
        return Technology(
            package_id=package_id,
            id=tech_id,
            localisation=self.localisation_for(tech_id),
            cost=parse_cost(self.scalar(data.cost)),
            tier=self.scalar(data.tier),
            category=data.category[0] if data.category else None,
            weight=self.scalar(data.weight[0]) if data.weight else None,
            area=data.area,
            prerequisites=list(data.prerequisites),
            start_tech=data.start_tech
        )
