"""Service contracts and interfaces.

Defines protocols for dependency injection and testing.
"""

from pathlib import Path
from typing import Mapping, Protocol, TypeVar


T_co = TypeVar('T_co', covariant=True)

# Merged scalar variables and localisation strings are both plain maps.
ScalarLookup = Mapping[str, str]


class IFileLoader(Protocol[T_co]):
    """Contract for per-file loaders.

    Loaders are pure with respect to shared state: each call reads its
    own file and returns an owned result, or raises a ``ParseError`` /
    ``OSError`` for the orchestration layer to log.
    """

    def load(self, path: Path) -> T_co:
        """Parse one file."""
        ...

