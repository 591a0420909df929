"""Shared fixtures: on-disk package corpora."""

from pathlib import Path
from typing import Optional

import pytest


def write_package(
    root: Path,
    descriptor: Optional[str] = None,
    variables: Optional[dict[str, str]] = None,
    technologies: Optional[dict[str, str]] = None,
    localisations: Optional[dict[str, str]] = None,
) -> Path:
    """Create a package directory.

    ``variables``, ``technologies`` and ``localisations`` map file names
    (relative to their content directory) to file text.
    """
    root.mkdir(parents=True, exist_ok=True)
    if descriptor is not None:
        (root / "descriptor.mod").write_text(descriptor, encoding="utf-8")

    layout = {
        Path("common") / "scripted_variables": variables,
        Path("common") / "technology": technologies,
        Path("localisation"): localisations,
    }
    for directory, files in layout.items():
        for name, text in (files or {}).items():
            path = root / directory / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
    return root


@pytest.fixture
def make_package(tmp_path):
    """Factory creating packages under ``tmp_path / "workshop"``."""
    def factory(name: str, **content) -> Path:
        return write_package(tmp_path / "workshop" / name, **content)
    return factory
