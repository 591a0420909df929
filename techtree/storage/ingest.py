"""Corpus ingestion orchestration.

Parse → Merge → Resolve → Build

Files are parsed concurrently on worker threads, bounded by a
semaphore. Every merge afterwards walks packages in load order, so
the result never depends on which file finished first.

Technology files may bind a top-level key straight to a scalar. Those
entries are variable redirects, not technologies: technology tasks push
them onto a queue, and the queue is drained only once every technology
task has finished, before the variable merge starts.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional, Sequence

from techtree.config import Settings, get_settings
from techtree.core.types import Language, PackageDescriptor, Technology, TechnologyData, Text
from techtree.errors import ErrorCode, PackageLayoutError, ParseError, CorpusUnavailableError
from techtree.observ import get_logger, package_context, timer
from techtree.services.grammar import LocalisationFile
from techtree.services.tech_tree import TechnologyTree
from techtree.services.variables import VariableResolver, merge_localisations, merge_variables
from techtree.storage.exporters import export_all
from techtree.storage.loaders import (
    LoaderFactory,
    PackageLayout,
    TechnologyFile,
    base_game_descriptor,
    discover_packages,
)

logger = get_logger(__name__)


@dataclass
class IngestConfig:
    """Configuration for ingestion."""

    # Parallelism
    max_workers: int = 4  # Files parsed concurrently


@dataclass
class FileFailure:
    """A file that was skipped, with the reason."""
    path: Path
    reason: str


@dataclass
class IngestStats:
    """Ingestion statistics."""

    packages: int = 0
    files_parsed: int = 0
    files_failed: int = 0
    technologies: int = 0
    redirects: int = 0
    shadowed: int = 0
    failures: list[FileFailure] = field(default_factory=list)

    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def elapsed_seconds(self) -> float:
        return (datetime.now(timezone.utc) - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            'packages': self.packages,
            'files_parsed': self.files_parsed,
            'files_failed': self.files_failed,
            'technologies': self.technologies,
            'redirects': self.redirects,
            'shadowed': self.shadowed,
        }


@dataclass(frozen=True)
class PackageSource:
    """A package directory to ingest, optionally with a known descriptor."""
    root: Path
    descriptor: Optional[PackageDescriptor] = None


@dataclass
class PackageData:
    """Everything parsed from one package."""
    index: int
    package_id: str
    descriptor: PackageDescriptor
    root: Path
    variables: dict[str, str] = field(default_factory=dict)
    technologies: list[tuple[str, TechnologyData]] = field(default_factory=list)
    localisations: list[LocalisationFile] = field(default_factory=list)


@dataclass
class IngestResult:
    """Merged and resolved corpus."""
    packages: list[PackageData]
    variables: dict[str, str]
    localisations: dict[Language, dict[str, Text]]
    technologies: list[Technology]
    technology_map: dict[str, Technology]
    tree: TechnologyTree
    stats: IngestStats


# (package index, file index, position in file, key, value)
Redirect = tuple[int, int, int, str, str]


class IngestService:
    """Orchestrates parsing, merging and resolution of a package corpus.

    Architecture:
    [Packages × N] → [Files × M on threads] → [Redirect Queue] →
    [Load-order Merge] → [Resolver] → [Graph]
    """

    def __init__(self, config: Optional[IngestConfig] = None):
        self._config = config or IngestConfig()
        self._stats = IngestStats()
        self._semaphore: Optional[asyncio.Semaphore] = None
        self._redirects: Optional[asyncio.Queue] = None

    @property
    def stats(self) -> IngestStats:
        return self._stats

    async def ingest(self, sources: Sequence[PackageSource]) -> IngestResult:
        """Parse every package in ``sources`` (load order) and resolve them."""
        self._stats = IngestStats(packages=len(sources))
        self._semaphore = asyncio.Semaphore(self._config.max_workers)
        self._redirects = asyncio.Queue()

        logger.info(
            "ingestion_started",
            packages=len(sources),
            max_workers=self._config.max_workers
        )

        # 1. PARSE
        with timer(logger, "parse_packages", packages=len(sources)):
            packages = list(await asyncio.gather(*(
                self._parse_package(index, source)
                for index, source in enumerate(sources)
            )))

        # 2. BARRIER: every technology task is done, close and drain
        await self._redirects.put(None)
        self._apply_redirects(packages, await self._drain_redirects())

        # 3. MERGE + RESOLVE
        with timer(logger, "resolve"):
            variables = merge_variables(p.variables for p in packages)
            raw_localisations = merge_localisations(
                parsed for p in packages for parsed in p.localisations
            )
            resolver = VariableResolver(variables, raw_localisations)
            technologies, technology_map = self._resolve_technologies(packages, resolver)

        # 4. BUILD
        with timer(logger, "build_tech_tree", technologies=len(technology_map)):
            tree = TechnologyTree.build(technology_map)

        logger.info(
            "ingestion_completed",
            duration_seconds=round(self._stats.elapsed_seconds, 3),
            **self._stats.to_dict()
        )

        return IngestResult(
            packages=packages,
            variables=variables,
            localisations=resolver.localisations,
            technologies=technologies,
            technology_map=technology_map,
            tree=tree,
            stats=self._stats
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Parsing
    # ─────────────────────────────────────────────────────────────────────────

    async def _parse_package(self, index: int, source: PackageSource) -> PackageData:
        layout = PackageLayout.discover(source.root)

        descriptor = source.descriptor
        if descriptor is None:
            descriptor = await self._load_descriptor(layout)
        package_id = descriptor.remote_file_id or source.root.name

        with package_context(package_id):
            if layout.is_empty:
                logger.warning(
                    "package_has_no_content",
                    code=ErrorCode.PACKAGE_LAYOUT.value,
                    root=str(source.root)
                )
            for directory in layout.missing_directories():
                logger.info(
                    "package_directory_missing",
                    code=ErrorCode.PACKAGE_LAYOUT.value,
                    directory=directory
                )

            variable_maps, technology_files, localisations = await asyncio.gather(
                asyncio.gather(*(
                    self._load('scripted_variables', path)
                    for path in layout.scripted_variables
                )),
                asyncio.gather(*(
                    self._load_technology(index, file_index, path)
                    for file_index, path in enumerate(layout.technologies)
                )),
                asyncio.gather(*(
                    self._load('localisation', path)
                    for path in layout.localisations
                )),
            )

            package = PackageData(
                index=index,
                package_id=package_id,
                descriptor=descriptor,
                root=source.root
            )
            for variables in variable_maps:
                if variables is not None:
                    package.variables.update(variables)
            for parsed in technology_files:
                if parsed is not None:
                    package.technologies.extend(parsed.technologies.items())
            for parsed in localisations:
                if parsed is not None:
                    self._report_diagnostics(parsed)
                    package.localisations.append(parsed)

            logger.info(
                "package_parsed",
                name=descriptor.name,
                variables=len(package.variables),
                technologies=len(package.technologies),
                localisation_files=len(package.localisations)
            )
            return package

    async def _load_descriptor(self, layout: PackageLayout) -> PackageDescriptor:
        fallback = PackageDescriptor(name=layout.root.name)
        if layout.descriptor is None:
            error = PackageLayoutError(layout.root, "descriptor.mod")
            logger.warning("descriptor_missing", code=error.code.value, error=error.message)
            return fallback

        descriptor = await self._load('descriptor', layout.descriptor)
        return descriptor if descriptor is not None else fallback

    async def _load_technology(
        self,
        package_index: int,
        file_index: int,
        path: Path
    ) -> Optional[TechnologyFile]:
        parsed = await self._load('technology', path)
        if parsed is None:
            return None

        for position, (key, value) in enumerate(parsed.redirects):
            self._redirects.put_nowait((package_index, file_index, position, key, value))
        return parsed

    async def _load(self, kind: str, path: Path) -> Optional[Any]:
        """Parse one file on a worker thread; failures are recorded, not raised."""
        loader = LoaderFactory.get_loader(kind)
        async with self._semaphore:
            try:
                result = await asyncio.to_thread(loader.load, path)
            except (ParseError, OSError, UnicodeDecodeError) as e:
                self._record_failure(kind, path, e)
                return None

        self._stats.files_parsed += 1
        return result

    def _record_failure(self, kind: str, path: Path, error: Exception) -> None:
        reason = error.message if isinstance(error, ParseError) else str(error)
        self._stats.files_failed += 1
        self._stats.failures.append(FileFailure(path=path, reason=reason))
        logger.warning(
            "file_failed",
            kind=kind,
            path=str(path),
            error=reason,
            error_type=type(error).__name__
        )

    def _report_diagnostics(self, parsed: LocalisationFile) -> None:
        for diagnostic in parsed.diagnostics:
            logger.warning(
                "localisation_diagnostic",
                code=diagnostic.code.value,
                line=diagnostic.line,
                message=diagnostic.message
            )

    # ─────────────────────────────────────────────────────────────────────────
    # Redirects
    # ─────────────────────────────────────────────────────────────────────────

    async def _drain_redirects(self) -> list[Redirect]:
        redirects = []
        while True:
            item = await self._redirects.get()
            if item is None:
                break
            redirects.append(item)
        return sorted(redirects)

    def _apply_redirects(self, packages: list[PackageData], redirects: list[Redirect]) -> None:
        """Redirects override scripted variables of the same package."""
        for package_index, _, _, key, value in redirects:
            packages[package_index].variables[key] = value
        self._stats.redirects = len(redirects)

    # ─────────────────────────────────────────────────────────────────────────
    # Resolution
    # ─────────────────────────────────────────────────────────────────────────

    def _resolve_technologies(
        self,
        packages: list[PackageData],
        resolver: VariableResolver
    ) -> tuple[list[Technology], dict[str, Technology]]:
        technologies: list[Technology] = []
        technology_map: dict[str, Technology] = {}

        for package in packages:
            for tech_id, data in package.technologies:
                technology = resolver.resolve_technology(package.package_id, tech_id, data)
                previous = technology_map.get(tech_id)
                if previous is not None:
                    self._stats.shadowed += 1
                    logger.warning(
                        "technology_shadowed",
                        code=ErrorCode.SHADOWED_TECHNOLOGY.value,
                        technology=tech_id,
                        previous_package=previous.package_id,
                        package=package.package_id
                    )
                technologies.append(technology)
                technology_map[tech_id] = technology

        self._stats.technologies = len(technologies)
        return technologies, technology_map


# ═════════════════════════════════════════════════════════════════════════════
# Entry points
# ═════════════════════════════════════════════════════════════════════════════

def build_sources(settings: Settings) -> list[PackageSource]:
    """Packages in load order: base game first, then mods.

    Raises:
        CorpusUnavailableError: nothing to ingest, or a root is unreadable
    """
    sources = []

    if settings.game_path is not None:
        if not settings.game_path.is_dir():
            raise CorpusUnavailableError(settings.game_path, "game directory not found")
        sources.append(PackageSource(
            root=settings.game_path,
            descriptor=base_game_descriptor(settings.game_path)
        ))

    if settings.package_paths:
        for root in settings.package_paths:
            if not root.is_dir():
                logger.warning(
                    "package_not_found",
                    code=ErrorCode.PACKAGE_LAYOUT.value,
                    root=str(root)
                )
                continue
            sources.append(PackageSource(root=root))
    elif settings.workshop_path is not None:
        sources.extend(PackageSource(root=root) for root in discover_packages(settings.workshop_path))

    if not sources:
        raise CorpusUnavailableError("<unset>", "no game, workshop or package paths to ingest")
    return sources


async def ingest(settings: Optional[Settings] = None) -> IngestResult:
    """Ingest the corpus described by ``settings``."""
    settings = settings or get_settings()
    service = IngestService(IngestConfig(max_workers=settings.max_workers))
    return await service.ingest(build_sources(settings))


def run_pipeline(settings: Optional[Settings] = None, export: bool = True) -> IngestResult:
    """Synchronous entry point: ingest, then write every artifact.

    Raises:
        FatalError: corpus unreadable or artifacts not writable
    """
    settings = settings or get_settings()
    result = asyncio.run(ingest(settings))

    if export:
        with timer(logger, "export", output_dir=str(settings.output_dir)):
            export_all(
                settings,
                localisations=result.localisations,
                technologies=result.technologies,
                technology_map=result.technology_map,
                tree=result.tree
            )
    return result
