"""Technology tree processing CLI.

Commands:
- run: ingest a corpus and write every artifact
- localisation: check a single localisation file
- lex: show the markup tokens of a localisation string
"""

import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from techtree.config import get_settings
from techtree.errors import FatalError, ParseError
from techtree.observ import configure_logging, get_logger
from techtree.services.folding import fold_localisation_map
from techtree.services.grammar import parse_localisation_bytes
from techtree.services.lexer import lex as lex_text
from techtree.storage.ingest import IngestResult, run_pipeline
from techtree.storage.launcher import irony_load_order, paradox_load_order

logger = get_logger(__name__)
console = Console()


@click.group()
@click.option('--debug', is_flag=True, help='Verbose console logging')
def cli(debug):
    """Stellaris technology tree extraction"""
    if debug:
        configure_logging(level="DEBUG", debug=True)


@cli.command()
@click.option('--workshop', type=click.Path(file_okay=False, path_type=Path), help='Workshop content directory')
@click.option('--game', type=click.Path(file_okay=False, path_type=Path), help='Base game install directory')
@click.option('--package', 'packages', multiple=True, type=click.Path(file_okay=False, path_type=Path),
              help='Package directory, in load order (repeatable)')
@click.option('--paradox-data', type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Paradox launcher data directory (mods_registry.json, game_data.json)')
@click.option('--irony-db', type=click.Path(exists=True, dir_okay=False, path_type=Path),
              help='Irony Mod Manager JSON export')
@click.option('--collection', default=None, help='Irony collection name')
@click.option('--output', type=click.Path(file_okay=False, path_type=Path), help='Output directory')
@click.option('--workers', type=click.IntRange(min=1), default=None, help='Files parsed concurrently')
def run(workshop, game, packages, paradox_data, irony_db, collection, output, workers):
    """Ingest the corpus and write localisation, technologies and tree."""
    if irony_db is not None and collection is None:
        raise click.UsageError("--irony-db requires --collection")

    overrides = {}
    if workshop is not None:
        overrides['workshop_path'] = workshop
    if game is not None:
        overrides['game_path'] = game
    if output is not None:
        overrides['output_dir'] = output
    if workers is not None:
        overrides['max_workers'] = workers

    try:
        package_paths = list(packages)
        if paradox_data is not None:
            package_paths.extend(paradox_load_order(paradox_data))
        if irony_db is not None:
            package_paths.extend(irony_load_order(irony_db, collection, workshop))
        if package_paths:
            overrides['package_paths'] = package_paths

        settings = get_settings().model_copy(update=overrides)
        result = run_pipeline(settings)
    except FatalError as e:
        logger.error("run_failed", **e.to_detail().model_dump(mode="json"))
        console.print(f"✗ {e.message}", style="red", markup=False, soft_wrap=True)
        sys.exit(1)

    _print_summary(result, settings.output_dir)


def _print_summary(result: IngestResult, output_dir: Path) -> None:
    stats = result.stats
    graph = result.tree.stats()

    table = Table(title="Ingestion Summary")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Packages", str(stats.packages))
    table.add_row("Files parsed", str(stats.files_parsed))
    table.add_row("Files failed", str(stats.files_failed))
    table.add_row("Variables", str(len(result.variables)))
    table.add_row("Redirects", str(stats.redirects))
    table.add_row("Languages", str(len(result.localisations)))
    table.add_row("Technologies", str(stats.technologies))
    table.add_row("Shadowed ids", str(stats.shadowed))
    table.add_row("Graph nodes", str(graph.num_nodes))
    table.add_row("Graph edges", str(graph.num_edges))
    table.add_row("Dangling nodes", str(graph.num_dangling))
    table.add_row("Start technologies", str(graph.num_start))

    console.print(table)

    if stats.failures:
        console.print("\n[red]Skipped files:[/red]")
        for failure in stats.failures:
            console.print(f"  - {failure.path}: {failure.reason}", markup=False, soft_wrap=True)

    console.print(f"\n✓ Artifacts written to {output_dir}", style="green", markup=False, soft_wrap=True)


@cli.command()
@click.argument('file', type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option('--folded', is_flag=True, help='List folded value/name/description records')
def localisation(file, folded):
    """Parse one localisation file and report what it contains."""
    try:
        parsed = parse_localisation_bytes(file.read_bytes(), file)
    except ParseError as e:
        console.print(f"✗ {e.message}", style="red", markup=False, soft_wrap=True)
        sys.exit(1)

    console.print(f"Language: {parsed.language.value}")
    console.print(f"Entries: {len(parsed.entries)}")

    for diagnostic in parsed.diagnostics:
        console.print(f"! line {diagnostic.line}: {diagnostic.message}", style="yellow", markup=False)

    if folded:
        table = Table(title=file.name)
        table.add_column("Stem", style="cyan")
        table.add_column("Value")
        table.add_column("Name")
        table.add_column("Description")
        for stem, text in fold_localisation_map(parsed.entries).items():
            table.add_row(
                escape(stem),
                escape(text.value),
                escape(text.name or ""),
                escape(text.description or "")
            )
        console.print(table)


@cli.command()
@click.argument('text')
def lex(text):
    """Print the colour and variable tokens of TEXT."""
    for token in lex_text(text):
        click.echo(repr(token))


if __name__ == '__main__':
    cli()
