"""Command-line interface: ``age-bulk ingest`` and ``age-bulk samples``."""

from __future__ import annotations

import itertools
import logging

import click

from age_bulk.config import Settings, get_settings
from age_bulk.database import Database
from age_bulk.exceptions import AgeBulkError
from age_bulk.factory import OperationFactory
from age_bulk.pipeline import IngestionReport, StreamingIngestionPipeline
from age_bulk.samples import generate_documents, generate_edge_documents, generate_edges, generate_vertices
from age_bulk.sink import AgeSink
from age_bulk.sources import CsvMatrixSource

log = logging.getLogger(__name__)


def _settings(ctx: click.Context, **overrides) -> Settings:
    base: Settings = ctx.obj["settings"]
    return base.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def _open_database(settings: Settings) -> Database:
    return Database(settings.dsn, min_size=settings.pool_min_size, max_size=settings.pool_max_size)


def _echo_report(report: IngestionReport) -> None:
    click.echo(f"Vertices written:   {report.vertices}")
    click.echo(f"Edges written:      {report.edges}")
    click.echo(f"Batches flushed:    {report.flushes}")
    click.echo(
        f"Skipped:            {report.skipped_rows} rows, {report.skipped_columns} columns, "
        f"{report.skipped_cells} cells"
    )
    click.echo(f"Failed operations:  {report.failed_operations}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, verbose):
    """Bulk-load property graphs into Apache AGE."""
    ctx.ensure_object(dict)
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("psycopg").setLevel(logging.WARNING)
    logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
    ctx.obj["settings"] = settings


@cli.command()
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--min-value", "-m", type=float, default=None, help="Drop cells at or below this value (default: 1.0)")
@click.option("--batch-size", "-b", type=click.IntRange(min=1), default=None, help="Edges per flush (default: 10000)")
@click.option("--create/--upsert", "create_documents", default=None, help="Write mode (default: upsert)")
@click.option("--graph", "graph_name", default=None, help="Target graph name")
@click.option("--dsn", default=None, help="PostgreSQL DSN")
@click.pass_context
def ingest(ctx, csv_file, **overrides):
    """Stream an ICIO matrix CSV into the graph."""
    settings = _settings(ctx, **overrides)
    config = settings.ingestion_config()
    click.echo(f"CSV file: {csv_file}")
    click.echo(f"Min value threshold: {config.threshold}")
    click.echo(f"Operation type: {config.mode.value.upper()}")
    try:
        with _open_database(settings) as db:
            db.ensure_graph(settings.graph_name)
            sink = AgeSink(db, settings.graph_name)
            report = StreamingIngestionPipeline(sink, config).run(CsvMatrixSource(csv_file))
    except AgeBulkError as exc:
        raise click.ClickException(str(exc)) from exc
    _echo_report(report)
    if not report.ok:
        ctx.exit(1)


@cli.command()
@click.option("--volume", type=click.IntRange(min=2), default=100, show_default=True, help="Vertices to generate")
@click.option("--factor", type=click.IntRange(min=1), default=5, show_default=True, help="Max edges per vertex")
@click.option(
    "--documents", is_flag=True, help="Generate ready-made documents with random ids, partitioned by country"
)
@click.option("--create/--upsert", "create_documents", default=None, help="Write mode (default: upsert)")
@click.option("--graph", "graph_name", default=None, help="Target graph name")
@click.option("--dsn", default=None, help="PostgreSQL DSN")
@click.pass_context
def samples(ctx, volume, factor, documents, **overrides):
    """Generate synthetic country-sector data and load it.

    By default tagged domain objects are generated and converted; with
    --documents the vertex and edge documents are built directly.
    """
    settings = _settings(ctx, **overrides)
    mode = settings.ingestion_config().mode
    factory = OperationFactory()
    failed = 0
    try:
        if documents:
            vertices = generate_documents(volume)
            edges = generate_edge_documents(vertices, factor)
        else:
            vertices = generate_vertices(volume)
            edges = generate_edges(vertices, factor)
        click.echo(f"Generated {len(vertices)} vertices and {len(edges)} edges")
        with _open_database(settings) as db:
            db.ensure_graph(settings.graph_name)
            sink = AgeSink(db, settings.graph_name)
            operations = itertools.chain(factory.operations(vertices, mode), factory.operations(edges, mode))
            for batch in itertools.batched(operations, settings.batch_size):
                outcomes = sink.execute(batch)
                failed += sum(1 for outcome in outcomes if not outcome.succeeded)
    except AgeBulkError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Failed operations: {failed}")
    if failed:
        ctx.exit(1)


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
