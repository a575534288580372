from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from recordsearch.config import get_settings
from recordsearch.domain.errors import PipelineError
from recordsearch.domain.models import MatchMode, Record
from recordsearch.pipeline import build_pipeline
from recordsearch.reporter import print_record, print_record_page, print_write_outcome
from recordsearch.utils.logging import configure_logging

app = typer.Typer(help="Record Search CLI: synchronized PostgreSQL records with OpenSearch queries.")


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _fail(exc: PipelineError) -> NoReturn:
    typer.echo(f"[{exc.kind.value}] {exc}", err=True)
    raise typer.Exit(code=1)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"index={settings.search_index}@{settings.search_hosts} | "
        f"page_size={settings.page_size_default} (max {settings.page_size_max}) "
        f"match_mode={settings.match_mode.value} retries={settings.index_retry_attempts}"
    )


@app.command("init-index")
def init_index() -> None:
    """
    Create the search index with the current mapping if it does not exist.
    """
    _setup()
    with build_pipeline() as pipeline:
        try:
            created = pipeline.coordinator.ensure_index()
        except PipelineError as exc:
            _fail(exc)
    typer.echo("Index created." if created else "Index already exists.")


@app.command()
def search(
    filter: Optional[str] = typer.Argument(None, help="Filter expression, e.g. 'bolt quantity:10..50'."),
    page: int = typer.Option(1, "--page", "-p", help="1-based page number."),
    page_size: Optional[int] = typer.Option(None, "--page-size", "-n", help="Page size."),
    match_mode: Optional[MatchMode] = typer.Option(None, "--match-mode", "-m", help="any or all."),
    as_json: bool = typer.Option(False, "--json", help="Print the page as JSON."),
) -> None:
    """
    List one page of records matching a filter.
    """
    _setup()
    with build_pipeline() as pipeline:
        try:
            result = pipeline.coordinator.list_records(
                page_number=page, page_size=page_size, filter=filter, match_mode=match_mode
            )
        except PipelineError as exc:
            _fail(exc)
    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        print_record_page(result)


@app.command()
def get(record_id: int = typer.Argument(..., help="Record identifier.")) -> None:
    """
    Show one record from the system-of-record.
    """
    _setup()
    with build_pipeline() as pipeline:
        try:
            view = pipeline.coordinator.get_record(record_id)
        except PipelineError as exc:
            _fail(exc)
    print_record(view)


@app.command()
def upsert(
    source: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON file with one record."),
) -> None:
    """
    Create or update a record, then index it.
    """
    _setup()
    try:
        record = Record.model_validate_json(source.read_text(encoding="utf-8"))
    except ValidationError as exc:
        typer.echo(f"Invalid record: {exc}", err=True)
        raise typer.Exit(code=2)

    with build_pipeline() as pipeline:
        try:
            outcome = pipeline.coordinator.upsert_record(record)
        except PipelineError as exc:
            _fail(exc)
    print_write_outcome(outcome)


@app.command()
def reindex(
    batch_size: Optional[int] = typer.Option(
        None, "--batch-size", "-b", help="Records per bulk request (default from settings)."
    ),
) -> None:
    """
    Rebuild the search index by replaying every stored record.
    """
    _setup()
    settings = get_settings()
    with build_pipeline() as pipeline:
        try:
            count = pipeline.coordinator.reindex(
                settings.reindex_batch_size if batch_size is None else batch_size
            )
        except PipelineError as exc:
            _fail(exc)
    typer.echo(json.dumps({"reindexed": count}))


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
