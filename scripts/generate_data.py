"""
Data generation and loading script for Record Search.

Implements deterministic pseudo-random record generation, CSV emission, Postgres
COPY loading for maximum throughput, and an optional index rebuild so the
loaded records become searchable.
"""

from __future__ import annotations

import csv
import random
import sys
import tempfile
import time
from datetime import UTC, datetime, timedelta
from pathlib import Path

import typer

from recordsearch.config import get_settings
from recordsearch.infrastructure.db_factory import build_dsn, get_sync_connection
from recordsearch.pipeline import build_pipeline
from recordsearch.utils.logging import configure_logging

app = typer.Typer(help="Generate synthetic records and load into Postgres (CSV + COPY).")

CSV_HEADER = [
    "record_date",
    "recorded_at",
    "quantity",
    "amount",
    "category",
    "source",
    "description",
]

_CATEGORIES = ["alpha", "beta", "gamma", "delta"]
_PARTS = ["bolt", "nut", "washer", "bracket", "hinge", "gasket", "spring", "rivet"]
_MATERIALS = ["steel", "brass", "aluminium", "nylon", "titanium"]
_CONDITIONS = ["inspected", "restocked", "rejected", "shipped", "returned"]


def _build_dsn(dsn_override: str | None) -> str:
    if dsn_override:
        return dsn_override
    return build_dsn()


def _description(rng: random.Random) -> str:
    part = rng.choice(_PARTS)
    return (
        f"{rng.choice(_MATERIALS)} {part} batch {rng.randint(1, 9_999)} "
        f"{rng.choice(_CONDITIONS)}; {rng.choice(_PARTS)} paired with {part}"
    )


def _generate_rows_csv(csv_path: Path, rows: int, batch_size: int, seed: int) -> None:
    rng = random.Random(seed)
    epoch = datetime(2024, 1, 1, tzinfo=UTC)

    with csv_path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)

        buffer: list[list[str]] = []
        for _ in range(rows):
            recorded_at = epoch + timedelta(seconds=rng.randint(0, 365 * 24 * 3600))
            amount = round(rng.uniform(1, 10_000), 2)
            buffer.append(
                [
                    recorded_at.date().isoformat(),
                    recorded_at.isoformat(),
                    str(rng.randint(0, 5_000)),
                    f"{amount:.2f}",
                    rng.choice(_CATEGORIES),
                    "generator",
                    _description(rng),
                ]
            )
            if len(buffer) >= batch_size:
                writer.writerows(buffer)
                buffer.clear()
        if buffer:
            writer.writerows(buffer)


def _copy_into_db(dsn: str, csv_path: Path) -> int:
    with get_sync_connection(dsn) as conn:
        with conn.cursor() as cur:
            with cur.copy(
                f"""
                COPY public.records ({", ".join(CSV_HEADER)})
                FROM STDIN WITH (FORMAT csv, HEADER TRUE)
                """
            ) as copy:
                with csv_path.open("r", encoding="utf-8") as f:
                    for line in f:
                        copy.write(line)
            conn.commit()
    return 0


@app.command()
def main(
    rows: int = typer.Option(
        100_000,
        "--rows",
        "-r",
        help="Number of rows to generate.",
    ),
    batch_size: int = typer.Option(
        10_000,
        "--batch-size",
        "-b",
        help="Batch size for CSV buffering during generation.",
    ),
    seed: int = typer.Option(
        42,
        "--seed",
        help="Deterministic RNG seed.",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Optional CSV output path (if omitted, a temp file will be used).",
    ),
    dsn: str | None = typer.Option(
        None,
        "--dsn",
        help="Optional DSN override for Postgres.",
    ),
    no_load: bool = typer.Option(
        False,
        "--no-load",
        help="Only generate CSV; skip loading into Postgres.",
    ),
    reindex: bool = typer.Option(
        False,
        "--reindex",
        help="Rebuild the search index from the store after loading.",
    ),
) -> None:
    """
    Generate synthetic records and optionally load them into Postgres using COPY.

    COPY bypasses the write synchronizer, so loaded rows are not searchable until
    the index is rebuilt (`--reindex`, or `recordsearch reindex` later).
    """
    start = time.perf_counter()
    if output:
        csv_path = output
        csv_path.parent.mkdir(parents=True, exist_ok=True)
    else:
        tmpdir = Path(tempfile.mkdtemp(prefix="records_csv_"))
        csv_path = tmpdir / "records.csv"

    typer.echo(f"Generating {rows:,} rows -> {csv_path} (batch={batch_size}, seed={seed})")
    _generate_rows_csv(csv_path, rows=rows, batch_size=batch_size, seed=seed)
    gen_duration = time.perf_counter() - start
    typer.echo(
        f"CSV generation completed in {gen_duration:.2f}s ({rows / gen_duration:,.0f} rows/s)"
    )

    if no_load:
        typer.echo("Skipping load (no-load flag set).")
        return

    load_start = time.perf_counter()
    conn_dsn = _build_dsn(dsn)
    typer.echo("Loading CSV into Postgres via COPY...")
    _copy_into_db(conn_dsn, csv_path)
    load_duration = time.perf_counter() - load_start
    typer.echo(f"Load completed in {load_duration:.2f}s.")

    if reindex:
        settings = get_settings()
        configure_logging(level=settings.log_level, json_logs=settings.log_json)
        with build_pipeline(settings) as pipeline:
            count = pipeline.coordinator.reindex(settings.reindex_batch_size)
        typer.echo(f"Reindexed {count:,} records.")

    total_duration = time.perf_counter() - start
    typer.echo(f"Total time {total_duration:.2f}s ({rows / total_duration:,.0f} rows/s overall).")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
