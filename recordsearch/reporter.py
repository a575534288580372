from __future__ import annotations

from typing import Optional

from rich import box
from rich.console import Console
from rich.table import Table

from recordsearch.domain.models import RecordPage, RecordView, WriteOutcome

_DESCRIPTION_WIDTH = 60


def _truncate(text: str, width: int = _DESCRIPTION_WIDTH) -> str:
    return text if len(text) <= width else text[: width - 1] + "…"


def print_record_page(page: RecordPage, console: Optional[Console] = None) -> None:
    """
    Render a page of records as a rich table.

    The caption states the total match count (marked as a lower bound when the
    index only counted up to its limit) and any identifiers dropped because the
    store no longer holds them.
    """
    console = console or Console()

    if not page.items and not page.missing_ids:
        console.print(f"[yellow]No records on page {page.page_number}.[/yellow]")
        return

    total = f"{page.total:,}" if page.total_is_exact else f"≥ {page.total:,}"
    caption = f"Page {page.page_number} (size {page.page_size}) │ {total} matches"
    if page.missing_ids:
        caption += f"\n[dim]Not in store (index lag): {', '.join(map(str, page.missing_ids))}[/dim]"

    table = Table(title="Records", box=box.ROUNDED, caption=caption)
    table.add_column("ID", justify="right", style="cyan", no_wrap=True)
    table.add_column("Date", style="magenta")
    table.add_column("Recorded at", style="magenta")
    table.add_column("Qty", justify="right", style="green")
    table.add_column("Amount", justify="right", style="bold green")
    table.add_column("Category", style="blue")
    table.add_column("Description")

    for view in page.items:
        table.add_row(
            str(view.id),
            view.record_date.isoformat(),
            view.recorded_at.isoformat(timespec="seconds"),
            f"{view.quantity:,}",
            f"{view.amount:,.2f}",
            view.category,
            _truncate(view.description),
        )

    console.print(table)


def print_record(view: RecordView, console: Optional[Console] = None) -> None:
    """Render one record as a two-column table."""
    console = console or Console()
    table = Table(title=f"Record {view.id}", box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    for field, value in view.model_dump(mode="json").items():
        table.add_row(field, str(value))
    console.print(table)


def print_write_outcome(outcome: WriteOutcome, console: Optional[Console] = None) -> None:
    console = console or Console()
    if outcome.index_degraded:
        console.print(
            f"[yellow]Record {outcome.record_id} saved; indexing failed after "
            f"{outcome.attempts} attempt(s) and search results will lag until reindex.[/yellow]\n"
            f"[dim]{outcome.error}[/dim]"
        )
        return
    console.print(f"[green]Record {outcome.record_id} saved and indexed.[/green]")


__all__ = ["print_record", "print_record_page", "print_write_outcome"]
