"""Rich console and JSON rendering of an aggregation result."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table

from ..errors import FailureReason

if TYPE_CHECKING:
    from ..pipeline.aggregate import AggregationResult

_REASON_STYLES = {
    FailureReason.TIMEOUT: "yellow",
    FailureReason.NETWORK_ERROR: "red",
    FailureReason.NOT_ENABLED: "magenta",
    FailureReason.PARSE_ERROR: "red",
}


def _truncate_address(address: str) -> str:
    """Truncate address for display."""
    if len(address) <= 16:
        return address
    return f"{address[:10]}...{address[-4:]}"


def build_balances_table(result: AggregationResult) -> Table:
    table = Table(expand=True, show_lines=False)
    table.add_column("Chain", style="cyan", no_wrap=True)
    table.add_column("Token", style="bold")
    table.add_column("Name", style="dim")
    table.add_column("Contract", style="dim", no_wrap=True)
    table.add_column("Balance", justify="right", style="green")

    for record in result.balances:
        table.add_row(
            record.chain,
            record.token,
            record.name or "",
            _truncate_address(record.contract_address or ""),
            record.balance,
        )
    return table


def build_coverage_table(result: AggregationResult) -> Table:
    table = Table(expand=True, show_lines=False)
    table.add_column("Source", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Records", justify="right")
    table.add_column("Time", justify="right", style="dim")
    table.add_column("Detail", style="dim")

    for entry in result.coverage.sources:
        if entry.ok:
            status = "[green]ok[/]"
            detail = entry.endpoint or ""
        else:
            style = _REASON_STYLES.get(entry.reason, "red") if entry.reason else "red"
            reason = entry.reason.value if entry.reason else "failed"
            status = f"[{style}]{reason}[/]"
            detail = entry.message or ""
        table.add_row(
            entry.source,
            status,
            str(entry.records),
            f"{entry.elapsed:.2f}s",
            detail,
        )
    return table


def print_result(result: AggregationResult, console: Console | None = None) -> None:
    """Print balances and coverage as a rich dashboard."""
    console = console or Console()

    coverage = result.coverage
    title = (
        "[bold]Coverage[/]"
        if coverage.is_complete
        else f"[bold]Coverage[/] [yellow]({len(coverage.failures)} source(s) failed)[/]"
    )
    outer_panel = Panel(
        Group(
            Panel(
                build_balances_table(result),
                title=f"[bold]Balances[/] ({len(result.balances)})",
                border_style="green",
            ),
            "",
            Panel(
                build_coverage_table(result),
                title=title,
                border_style="green" if coverage.is_complete else "yellow",
            ),
        ),
        title=f"[bold white]{result.address}[/]",
        border_style="white",
        padding=(1, 2),
    )

    console.print()
    console.print(outer_panel)
    console.print()


def render_json(result: AggregationResult) -> str:
    return json.dumps(result.to_dict(), indent=2)
