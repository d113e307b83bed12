"""CLI entrypoint for wallet-scan."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Annotated

import typer

from .logger import setup_logging
from .report import print_result, render_json
from .settings import ScanSettings
from .state import AppState

EXIT_PARTIAL_COVERAGE = 2

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    add_help_option=True,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
    rich_markup_mode="rich",
    help="Multi-chain wallet balance scanner.",
)


def _build_logger() -> logging.Logger:
    """Build a logger instance."""
    return logging.getLogger("wallet_scan")


@app.callback(invoke_without_command=True)
def scan(
    address: Annotated[
        str | None, typer.Argument(help="Wallet address to scan.")
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to a TOML config file (can include [wallet_scan] table).",
        ),
    ] = None,
    chains: Annotated[
        list[str] | None,
        typer.Option(
            "--chain",
            help="Only query this chain (repeatable).",
        ),
    ] = None,
    request_timeout: Annotated[
        float | None,
        typer.Option(
            "--timeout",
            help="Per-call timeout in seconds.",
        ),
    ] = None,
    retry_attempts: Annotated[
        int | None,
        typer.Option(
            "--retries",
            help="Total tries per endpoint call, including the first.",
        ),
    ] = None,
    as_json: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print balances and coverage as JSON.",
        ),
    ] = False,
    log_level: Annotated[
        str | None,
        typer.Option(
            "--log-level",
            help="Override logging verbosity (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL).",
        ),
    ] = None,
    fail_on_partial: Annotated[
        bool,
        typer.Option(
            "--fail-on-partial",
            help=f"Exit with code {EXIT_PARTIAL_COVERAGE} when any source failed.",
        ),
    ] = False,
    show_config: Annotated[
        bool,
        typer.Option(
            "--show-config",
            help="Print effective config (with secrets redacted) and exit.",
        ),
    ] = False,
):
    """Scan every configured chain for the balances of ADDRESS.

    Loads configuration, builds the source registry and prints the merged
    balances together with the coverage report.
    """
    if config_path:
        os.environ["WALLET_SCAN_CONFIG"] = str(config_path)

    init_kwargs: dict[str, float | int | str] = {}
    if request_timeout is not None:
        init_kwargs["request_timeout"] = request_timeout
    if retry_attempts is not None:
        init_kwargs["retry_attempts"] = retry_attempts
    if log_level is not None:
        init_kwargs["log_level"] = log_level.upper()

    settings = ScanSettings(**init_kwargs)

    setup_logging(
        settings.log_level,
        secrets=[key for key in (settings.alchemy_key, settings.moralis_key) if key],
    )
    state = AppState(settings=settings, logger=_build_logger())

    if show_config:
        typer.echo(json.dumps(settings.as_safe_dict(), indent=2))
        raise typer.Exit(code=0)

    if not address or not address.strip():
        raise typer.BadParameter("address must be provided", param_hint="ADDRESS")

    from .pipeline.run import run_scan

    result = asyncio.run(run_scan(state, address.strip(), chains))

    if as_json:
        typer.echo(render_json(result))
    else:
        print_result(result)

    if fail_on_partial and not result.coverage.is_complete:
        raise typer.Exit(code=EXIT_PARTIAL_COVERAGE)


def run() -> None:
    """Entrypoint used by the console script."""
    app()


if __name__ == "__main__":
    run()
