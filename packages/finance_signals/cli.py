# ruff: noqa: I001
"""CLI for the ``finance_signals`` package.

This module exposes callable command handlers (e.g., ``cmd_signals``) and a
Typer-based console interface. Environment variables (notably
``FINANCE_SIGNALS_TODAY`` and ``FINANCE_SIGNALS_LOG_LEVEL``) are loaded from a
local ``.env`` using ``python-dotenv`` before delegating to command logic.
Business logic lives in ``finance_signals.api`` and the detector modules.

Every command prints JSON to stdout; ``--table`` renders a rich table instead
where it makes sense. Errors go to stderr with exit status 1.
"""

from __future__ import annotations

import json
import os
import sys
from datetime import date
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .logging_setup import configure_logging

_TODAY_ENV = "FINANCE_SIGNALS_TODAY"


# ---- Small module-level helpers used by CLI commands -------------------------


def _resolve_today(today: str | None) -> date:
    """Resolve the reference date for a command.

    Honors an explicit ``--today`` first, then ``FINANCE_SIGNALS_TODAY``, and
    falls back to the local calendar date.
    """

    from .dates import parse_local_date

    raw = today or os.getenv(_TODAY_ENV)
    if raw:
        return parse_local_date(raw)
    return date.today()


def _print_json(payload: Any) -> None:
    print(json.dumps(payload, indent=2))


def _load(path: str) -> list:
    from .ingest import load_transactions

    return load_transactions(path)


def _fail(message: str) -> int:
    print(f"Error: {message}", file=sys.stderr)
    return 1


def _money(value: float | None) -> str:
    return "-" if value is None else f"{value:,.2f}"


# ---- Command handlers ---------------------------------------------------------


def cmd_signals(transactions_path: str, *, today: str | None = None) -> int:
    """Print every signal detected for the month containing ``today``."""

    from .api import detect_signals
    from .ingest import IngestError

    try:
        ref = _resolve_today(today)
        txns = _load(transactions_path)
    except FileNotFoundError:
        return _fail(f"File not found: {transactions_path}")
    except (IngestError, ValueError) as e:
        return _fail(str(e))

    signals = detect_signals(txns, ref)
    _print_json([s.to_dict() for s in signals])
    return 0


def _dashboard_table(summary: Any) -> Table:
    table = Table(title=f"Dashboard {summary.month}")
    table.add_column("Category")
    table.add_column("Spend", justify="right")
    table.add_column("Change %", justify="right")
    changes = {c.category: c.delta_percent for c in summary.changes}
    for row in summary.category_breakdown:
        delta = changes.get(row.category)
        table.add_row(row.category, _money(row.amount), "" if delta is None else f"{delta:+.1f}")
    cf = summary.cashflow
    table.caption = (
        f"income {_money(cf.monthly_income)} | expenses {_money(cf.monthly_expenses)} | "
        f"net {_money(cf.net)} | trend {cf.trend}"
    )
    return table


def cmd_dashboard(
    transactions_path: str, *, month: str | None = None, table: bool = False
) -> int:
    """Print the dashboard summary for ``month`` (defaults to today's month)."""

    from .api import dashboard_summary
    from .dates import MonthKey
    from .ingest import IngestError

    try:
        target = MonthKey.parse(month) if month else MonthKey.of(_resolve_today(None))
        txns = _load(transactions_path)
    except FileNotFoundError:
        return _fail(f"File not found: {transactions_path}")
    except (IngestError, ValueError) as e:
        return _fail(str(e))

    summary = dashboard_summary(txns, target)
    if table:
        Console().print(_dashboard_table(summary))
    else:
        _print_json(summary.to_dict())
    return 0


def _recurring_table(overview: Any) -> Table:
    table = Table(title="Recurring charges")
    for col, justify in (
        ("Name", "left"),
        ("Amount", "right"),
        ("Frequency", "left"),
        ("Confidence", "right"),
        ("Status", "left"),
    ):
        table.add_column(col, justify=justify)
    for c in overview.charges:
        table.add_row(c.name, _money(c.amount), c.frequency, f"{c.confidence:.2f}", c.status)
    table.caption = f"{overview.total_count} charges, {_money(overview.monthly_total)}/month"
    return table


def cmd_recurring(
    transactions_path: str,
    *,
    known_path: str | None = None,
    confidence: str | None = None,
    table: bool = False,
) -> int:
    """Print detected recurring charges merged with optional user labels."""

    from .api import recurring_overview
    from .ingest import IngestError, load_known_charges

    try:
        txns = _load(transactions_path)
        known = load_known_charges(known_path) if known_path else []
        overview = recurring_overview(txns, known, confidence)
    except FileNotFoundError as e:
        return _fail(f"File not found: {e.filename}")
    except (IngestError, ValueError) as e:
        return _fail(str(e))

    if table:
        Console().print(_recurring_table(overview))
    else:
        _print_json(overview.to_dict())
    return 0


def cmd_goal(
    transactions_path: str,
    *,
    target_amount: float,
    target_date: str,
    today: str | None = None,
    current_progress: float = 0.0,
    packet: bool = False,
    known_path: str | None = None,
) -> int:
    """Print the goal forecast, or the goal insight packet with ``packet=True``."""

    from .dates import parse_local_date
    from .feasibility import forecast_goal
    from .ingest import IngestError, load_known_charges
    from .insights import build_goal_insight_packet

    if target_amount <= 0:
        return _fail("--target-amount must be positive")
    try:
        ref = _resolve_today(today)
        deadline = parse_local_date(target_date)
        txns = _load(transactions_path)
        known = load_known_charges(known_path) if known_path else []
    except FileNotFoundError as e:
        return _fail(f"File not found: {e.filename}")
    except (IngestError, ValueError) as e:
        return _fail(str(e))

    if packet:
        result = build_goal_insight_packet(
            txns, target_amount=target_amount, target_date=deadline, now=ref, known=known
        )
        _print_json(result.model_dump(mode="json"))
        return 0

    forecast = forecast_goal(
        txns, target_amount, deadline, ref, current_progress=current_progress
    )
    _print_json(forecast.to_dict())
    return 0


def cmd_insights(transactions_path: str, *, today: str | None = None) -> int:
    """Print deterministic insights rendered from this month's signals."""

    from .api import detect_signals
    from .ingest import IngestError
    from .insights import signals_to_insights

    try:
        ref = _resolve_today(today)
        txns = _load(transactions_path)
    except FileNotFoundError:
        return _fail(f"File not found: {transactions_path}")
    except (IngestError, ValueError) as e:
        return _fail(str(e))

    insights = signals_to_insights(detect_signals(txns, ref))
    _print_json([i.to_dict() for i in insights])
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Deterministic spending signals, recurring charges and goal forecasts "
        "from a transaction export (CSV or JSON)."
    ),
)


# Module-level option objects to satisfy ruff B008 (no calls in parameter
# defaults). Typer will inspect these when used as default values below.
TRANSACTIONS_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--transactions",
    help="Path to a CSV or JSON transaction export",
    dir_okay=False,
    file_okay=True,
    exists=False,  # allow non-existent here; the handler will report nice errors
    readable=True,
)
TODAY_OPTION: OptionInfo = typer.Option(
    None,
    "--today",
    help=f"Reference date YYYY-MM-DD (falls back to {_TODAY_ENV}, then the clock).",
)
TABLE_OPTION: OptionInfo = typer.Option(False, "--table", help="Render a table instead of JSON.")


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("signals")
def signals_cmd(
    transactions: Annotated[Path, TRANSACTIONS_OPTION],
    today: str | None = TODAY_OPTION,
) -> None:
    """Detect category trends, anomalies, recurring charges and cashflow."""

    _exit(cmd_signals(str(transactions), today=today))


@app.command("dashboard")
def dashboard_cmd(
    transactions: Annotated[Path, TRANSACTIONS_OPTION],
    month: str | None = typer.Option(None, help="Target month YYYY-MM (defaults to today)."),
    table: bool = TABLE_OPTION,
) -> None:
    """Cashflow, category breakdown and changes for one month."""

    _exit(cmd_dashboard(str(transactions), month=month, table=table))


@app.command("recurring")
def recurring_cmd(
    transactions: Annotated[Path, TRANSACTIONS_OPTION],
    known: Path | None = typer.Option(
        None, help="JSON array of labelled charges: {name, status, id}."
    ),
    confidence: str | None = typer.Option(
        None, help="Only show one confidence bucket: high, medium or low."
    ),
    table: bool = TABLE_OPTION,
) -> None:
    """Recurring charges with user labels and a monthly total."""

    _exit(
        cmd_recurring(
            str(transactions),
            known_path=str(known) if known else None,
            confidence=confidence,
            table=table,
        )
    )


@app.command("goal")
def goal_cmd(
    transactions: Annotated[Path, TRANSACTIONS_OPTION],
    target_amount: float = typer.Option(..., help="Amount to save."),
    target_date: str = typer.Option(..., help="Deadline YYYY-MM-DD."),
    today: str | None = TODAY_OPTION,
    current_progress: float = typer.Option(0.0, help="Amount already saved."),
    packet: bool = typer.Option(
        False, "--packet", help="Emit the goal insight packet instead of the forecast."
    ),
    known: Path | None = typer.Option(
        None, help="JSON array of labelled charges (used with --packet)."
    ),
) -> None:
    """Goal feasibility, probability and recommended levers."""

    _exit(
        cmd_goal(
            str(transactions),
            target_amount=target_amount,
            target_date=target_date,
            today=today,
            current_progress=current_progress,
            packet=packet,
            known_path=str(known) if known else None,
        )
    )


@app.command("insights")
def insights_cmd(
    transactions: Annotated[Path, TRANSACTIONS_OPTION],
    today: str | None = TODAY_OPTION,
) -> None:
    """Render this month's signals as prioritized insights."""

    _exit(cmd_insights(str(transactions), today=today))


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging()

    if ctx.invoked_subcommand is None:
        # No subcommand provided - show help
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover
    # Running as a module: `python -m finance_signals.cli`
    app()
