"""Command‑line interface for the compound interest calculator.

This module uses the ``click`` library to implement a multi‑command
interface. Users can run a forward calculation, solve for a missing value
and manage the saved history. Results can be printed to the terminal or
exported to JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Optional

import click

from .data_models import (
    ANNUALLY,
    FINAL_AMOUNT,
    FREQUENCIES,
    SOLVE_TARGETS,
    TIME_UNITS,
    YEARS,
    CalculationParams,
    CalculationResult,
)
from .engine import compute, solve_and_compute
from .errors import CalculationError
from .formatter import (
    calculation_steps,
    format_solved_value,
    print_breakdown,
    print_history,
    print_steps,
    print_summary,
)
from .history import build_history_record, record_to_params
from .history_store import HistoryStore, create_store_from_env
from .utils import parse_date

MAX_PRINTED_ROWS = 120


def parse_amount(value: str) -> Decimal:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("10000") and shorthand with ``k``/``m`` suffixes
    (e.g., "10k" meaning 10_000). Returns a ``Decimal``.
    """
    value = str(value).strip().lower()
    value = value.replace(",", "")
    factor = Decimal(1)
    if value.endswith("k"):
        factor = Decimal(1_000)
        value = value[:-1]
    elif value.endswith("m"):
        factor = Decimal(1_000_000)
        value = value[:-1]
    try:
        amount = Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"Invalid amount: {value}")
    if not amount.is_finite():
        raise click.BadParameter(f"Invalid amount: {value}")
    return amount * factor


def parse_percent(value: str) -> Decimal:
    """Parse an annual rate given in percent ("5" or "5%")."""
    value = str(value).strip()
    if value.endswith("%"):
        value = value[:-1]
    return parse_amount(value)


def parse_start_date(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_date(value)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def build_params_from_options(
    principal: str,
    rate: str,
    time: str,
    time_unit: str = YEARS,
    frequency: str = ANNUALLY,
    start_date: Optional[str] = None,
) -> CalculationParams:
    """Build calculation parameters from raw option or form values."""
    return CalculationParams(
        principal=parse_amount(principal),
        rate=parse_percent(rate),
        time=parse_amount(time),
        frequency=frequency,
        time_unit=time_unit,
        start_date=parse_start_date(start_date),
    )


def solve_from_options(
    target: str,
    principal: Optional[str],
    rate: Optional[str],
    time: Optional[str],
    final_amount: Optional[str],
    time_unit: str = YEARS,
    frequency: str = ANNUALLY,
    start_date: Optional[str] = None,
):
    """Parse raw values and run :func:`solve_and_compute`.

    Values left empty are passed as missing; the engine reports which of the
    required ones are absent.
    """

    def optional(raw: Optional[str], parser) -> Optional[Decimal]:
        if raw is None or not str(raw).strip():
            return None
        return parser(raw)

    return solve_and_compute(
        target,
        principal=optional(principal, parse_amount),
        rate=optional(rate, parse_percent),
        time=optional(time, parse_amount),
        final_amount=optional(final_amount, parse_amount),
        frequency=frequency,
        time_unit=time_unit,
        start_date=parse_start_date(start_date),
    )


def result_to_dict(params: CalculationParams, result: CalculationResult) -> Dict[str, Any]:
    """Convert a calculation into a JSON-serialisable dictionary."""
    return {
        "params": {
            "principal": str(params.principal),
            "rate": str(params.rate),
            "time": str(params.time),
            "timeUnit": params.time_unit,
            "frequency": params.frequency,
            "startDate": params.start_date.isoformat() if params.start_date else None,
            "targetAmount": str(params.target_amount) if params.target_amount is not None else None,
        },
        "finalAmount": str(result.final_amount),
        "totalInterest": str(result.total_interest),
        "formula": result.formula,
        "breakdown": [
            {
                "period": row.period,
                "amount": str(row.amount),
                "interestEarned": str(row.interest_earned),
                "date": row.date.isoformat() if row.date else None,
            }
            for row in result.breakdown
        ],
    }


def export_to_json(path: Path, params: CalculationParams, result: CalculationResult) -> None:
    """Export the calculation and its breakdown to a JSON file."""
    with path.open("w", encoding="utf-8") as f:
        json.dump(result_to_dict(params, result), f, indent=2)


def export_to_csv(path: Path, result: CalculationResult) -> None:
    """Export the breakdown to a CSV file."""
    header = ["Period", "Date", "Amount", "Interest_Earned"]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for row in result.breakdown:
            writer.writerow(
                [
                    row.period,
                    row.date.isoformat() if row.date else "",
                    str(row.amount),
                    str(row.interest_earned),
                ]
            )


def _store(ctx: click.Context) -> HistoryStore:
    obj = ctx.ensure_object(dict)
    if "store" not in obj:
        obj["store"] = create_store_from_env(obj.get("database_url"))
    return obj["store"]


def _report(
    params: CalculationParams,
    result: CalculationResult,
    solve_for: Optional[str],
    output: Optional[str],
) -> None:
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, params, result)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, result)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv")
        click.echo(f"Breakdown exported to {path}")
        return
    print_summary(params, result)
    print_steps(calculation_steps(params, result, solve_for))
    rows = result.breakdown
    if len(rows) > MAX_PRINTED_ROWS:
        click.echo(f"Breakdown has {len(rows)} rows; showing first {MAX_PRINTED_ROWS} rows.")
        rows = rows[:MAX_PRINTED_ROWS]
    print_breakdown(rows)


def _save(ctx: click.Context, params: CalculationParams, result: CalculationResult) -> None:
    record = build_history_record(params, result)
    _store(ctx).save(record)
    click.echo(f"Saved to history as {record.id}")


@click.group()
@click.option(
    "--database-url",
    envvar="CALCULATION_DATABASE_URL",
    help="SQLAlchemy URL of the history database",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, database_url: Optional[str], verbose: bool) -> None:
    """A command‑line compound interest calculator."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)["database_url"] = database_url


@cli.command(name="compute")
@click.option("--principal", "-p", "principal", required=True, help="Initial investment")
@click.option("--rate", "-r", "rate", required=True, help="Annual interest rate (percent)")
@click.option("--time", "-t", "time", required=True, help="Investment period")
@click.option("--time-unit", "time_unit", type=click.Choice(TIME_UNITS), default=YEARS, help="Unit of --time")
@click.option("--frequency", "-f", "frequency", type=click.Choice(FREQUENCIES), default=ANNUALLY, help="Compounding frequency")
@click.option("--start-date", "-s", "start_date", help="Start date (YYYY-MM-DD) for dated breakdown rows")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--save", "save", is_flag=True, help="Save the calculation to history")
@click.pass_context
def compute_command(
    ctx: click.Context,
    principal: str,
    rate: str,
    time: str,
    time_unit: str,
    frequency: str,
    start_date: Optional[str],
    output: Optional[str],
    save: bool,
) -> None:
    """Compute the final amount and the per-period breakdown."""
    params = build_params_from_options(principal, rate, time, time_unit, frequency, start_date)
    try:
        result = compute(params)
    except CalculationError as exc:
        raise click.ClickException(str(exc))
    _report(params, result, None, output)
    if save:
        _save(ctx, params, result)


@cli.command()
@click.option("--for", "target", type=click.Choice(SOLVE_TARGETS), required=True, help="Value to solve for")
@click.option("--principal", "-p", "principal", help="Initial investment")
@click.option("--rate", "-r", "rate", help="Annual interest rate (percent)")
@click.option("--time", "-t", "time", help="Investment period")
@click.option("--final-amount", "-a", "final_amount", help="Final (future) amount")
@click.option("--time-unit", "time_unit", type=click.Choice(TIME_UNITS), default=YEARS, help="Unit of --time")
@click.option("--frequency", "-f", "frequency", type=click.Choice(FREQUENCIES), default=ANNUALLY, help="Compounding frequency")
@click.option("--start-date", "-s", "start_date", help="Start date (YYYY-MM-DD) for dated breakdown rows")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.option("--save", "save", is_flag=True, help="Save the calculation to history")
@click.pass_context
def solve(
    ctx: click.Context,
    target: str,
    principal: Optional[str],
    rate: Optional[str],
    time: Optional[str],
    final_amount: Optional[str],
    time_unit: str,
    frequency: str,
    start_date: Optional[str],
    output: Optional[str],
    save: bool,
) -> None:
    """Solve for one missing value given the other three."""
    try:
        params, solved, result = solve_from_options(
            target, principal, rate, time, final_amount, time_unit, frequency, start_date
        )
    except CalculationError as exc:
        raise click.ClickException(str(exc))
    label = "final amount" if target == FINAL_AMOUNT else target
    click.echo(f"Solved {label}: {format_solved_value(target, solved, time_unit)}")
    _report(params, result, target, output)
    if save:
        _save(ctx, params, result)


@cli.group()
def history() -> None:
    """Inspect and manage saved calculations."""


@history.command(name="list")
@click.pass_context
def history_list(ctx: click.Context) -> None:
    """List saved calculations, newest first."""
    records = _store(ctx).list()
    if not records:
        click.echo("No saved calculations.")
        return
    print_history(records)


@history.command(name="show")
@click.argument("record_id")
@click.option("--output", "output", type=str, help="Output file path (.json or .csv)")
@click.pass_context
def history_show(ctx: click.Context, record_id: str, output: Optional[str]) -> None:
    """Show a saved calculation again, recomputed from its parameters."""
    record = _store(ctx).get(record_id)
    if record is None:
        raise click.ClickException(f"No saved calculation with id {record_id}")
    params = record_to_params(record)
    try:
        result = compute(params)
    except CalculationError as exc:
        raise click.ClickException(str(exc))
    click.echo(f"Saved calculation {record.id} from {record.created_at:%Y-%m-%d %H:%M}")
    _report(params, result, None, output)


@history.command(name="delete")
@click.argument("record_id")
@click.pass_context
def history_delete(ctx: click.Context, record_id: str) -> None:
    """Delete one saved calculation."""
    if not _store(ctx).delete(record_id):
        raise click.ClickException(f"No saved calculation with id {record_id}")
    click.echo(f"Deleted {record_id}")


@history.command(name="clear")
@click.confirmation_option(prompt="Delete all saved calculations?")
@click.pass_context
def history_clear(ctx: click.Context) -> None:
    """Delete every saved calculation."""
    removed = _store(ctx).clear_all()
    click.echo(f"Deleted {removed} calculation(s)")


if __name__ == "__main__":
    cli()
