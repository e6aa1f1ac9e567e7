"""Output helpers for the compound interest calculator.

This module turns engine results into text: currency and percentage strings,
the step-by-step substitution shown next to a result, and simple tabular
printouts for the terminal. Amounts are rounded half-up to two decimals,
everywhere, so the CLI, the web pages and exported files agree.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, List, Optional

from .data_models import (
    DAYS,
    PRINCIPAL,
    RATE,
    TIME,
    BreakdownRow,
    CalculationParams,
    CalculationResult,
    HistoryRecord,
)
from .engine import get_formula, periods_per_year, years_from_time
from .utils import to_decimal

DEFAULT_CURRENCY_PREFIX = "₱"

_CENTS = Decimal("0.01")
_FACTOR_PLACES = Decimal("0.0001")


def round_half_up(value: Any, places: Decimal = _CENTS) -> Decimal:
    """Round ``value`` half-up to the precision of ``places``."""
    return to_decimal(value).quantize(places, rounding=ROUND_HALF_UP)


def format_currency(value: Any, prefix: str = DEFAULT_CURRENCY_PREFIX, suffix: str = "") -> str:
    """Format ``value`` as money, e.g. ``₱16,288.95``.

    The sign goes in front of the symbol (``-₱5.00``). A value that rounds
    to zero is printed without a sign.
    """
    rounded = round_half_up(value)
    sign = "-" if rounded < 0 else ""
    return f"{sign}{prefix}{abs(rounded):,.2f}{suffix}"


def format_percentage(value: Any) -> str:
    """Format a percentage value, e.g. ``5`` -> ``5.00%``."""
    rounded = round_half_up(value)
    if rounded == 0:
        rounded = abs(rounded)
    return f"{rounded:,.2f}%"


def _fixed(value: Decimal) -> str:
    return f"{round_half_up(value, _FACTOR_PLACES):f}"


def calculation_steps(
    params: CalculationParams,
    result: CalculationResult,
    solve_for: Optional[str] = None,
    prefix: str = DEFAULT_CURRENCY_PREFIX,
    suffix: str = "",
) -> List[str]:
    """Return a step-by-step substitution of the formula that was used.

    The first line is the symbolic formula, the following lines substitute
    the actual values and the last line is the answer.
    """

    def money(value: Decimal) -> str:
        return format_currency(value, prefix, suffix)

    n = periods_per_year(params.frequency)
    formula = get_formula(params.frequency, solve_for)
    principal = params.principal
    amount = params.target_amount if params.target_amount is not None else result.final_amount
    years = years_from_time(params.time, params.time_unit)
    r = params.rate / 100
    time_label = f"{_fixed(params.time)} {DAYS}" if params.time_unit == DAYS else f"{_fixed(years)} years"

    if n is None:
        rt = r * years
        growth = rt.exp()
        if solve_for == PRINCIPAL:
            return [
                formula,
                f"P = {money(amount)} / e^({_fixed(r)} × {_fixed(years)})",
                f"P = {money(amount)} / {_fixed(growth)}",
                f"P = {money(principal)}",
            ]
        if solve_for == RATE:
            return [
                formula,
                f"r = ln({money(amount)} / {money(principal)}) / {_fixed(years)}",
                f"r = {_fixed((amount / principal).ln())} / {_fixed(years)}",
                f"r = {format_percentage(params.rate)}",
            ]
        if solve_for == TIME:
            return [
                formula,
                f"t = ln({money(amount)} / {money(principal)}) / {_fixed(r)}",
                f"t = {_fixed((amount / principal).ln())} / {_fixed(r)}",
                f"t = {time_label}",
            ]
        return [
            formula,
            f"A = {money(principal)} × e^({_fixed(r)} × {_fixed(years)})",
            f"A = {money(principal)} × {_fixed(growth)}",
            f"A = {money(result.final_amount)}",
        ]

    base = 1 + r / n
    exponent = n * years
    growth = base ** exponent
    if solve_for == PRINCIPAL:
        return [
            formula,
            f"P = {money(amount)} / (1 + {_fixed(r)}/{n})^({n} × {_fixed(years)})",
            f"P = {money(amount)} / ({_fixed(base)})^({_fixed(exponent)})",
            f"P = {money(amount)} / {_fixed(growth)}",
            f"P = {money(principal)}",
        ]
    if solve_for == RATE:
        return [
            formula,
            f"r = {n}(({money(amount)} / {money(principal)})^(1/({n} × {_fixed(years)})) - 1)",
            f"r = {n}(({_fixed(amount / principal)})^(1/{_fixed(exponent)}) - 1)",
            f"r = {n}({_fixed((amount / principal) ** (1 / exponent))} - 1)",
            f"r = {format_percentage(params.rate)}",
        ]
    if solve_for == TIME:
        log_ratio = (amount / principal).ln()
        log_base = base.ln()
        return [
            formula,
            f"t = ln({money(amount)} / {money(principal)}) / ({n} × ln(1 + {_fixed(r)}/{n}))",
            f"t = {_fixed(log_ratio)} / ({n} × {_fixed(log_base)})",
            f"t = {_fixed(log_ratio)} / {_fixed(n * log_base)}",
            f"t = {time_label}",
        ]
    return [
        formula,
        f"A = {money(principal)}(1 + {_fixed(r)}/{n})^({n} × {_fixed(years)})",
        f"A = {money(principal)}({_fixed(base)})^({_fixed(exponent)})",
        f"A = {money(principal)} × {_fixed(growth)}",
        f"A = {money(result.final_amount)}",
    ]


def print_summary(params: CalculationParams, result: CalculationResult) -> None:
    """Print the inputs and headline numbers of a calculation."""
    print("Summary")
    print("-" * 72)
    print(f"Principal          : {format_currency(params.principal)}")
    print(f"Annual rate        : {format_percentage(params.rate)}")
    print(f"Time               : {round_half_up(params.time)} {params.time_unit}")
    print(f"Compounding        : {params.frequency}")
    if params.start_date:
        print(f"Start date         : {params.start_date.isoformat()}")
    print(f"Final amount       : {format_currency(result.final_amount)}")
    print(f"Total interest     : {format_currency(result.total_interest)}")
    print(f"Formula            : {result.formula}")
    print("-" * 72)


def print_steps(steps: Iterable[str]) -> None:
    print("Calculation")
    for line in steps:
        print(f"  {line}")
    print("-" * 72)


def print_breakdown(breakdown: Iterable[BreakdownRow]) -> None:
    """Print the per-period breakdown as a simple table."""
    headers = ["Period", "Date", "Amount", "Interest"]
    print("\t".join(headers))
    for row in breakdown:
        print(
            "\t".join(
                [
                    str(row.period),
                    row.date.isoformat() if row.date else "-",
                    format_currency(row.amount),
                    format_currency(row.interest_earned),
                ]
            )
        )


def print_history(records: Iterable[HistoryRecord]) -> None:
    """Print saved calculations, newest first as returned by the store."""
    headers = ["ID", "Created", "Principal", "Rate", "Time", "Frequency", "Final"]
    print("\t".join(headers))
    for record in records:
        print(
            "\t".join(
                [
                    record.id,
                    record.created_at.strftime("%Y-%m-%d %H:%M"),
                    format_currency(record.principal),
                    format_percentage(record.rate),
                    f"{round_half_up(record.time)} {record.time_unit}",
                    record.frequency,
                    format_currency(record.final_amount),
                ]
            )
        )


def format_solved_value(
    target: str,
    value: Any,
    time_unit: str = "years",
    prefix: str = DEFAULT_CURRENCY_PREFIX,
    suffix: str = "",
) -> str:
    """Format the answer of an inverse solve according to what was solved."""
    if target == RATE:
        return format_percentage(value)
    if target == TIME:
        return f"{round_half_up(value)} {time_unit}"
    return format_currency(value, prefix, suffix)
