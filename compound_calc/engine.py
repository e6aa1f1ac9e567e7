"""Core calculation engine for the compound interest calculator.

This module implements the closed-form compound interest formula for both
discrete and continuous compounding, the four inverse solvers (principal,
rate, time and final amount) and the per-period breakdown. Every surface of
the application routes through these functions; nothing else evaluates the
formulas.

All arithmetic is done with ``Decimal``. Signals raised by the ``decimal``
module (division by zero, invalid operation, overflow) are reported as
:class:`~compound_calc.errors.DomainError`.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import date
from decimal import ROUND_FLOOR, ROUND_HALF_EVEN, Decimal, getcontext
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .data_models import (
    ANNUALLY,
    CONTINUOUSLY,
    DAILY,
    DAYS,
    FINAL_AMOUNT,
    MONTHLY,
    PRINCIPAL,
    QUARTERLY,
    RATE,
    SEMI_ANNUALLY,
    SOLVE_TARGETS,
    TIME,
    TIME_UNITS,
    WEEKLY,
    YEARS,
    BreakdownRow,
    CalculationParams,
    CalculationResult,
)
from .errors import DomainError, InvalidFrequency, InvalidInput
from .utils import step_date, to_decimal

getcontext().prec = 28  # increase precision for financial calculations

logger = logging.getLogger(__name__)

PERIODS_PER_YEAR: Dict[str, int] = {
    ANNUALLY: 1,
    SEMI_ANNUALLY: 2,
    QUARTERLY: 4,
    MONTHLY: 12,
    WEEKLY: 52,
    DAILY: 365,
}

DAYS_PER_YEAR = Decimal(365)

# Period counts this close to an integer are treated as that integer
PERIOD_COUNT_TOLERANCE = Decimal("1e-9")

# Longest breakdown a single calculation may produce (about 330 years of
# daily compounding)
MAX_BREAKDOWN_ROWS = 120_000

_HUNDRED = Decimal(100)

_DISCRETE_FORMULAS = {
    None: "A = P(1 + r/n)^(nt)",
    FINAL_AMOUNT: "A = P(1 + r/n)^(nt)",
    PRINCIPAL: "P = A / (1 + r/n)^(nt)",
    RATE: "r = n((A/P)^(1/nt) - 1)",
    TIME: "t = ln(A/P) / (n × ln(1 + r/n))",
}
_CONTINUOUS_FORMULAS = {
    None: "A = P × e^(rt)",
    FINAL_AMOUNT: "A = P × e^(rt)",
    PRINCIPAL: "P = A / e^(rt)",
    RATE: "r = ln(A/P) / t",
    TIME: "t = ln(A/P) / r",
}


def periods_per_year(frequency: str) -> Optional[int]:
    """Return the number of compounding periods per year.

    ``continuously`` has no discrete period and yields ``None``; every other
    supported key maps to a fixed count. Unknown keys raise
    :class:`InvalidFrequency` instead of falling back to annual compounding.
    """
    if not isinstance(frequency, str):
        raise InvalidFrequency(f"Unknown compounding frequency: {frequency!r}")
    if frequency == CONTINUOUSLY:
        return None
    if frequency not in PERIODS_PER_YEAR:
        raise InvalidFrequency(f"Unknown compounding frequency: {frequency!r}")
    return PERIODS_PER_YEAR[frequency]


def years_from_time(time: Decimal, time_unit: str = YEARS) -> Decimal:
    """Convert a duration in ``time_unit`` to (fractional) years."""
    if time_unit not in TIME_UNITS:
        raise InvalidInput(f"Unknown time unit: {time_unit!r}")
    if time_unit == DAYS:
        return time / DAYS_PER_YEAR
    return time


def get_formula(frequency: str, solve_for: Optional[str] = None) -> str:
    """Return the symbolic formula for a frequency and solved variable."""
    if solve_for is not None and solve_for not in SOLVE_TARGETS:
        raise InvalidInput(f"Cannot solve for {solve_for!r}")
    if periods_per_year(frequency) is None:
        return _CONTINUOUS_FORMULAS[solve_for]
    return _DISCRETE_FORMULAS[solve_for]


@contextmanager
def _domain_guard(what: str) -> Iterator[None]:
    """Translate ``decimal`` signals into :class:`DomainError`."""
    try:
        yield
    except ArithmeticError as exc:
        raise DomainError(f"Cannot compute {what}: {exc.__class__.__name__}") from exc


def _finite(value: Decimal, what: str) -> Decimal:
    if not value.is_finite():
        raise DomainError(f"Cannot compute {what}: result is not finite")
    return value


def _non_negative(value: Any, name: str) -> Decimal:
    number = to_decimal(value, name)
    if number < 0:
        raise InvalidInput(f"{name} must not be negative, got {number}")
    return number


def _growth_factor(rate_decimal: Decimal, n: Optional[int], years: Decimal) -> Decimal:
    """Return ``(1 + r/n)^(n·t)``, or ``e^(r·t)`` when ``n`` is ``None``."""
    if n is None:
        return (rate_decimal * years).exp()
    return (1 + rate_decimal / n) ** (n * years)


def _period_count(value: Decimal) -> int:
    """Number of whole periods in ``value``.

    Values within :data:`PERIOD_COUNT_TOLERANCE` of an integer snap to it,
    anything else is truncated, so a trailing partial period never produces
    a row.
    """
    nearest = value.to_integral_value(rounding=ROUND_HALF_EVEN)
    if abs(value - nearest) <= PERIOD_COUNT_TOLERANCE:
        return int(nearest)
    return int(value.to_integral_value(rounding=ROUND_FLOOR))


def _build_breakdown(
    principal: Decimal,
    rate_decimal: Decimal,
    n: Optional[int],
    years: Decimal,
    frequency: str,
    start_date: Optional[date],
) -> List[BreakdownRow]:
    rows: List[BreakdownRow] = []
    if n is None:
        total_periods = _period_count(years)
    else:
        total_periods = _period_count(n * years)
        base = 1 + rate_decimal / n
    if total_periods > MAX_BREAKDOWN_ROWS:
        raise InvalidInput(
            f"Breakdown would have {total_periods} rows; the limit is {MAX_BREAKDOWN_ROWS}. "
            "Use a shorter time or a coarser frequency."
        )
    previous_amount = principal
    for period in range(1, total_periods + 1):
        if n is None:
            amount = principal * (rate_decimal * period).exp()
            row_date = None
        else:
            amount = principal * base ** period
            row_date = step_date(start_date, frequency, period) if start_date else None
        rows.append(
            BreakdownRow(
                period=period,
                amount=amount,
                interest_earned=amount - previous_amount,
                date=row_date,
            )
        )
        previous_amount = amount
    return rows


def compute(params: CalculationParams, solve_for: Optional[str] = None) -> CalculationResult:
    """Compute the final amount, total interest and breakdown.

    Parameters
    ----------
    params: CalculationParams
        Principal, rate, time, time unit and frequency must be set. When
        ``start_date`` is set, breakdown rows of discrete frequencies carry
        calendar dates.
    solve_for: str, optional
        Only affects the ``formula`` of the result: when the parameters come
        from an inverse solve, the formula names the solved variable.

    Returns
    -------
    CalculationResult
        ``breakdown`` holds one row per elapsed compounding period (one per
        whole year for continuous compounding).
    """
    principal = _non_negative(params.principal, PRINCIPAL)
    rate = _non_negative(params.rate, RATE)
    time = _non_negative(params.time, TIME)
    n = periods_per_year(params.frequency)
    years = years_from_time(time, params.time_unit)
    formula = get_formula(params.frequency, solve_for)
    rate_decimal = rate / _HUNDRED

    with _domain_guard("final amount"):
        final_amount = _finite(principal * _growth_factor(rate_decimal, n, years), "final amount")
        breakdown = _build_breakdown(
            principal, rate_decimal, n, years, params.frequency, params.start_date
        )

    logger.debug(
        "Computed %s compounding of %s at %s%% over %s years: %s (%d rows)",
        params.frequency,
        principal,
        rate,
        years,
        final_amount,
        len(breakdown),
    )
    return CalculationResult(
        final_amount=final_amount,
        total_interest=final_amount - principal,
        breakdown=breakdown,
        formula=formula,
    )


def solve_principal(
    final_amount: Any, rate: Any, time: Any, frequency: str = ANNUALLY, time_unit: str = YEARS
) -> Decimal:
    """Return the principal that grows to ``final_amount``."""
    amount = _non_negative(final_amount, FINAL_AMOUNT)
    rate_decimal = _non_negative(rate, RATE) / _HUNDRED
    n = periods_per_year(frequency)
    years = years_from_time(_non_negative(time, TIME), time_unit)
    with _domain_guard(PRINCIPAL):
        return _finite(amount / _growth_factor(rate_decimal, n, years), PRINCIPAL)


def solve_final_amount(
    principal: Any, rate: Any, time: Any, frequency: str = ANNUALLY, time_unit: str = YEARS
) -> Decimal:
    """Return the final amount; same formula as :func:`compute`."""
    start = _non_negative(principal, PRINCIPAL)
    rate_decimal = _non_negative(rate, RATE) / _HUNDRED
    n = periods_per_year(frequency)
    years = years_from_time(_non_negative(time, TIME), time_unit)
    with _domain_guard(FINAL_AMOUNT):
        return _finite(start * _growth_factor(rate_decimal, n, years), FINAL_AMOUNT)


def _growth_ratio(principal: Any, final_amount: Any, what: str) -> Decimal:
    """Return ``A/P``, requiring both amounts to be positive and ``A >= P``."""
    start = _non_negative(principal, PRINCIPAL)
    amount = _non_negative(final_amount, FINAL_AMOUNT)
    if start <= 0 or amount <= 0:
        raise DomainError(f"Cannot compute {what}: principal and final amount must be positive")
    if amount < start:
        raise DomainError(
            f"Cannot compute {what}: final amount is below the principal at a non-negative rate"
        )
    return amount / start


def solve_rate(
    principal: Any, final_amount: Any, time: Any, frequency: str = ANNUALLY, time_unit: str = YEARS
) -> Decimal:
    """Return the annual nominal rate, in percent."""
    ratio = _growth_ratio(principal, final_amount, RATE)
    n = periods_per_year(frequency)
    years = years_from_time(_non_negative(time, TIME), time_unit)
    with _domain_guard(RATE):
        if n is None:
            rate_decimal = ratio.ln() / years
        else:
            rate_decimal = n * (ratio ** (1 / (n * years)) - 1)
        return _finite(rate_decimal * _HUNDRED, RATE)


def solve_time(
    principal: Any, final_amount: Any, rate: Any, frequency: str = ANNUALLY, time_unit: str = YEARS
) -> Decimal:
    """Return the time needed to grow ``principal`` into ``final_amount``.

    The answer is expressed in ``time_unit``. A zero rate has no answer
    (the balance never grows) and raises :class:`DomainError`.
    """
    ratio = _growth_ratio(principal, final_amount, TIME)
    rate_decimal = _non_negative(rate, RATE) / _HUNDRED
    n = periods_per_year(frequency)
    if time_unit not in TIME_UNITS:
        raise InvalidInput(f"Unknown time unit: {time_unit!r}")
    with _domain_guard(TIME):
        if n is None:
            years = ratio.ln() / rate_decimal
        else:
            years = ratio.ln() / (n * (1 + rate_decimal / n).ln())
        if time_unit == DAYS:
            return _finite(years * DAYS_PER_YEAR, TIME)
        return _finite(years, TIME)


def solve_missing(
    target: str,
    *,
    principal: Any = None,
    rate: Any = None,
    time: Any = None,
    final_amount: Any = None,
    frequency: str = ANNUALLY,
    time_unit: str = YEARS,
) -> Decimal:
    """Solve for ``target`` given the three other values.

    ``target`` is one of ``principal``, ``rate``, ``time`` or
    ``final_amount``. A value passed for the target itself is ignored; each
    of the other three is required.
    """
    if target not in SOLVE_TARGETS:
        raise InvalidInput(f"Cannot solve for {target!r}")
    known = {PRINCIPAL: principal, RATE: rate, TIME: time, FINAL_AMOUNT: final_amount}
    known.pop(target)
    missing = [name for name, value in known.items() if value is None]
    if missing:
        raise InvalidInput(f"Missing known value(s) to solve for {target}: {', '.join(missing)}")

    if target == PRINCIPAL:
        solved = solve_principal(final_amount, rate, time, frequency, time_unit)
    elif target == RATE:
        solved = solve_rate(principal, final_amount, time, frequency, time_unit)
    elif target == TIME:
        solved = solve_time(principal, final_amount, rate, frequency, time_unit)
    else:
        solved = solve_final_amount(principal, rate, time, frequency, time_unit)
    logger.debug("Solved %s = %s (%s, %s)", target, solved, frequency, time_unit)
    return solved


def solve_and_compute(
    target: str,
    *,
    principal: Any = None,
    rate: Any = None,
    time: Any = None,
    final_amount: Any = None,
    frequency: str = ANNUALLY,
    time_unit: str = YEARS,
    start_date: Optional[date] = None,
) -> Tuple[CalculationParams, Decimal, CalculationResult]:
    """Solve for ``target`` and run the forward calculation with the answer.

    Returns the completed parameters, the solved value and the full result,
    whose formula names the solved variable. ``target_amount`` on the
    returned parameters holds the known final amount (or the solved one).
    """
    solved = solve_missing(
        target,
        principal=principal,
        rate=rate,
        time=time,
        final_amount=final_amount,
        frequency=frequency,
        time_unit=time_unit,
    )
    values = {PRINCIPAL: principal, RATE: rate, TIME: time, FINAL_AMOUNT: final_amount}
    values[target] = solved
    params = CalculationParams(
        principal=to_decimal(values[PRINCIPAL], PRINCIPAL),
        rate=to_decimal(values[RATE], RATE),
        time=to_decimal(values[TIME], TIME),
        frequency=frequency,
        time_unit=time_unit,
        start_date=start_date,
        target_amount=to_decimal(values[FINAL_AMOUNT], FINAL_AMOUNT),
    )
    return params, solved, compute(params, solve_for=target)
