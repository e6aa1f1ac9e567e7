"""Data models for the compound interest calculator.

This module defines dataclasses for the inputs of a calculation, the rows of
its periodic breakdown, the computed result and the history record that is
persisted after each successful calculation. Frequencies and time units are
plain strings; the accepted values are listed in the constants below.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

ANNUALLY = "annually"
SEMI_ANNUALLY = "semi-annually"
QUARTERLY = "quarterly"
MONTHLY = "monthly"
WEEKLY = "weekly"
DAILY = "daily"
CONTINUOUSLY = "continuously"

FREQUENCIES: Tuple[str, ...] = (
    ANNUALLY,
    SEMI_ANNUALLY,
    QUARTERLY,
    MONTHLY,
    WEEKLY,
    DAILY,
    CONTINUOUSLY,
)

YEARS = "years"
DAYS = "days"
TIME_UNITS: Tuple[str, ...] = (YEARS, DAYS)

# Variables that can be solved for in "missing value" mode
PRINCIPAL = "principal"
RATE = "rate"
TIME = "time"
FINAL_AMOUNT = "final_amount"
SOLVE_TARGETS: Tuple[str, ...] = (PRINCIPAL, RATE, TIME, FINAL_AMOUNT)


@dataclass(frozen=True)
class CalculationParams:
    """Inputs of a single compound interest calculation.

    Attributes
    ----------
    principal: Decimal
        Initial invested amount.
    rate: Decimal
        Annual nominal interest rate in percent (``5`` means 5 %).
    time: Decimal
        Length of the investment horizon, expressed in ``time_unit``.
    frequency: str
        One of :data:`FREQUENCIES`.
    time_unit: str
        ``"years"`` or ``"days"``. Days are converted to years by dividing
        by 365.
    start_date: date, optional
        When set, each breakdown row of a discrete frequency gets a date.
    target_amount: Decimal, optional
        The known final amount when the parameters came from an inverse
        solve.
    """

    principal: Decimal
    rate: Decimal
    time: Decimal
    frequency: str = ANNUALLY
    time_unit: str = YEARS
    start_date: Optional[date] = None
    target_amount: Optional[Decimal] = None


@dataclass(frozen=True)
class BreakdownRow:
    """Balance after one compounding period.

    ``period`` is 1-based. For continuous compounding there is one row per
    whole year and ``date`` is always ``None``.
    """

    period: int
    amount: Decimal
    interest_earned: Decimal
    date: Optional[date] = None


@dataclass(frozen=True)
class CalculationResult:
    final_amount: Decimal
    total_interest: Decimal
    breakdown: List[BreakdownRow] = field(default_factory=list)
    formula: str = ""


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 on
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


def _decimal_or_none(value: Any) -> Optional[Decimal]:
    if value is None:
        return None
    return Decimal(str(value))


@dataclass(frozen=True)
class HistoryRecord:
    """A saved calculation: its parameters, its result and bookkeeping.

    Records are never mutated; the history store owns their lifetime. The
    serialized form is a flat mapping with camelCase keys, the shape
    JavaScript clients read and write.
    """

    id: str
    principal: Decimal
    rate: Decimal
    time: Decimal
    time_unit: str
    frequency: str
    final_amount: Decimal
    total_interest: Decimal
    formula: str
    created_at: datetime
    start_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable mapping.

        Decimals are written as strings so that no precision is lost, dates
        and timestamps as ISO-8601 strings.
        """
        data: Dict[str, Any] = {
            "id": self.id,
            "principal": str(self.principal),
            "rate": str(self.rate),
            "time": str(self.time),
            "timeUnit": self.time_unit,
            "frequency": self.frequency,
            "finalAmount": str(self.final_amount),
            "totalInterest": str(self.total_interest),
            "formula": self.formula,
            "createdAt": self.created_at.isoformat(),
        }
        if self.start_date is not None:
            data["startDate"] = self.start_date.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HistoryRecord":
        try:
            start_raw = data.get("startDate")
            return cls(
                id=str(data["id"]),
                principal=_decimal_or_none(data["principal"]),
                rate=_decimal_or_none(data["rate"]),
                time=_decimal_or_none(data["time"]),
                time_unit=data.get("timeUnit", YEARS),
                frequency=data["frequency"],
                final_amount=_decimal_or_none(data["finalAmount"]),
                total_interest=_decimal_or_none(data["totalInterest"]),
                formula=data["formula"],
                created_at=_parse_timestamp(data["createdAt"]),
                start_date=date.fromisoformat(start_raw[:10]) if start_raw else None,
            )
        except (KeyError, ArithmeticError) as exc:
            raise ValueError(f"Invalid history record: {exc}") from exc

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, text: str) -> "HistoryRecord":
        return cls.from_dict(json.loads(text))
