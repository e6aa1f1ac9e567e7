"""Building history records from finished calculations."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from .data_models import CalculationParams, CalculationResult, HistoryRecord


def generate_id() -> str:
    return uuid4().hex


def build_history_record(
    params: CalculationParams,
    result: CalculationResult,
    *,
    record_id: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> HistoryRecord:
    """Combine parameters and result into a record ready to be saved.

    The breakdown is not kept: it can always be recomputed from the
    parameters.
    """
    return HistoryRecord(
        id=record_id or generate_id(),
        principal=params.principal,
        rate=params.rate,
        time=params.time,
        time_unit=params.time_unit,
        frequency=params.frequency,
        start_date=params.start_date,
        final_amount=result.final_amount,
        total_interest=result.total_interest,
        formula=result.formula,
        created_at=created_at or datetime.now(timezone.utc),
    )


def record_to_params(record: HistoryRecord) -> CalculationParams:
    """Return the parameters of a saved calculation so it can be re-run."""
    return CalculationParams(
        principal=record.principal,
        rate=record.rate,
        time=record.time,
        frequency=record.frequency,
        time_unit=record.time_unit,
        start_date=record.start_date,
    )
