"""Persistence layer for the calculation history.

The store keeps one row per saved calculation. It defaults to SQLite for
local use, but accepts any SQLAlchemy-compatible URL (e.g.
PostgreSQL/MySQL) so several web workers can share one history.

Callers receive the store explicitly; the engine never touches it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine, select
from sqlalchemy.orm import declarative_base, sessionmaker

from .data_models import HistoryRecord

logger = logging.getLogger(__name__)

Base = declarative_base()

DEFAULT_DATABASE_URL = "sqlite:///calculation_history.sqlite3"
DEFAULT_MAX_RECORDS = 100


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CalculationModel(Base):
    __tablename__ = "calculations"

    id = Column(String(64), primary_key=True)
    created_at = Column(DateTime(timezone=True), index=True, default=_utcnow, nullable=False)
    record_json = Column(Text, nullable=False)


class HistoryStore:
    """Database-backed calculation history."""

    def __init__(self, url: str, *, max_records: Optional[int] = DEFAULT_MAX_RECORDS) -> None:
        self._engine = create_engine(url, future=True)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(self._engine, expire_on_commit=False, future=True)
        self._max_records = max_records

    def save(self, record: HistoryRecord) -> None:
        row = CalculationModel(
            id=record.id,
            created_at=record.created_at,
            record_json=record.to_json(),
        )
        with self._session_factory() as session:
            session.add(row)
            session.commit()
        logger.info("Saved calculation %s (%s)", record.id, record.formula)
        self._trim()

    def list(self) -> List[HistoryRecord]:
        """Return all saved records, newest first."""
        with self._session_factory() as session:
            rows: Iterable[CalculationModel] = session.execute(
                select(CalculationModel).order_by(CalculationModel.created_at.desc())
            ).scalars()
            return [HistoryRecord.from_json(row.record_json) for row in rows]

    def get(self, record_id: str) -> Optional[HistoryRecord]:
        with self._session_factory() as session:
            row = session.get(CalculationModel, record_id)
            return HistoryRecord.from_json(row.record_json) if row else None

    def delete(self, record_id: str) -> bool:
        """Delete one record; return whether it existed."""
        with self._session_factory() as session:
            row = session.get(CalculationModel, record_id)
            if row is None:
                return False
            session.delete(row)
            session.commit()
        logger.info("Deleted calculation %s", record_id)
        return True

    def clear_all(self) -> int:
        """Delete every record and return how many were removed."""
        with self._session_factory() as session:
            removed = session.execute(CalculationModel.__table__.delete()).rowcount
            session.commit()
        logger.info("Cleared %d calculation(s) from history", removed)
        return removed

    def _trim(self) -> None:
        if not self._max_records or self._max_records < 0:
            return
        with self._session_factory() as session:
            rows = session.execute(
                select(CalculationModel).order_by(CalculationModel.created_at.desc())
            ).scalars().all()
            if len(rows) <= self._max_records:
                return
            for row in rows[self._max_records :]:
                session.delete(row)
            session.commit()
            logger.debug("Trimmed %d old calculation(s)", len(rows) - self._max_records)


def create_store_from_env(url: Optional[str], max_records: Optional[str] = None) -> HistoryStore:
    limit = int(max_records) if max_records else DEFAULT_MAX_RECORDS
    return HistoryStore(url or DEFAULT_DATABASE_URL, max_records=limit)
