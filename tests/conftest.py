"""Shared fixtures.

Scenario: ₱10,000 invested at 5 % for 10 years, the textbook example used
throughout the engine, CLI and web tests.
"""

import os
from decimal import Decimal

import pytest

# The web app opens its history store at import time; keep it in memory.
os.environ.setdefault("CALCULATION_DATABASE_URL", "sqlite://")

from compound_calc.data_models import CalculationParams
from compound_calc.history_store import HistoryStore


@pytest.fixture
def textbook_params() -> CalculationParams:
    return CalculationParams(
        principal=Decimal("10000"),
        rate=Decimal("5"),
        time=Decimal("10"),
        frequency="annually",
    )


@pytest.fixture
def store(tmp_path) -> HistoryStore:
    return HistoryStore(f"sqlite:///{tmp_path / 'history.sqlite3'}")


@pytest.fixture
def client(monkeypatch, store):
    from compound_calc_web import app as web

    monkeypatch.setattr(web, "history_store", store)
    web.app.config["TESTING"] = True
    with web.app.test_client() as test_client:
        yield test_client
