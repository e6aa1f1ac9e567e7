"""Tests for the inverse solvers."""

from datetime import date
from decimal import Decimal

import pytest

from compound_calc.data_models import FREQUENCIES, CalculationParams
from compound_calc.engine import (
    compute,
    solve_and_compute,
    solve_final_amount,
    solve_missing,
    solve_principal,
    solve_rate,
    solve_time,
)
from compound_calc.errors import DomainError, InvalidInput


class TestSolveRate:
    def test_textbook_rate(self):
        """10,000 -> 16,288.95 over 10 years, annually, is 5 %."""
        rate = solve_missing(
            "rate", principal=Decimal("10000"), final_amount=Decimal("16288.95"), time=10, frequency="annually"
        )
        assert float(rate) == pytest.approx(5.0, abs=0.001)

    def test_continuous_rate(self):
        rate = solve_rate(1000, Decimal("1105.170918075647624811707826"), 1, "continuously")
        assert float(rate) == pytest.approx(10.0, abs=1e-9)

    def test_rate_from_days(self):
        rate = solve_rate(10000, Decimal("10500"), 365, "annually", "days")
        assert float(rate) == pytest.approx(5.0, abs=1e-9)

    def test_equal_amounts_mean_zero_rate(self):
        assert solve_rate(500, 500, 3, "monthly") == 0


class TestSolveTime:
    def test_textbook_time(self):
        years = solve_time(10000, Decimal("16288.95"), 5, "annually")
        assert float(years) == pytest.approx(10.0, abs=0.001)

    def test_time_in_days(self):
        days = solve_time(10000, Decimal("16288.95"), 5, "annually", "days")
        assert float(days) == pytest.approx(3650.0, abs=0.5)

    def test_continuous_time(self):
        years = solve_time(1000, Decimal("1105.170918075647624811707826"), 10, "continuously")
        assert float(years) == pytest.approx(1.0, abs=1e-9)


class TestRoundTrips:
    @pytest.mark.parametrize("frequency", FREQUENCIES)
    def test_principal_round_trip(self, frequency):
        original = CalculationParams(
            principal=Decimal("2500"), rate=Decimal("7.25"), time=Decimal("4.5"), frequency=frequency
        )
        final_amount = compute(original).final_amount
        principal = solve_missing("principal", final_amount=final_amount, rate=Decimal("7.25"), time=Decimal("4.5"), frequency=frequency)
        assert float(principal) == pytest.approx(2500.0, rel=1e-6)

    @pytest.mark.parametrize("frequency", FREQUENCIES)
    def test_rate_and_time_round_trip(self, frequency):
        final_amount = solve_final_amount(2500, "7.25", 400, frequency, "days")
        rate = solve_rate(2500, final_amount, 400, frequency, "days")
        days = solve_time(2500, final_amount, "7.25", frequency, "days")
        assert float(rate) == pytest.approx(7.25, rel=1e-6)
        assert float(days) == pytest.approx(400.0, rel=1e-6)

    def test_final_amount_matches_compute(self, textbook_params):
        assert solve_final_amount(10000, 5, 10, "annually") == compute(textbook_params).final_amount

    def test_solved_principal_reproduces_final_amount(self):
        principal = solve_principal(Decimal("20000"), 6, 8, "quarterly")
        result = compute(
            CalculationParams(principal=principal, rate=Decimal("6"), time=Decimal("8"), frequency="quarterly")
        )
        assert float(result.final_amount) == pytest.approx(20000.0, rel=1e-9)


class TestSolveErrors:
    def test_rate_needs_positive_principal(self):
        with pytest.raises(DomainError):
            solve_rate(0, 1000, 5)

    def test_time_needs_positive_final_amount(self):
        with pytest.raises(DomainError):
            solve_time(1000, 0, 5)

    def test_rate_over_zero_time(self):
        with pytest.raises(DomainError):
            solve_rate(1000, 2000, 0)
        with pytest.raises(DomainError):
            solve_rate(1000, 2000, 0, "continuously")

    def test_time_at_zero_rate(self):
        with pytest.raises(DomainError):
            solve_time(1000, 2000, 0)
        with pytest.raises(DomainError):
            solve_time(1000, 1000, 0, "continuously")

    def test_final_amount_below_principal(self):
        with pytest.raises(DomainError):
            solve_rate(1000, 900, 2)
        with pytest.raises(DomainError):
            solve_time(1000, 900, 2)

    def test_overflow_is_domain_error(self):
        with pytest.raises(DomainError):
            solve_final_amount(1, 100, Decimal("1e30"), "continuously")

    def test_missing_known_value(self):
        with pytest.raises(InvalidInput, match="time"):
            solve_missing("rate", principal=1000, final_amount=2000)

    def test_unknown_target(self):
        with pytest.raises(InvalidInput):
            solve_missing("interest", principal=1, rate=1, time=1, final_amount=2)

    def test_negative_known_value(self):
        with pytest.raises(InvalidInput):
            solve_missing("principal", rate=-1, time=1, final_amount=2)

    def test_value_for_target_is_ignored(self):
        solved = solve_missing("principal", principal=1, rate=5, time=10, final_amount=Decimal("16288.95"))
        assert float(solved) == pytest.approx(10000.0, abs=0.01)


class TestSolveAndCompute:
    def test_rate_completes_params(self):
        params, solved, result = solve_and_compute(
            "rate",
            principal=Decimal("10000"),
            time=Decimal("10"),
            final_amount=Decimal("16288.95"),
            frequency="annually",
            start_date=date(2024, 1, 1),
        )
        assert params.rate == solved
        assert params.target_amount == Decimal("16288.95")
        assert result.formula == "r = n((A/P)^(1/nt) - 1)"
        assert float(result.final_amount) == pytest.approx(16288.95, abs=1e-6)
        assert result.breakdown[0].date == date(2025, 1, 1)

    def test_final_amount_target(self):
        params, solved, result = solve_and_compute(
            "final_amount", principal=1000, rate=10, time=1, frequency="continuously"
        )
        assert params.target_amount == solved == result.final_amount
        assert result.formula == "A = P × e^(rt)"

    def test_time_in_days(self):
        params, solved, result = solve_and_compute(
            "time", principal=10000, rate=5, final_amount=10500, frequency="annually", time_unit="days"
        )
        assert params.time_unit == "days"
        assert float(solved) == pytest.approx(365.0, abs=1e-6)
        assert len(result.breakdown) == 1
