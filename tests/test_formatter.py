"""Tests for currency/percentage formatting and step-by-step output."""

from decimal import Decimal

import pytest

from compound_calc.data_models import CalculationParams
from compound_calc.engine import compute, solve_and_compute
from compound_calc.formatter import (
    calculation_steps,
    format_currency,
    format_percentage,
    format_solved_value,
    print_breakdown,
    print_summary,
)


class TestCurrency:
    def test_default_symbol_and_grouping(self):
        assert format_currency(Decimal("16288.946267774414")) == "₱16,288.95"

    def test_rounds_half_up(self):
        assert format_currency("2.675") == "₱2.68"
        assert format_currency("0.005") == "₱0.01"
        assert format_currency("2.665") == "₱2.67"

    def test_negative_values(self):
        assert format_currency(-5) == "-₱5.00"
        assert format_currency("-0.001") == "₱0.00"

    def test_caller_chooses_symbol(self):
        assert format_currency(1234.5, prefix="$") == "$1,234.50"
        assert format_currency(1234.5, prefix="", suffix=" PHP") == "1,234.50 PHP"


class TestPercentage:
    def test_two_decimals(self):
        assert format_percentage(5) == "5.00%"
        assert format_percentage(Decimal("4.999")) == "5.00%"

    def test_rounds_half_up(self):
        assert format_percentage("0.125") == "0.13%"

    def test_negative_zero(self):
        assert format_percentage("-0.001") == "0.00%"


class TestSteps:
    def test_forward_discrete(self, textbook_params):
        steps = calculation_steps(textbook_params, compute(textbook_params))
        assert steps[0] == "A = P(1 + r/n)^(nt)"
        assert steps[1] == "A = ₱10,000.00(1 + 0.0500/1)^(1 × 10.0000)"
        assert steps[-1] == "A = ₱16,288.95"
        assert len(steps) == 5

    def test_forward_continuous(self):
        params = CalculationParams(
            principal=Decimal("1000"), rate=Decimal("10"), time=Decimal("1"), frequency="continuously"
        )
        steps = calculation_steps(params, compute(params))
        assert steps[0] == "A = P × e^(rt)"
        assert steps[-1] == "A = ₱1,105.17"

    def test_solve_rate(self):
        params, _, result = solve_and_compute(
            "rate", principal=10000, time=10, final_amount=Decimal("16288.95"), frequency="annually"
        )
        steps = calculation_steps(params, result, "rate")
        assert steps[0] == "r = n((A/P)^(1/nt) - 1)"
        assert steps[-1] == "r = 5.00%"

    def test_solve_time_in_days(self):
        params, _, result = solve_and_compute(
            "time", principal=10000, rate=5, final_amount=10500, frequency="monthly", time_unit="days"
        )
        steps = calculation_steps(params, result, "time")
        assert steps[0] == "t = ln(A/P) / (n × ln(1 + r/n))"
        assert steps[-1].endswith(" days")

    def test_solve_principal_uses_currency(self):
        params, _, result = solve_and_compute(
            "principal", rate=5, time=10, final_amount=Decimal("16288.95"), frequency="continuously"
        )
        steps = calculation_steps(params, result, "principal", prefix="$")
        assert steps[0] == "P = A / e^(rt)"
        assert steps[1].startswith("P = $16,288.95 / e^(")


class TestSolvedValue:
    def test_labels(self):
        assert format_solved_value("rate", Decimal("4.99999")) == "5.00%"
        assert format_solved_value("time", Decimal("3650.017"), "days") == "3650.02 days"
        assert format_solved_value("principal", 10000) == "₱10,000.00"
        assert format_solved_value("final_amount", 10000, prefix="€") == "€10,000.00"


class TestPrinters:
    def test_summary_and_breakdown(self, textbook_params, capsys):
        result = compute(textbook_params)
        print_summary(textbook_params, result)
        print_breakdown(result.breakdown)
        out = capsys.readouterr().out
        assert "Final amount       : ₱16,288.95" in out
        assert "Annual rate        : 5.00%" in out
        assert out.strip().splitlines()[-1].startswith("10\t-\t₱16,288.95")
