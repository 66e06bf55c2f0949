"""
Cash count (cash opname) tests.
"""
import pytest

from audit_engine.cash_count import (
    EXACT,
    OVERAGE,
    SHORTAGE,
    cash_count_finding,
    default_counts,
    evaluate_cash_count,
)
from audit_engine.errors import ValidationError


class TestEvaluateCashCount:

    def test_exact_fund(self):
        result = evaluate_cash_count({100000: 40, 50000: 20})

        assert result.total_physical == 5_000_000
        assert result.variance == 0
        assert result.classification == EXACT

    def test_small_fund_shortage(self):
        result = evaluate_cash_count({100000: 1, 50000: 2}, fund_limit=300_000)

        assert result.total_physical == 200_000
        assert result.variance == 100_000
        assert result.classification == SHORTAGE

    def test_shortage(self):
        result = evaluate_cash_count({100000: 45, 20000: 10})

        assert result.total_physical == 4_700_000
        assert result.variance == 300_000
        assert result.classification == SHORTAGE
        assert result.magnitude == 300_000

    def test_overage(self):
        result = evaluate_cash_count({100000: 50, 10000: 5})

        assert result.variance == -50_000
        assert result.classification == OVERAGE
        assert result.magnitude == 50_000

    def test_empty_count_is_full_shortage(self):
        result = evaluate_cash_count(default_counts())

        assert result.total_physical == 0
        assert result.variance == 5_000_000
        assert result.classification == SHORTAGE

    def test_string_keys_and_values(self):
        result = evaluate_cash_count({"100000": "10", "50000": "2"}, fund_limit=1_100_000)
        assert result.total_physical == 1_100_000
        assert result.classification == EXACT

    @pytest.mark.parametrize("quantity", [-3, "abc", None, float("nan"), float("inf")])
    def test_invalid_quantity_counts_as_zero(self, quantity):
        result = evaluate_cash_count({100000: quantity, 50000: 2}, fund_limit=100_000)

        assert result.total_physical == 100_000
        assert result.lines[0].quantity == 0

    def test_fractional_quantity_truncated(self):
        result = evaluate_cash_count({10000: 2.9}, fund_limit=20_000)
        assert result.lines[0].quantity == 2
        assert result.classification == EXACT

    def test_custom_fund_limit(self):
        result = evaluate_cash_count({100000: 1}, fund_limit=200_000)
        assert result.variance == 100_000

    @pytest.mark.parametrize("denomination", ["lima", 0, -1000, "inf", float("nan")])
    def test_bad_denomination_rejected(self, denomination):
        with pytest.raises(ValidationError):
            evaluate_cash_count({denomination: 1})

    def test_bad_fund_limit_rejected(self):
        with pytest.raises(ValidationError):
            evaluate_cash_count({100000: 1}, fund_limit="unlimited")

    @pytest.mark.parametrize("fund_limit", [float("nan"), float("inf"), "inf"])
    def test_non_finite_fund_limit_rejected(self, fund_limit):
        with pytest.raises(ValidationError, match="finite"):
            evaluate_cash_count({100000: 1}, fund_limit=fund_limit)


class TestCashCountFinding:

    def test_shortage_produces_finding(self):
        finding = cash_count_finding(evaluate_cash_count({100000: 49}))

        assert finding.finding_id == "F-CASH-01"
        assert finding.amount == 100_000
        assert finding.adjustment.value == "Credit"
        assert finding.source.value == "cash_count"

    @pytest.mark.parametrize("counts", [{100000: 50}, {100000: 51}])
    def test_no_finding_without_shortage(self, counts):
        assert cash_count_finding(evaluate_cash_count(counts)) is None
