"""
Planning materiality tests.
"""
import pytest

from audit_engine.errors import ValidationError
from audit_engine.materiality import compute_materiality


class TestComputeMateriality:

    def test_demo_financials(self):
        result = compute_materiality(50_000_000_000, 120_000_000_000, 8_500_000_000)

        assert result.overall_materiality == pytest.approx(600_000_000)
        assert result.performance_materiality == pytest.approx(450_000_000)
        assert result.total_assets == 50_000_000_000

    def test_performance_is_three_quarters_of_overall(self):
        result = compute_materiality(0, 1_000_000, 0)
        assert result.overall_materiality == pytest.approx(5_000)
        assert result.performance_materiality == pytest.approx(3_750)

    def test_zero_revenue_with_income_is_allowed(self):
        result = compute_materiality(10, 0, 500)
        assert result.overall_materiality == 0
        assert result.performance_materiality == 0

    def test_negative_income_is_allowed(self):
        result = compute_materiality(100, 2_000, -50)
        assert result.net_income == -50
        assert result.overall_materiality == pytest.approx(10)

    def test_numeric_strings_are_accepted(self):
        result = compute_materiality("1000", "200000", "0")
        assert result.overall_materiality == pytest.approx(1_000)

    def test_revenue_and_income_both_zero_rejected(self):
        with pytest.raises(ValidationError):
            compute_materiality(50_000, 0, 0)

    @pytest.mark.parametrize("bad", [None, "abc", True, float("nan"), float("inf"), "-inf", [1]])
    def test_non_numeric_input_rejected(self, bad):
        with pytest.raises(ValidationError):
            compute_materiality(1, bad, 1)

    def test_negative_revenue_rejected(self):
        with pytest.raises(ValidationError):
            compute_materiality(1, -100, 10)

    def test_to_dict(self):
        d = compute_materiality(1, 1_000, 1).to_dict()
        assert set(d) == {
            "total_assets", "total_revenue", "net_income",
            "overall_materiality", "performance_materiality",
        }
