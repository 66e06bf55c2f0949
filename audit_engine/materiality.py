"""
Planning materiality calculation.
"""
from dataclasses import dataclass, asdict
from numbers import Real
from typing import Any, Dict
import logging
import math

from .errors import ValidationError

logger = logging.getLogger(__name__)

# Rule-of-thumb benchmark: 0.5% of revenue, performance materiality at 75%
REVENUE_BENCHMARK_RATE = 0.005
PERFORMANCE_MATERIALITY_RATE = 0.75


@dataclass(frozen=True)
class MaterialityConfig:
    """Financial inputs and the materiality thresholds derived from them."""
    total_assets: float
    total_revenue: float
    net_income: float
    overall_materiality: float
    performance_materiality: float

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


def _as_amount(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (Real, str)):
        raise ValidationError(f"{name} must be a number")
    try:
        amount = float(value)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got {value!r}")
    if not math.isfinite(amount):
        raise ValidationError(f"{name} must be a finite number")
    return amount


def compute_materiality(total_assets: Any, total_revenue: Any, net_income: Any) -> MaterialityConfig:
    """
    Derive overall and performance materiality from the client financials.

    Args:
        total_assets: Total assets (carried for the working paper, not a benchmark)
        total_revenue: Total revenue, the benchmark base
        net_income: Net income

    Returns:
        MaterialityConfig with OM = revenue x 0.5% and PM = OM x 75%

    Raises:
        ValidationError: When revenue and net income are both zero, or an
            input is not a number, or revenue/assets are negative
    """
    assets = _as_amount(total_assets, "Total assets")
    revenue = _as_amount(total_revenue, "Total revenue")
    income = _as_amount(net_income, "Net income")

    if revenue == 0 and income == 0:
        raise ValidationError("Revenue and net income are both zero; enter the client financials first.")
    if revenue < 0 or assets < 0:
        raise ValidationError("Total assets and total revenue cannot be negative.")

    overall = revenue * REVENUE_BENCHMARK_RATE
    performance = overall * PERFORMANCE_MATERIALITY_RATE

    logger.info(f"[MATERIALITY] OM={overall:,.2f} PM={performance:,.2f} (revenue={revenue:,.2f})")

    return MaterialityConfig(
        total_assets=assets,
        total_revenue=revenue,
        net_income=income,
        overall_materiality=overall,
        performance_materiality=performance,
    )
