"""
Cash count (cash opname) evaluation against an imprest petty cash fund.
"""
from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Mapping, Optional
import logging
import math

from config import config as app_config
from .errors import ValidationError
from .findings import AdjustmentDirection, Finding, FindingSource, Severity

logger = logging.getLogger(__name__)

SHORTAGE = "shortage"
OVERAGE = "overage"
EXACT = "exact"


@dataclass
class CashCountLine:
    denomination: float
    quantity: int
    subtotal: float


@dataclass
class CashCountResult:
    """Physical count compared with the fixed fund amount."""
    fund_limit: float
    total_physical: float
    variance: float
    classification: str
    lines: List[CashCountLine] = field(default_factory=list)

    @property
    def magnitude(self) -> float:
        """Amount reported to the user, without sign."""
        return abs(self.variance)

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["magnitude"] = self.magnitude
        return d


def default_counts() -> Dict[int, int]:
    """Zero count for each configured denomination."""
    return {denomination: 0 for denomination in app_config.cash_count.denominations}


def _clean_quantity(denomination: Any, quantity: Any) -> int:
    try:
        value = float(quantity)
    except (TypeError, ValueError):
        logger.warning(f"[CASH COUNT] Non-numeric quantity {quantity!r} for {denomination}, using 0")
        return 0
    if math.isnan(value) or math.isinf(value) or value < 0:
        logger.warning(f"[CASH COUNT] Invalid quantity {quantity!r} for {denomination}, clamped to 0")
        return 0
    return int(value)


def classify_variance(variance: float) -> str:
    if variance > 0:
        return SHORTAGE
    if variance < 0:
        return OVERAGE
    return EXACT


def evaluate_cash_count(counts: Mapping[Any, Any], fund_limit: Optional[float] = None) -> CashCountResult:
    """
    Sum the physical denominations and compare with the imprest fund.

    Args:
        counts: Mapping of denomination -> quantity counted. Keys may be
            strings (as posted from a form); negative or non-numeric
            quantities count as zero, fractions are truncated.
        fund_limit: Fixed fund amount; defaults to the configured limit

    Returns:
        CashCountResult where variance = fund_limit - total_physical
    """
    if fund_limit is None:
        fund_limit = app_config.cash_count.fund_limit
    try:
        fund_limit = float(fund_limit)
    except (TypeError, ValueError):
        raise ValidationError(f"Fund limit {fund_limit!r} is not a number")
    if not math.isfinite(fund_limit):
        raise ValidationError(f"Fund limit {fund_limit!r} must be a finite number")

    lines = []
    for denomination, quantity in counts.items():
        try:
            value = float(denomination)
        except (TypeError, ValueError):
            raise ValidationError(f"Denomination {denomination!r} is not a number")
        if not math.isfinite(value) or value <= 0:
            raise ValidationError(f"Denomination {denomination!r} must be a positive finite number")
        qty = _clean_quantity(denomination, quantity)
        lines.append(CashCountLine(denomination=value, quantity=qty, subtotal=value * qty))

    total_physical = sum(line.subtotal for line in lines)
    variance = fund_limit - total_physical
    classification = classify_variance(variance)

    logger.info(
        f"[CASH COUNT] Physical {total_physical:,.0f} vs fund {fund_limit:,.0f}: "
        f"{classification} {abs(variance):,.0f}"
    )

    return CashCountResult(
        fund_limit=fund_limit,
        total_physical=total_physical,
        variance=variance,
        classification=classification,
        lines=lines,
    )


def cash_count_finding(result: CashCountResult) -> Optional[Finding]:
    """Finding for an unexplained petty cash shortage, or None."""
    if result.classification != SHORTAGE:
        return None

    return Finding(
        finding_id=app_config.cash_count.shortage_finding_id,
        title="Selisih Kurang Kas Kecil",
        description=(
            f"Hasil cash opname {result.total_physical:,.0f} lebih kecil dari dana tetap "
            f"{result.fund_limit:,.0f}; kekurangan {result.magnitude:,.0f}."
        ),
        severity=Severity.MEDIUM,
        amount=result.magnitude,
        recommendation="Minta bukti pengeluaran (bon/voucher) yang belum di-reimburse atau jurnal kekurangan kas.",
        adjustment=AdjustmentDirection.CREDIT,
        source=FindingSource.CASH_COUNT,
    )
