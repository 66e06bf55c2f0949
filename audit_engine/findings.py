"""
Findings generation and management.
"""
from dataclasses import dataclass, asdict, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional
import logging
import math
import threading
import pandas as pd

from config import config as app_config
from .errors import ValidationError

logger = logging.getLogger(__name__)


class Severity(str, Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class AdjustmentDirection(str, Enum):
    """Side of the cash account a proposed adjustment posts to."""
    DEBIT = "Debit"    # Increases cash (e.g. unrecorded interest)
    CREDIT = "Credit"  # Decreases cash (charges, shortages, corrections)


class FindingSource(str, Enum):
    RECONCILIATION = "reconciliation"
    CASH_COUNT = "cash_count"
    AI = "ai"
    MANUAL = "manual"


FINDING_COLUMNS = [
    "finding_id", "title", "description", "severity", "amount",
    "recommendation", "adjustment", "source",
]


def classify_adjustment(title: str) -> AdjustmentDirection:
    """
    Default adjustment side inferred from a finding title.

    Only used when a finding is created without an explicit direction.
    """
    lowered = (title or "").lower()
    if any(token in lowered for token in app_config.lead_schedule.debit_title_tokens):
        return AdjustmentDirection.DEBIT
    return AdjustmentDirection.CREDIT


@dataclass(frozen=True)
class Finding:
    """Structured finding record."""
    finding_id: str
    title: str
    description: str
    severity: Severity
    amount: float = 0.0
    recommendation: str = ""
    adjustment: Optional[AdjustmentDirection] = None
    source: FindingSource = FindingSource.MANUAL

    def __post_init__(self):
        if not self.finding_id:
            raise ValidationError("Finding id is required")
        if not self.title:
            raise ValidationError("Finding title is required")
        try:
            object.__setattr__(self, "severity", Severity(self.severity))
            object.__setattr__(self, "source", FindingSource(self.source))
            if self.adjustment is None:
                object.__setattr__(self, "adjustment", classify_adjustment(self.title))
            else:
                object.__setattr__(self, "adjustment", AdjustmentDirection(self.adjustment))
        except ValueError as e:
            raise ValidationError(f"Invalid finding '{self.finding_id}': {e}")
        try:
            amount = float(self.amount)
        except (TypeError, ValueError):
            raise ValidationError(f"Finding '{self.finding_id}' amount must be a number")
        if not math.isfinite(amount):
            raise ValidationError(f"Finding '{self.finding_id}' amount must be a finite number")
        if amount < 0:
            raise ValidationError(f"Finding '{self.finding_id}' amount cannot be negative")
        object.__setattr__(self, "amount", amount)

    @property
    def is_cash_impacting(self) -> bool:
        return self.amount > 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with plain string enum values."""
        d = asdict(self)
        for key in ("severity", "adjustment", "source"):
            d[key] = d[key].value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: FindingSource = FindingSource.MANUAL) -> "Finding":
        """Build a finding from a request payload (accepts `id` or `finding_id`)."""
        return cls(
            finding_id=str(data.get("finding_id") or data.get("id") or ""),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            severity=data.get("severity", Severity.MEDIUM),
            amount=data.get("amount", 0) or 0,
            recommendation=str(data.get("recommendation") or ""),
            adjustment=data.get("adjustment"),
            source=source,
        )


class FindingsLedger:
    """
    Append-only, deduplicated collection of audit findings.

    Every insertion path (reconciliation, cash count, AI results, manual
    entry) goes through `add`, which holds a single lock across the dedup
    check and the append.
    """

    def __init__(self, findings: Optional[Iterable[Finding]] = None):
        self._findings: List[Finding] = []
        self._ids = set()
        self._lock = threading.Lock()
        for finding in findings or []:
            self.add(finding)

    def add(self, finding: Finding) -> bool:
        """
        Add a finding unless its id is already present.

        Returns:
            True if the finding was appended, False for a duplicate id
        """
        with self._lock:
            if finding.finding_id in self._ids:
                logger.debug(f"[FINDINGS] Duplicate id '{finding.finding_id}' ignored")
                return False
            self._ids.add(finding.finding_id)
            self._findings.append(finding)
        logger.info(f"[FINDINGS] Added '{finding.finding_id}' ({finding.source.value}, {finding.severity.value})")
        return True

    def list(self) -> List[Finding]:
        """Findings in insertion order."""
        with self._lock:
            return list(self._findings)

    def __len__(self) -> int:
        with self._lock:
            return len(self._findings)

    def __contains__(self, finding_id: str) -> bool:
        with self._lock:
            return finding_id in self._ids

    def to_frame(self) -> pd.DataFrame:
        """DataFrame view of the findings, one row per finding."""
        rows = [f.to_dict() for f in self.list()]
        if not rows:
            return pd.DataFrame(columns=FINDING_COLUMNS)
        return pd.DataFrame(rows, columns=FINDING_COLUMNS)

    def __getstate__(self):
        state = self.__dict__.copy()
        del state["_lock"]
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._lock = threading.Lock()


def findings_from_anomalies(anomalies: List[Dict[str, str]]) -> List[Finding]:
    """
    Convert the anomaly list returned by the text-generation service into findings.

    A non-empty list produces one summary finding with a fixed id, so repeated
    detection runs do not duplicate it.
    """
    if not anomalies:
        return []

    return [Finding(
        finding_id=app_config.ai.anomaly_finding_id,
        title="Potensi Anomali/Fraud Terdeteksi",
        description=f"AI mendeteksi {len(anomalies)} transaksi mencurigakan. Contoh: {anomalies[0]['issue']}",
        severity=Severity.HIGH,
        amount=0.0,
        recommendation="Investigasi lebih lanjut bukti pendukung transaksi tersebut.",
        adjustment=AdjustmentDirection.CREDIT,
        source=FindingSource.AI,
    )]
