"""
Centralized configuration for the Cash Audit application.
All defaults, thresholds, and collaborator settings are defined here.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional
import os


@dataclass
class ColumnMapping:
    """Maps required columns for a data source."""
    required_columns: List[str]
    optional_columns: List[str] = field(default_factory=list)

    def validate(self, columns: List[str]) -> tuple[bool, List[str]]:
        """Check if all required columns are present."""
        missing = [col for col in self.required_columns if col not in columns]
        return len(missing) == 0, missing


@dataclass
class DataSourceConfig:
    """Configuration for an imported data source."""
    name: str
    column_mapping: ColumnMapping
    allowed_directions: List[str]  # Direction codes valid for this source


@dataclass
class ReconciliationConfig:
    """Configuration for bank reconciliation."""
    opening_balance_markers: List[str] = field(default_factory=lambda: [
        "saldo awal", "opening balance"
    ])
    bank_charge_finding_id: str = "F-AUTO-01"
    # Adjusted book and adjusted bank must agree to within this amount
    balance_tolerance: float = 0.0
    strict: bool = field(default_factory=lambda: os.getenv('RECON_STRICT', 'false').lower() == 'true')


@dataclass
class CashCountConfig:
    """Configuration for the petty cash count (cash opname)."""
    fund_limit: float = 5_000_000.0
    denominations: List[int] = field(default_factory=lambda: [100000, 50000, 20000, 10000])
    shortage_finding_id: str = "F-CASH-01"


@dataclass
class LeadScheduleConfig:
    """Configuration for the cash lead schedule."""
    prior_year_balance: float = 480_000_000.0
    # Title tokens that mark an adjustment as a debit to cash
    debit_title_tokens: List[str] = field(default_factory=lambda: [
        "jasa", "pendapatan", "interest", "income"
    ])


@dataclass
class AIConfig:
    """Settings for the external text-generation service."""
    api_key: Optional[str] = field(
        default_factory=lambda: os.getenv('GEMINI_API_KEY') or os.getenv('API_KEY')
    )
    model: str = field(default_factory=lambda: os.getenv('GEMINI_MODEL', 'gemini-2.5-flash'))
    base_url: str = field(default_factory=lambda: os.getenv(
        'GEMINI_BASE_URL', 'https://generativelanguage.googleapis.com/v1beta'
    ))
    timeout: int = field(default_factory=lambda: int(os.getenv('GEMINI_TIMEOUT_SECONDS', '60')))
    anomaly_finding_id: str = "F-AI-02"

    def is_configured(self) -> bool:
        """Check if an API key is available."""
        return bool(self.api_key)


@dataclass
class AuditConfig:
    """Main audit configuration container."""
    # Data sources
    ledger_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="ledger",
        column_mapping=ColumnMapping(
            required_columns=["id", "date", "description", "amount", "type"],
            optional_columns=["refNumber", "isReconciled"]
        ),
        allowed_directions=["Debit", "Credit"]
    ))

    bank_source: DataSourceConfig = field(default_factory=lambda: DataSourceConfig(
        name="bank_statement",
        column_mapping=ColumnMapping(
            required_columns=["id", "date", "description", "amount", "type"],
            optional_columns=["refNumber", "isReconciled"]
        ),
        allowed_directions=["CR", "DB"]
    ))

    company_name: str = field(default_factory=lambda: os.getenv('AUDIT_COMPANY_NAME', 'PT Manufaktur Maju Tbk'))

    reconciliation: ReconciliationConfig = field(default_factory=ReconciliationConfig)

    cash_count: CashCountConfig = field(default_factory=CashCountConfig)

    lead_schedule: LeadScheduleConfig = field(default_factory=LeadScheduleConfig)

    ai: AIConfig = field(default_factory=AIConfig)


# Global configuration instance
config = AuditConfig()
