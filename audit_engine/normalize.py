"""
Normalization logic for imported sources.
Converts mapped records into typed, validated canonical frames.
"""
import logging
import pandas as pd

from config import DataSourceConfig
from .canonical_fields import RECORD_FIELDS, REQUIRED_RECORD_FIELDS, get_field_names
from .schemas import validate_columns, enforce_dtypes, validate_records

logger = logging.getLogger(__name__)


def _normalize_records(df: pd.DataFrame, source_config: DataSourceConfig) -> pd.DataFrame:
    validate_columns(df, REQUIRED_RECORD_FIELDS, source_config.name)

    typed = enforce_dtypes(df)
    validate_records(df, typed, source_config.allowed_directions, source_config.name)

    logger.info(f"[IMPORT] Normalized {len(typed)} {source_config.name} records")

    # Return DataFrame with ONLY canonical columns, in canonical order
    return typed[list(get_field_names(RECORD_FIELDS))].reset_index(drop=True)


def normalize_ledger(df: pd.DataFrame, source_config: DataSourceConfig) -> pd.DataFrame:
    """
    Normalize mapped ledger records.

    Input: DataFrame with canonical field names (from LEDGER_MAPPING)
    Output: Typed DataFrame; directions restricted to Debit/Credit
    """
    return _normalize_records(df, source_config)


def normalize_bank_statement(df: pd.DataFrame, source_config: DataSourceConfig) -> pd.DataFrame:
    """
    Normalize mapped bank statement records.

    Input: DataFrame with canonical field names (from BANK_STATEMENT_MAPPING)
    Output: Typed DataFrame; directions restricted to CR/DB
    """
    return _normalize_records(df, source_config)
