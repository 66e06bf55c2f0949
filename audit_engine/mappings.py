"""
Source-to-canonical field mappings for the Cash Audit Engine.

This module is the ONLY place where raw import keys should appear.
All other modules use CanonicalField enums exclusively.

Mappings define how to transform an imported JSON array into canonical format:
1. Column name mapping (raw -> canonical)
2. Value transformations (trimming, direction codes)
3. Derived fields for optional keys
"""
from dataclasses import dataclass
from typing import Dict, List, Callable, Optional
import logging
import pandas as pd

from .canonical_fields import CanonicalField
from .errors import ValidationError

logger = logging.getLogger(__name__)


# ==================== Raw Source Keys ====================
# These are the ONLY references to raw import keys in the entire codebase

class RecordSourceKeys:
    """Raw JSON keys shared by the ledger and bank statement imports."""
    ID = "id"
    DATE = "date"
    DESCRIPTION = "description"
    AMOUNT = "amount"
    TYPE = "type"
    REF_NUMBER = "refNumber"
    IS_RECONCILED = "isReconciled"


# ==================== Source Mapping Configuration ====================

@dataclass
class ColumnTransform:
    """Defines a transformation for a single column."""
    source_column: str
    canonical_field: CanonicalField
    transform_func: Optional[Callable[[pd.Series], pd.Series]] = None

    def apply(self, df: pd.DataFrame) -> pd.Series:
        """Apply transformation to source data."""
        if self.source_column not in df.columns:
            raise ValueError(f"Source column '{self.source_column}' not found in DataFrame")

        series = df[self.source_column]

        if self.transform_func is not None:
            return self.transform_func(series)

        return series


@dataclass
class SourceMapping:
    """
    Complete mapping configuration for an imported source.

    Example usage in normalize.py:
        >>> df_canonical = apply_source_mapping(df_raw, LEDGER_MAPPING)
        >>> df_canonical[CanonicalField.AMOUNT.value]
    """

    name: str
    """Source name (e.g., 'ledger')"""

    required_source_columns: List[str]
    """List of required raw keys"""

    column_transforms: List[ColumnTransform]
    """List of column transformations"""

    derived_fields: Optional[Dict[CanonicalField, Callable[[pd.DataFrame], pd.Series]]] = None
    """Optional derived/defaulted fields"""


# ==================== Transform helpers ====================

def _as_text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def _ledger_direction(series: pd.Series) -> pd.Series:
    """Accept any casing of Debit/Credit."""
    return _as_text(series).str.capitalize()


def _bank_direction(series: pd.Series) -> pd.Series:
    """Accept any casing of CR/DB."""
    return _as_text(series).str.upper()


def _ref_number_or_blank(df: pd.DataFrame) -> pd.Series:
    if RecordSourceKeys.REF_NUMBER not in df.columns:
        return pd.Series([""] * len(df), index=df.index, dtype="object")
    return _as_text(df[RecordSourceKeys.REF_NUMBER])


_TRUE_FLAGS = {"true", "1", "1.0", "yes"}
_FALSE_FLAGS = {"false", "0", "0.0", "no", ""}


def _parse_flag(value) -> bool:
    """JSON boolean, 0/1, or a true/false string; anything else is rejected."""
    if value is None or (isinstance(value, float) and value != value):
        return False
    text = str(value).strip().lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    raise ValidationError(f"'{RecordSourceKeys.IS_RECONCILED}' must be true or false, got {value!r}")


def _reconciled_flag(df: pd.DataFrame) -> pd.Series:
    if RecordSourceKeys.IS_RECONCILED not in df.columns:
        return pd.Series([False] * len(df), index=df.index, dtype="bool")
    return df[RecordSourceKeys.IS_RECONCILED].map(_parse_flag).astype(bool)


def _record_transforms(direction_func: Callable[[pd.Series], pd.Series]) -> List[ColumnTransform]:
    return [
        ColumnTransform(RecordSourceKeys.ID, CanonicalField.ID, _as_text),
        ColumnTransform(RecordSourceKeys.DATE, CanonicalField.DATE),
        ColumnTransform(RecordSourceKeys.DESCRIPTION, CanonicalField.DESCRIPTION, _as_text),
        ColumnTransform(RecordSourceKeys.AMOUNT, CanonicalField.AMOUNT),
        ColumnTransform(RecordSourceKeys.TYPE, CanonicalField.DIRECTION, direction_func),
    ]


_REQUIRED_KEYS = [
    RecordSourceKeys.ID,
    RecordSourceKeys.DATE,
    RecordSourceKeys.DESCRIPTION,
    RecordSourceKeys.AMOUNT,
    RecordSourceKeys.TYPE,
]


LEDGER_MAPPING = SourceMapping(
    name="ledger",
    required_source_columns=_REQUIRED_KEYS,
    column_transforms=_record_transforms(_ledger_direction),
    derived_fields={
        CanonicalField.REF_NUMBER: _ref_number_or_blank,
        CanonicalField.IS_RECONCILED: _reconciled_flag,
    }
)


BANK_STATEMENT_MAPPING = SourceMapping(
    name="bank_statement",
    required_source_columns=_REQUIRED_KEYS,
    column_transforms=_record_transforms(_bank_direction),
    derived_fields={
        CanonicalField.REF_NUMBER: _ref_number_or_blank,
        CanonicalField.IS_RECONCILED: _reconciled_flag,
    }
)


MAPPINGS_BY_SOURCE = {
    LEDGER_MAPPING.name: LEDGER_MAPPING,
    BANK_STATEMENT_MAPPING.name: BANK_STATEMENT_MAPPING,
}


# ==================== Mapping Application Utilities ====================

def apply_source_mapping(df: pd.DataFrame, mapping: SourceMapping) -> pd.DataFrame:
    """
    Apply a source mapping to transform raw records to canonical format.

    Process:
    1. Validate required raw keys exist
    2. Apply column transformations
    3. Apply derived field calculations

    Args:
        df: Raw DataFrame built from the imported JSON array
        mapping: SourceMapping configuration

    Returns:
        DataFrame with canonical field names

    Raises:
        ValidationError: If required keys are missing
    """
    logger.debug(f"[MAPPING] Processing source '{mapping.name}': {df.shape}, keys: {df.columns.tolist()}")

    missing = [col for col in mapping.required_source_columns if col not in df.columns]
    if missing:
        raise ValidationError(
            f"Source '{mapping.name}' is missing required keys: {missing}. "
            f"Available keys: {df.columns.tolist()}"
        )

    df = df.copy()

    result_data = {}
    for transform in mapping.column_transforms:
        try:
            result_data[transform.canonical_field.value] = transform.apply(df)
        except Exception as e:
            raise ValidationError(
                f"Error transforming '{transform.source_column}' -> '{transform.canonical_field.value}': {e}"
            )

    result_df = pd.DataFrame(result_data, index=df.index)

    if mapping.derived_fields is not None:
        for canonical_field, calc_func in mapping.derived_fields.items():
            result_df[canonical_field.value] = calc_func(df)

    logger.debug(f"[MAPPING] Output for '{mapping.name}': {result_df.shape}")
    return result_df.reset_index(drop=True)
