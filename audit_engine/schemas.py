"""
Schema validation for imported ledger and bank statement records.

Provides utilities to validate DataFrame schemas against canonical field
definitions, enforce proper data types, and reject records whose values
cannot enter the engine.
"""
from typing import Dict, Iterable, List, Optional, Set
import pandas as pd

from .canonical_fields import (
    CanonicalField,
    RECORD_FIELDS,
    DATE_FIELDS,
    AMOUNT_FIELDS,
    TEXT_FIELDS,
    get_field_names,
)
from .errors import ValidationError


def validate_columns(
    df: pd.DataFrame,
    required_fields: Set[CanonicalField],
    df_name: str = "DataFrame"
) -> None:
    """
    Validate that DataFrame contains all required canonical fields.

    Args:
        df: DataFrame to validate
        required_fields: Set of required CanonicalField enums
        df_name: Name of DataFrame for error messages

    Raises:
        ValidationError: If any required fields are missing
    """
    required_names = {f.value for f in required_fields}
    available_names = set(df.columns)
    missing = required_names - available_names

    if missing:
        raise ValidationError(
            f"{df_name} is missing required canonical fields: {sorted(missing)}. "
            f"Available columns: {sorted(available_names)}"
        )


def enforce_dtypes(
    df: pd.DataFrame,
    dtype_map: Optional[Dict[CanonicalField, str]] = None,
    coerce_errors: bool = True
) -> pd.DataFrame:
    """
    Enforce canonical data types on DataFrame columns.

    Args:
        df: DataFrame to process
        dtype_map: Optional mapping of fields to dtypes. If None, uses default map.
        coerce_errors: If True, coerce errors to NaT/NaN instead of raising

    Returns:
        DataFrame with enforced dtypes
    """
    df = df.copy()

    if dtype_map is None:
        dtype_map = get_default_dtype_map()

    for field, dtype in dtype_map.items():
        col_name = field.value

        if col_name not in df.columns:
            continue

        try:
            if dtype.startswith('datetime'):
                df[col_name] = pd.to_datetime(
                    df[col_name],
                    errors='coerce' if coerce_errors else 'raise'
                )
            elif dtype in ('float64', 'Float64'):
                df[col_name] = pd.to_numeric(
                    df[col_name],
                    errors='coerce' if coerce_errors else 'raise'
                ).astype('float64')
            elif dtype == 'bool':
                df[col_name] = df[col_name].fillna(False).astype(bool)
            else:
                df[col_name] = df[col_name].astype(dtype)

        except Exception as e:
            raise ValidationError(
                f"Failed to convert column '{col_name}' to dtype '{dtype}': {e}"
            )

    return df


def get_default_dtype_map() -> Dict[CanonicalField, str]:
    """
    Get default canonical field dtype mappings.

    Returns:
        Dictionary mapping CanonicalField to pandas dtype strings
    """
    dtype_map = {}

    for field in DATE_FIELDS:
        dtype_map[field] = 'datetime64[ns]'

    for field in AMOUNT_FIELDS:
        dtype_map[field] = 'float64'

    for field in TEXT_FIELDS:
        dtype_map[field] = 'object'

    dtype_map[CanonicalField.IS_RECONCILED] = 'bool'

    return dtype_map


def _row_labels(df: pd.DataFrame, mask: pd.Series) -> List[str]:
    ids = df.loc[mask, CanonicalField.ID.value].tolist()
    return [str(i) if i else f"row {n}" for n, i in zip(df.index[mask], ids)]


def validate_records(
    raw: pd.DataFrame,
    typed: pd.DataFrame,
    allowed_directions: Iterable[str],
    df_name: str = "records"
) -> None:
    """
    Reject records whose values cannot enter the engine.

    Compares the mapped frame before (`raw`) and after (`typed`) dtype
    enforcement so that coerced NaN/NaT values are reported against the
    offending record identifiers.

    Raises:
        ValidationError: With one line per violated rule
    """
    errors = []
    id_col = CanonicalField.ID.value
    amount_col = CanonicalField.AMOUNT.value
    date_col = CanonicalField.DATE.value
    direction_col = CanonicalField.DIRECTION.value

    blank_ids = typed[id_col].astype(str).str.len() == 0
    if blank_ids.any():
        errors.append(f"{df_name}: {int(blank_ids.sum())} record(s) without an id")

    duplicated = typed[id_col].duplicated(keep=False) & ~blank_ids
    if duplicated.any():
        dupes = sorted(set(typed.loc[duplicated, id_col]))
        errors.append(f"{df_name}: duplicate ids {dupes}")

    bad_amount = typed[amount_col].isna() | typed[amount_col].abs().eq(float("inf"))
    if bad_amount.any():
        errors.append(f"{df_name}: non-numeric amount for {_row_labels(typed, bad_amount)}")

    negative = (typed[amount_col] < 0) & ~bad_amount
    if negative.any():
        errors.append(f"{df_name}: negative amount for {_row_labels(typed, negative)}")

    bad_date = typed[date_col].isna() & raw[date_col].notna()
    missing_date = raw[date_col].isna()
    if (bad_date | missing_date).any():
        errors.append(f"{df_name}: invalid date for {_row_labels(typed, bad_date | missing_date)}")

    allowed = set(allowed_directions)
    bad_direction = ~typed[direction_col].isin(allowed)
    if bad_direction.any():
        errors.append(
            f"{df_name}: direction must be one of {sorted(allowed)} for "
            f"{_row_labels(typed, bad_direction)}"
        )

    if errors:
        raise ValidationError("Import validation failed:\n" + "\n".join(errors))


def frame_to_records(df: pd.DataFrame) -> List[Dict]:
    """
    Convert a canonical frame to JSON-safe dicts (dates as YYYY-MM-DD).
    """
    out = df.copy()
    date_col = CanonicalField.DATE.value
    if date_col in out.columns:
        out[date_col] = out[date_col].apply(
            lambda d: d.strftime('%Y-%m-%d') if pd.notna(d) else None
        ).astype(object)
    records = out.to_dict('records')
    for record in records:
        for key, value in record.items():
            if hasattr(value, 'item'):
                record[key] = value.item()
    return records


def create_empty_record_frame() -> pd.DataFrame:
    """
    Create an empty ledger/bank frame with canonical columns and dtypes.

    Example:
        >>> ledger = create_empty_record_frame()
    """
    columns = list(get_field_names(RECORD_FIELDS))
    return enforce_dtypes(pd.DataFrame(columns=columns))
