"""
Data source abstraction and JSON loading.
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Union
import json
import logging
import pandas as pd

from config import DataSourceConfig
from .errors import ValidationError
from .mappings import MAPPINGS_BY_SOURCE, apply_source_mapping
from .normalize import normalize_ledger, normalize_bank_statement

logger = logging.getLogger(__name__)

Payload = Union[str, bytes, Path, List[Dict[str, Any]]]


class DataSourceLoader(ABC):
    """Abstract base for data source loaders."""

    @abstractmethod
    def load(self, payload: Payload, config: DataSourceConfig) -> pd.DataFrame:
        """Load data from payload and return a canonical DataFrame."""
        pass


class JsonSourceLoader(DataSourceLoader):
    """Load ledger and bank statement records from a JSON array."""

    def decode(self, payload: Payload, source_name: str) -> List[Dict[str, Any]]:
        """
        Decode a payload into a list of record dicts.

        Accepts raw JSON text/bytes, a path to a JSON file, or an
        already-decoded object.

        Raises:
            ValidationError: Malformed JSON, non-array payload, or non-object rows
        """
        if isinstance(payload, Path):
            payload = payload.read_text(encoding="utf-8")

        if isinstance(payload, bytes):
            try:
                payload = payload.decode("utf-8-sig")
            except UnicodeDecodeError as e:
                raise ValidationError(f"{source_name}: file is not UTF-8 text ({e})")

        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise ValidationError(f"{source_name}: invalid JSON ({e.msg} at line {e.lineno})")

        if not isinstance(payload, list):
            raise ValidationError(f"{source_name}: JSON must be an array of records")

        not_objects = [i for i, row in enumerate(payload) if not isinstance(row, dict)]
        if not_objects:
            raise ValidationError(f"{source_name}: entries {not_objects} are not JSON objects")

        return payload

    def load(self, payload: Payload, config: DataSourceConfig) -> pd.DataFrame:
        """Load and validate a specific data source."""
        records = self.decode(payload, config.name)
        logger.info(f"[IMPORT] Decoded {len(records)} records for '{config.name}'")

        mapping = MAPPINGS_BY_SOURCE[config.name]
        raw_df = pd.DataFrame.from_records(records)
        if raw_df.empty:
            raw_df = pd.DataFrame(columns=mapping.required_source_columns)

        ok, missing = config.column_mapping.validate(raw_df.columns.tolist())
        if not ok:
            raise ValidationError(f"{config.name}: records are missing required keys {missing}")

        canonical = apply_source_mapping(raw_df, mapping)

        if config.name == "ledger":
            return normalize_ledger(canonical, config)
        return normalize_bank_statement(canonical, config)


def load_json_sources(ledger_payload: Payload, bank_payload: Payload,
                      ledger_config: DataSourceConfig,
                      bank_config: DataSourceConfig) -> Dict[str, pd.DataFrame]:
    """
    Load both imported sources.

    Returns dict with keys: 'ledger', 'bank_statement'. Either both load or
    a ValidationError is raised and nothing is returned.
    """
    loader = JsonSourceLoader()

    return {
        ledger_config.name: loader.load(ledger_payload, ledger_config),
        bank_config.name: loader.load(bank_payload, bank_config)
    }


def export_template(ledger_records: List[Dict[str, Any]],
                    bank_records: List[Dict[str, Any]],
                    sample_size: int = 2) -> str:
    """Build the downloadable import template text from sample records."""
    template_ledger = json.dumps(ledger_records[:sample_size], indent=2)
    template_bank = json.dumps(bank_records[:sample_size], indent=2)
    return f"CONTOH FORMAT GL:\n{template_ledger}\n\nCONTOH FORMAT BANK:\n{template_bank}"
