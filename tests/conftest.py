"""
Shared fixtures: the demo engagement loaded through the import path, and a
Flask test client.
"""
import pytest

from audit_engine.findings import FindingsLedger
from audit_engine.io import JsonSourceLoader
from config import config
from data_provider import get_demo_bank_statement, get_demo_ledger


@pytest.fixture
def loader():
    return JsonSourceLoader()


@pytest.fixture
def ledger(loader):
    return loader.load(get_demo_ledger(), config.ledger_source)


@pytest.fixture
def bank(loader):
    return loader.load(get_demo_bank_statement(), config.bank_source)


@pytest.fixture
def findings():
    return FindingsLedger()


def _make_records(rows, prefix):
    """Import-shaped records from (description, amount, type) tuples."""
    return [
        {
            "id": f"{prefix}-{n:03d}",
            "date": f"2023-12-{n:02d}",
            "description": description,
            "amount": amount,
            "type": direction,
        }
        for n, (description, amount, direction) in enumerate(rows, start=1)
    ]


@pytest.fixture
def make_records():
    return _make_records


@pytest.fixture
def app(monkeypatch):
    monkeypatch.setattr(config.ai, "api_key", None)
    from app import create_app
    return create_app('testing')


@pytest.fixture
def client(app):
    return app.test_client()
