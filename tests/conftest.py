"""Pytest configuration and shared fixtures."""

from decimal import Decimal

import pytest

from config import TestingSettings, get_settings
from engine import Engine
from models import Deposit


@pytest.fixture
def engine():
    """Fixture providing a fresh engine with empty stores."""
    return Engine()


@pytest.fixture
def funded_engine(engine):
    """Fixture providing an engine where account 1 holds a 10.0000 deposit (tx 100)."""
    engine.execute(Deposit(account=1, tx_id=100, amount=Decimal("10.0000")))
    return engine


@pytest.fixture
def settings():
    """Fixture providing quiet settings for end-to-end runs."""
    return TestingSettings()


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def write_csv(tmp_path):
    """Fixture writing CSV text to a temporary file and returning its path."""

    def _write(content: str, name: str = "transactions.csv"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write
