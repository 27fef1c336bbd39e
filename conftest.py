"""Configure pytest for the Decimal Digits project."""
import os
import sys
import tempfile
from decimal import Decimal
from pathlib import Path

import pytest

# =============================================================================
# CI/Test Environment Configuration
# =============================================================================
# Set environment for tests BEFORE any imports
# persistence.db reads DD_DB_PATH at import time
_TEST_DB_DIR = tempfile.mkdtemp(prefix="decimal-digits-tests-")
os.environ["DD_DB_PATH"] = str(Path(_TEST_DB_DIR) / "test.db")
os.environ.setdefault("ENV", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret-for-unit-tests-only")
os.environ.setdefault("SERVICE_KEY", "test-service-key")

# Add project root for package imports
app_path = Path(__file__).parent
if str(app_path) not in sys.path:
    sys.path.insert(0, str(app_path))


class FixedQuoteProvider:
    """Quote provider that always returns the configured value."""

    def __init__(self, value="12345.67"):
        self.value = Decimal(str(value))
        self.calls = []

    def get_quote(self, index_name):
        from markets.quotes import Quote

        self.calls.append(index_name)
        return Quote(
            index_name=index_name,
            value=self.value,
            change=Decimal("0.00"),
            change_percent=Decimal("0.00"),
        )


@pytest.fixture(autouse=True)
def reset_database():
    """Give every test an empty schema."""
    from persistence.db import reset_db, init_db

    reset_db()
    init_db()
    yield
    reset_db()


@pytest.fixture
def fixed_quotes():
    """Pin the active quote provider; set .value to choose the outcome."""
    from markets.quotes import set_quote_provider

    provider = FixedQuoteProvider()
    previous = set_quote_provider(provider)
    yield provider
    set_quote_provider(previous)


@pytest.fixture
def funded_user():
    """A user with an account holding ₹1000."""
    from wallet.ledger import create_account, update_wallet_balance

    user_id = "user-funded"
    create_account(user_id, "funded@example.com")
    update_wallet_balance(user_id, "1000", "credit", "Seed balance", "seed-funded")
    return user_id
