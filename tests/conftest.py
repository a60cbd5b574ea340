"""Pytest configuration and fixtures."""

import pytest

from bank_core.accounts import reset_account_numbers
from bank_core.audit import AuditTrail
from bank_core.registry import AccountRegistry
from bank_core.sessions import UserRegistry
from bank_core.users import reset_user_ids


@pytest.fixture(autouse=True)
def reset_counters():
    """Restart account numbers at 1000 and user IDs at 1 for every test"""
    reset_account_numbers(1000)
    reset_user_ids(1)
    yield


@pytest.fixture
def audit():
    """Create audit trail for tests"""
    return AuditTrail()


@pytest.fixture
def account_registry(audit):
    return AccountRegistry(audit, record_transactions=True)


@pytest.fixture
def user_registry(audit, account_registry):
    return UserRegistry(audit, account_registry)
