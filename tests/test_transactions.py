"""
Test suite for transactions module

Tests construction-time validation and one-way status resolution.
"""

import pytest
from datetime import datetime
from decimal import Decimal

from bank_core.transactions import Transaction, TransactionStatus, TransactionType


class TestTransactionValidation:
    """Test that invalid transactions are never created"""

    def test_valid_deposit(self):
        transaction = Transaction.create(TransactionType.DEPOSIT, 50.0, target_account_number=1000)

        assert transaction.status == TransactionStatus.PENDING
        assert transaction.is_pending
        assert transaction.amount == Decimal('50.0')
        assert transaction.source_account_number is None
        assert transaction.target_account_number == 1000
        assert isinstance(transaction.timestamp, datetime)
        assert transaction.transaction_id

    def test_generated_ids_are_unique(self):
        ids = {
            Transaction.create(TransactionType.DEPOSIT, 1, target_account_number=1).transaction_id
            for _ in range(50)
        }
        assert len(ids) == 50

    def test_explicit_id(self):
        transaction = Transaction.create(
            TransactionType.WITHDRAW, 1, source_account_number=1000, transaction_id="TXN-1"
        )
        assert transaction.transaction_id == "TXN-1"

    @pytest.mark.parametrize("transaction_id", ["", "   "])
    def test_blank_id_rejected(self, transaction_id):
        with pytest.raises(ValueError, match="Transaction ID"):
            Transaction.create(TransactionType.DEPOSIT, 1, target_account_number=1,
                               transaction_id=transaction_id)

    @pytest.mark.parametrize("amount", [0, -1, "0.00", "abc", None])
    def test_non_positive_amount_rejected(self, amount):
        with pytest.raises(ValueError, match="Amount must be positive"):
            Transaction.create(TransactionType.DEPOSIT, amount, target_account_number=1)

    def test_missing_type_rejected(self):
        with pytest.raises(ValueError, match="type"):
            Transaction(transaction_type=None, amount=Decimal('1'), target_account_number=1)

    def test_deposit_requires_target(self):
        with pytest.raises(ValueError, match="Deposit requires a target account"):
            Transaction.create(TransactionType.DEPOSIT, 1, source_account_number=1)

    def test_withdraw_requires_source(self):
        with pytest.raises(ValueError, match="Withdrawal requires a source account"):
            Transaction.create(TransactionType.WITHDRAW, 1, target_account_number=1)

    @pytest.mark.parametrize("source,target", [(None, 2), (1, None), (None, None)])
    def test_transfer_requires_both_accounts(self, source, target):
        with pytest.raises(ValueError, match="Transfer requires both"):
            Transaction.create(TransactionType.TRANSFER, 1, source, target)

    def test_transfer_requires_distinct_accounts(self):
        with pytest.raises(ValueError, match="same account"):
            Transaction.create(TransactionType.TRANSFER, 1, 1000, 1000)


class TestTransactionStatus:
    """Test PENDING -> SUCCESS | FAILED resolution"""

    def test_mark_success(self):
        transaction = Transaction.create(TransactionType.TRANSFER, 10, 1000, 1001)

        assert transaction.mark_success()
        assert transaction.is_successful
        assert not transaction.is_pending

    def test_mark_failed(self):
        transaction = Transaction.create(TransactionType.TRANSFER, 10, 1000, 1001)

        assert transaction.mark_failed()
        assert transaction.is_failed

    def test_resolution_is_one_way(self):
        """Test that further resolution calls are no-ops"""
        transaction = Transaction.create(TransactionType.TRANSFER, 10, 1000, 1001)
        transaction.mark_success()

        assert not transaction.mark_failed()
        assert not transaction.mark_success()
        assert transaction.status == TransactionStatus.SUCCESS

    def test_equality_by_id(self):
        a = Transaction.create(TransactionType.DEPOSIT, 1, target_account_number=1, transaction_id="T1")
        b = Transaction.create(TransactionType.DEPOSIT, 2, target_account_number=2, transaction_id="T1")

        assert a == b
        assert hash(a) == hash(b)

    def test_to_dict(self):
        transaction = Transaction.create(TransactionType.TRANSFER, "12.50", 1000, 1001,
                                         transaction_id="T1")
        data = transaction.to_dict()

        assert data["transaction_type"] == "transfer"
        assert data["amount"] == "12.50"
        assert data["status"] == "pending"
        assert data["source_account_number"] == 1000
