"""
Test suite for accounts module

Tests the account lifecycle state machine, money operations, transfer
atomicity, account numbering and the ownership helpers.
"""

import threading

import pytest
from decimal import Decimal

from bank_core.accounts import (
    Account, AccountStatus, next_account_number, reset_account_numbers
)
from bank_core.transactions import Transaction, TransactionType


def make_account(balance="100.0", status=AccountStatus.VERIFIED) -> Account:
    """Create an account and walk it to the requested status"""
    account = Account(balance)
    if status == AccountStatus.VERIFIED:
        account.verify()
    elif status == AccountStatus.SUSPENDED:
        account.verify()
        account.suspend()
    elif status == AccountStatus.CLOSED:
        account.close()
    assert account.status == status
    return account


class TestAccountCreation:
    """Test account construction and numbering"""

    def test_new_account_is_unverified(self):
        """Test that new accounts start UNVERIFIED and unowned"""
        account = Account(100.0)

        assert account.status == AccountStatus.UNVERIFIED
        assert account.balance == Decimal('100.0')
        assert account.owner_user_id is None
        assert not account.is_active
        assert account.transaction_history == ()

    def test_zero_initial_balance(self):
        account = Account(0)
        assert account.balance == Decimal('0')

    def test_negative_initial_balance_rejected(self):
        """Test that a negative initial balance is refused at construction"""
        with pytest.raises(ValueError, match="Initial balance cannot be negative"):
            Account(-0.01)

    def test_non_numeric_initial_balance_rejected(self):
        with pytest.raises(ValueError):
            Account("lots")

    def test_first_account_number_is_counter_start(self):
        """Test that numbering starts at the reset point"""
        assert next_account_number() == 1000
        assert Account(1).account_number == 1000

    def test_account_numbers_monotonic_and_unique(self):
        numbers = [Account(1).account_number for _ in range(5)]
        assert numbers == [1000, 1001, 1002, 1003, 1004]

    def test_reset_account_numbers_custom_start(self):
        reset_account_numbers(5000)
        assert Account(1).account_number == 5000

    def test_float_amounts_stored_exactly(self):
        """Test that float inputs become their decimal string value"""
        account = Account(2500.50)
        assert account.balance == Decimal('2500.5')

    def test_equality_by_account_number(self):
        a = Account(1)
        b = Account(1)
        assert a == a
        assert a != b
        assert len({a, b, a}) == 2


class TestStateTransitions:
    """Test the status transition table"""

    @pytest.mark.parametrize("start,method,expected_result,expected_status", [
        (AccountStatus.UNVERIFIED, "verify", True, AccountStatus.VERIFIED),
        (AccountStatus.UNVERIFIED, "suspend", False, AccountStatus.UNVERIFIED),
        (AccountStatus.UNVERIFIED, "appeal", False, AccountStatus.UNVERIFIED),
        (AccountStatus.UNVERIFIED, "close", True, AccountStatus.CLOSED),
        (AccountStatus.VERIFIED, "verify", False, AccountStatus.VERIFIED),
        (AccountStatus.VERIFIED, "suspend", True, AccountStatus.SUSPENDED),
        (AccountStatus.VERIFIED, "appeal", False, AccountStatus.VERIFIED),
        (AccountStatus.VERIFIED, "close", True, AccountStatus.CLOSED),
        (AccountStatus.SUSPENDED, "verify", False, AccountStatus.SUSPENDED),
        (AccountStatus.SUSPENDED, "suspend", False, AccountStatus.SUSPENDED),
        (AccountStatus.SUSPENDED, "appeal", True, AccountStatus.VERIFIED),
        (AccountStatus.SUSPENDED, "close", True, AccountStatus.CLOSED),
        (AccountStatus.CLOSED, "verify", False, AccountStatus.CLOSED),
        (AccountStatus.CLOSED, "suspend", False, AccountStatus.CLOSED),
        (AccountStatus.CLOSED, "appeal", False, AccountStatus.CLOSED),
        (AccountStatus.CLOSED, "close", False, AccountStatus.CLOSED),
    ])
    def test_transition_table(self, start, method, expected_result, expected_status):
        account = make_account(status=start)

        assert getattr(account, method)() is expected_result
        assert account.status == expected_status

    def test_no_path_back_to_unverified(self):
        """Test that no sequence of transitions returns to UNVERIFIED"""
        account = make_account(status=AccountStatus.VERIFIED)
        account.suspend()
        account.appeal()
        account.verify()
        assert account.status == AccountStatus.VERIFIED

    def test_closed_is_absorbing(self):
        """Test that nothing succeeds or mutates after close"""
        account = make_account(status=AccountStatus.VERIFIED)
        other = make_account()
        assert account.close()

        assert not account.deposit(10)
        assert not account.withdraw(10)
        assert not account.transfer(other, 10)
        assert not account.verify()
        assert not account.appeal()
        assert not account.suspend()
        assert account.balance == Decimal('100.0')
        assert other.balance == Decimal('100.0')
        assert account.status == AccountStatus.CLOSED


class TestDeposit:
    """Test deposit rules"""

    @pytest.mark.parametrize("status", [AccountStatus.UNVERIFIED, AccountStatus.VERIFIED])
    def test_deposit_allowed(self, status):
        account = make_account(status=status)

        assert account.deposit(50.0)
        assert account.balance == Decimal('150.0')

    @pytest.mark.parametrize("status", [AccountStatus.SUSPENDED, AccountStatus.CLOSED])
    def test_deposit_rejected_by_status(self, status):
        account = make_account(status=status)

        assert not account.deposit(50.0)
        assert account.balance == Decimal('100.0')

    @pytest.mark.parametrize("amount", [0, -5, "-0.01", "abc", None, float("nan"), float("inf"), True])
    def test_deposit_rejects_invalid_amount(self, amount):
        account = make_account()

        assert not account.deposit(amount)
        assert account.balance == Decimal('100.0')

    def test_deposit_accepts_string_and_decimal(self):
        account = make_account()
        assert account.deposit("0.10")
        assert account.deposit(Decimal('0.20'))
        assert account.balance == Decimal('100.30')


class TestWithdraw:
    """Test withdrawal rules"""

    def test_withdraw_from_verified(self):
        account = make_account()

        assert account.withdraw(50.0)
        assert account.balance == Decimal('50.0')

    @pytest.mark.parametrize("status", [
        AccountStatus.UNVERIFIED, AccountStatus.SUSPENDED, AccountStatus.CLOSED
    ])
    def test_withdraw_requires_verified(self, status):
        account = make_account(status=status)

        assert not account.withdraw(50.0)
        assert account.balance == Decimal('100.0')

    @pytest.mark.parametrize("amount", [0, -1, "x", None])
    def test_withdraw_rejects_invalid_amount(self, amount):
        account = make_account()

        assert not account.withdraw(amount)
        assert account.balance == Decimal('100.0')

    def test_overdraw_then_exact_withdraw(self):
        """Test the verify / overdraw / drain scenario"""
        account = Account(100.0)
        assert account.verify()

        assert not account.withdraw(150.0)
        assert account.balance == Decimal('100.0')

        assert account.withdraw(100.0)
        assert account.balance == Decimal('0.0')


class TestTransfer:
    """Test transfer atomicity"""

    def test_successful_transfer(self):
        x = make_account()
        y = make_account()

        assert x.transfer(y, 50.0)
        assert x.balance == Decimal('50.0')
        assert y.balance == Decimal('150.0')

    def test_transfer_to_unverified_target_succeeds(self):
        """Test that deposits into UNVERIFIED targets are allowed"""
        x = make_account()
        y = make_account(status=AccountStatus.UNVERIFIED)

        assert x.transfer(y, 25)
        assert y.balance == Decimal('125.0')

    def test_transfer_from_suspended_source(self):
        x = make_account(status=AccountStatus.SUSPENDED)
        y = make_account()

        assert not x.transfer(y, 50.0)
        assert x.balance == Decimal('100.0')
        assert y.balance == Decimal('100.0')

    @pytest.mark.parametrize("status", [AccountStatus.CLOSED, AccountStatus.SUSPENDED])
    def test_transfer_to_blocked_target_rolls_back(self, status):
        """Test that the source balance is restored after a failed deposit leg"""
        x = make_account("123.45")
        y = make_account(status=status)
        before = x.balance

        assert not x.transfer(y, "23.45")
        assert x.balance == before
        assert y.balance == Decimal('100.0')

    def test_transfer_rejects_none_and_self(self):
        x = make_account()

        assert not x.transfer(None, 10)
        assert not x.transfer(x, 10)
        assert x.balance == Decimal('100.0')

    def test_transfer_insufficient_funds(self):
        x = make_account()
        y = make_account()

        assert not x.transfer(y, 100.01)
        assert x.balance == Decimal('100.0')
        assert y.balance == Decimal('100.0')

    def test_transfer_invalid_amount(self):
        x = make_account()
        y = make_account()

        assert not x.transfer(y, 0)
        assert not x.transfer(y, "bad")
        assert x.balance == Decimal('100.0')
        assert y.balance == Decimal('100.0')

    def test_crossing_transfers_conserve_money(self):
        """Test that concurrent transfers in opposite directions neither deadlock nor leak"""
        a = make_account("1000")
        b = make_account("1000")

        def move(source, target):
            for _ in range(200):
                source.transfer(target, 1)

        threads = [
            threading.Thread(target=move, args=(a, b)),
            threading.Thread(target=move, args=(b, a)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=10)

        assert not any(thread.is_alive() for thread in threads)
        assert a.balance + b.balance == Decimal('2000')


class TestOwnershipHelpers:
    """Test assign_to_user / clear_owner"""

    def test_assign_unowned(self):
        account = Account(1)
        assert account.assign_to_user(7)
        assert account.owner_user_id == 7

    def test_assign_same_owner_is_idempotent(self):
        account = Account(1)
        account.assign_to_user(7)
        assert account.assign_to_user(7)
        assert account.owner_user_id == 7

    def test_assign_different_owner_fails(self):
        account = Account(1)
        account.assign_to_user(7)

        assert not account.assign_to_user(8)
        assert account.owner_user_id == 7

    def test_clear_owner(self):
        account = Account(1)
        account.assign_to_user(7)
        account.clear_owner()

        assert account.owner_user_id is None
        assert account.assign_to_user(8)


class TestTransactionHistory:
    """Test the per-account transaction history"""

    def test_add_transaction_preserves_order(self):
        account = Account(1)
        first = Transaction.create(TransactionType.DEPOSIT, 5, target_account_number=account.account_number)
        second = Transaction.create(TransactionType.WITHDRAW, 1, source_account_number=account.account_number)

        account.add_transaction(first)
        account.add_transaction(None)
        account.add_transaction(second)

        assert account.transaction_history == (first, second)

    def test_history_is_read_only_snapshot(self):
        account = Account(1)
        history = account.transaction_history

        assert isinstance(history, tuple)
        account.add_transaction(
            Transaction.create(TransactionType.DEPOSIT, 5, target_account_number=account.account_number)
        )
        assert history == ()

    def test_money_operations_do_not_touch_history(self):
        account = make_account()
        account.deposit(5)
        account.withdraw(5)
        assert account.transaction_history == ()
