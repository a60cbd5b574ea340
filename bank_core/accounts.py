"""
Account Management Module

Accounts hold a balance and move through a verification lifecycle:

    UNVERIFIED -> VERIFIED -> SUSPENDED -> VERIFIED (appeal)
    any state  -> CLOSED (terminal)

Money operations check the status before touching the balance. Invalid
requests are reported as False, never raised.
"""

from decimal import Decimal
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import threading

from .amounts import AmountLike, to_amount, ZERO
from .config import get_config
from .logging_config import get_logger
from .sequences import IdSequence
from .transactions import Transaction


logger = get_logger("bank_core.accounts")

_account_numbers = IdSequence(get_config().account_number_start)


def reset_account_numbers(start: Optional[int] = None) -> None:
    """Restart account numbering (defaults to the configured start)"""
    _account_numbers.reset(start if start is not None else get_config().account_number_start)


def next_account_number() -> int:
    """Account number the next created account will receive"""
    return _account_numbers.peek()


class AccountStatus(Enum):
    """Account lifecycle states"""
    UNVERIFIED = "unverified"  # Newly opened, deposits only
    VERIFIED = "verified"      # Normal operation
    SUSPENDED = "suspended"    # Frozen until appealed
    CLOSED = "closed"          # Permanently closed


class Account:
    """
    Bank account with a balance, a lifecycle status and an optional owner

    Identity is the account number, assigned at creation and never reused.
    """

    def __init__(self, initial_balance: AmountLike = ZERO):
        balance = to_amount(initial_balance)
        if balance is None or balance < ZERO:
            raise ValueError("Initial balance cannot be negative")

        self._account_number = _account_numbers.next()
        self._balance = balance
        self._status = AccountStatus.UNVERIFIED
        self._owner_user_id: Optional[int] = None
        self._transaction_history: List[Transaction] = []
        self._lock = threading.RLock()
        self.created_at = datetime.now(timezone.utc)

    # Read-only state

    @property
    def account_number(self) -> int:
        return self._account_number

    @property
    def balance(self) -> Decimal:
        return self._balance

    @property
    def status(self) -> AccountStatus:
        return self._status

    @property
    def owner_user_id(self) -> Optional[int]:
        return self._owner_user_id

    @property
    def is_active(self) -> bool:
        """Check if account can process withdrawals"""
        return self._status == AccountStatus.VERIFIED

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # Money operations

    def deposit(self, amount: AmountLike) -> bool:
        """
        Add funds to the account

        Allowed on UNVERIFIED and VERIFIED accounts; rejected on SUSPENDED
        and CLOSED accounts and for non-positive amounts.
        """
        value = to_amount(amount)
        if value is None or value <= ZERO:
            logger.info(f"Deposit rejected on {self._account_number}: invalid amount {amount!r}")
            return False

        with self._lock:
            if self._status in (AccountStatus.CLOSED, AccountStatus.SUSPENDED):
                logger.info(f"Deposit rejected on {self._account_number}: account is {self._status.value}")
                return False
            self._balance += value
            return True

    def withdraw(self, amount: AmountLike) -> bool:
        """
        Remove funds from the account

        Only VERIFIED accounts may withdraw, and never more than the balance.
        """
        value = to_amount(amount)
        if value is None or value <= ZERO:
            logger.info(f"Withdrawal rejected on {self._account_number}: invalid amount {amount!r}")
            return False

        with self._lock:
            if self._status != AccountStatus.VERIFIED:
                logger.info(f"Withdrawal rejected on {self._account_number}: account is {self._status.value}")
                return False
            if value > self._balance:
                logger.info(f"Withdrawal rejected on {self._account_number}: insufficient funds")
                return False
            self._balance -= value
            return True

    def transfer(self, target: Optional['Account'], amount: AmountLike) -> bool:
        """
        Move funds from this account to target, all or nothing

        Both account locks are held for the whole operation, acquired in
        account-number order. If the deposit leg fails after the withdrawal
        succeeded, the withdrawn amount is credited back so the source
        balance equals its pre-call value.
        """
        if target is None or target is self or target.account_number == self._account_number:
            logger.info(f"Transfer rejected from {self._account_number}: invalid target")
            return False

        value = to_amount(amount)
        first, second = sorted((self, target), key=lambda account: account.account_number)

        with first.lock, second.lock:
            if not self.withdraw(amount):
                return False

            if not target.deposit(amount):
                # Compensating credit
                self._balance += value
                logger.warning(
                    f"Transfer {self._account_number} -> {target.account_number} rolled back: "
                    f"target is {target.status.value}"
                )
                return False

            return True

    # State transitions

    def _transition(self, allowed_from: Tuple[AccountStatus, ...], new_status: AccountStatus) -> bool:
        with self._lock:
            if self._status not in allowed_from:
                return False
            old_status = self._status
            self._status = new_status
        logger.info(f"Account {self._account_number} {old_status.value} -> {new_status.value}")
        return True

    def verify(self) -> bool:
        """UNVERIFIED -> VERIFIED"""
        return self._transition((AccountStatus.UNVERIFIED,), AccountStatus.VERIFIED)

    def suspend(self) -> bool:
        """VERIFIED -> SUSPENDED"""
        return self._transition((AccountStatus.VERIFIED,), AccountStatus.SUSPENDED)

    def appeal(self) -> bool:
        """SUSPENDED -> VERIFIED"""
        return self._transition((AccountStatus.SUSPENDED,), AccountStatus.VERIFIED)

    def close(self) -> bool:
        """Any open state -> CLOSED"""
        return self._transition(
            (AccountStatus.UNVERIFIED, AccountStatus.VERIFIED, AccountStatus.SUSPENDED),
            AccountStatus.CLOSED
        )

    # Transaction history

    def add_transaction(self, transaction: Optional[Transaction]) -> None:
        """Append a transaction to this account's history"""
        if transaction is not None:
            with self._lock:
                self._transaction_history.append(transaction)

    @property
    def transaction_history(self) -> Tuple[Transaction, ...]:
        with self._lock:
            return tuple(self._transaction_history)

    # Ownership, managed by User

    def assign_to_user(self, user_id: int) -> bool:
        """Claim ownership; fails if another user already owns the account"""
        with self._lock:
            if self._owner_user_id is not None and self._owner_user_id != user_id:
                return False
            self._owner_user_id = user_id
            return True

    def clear_owner(self) -> None:
        with self._lock:
            self._owner_user_id = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary"""
        return {
            'account_number': self._account_number,
            'balance': str(self._balance),
            'status': self._status.value,
            'owner_user_id': self._owner_user_id,
            'created_at': self.created_at.isoformat()
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, Account):
            return NotImplemented
        return self._account_number == other._account_number

    def __hash__(self) -> int:
        return hash(self._account_number)

    def __repr__(self) -> str:
        return (
            f"Account(account_number={self._account_number}, balance={self._balance}, "
            f"status={self._status.name}, owner_user_id={self._owner_user_id})"
        )
