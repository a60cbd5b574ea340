"""
Account Registry Module

Global account-number lookup plus pass-through money operations. Every
operation reports failure as False (or an empty result) when an account
reference is missing, never as an exception.
"""

from typing import Callable, Dict, Optional, Tuple
import threading

from .accounts import Account
from .amounts import AmountLike
from .audit import AuditTrail, AuditEventType
from .config import get_config
from .logging_config import get_logger, log_action
from .sessions import Session
from .transactions import Transaction, TransactionType


class AccountRegistry:
    """
    Maps account numbers to accounts

    Registration is independent of ownership: an account can be registered
    for lookup without an owner.
    """

    def __init__(
        self,
        audit_trail: Optional[AuditTrail] = None,
        record_transactions: Optional[bool] = None
    ):
        self.audit_trail = audit_trail or AuditTrail()
        if record_transactions is None:
            record_transactions = get_config().record_transactions
        self.record_transactions = record_transactions
        self.logger = get_logger("bank_core.registry")

        self._accounts: Dict[int, Account] = {}
        self._lock = threading.RLock()

    def register_account(self, account: Optional[Account]) -> bool:
        if account is None:
            return False
        with self._lock:
            existing = self._accounts.get(account.account_number)
            if existing is not None and existing is not account:
                log_action(self.logger, "warning", "Registration rejected: account number in use",
                           action="register_account", resource=f"account:{account.account_number}")
                return False
            self._accounts[account.account_number] = account
        return True

    def find_account(self, account_number: Optional[int]) -> Optional[Account]:
        if account_number is None:
            return None
        with self._lock:
            return self._accounts.get(account_number)

    def get_all_accounts(self) -> Dict[int, Account]:
        with self._lock:
            return dict(self._accounts)

    # Money operations

    def deposit(self, account: Optional[Account], amount: AmountLike) -> bool:
        if account is None:
            return False
        return self._run_recorded(
            TransactionType.DEPOSIT, amount, None, account,
            lambda: account.deposit(amount)
        )

    def withdraw(self, account: Optional[Account], amount: AmountLike) -> bool:
        if account is None:
            return False
        return self._run_recorded(
            TransactionType.WITHDRAW, amount, account, None,
            lambda: account.withdraw(amount)
        )

    def transfer(self, from_account_number: int, to_account_number: int, amount: AmountLike) -> bool:
        """Resolve both endpoints, failing closed if either is missing"""
        from_account = self.find_account(from_account_number)
        to_account = self.find_account(to_account_number)

        if from_account is None or to_account is None:
            log_action(self.logger, "info", "Transfer rejected: unknown account", action="transfer",
                       extra={"from": from_account_number, "to": to_account_number})
            return False

        return self._run_recorded(
            TransactionType.TRANSFER, amount, from_account, to_account,
            lambda: from_account.transfer(to_account, amount)
        )

    def _run_recorded(
        self,
        transaction_type: TransactionType,
        amount: AmountLike,
        source: Optional[Account],
        target: Optional[Account],
        operation: Callable[[], bool]
    ) -> bool:
        """
        Run a money operation and, when recording is on, append the resolved
        Transaction to the history of every involved account.

        Requests that cannot form a valid Transaction (bad amount, same
        account on both sides) are still run but not recorded.
        """
        transaction = None
        if self.record_transactions:
            try:
                transaction = Transaction.create(
                    transaction_type,
                    amount,
                    source_account_number=source.account_number if source else None,
                    target_account_number=target.account_number if target else None
                )
            except ValueError:
                transaction = None

        succeeded = operation()

        if transaction is not None:
            if succeeded:
                transaction.mark_success()
            else:
                transaction.mark_failed()

            for account in (source, target):
                if account is not None:
                    account.add_transaction(transaction)

            self.audit_trail.log_event(
                event_type=AuditEventType.TRANSACTION_RECORDED,
                entity_type="transaction",
                entity_id=transaction.transaction_id,
                metadata=transaction.to_dict()
            )

        log_action(
            self.logger, "info",
            f"{transaction_type.value} {'succeeded' if succeeded else 'failed'}",
            action=transaction_type.value,
            extra={
                "amount": str(amount),
                "source": source.account_number if source else None,
                "target": target.account_number if target else None
            }
        )
        return succeeded

    # Queries

    def get_transaction_history(self, account: Optional[Account]) -> Tuple[Transaction, ...]:
        if account is None:
            return ()
        return account.transaction_history

    def get_current_user_accounts(self, session: Optional[Session]) -> Tuple[Account, ...]:
        """Accounts owned by the session's user (empty when logged out)"""
        user = session.user if session is not None else None
        if user is None:
            return ()
        return user.accounts
