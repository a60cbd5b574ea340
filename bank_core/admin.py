"""
Admin Gate Module

Privileged account status transitions and system-wide queries. The gate
reads and writes account status and transaction status only; it never
changes a balance.
"""

from typing import Callable, Dict, List, Optional

from .accounts import Account, AccountStatus
from .audit import AuditTrail, AuditEventType
from .logging_config import get_logger, log_action
from .registry import AccountRegistry
from .sessions import UserRegistry
from .transactions import Transaction
from .users import User


class AdminGate:
    """Mediates privileged operations over the user and account registries"""

    def __init__(
        self,
        user_registry: UserRegistry,
        account_registry: AccountRegistry,
        audit_trail: Optional[AuditTrail] = None
    ):
        self.user_registry = user_registry
        self.account_registry = account_registry
        self.audit_trail = audit_trail or account_registry.audit_trail
        self.logger = get_logger("bank_core.admin")

    # Status transitions

    def _apply(
        self,
        account_number: int,
        transition: Callable[[Account], bool],
        event_type: AuditEventType,
        actor_id: Optional[int]
    ) -> bool:
        account = self.account_registry.find_account(account_number)
        if account is None:
            log_action(self.logger, "info", "Admin action rejected: account not found",
                       user_id=actor_id, action=event_type.value,
                       resource=f"account:{account_number}")
            return False

        old_status = account.status
        if not transition(account):
            log_action(self.logger, "info",
                       f"Admin action rejected: account is {old_status.value}",
                       user_id=actor_id, action=event_type.value,
                       resource=f"account:{account_number}")
            return False

        self.audit_trail.log_event(
            event_type=event_type,
            entity_type="account",
            entity_id=account_number,
            metadata={"old_status": old_status, "new_status": account.status},
            user_id=actor_id
        )
        return True

    def verify_account(self, account_number: int, actor_id: Optional[int] = None) -> bool:
        return self._apply(account_number, Account.verify, AuditEventType.ACCOUNT_VERIFIED, actor_id)

    def suspend_account(self, account_number: int, actor_id: Optional[int] = None) -> bool:
        return self._apply(account_number, Account.suspend, AuditEventType.ACCOUNT_SUSPENDED, actor_id)

    def appeal_account(self, account_number: int, actor_id: Optional[int] = None) -> bool:
        return self._apply(account_number, Account.appeal, AuditEventType.ACCOUNT_APPEALED, actor_id)

    def close_account(self, account_number: int, actor_id: Optional[int] = None) -> bool:
        return self._apply(account_number, Account.close, AuditEventType.ACCOUNT_CLOSED, actor_id)

    # Queries

    def get_unverified_accounts(self) -> List[Account]:
        return [
            account for account in self.account_registry.get_all_accounts().values()
            if account.status == AccountStatus.UNVERIFIED
        ]

    def get_pending_transactions(self) -> List[Transaction]:
        """Pending transactions across all accounts, each listed once"""
        pending: Dict[str, Transaction] = {}
        for account in self.account_registry.get_all_accounts().values():
            for transaction in account.transaction_history:
                if transaction.is_pending:
                    pending.setdefault(transaction.transaction_id, transaction)
        return list(pending.values())

    def find_transaction(self, transaction_id: str) -> Optional[Transaction]:
        for account in self.account_registry.get_all_accounts().values():
            for transaction in account.transaction_history:
                if transaction.transaction_id == transaction_id:
                    return transaction
        return None

    def approve_transaction(self, transaction_id: str, actor_id: Optional[int] = None) -> bool:
        """Resolve a pending transaction as SUCCESS"""
        transaction = self.find_transaction(transaction_id)
        if transaction is None or not transaction.mark_success():
            return False

        self.audit_trail.log_event(
            event_type=AuditEventType.TRANSACTION_APPROVED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=actor_id
        )
        return True

    def reject_transaction(self, transaction_id: str, actor_id: Optional[int] = None) -> bool:
        """Resolve a pending transaction as FAILED"""
        transaction = self.find_transaction(transaction_id)
        if transaction is None or not transaction.mark_failed():
            return False

        self.audit_trail.log_event(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            entity_type="transaction",
            entity_id=transaction_id,
            user_id=actor_id
        )
        return True

    def get_all_users(self) -> Dict[int, User]:
        return self.user_registry.get_all_users()

    def get_all_accounts(self) -> Dict[int, Account]:
        return self.account_registry.get_all_accounts()
