"""
Transaction Record Module

Immutable descriptions of requested money movements. A Transaction is
validated at construction and either exists in a valid state or is never
created. Its status moves PENDING -> SUCCESS | FAILED exactly once.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional
import uuid

from .amounts import AmountLike, to_amount, ZERO


class TransactionType(Enum):
    """Types of money movement"""
    DEPOSIT = "deposit"      # Credit to a target account
    WITHDRAW = "withdraw"    # Debit from a source account
    TRANSFER = "transfer"    # Source to target


class TransactionStatus(Enum):
    """Resolution status of a transaction"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(eq=False)
class Transaction:
    """
    Record of a requested money movement
    
    Equality and hashing are by transaction_id.
    """
    transaction_type: TransactionType
    amount: Decimal
    source_account_number: Optional[int] = None
    target_account_number: Optional[int] = None
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    status: TransactionStatus = field(default=TransactionStatus.PENDING, init=False)
    
    def __post_init__(self):
        if not isinstance(self.transaction_id, str) or not self.transaction_id.strip():
            raise ValueError("Transaction ID cannot be null or blank")
        
        if not isinstance(self.transaction_type, TransactionType):
            raise ValueError("Transaction type is required")
        
        amount = to_amount(self.amount)
        if amount is None or amount <= ZERO:
            raise ValueError("Amount must be positive")
        self.amount = amount
        
        self._validate_account_numbers()
    
    def _validate_account_numbers(self) -> None:
        """Check the account references each transaction type requires"""
        source = self.source_account_number
        target = self.target_account_number
        
        if self.transaction_type == TransactionType.DEPOSIT:
            if target is None:
                raise ValueError("Deposit requires a target account")
        elif self.transaction_type == TransactionType.WITHDRAW:
            if source is None:
                raise ValueError("Withdrawal requires a source account")
        elif self.transaction_type == TransactionType.TRANSFER:
            if source is None or target is None:
                raise ValueError("Transfer requires both source and target accounts")
            if source == target:
                raise ValueError("Cannot transfer to the same account")
    
    @classmethod
    def create(
        cls,
        transaction_type: TransactionType,
        amount: AmountLike,
        source_account_number: Optional[int] = None,
        target_account_number: Optional[int] = None,
        transaction_id: Optional[str] = None
    ) -> 'Transaction':
        """Create a transaction, generating an ID unless one is given"""
        kwargs = {}
        if transaction_id is not None:
            kwargs['transaction_id'] = transaction_id
        return cls(
            transaction_type=transaction_type,
            amount=amount,
            source_account_number=source_account_number,
            target_account_number=target_account_number,
            **kwargs
        )
    
    # Status management
    
    def mark_success(self) -> bool:
        """Resolve as SUCCESS; no-op once resolved"""
        if self.status == TransactionStatus.PENDING:
            self.status = TransactionStatus.SUCCESS
            return True
        return False
    
    def mark_failed(self) -> bool:
        """Resolve as FAILED; no-op once resolved"""
        if self.status == TransactionStatus.PENDING:
            self.status = TransactionStatus.FAILED
            return True
        return False
    
    @property
    def is_pending(self) -> bool:
        return self.status == TransactionStatus.PENDING
    
    @property
    def is_successful(self) -> bool:
        return self.status == TransactionStatus.SUCCESS
    
    @property
    def is_failed(self) -> bool:
        return self.status == TransactionStatus.FAILED
    
    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary"""
        return {
            'transaction_id': self.transaction_id,
            'transaction_type': self.transaction_type.value,
            'amount': str(self.amount),
            'source_account_number': self.source_account_number,
            'target_account_number': self.target_account_number,
            'timestamp': self.timestamp.isoformat(),
            'status': self.status.value
        }
    
    def __eq__(self, other) -> bool:
        if not isinstance(other, Transaction):
            return NotImplemented
        return self.transaction_id == other.transaction_id
    
    def __hash__(self) -> int:
        return hash(self.transaction_id)
