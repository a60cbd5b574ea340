"""
User Management Module

Users own an ordered collection of accounts. An account can belong to at
most one user; the User asks the Account to record the owner and only keeps
the account if that succeeds.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import threading

from .accounts import Account
from .config import get_config
from .sequences import IdSequence


_user_ids = IdSequence(get_config().user_id_start)


def reset_user_ids(start: Optional[int] = None) -> None:
    """Restart user ID assignment (defaults to the configured start)"""
    _user_ids.reset(start if start is not None else get_config().user_id_start)


class Role(Enum):
    """User roles"""
    CLIENT = "client"
    ADMIN = "admin"


def _require_text(value: Optional[str], label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{label} cannot be null or blank")
    return value


@dataclass(eq=False)
class User:
    """
    Bank user with credentials and owned accounts

    The password is compared as plain text; this core has no real
    authentication.
    """
    name: str
    email: str
    password: str
    role: Role = Role.CLIENT
    phone: Optional[str] = None
    user_id: int = field(init=False)
    created_at: datetime = field(init=False)
    _accounts: List[Account] = field(default_factory=list, init=False, repr=False)
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self):
        _require_text(self.name, "Name")
        _require_text(self.email, "Email")
        _require_text(self.password, "Password")
        if not isinstance(self.role, Role):
            raise ValueError("Role cannot be null")

        self.user_id = _user_ids.next()
        self.created_at = datetime.now(timezone.utc)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def accounts(self) -> Tuple[Account, ...]:
        with self._lock:
            return tuple(self._accounts)

    def check_password(self, password: Optional[str]) -> bool:
        return self.password == password

    # Profile updates

    def set_name(self, name: str) -> None:
        self.name = _require_text(name, "Name")

    def set_email(self, email: str) -> None:
        self.email = _require_text(email, "Email")

    def set_password(self, password: str) -> None:
        self.password = _require_text(password, "Password")

    def set_role(self, role: Role) -> None:
        if not isinstance(role, Role):
            raise ValueError("Role cannot be null")
        self.role = role

    # Account management

    def add_account(self, account: Optional[Account]) -> bool:
        """
        Take ownership of an account

        Fails if the account is None, already in this user's collection, or
        owned by a different user.
        """
        if account is None:
            return False
        with self._lock:
            if account in self._accounts:
                return False
            if not account.assign_to_user(self.user_id):
                return False
            self._accounts.append(account)
            return True

    def remove_account(self, account: Optional[Account]) -> bool:
        """Give up ownership of an account held by this user"""
        if account is None:
            return False
        with self._lock:
            if account not in self._accounts:
                return False
            self._accounts.remove(account)
        account.clear_owner()
        return True

    def owns(self, account: Optional[Account]) -> bool:
        if account is None:
            return False
        with self._lock:
            return account in self._accounts

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-friendly dictionary (no password)"""
        return {
            'user_id': self.user_id,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role.value,
            'account_numbers': [account.account_number for account in self.accounts],
            'created_at': self.created_at.isoformat()
        }

    def __eq__(self, other) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        return self.user_id == other.user_id

    def __hash__(self) -> int:
        return hash(self.user_id)
