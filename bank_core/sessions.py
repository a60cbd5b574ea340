"""
User Registry and Session Module

Keeps the id -> User and email -> User indices consistent and tracks which
user is authenticated in each session. A registry always has a default
session for single-caller use; further sessions can be opened so that
several callers can be logged in at once.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Dict, Optional
import secrets
import threading

from .accounts import Account
from .amounts import AmountLike
from .audit import AuditTrail, AuditEventType
from .logging_config import get_logger, log_action
from .users import Role, User

if TYPE_CHECKING:
    from .registry import AccountRegistry


class Session:
    """Handle for one caller's authenticated state"""

    def __init__(self, session_id: Optional[str] = None):
        self.session_id = session_id or secrets.token_urlsafe(24)
        self.created_at = datetime.now(timezone.utc)
        self._user: Optional[User] = None
        self._lock = threading.Lock()

    @property
    def user(self) -> Optional[User]:
        with self._lock:
            return self._user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def set_user(self, user: Optional[User]) -> None:
        with self._lock:
            self._user = user

    def clear(self) -> None:
        self.set_user(None)


class UserRegistry:
    """
    Registry of users plus session handling

    Session-scoped operations take an optional ``session``; when omitted the
    registry's default session is used.
    """

    def __init__(
        self,
        audit_trail: Optional[AuditTrail] = None,
        account_registry: Optional['AccountRegistry'] = None
    ):
        self.audit_trail = audit_trail or AuditTrail()
        self.account_registry = account_registry
        self.logger = get_logger("bank_core.sessions")

        self._users_by_id: Dict[int, User] = {}
        self._users_by_email: Dict[str, User] = {}
        self._lock = threading.RLock()

        self.session = Session()
        self._sessions: Dict[str, Session] = {self.session.session_id: self.session}

    def _resolve(self, session: Optional[Session]) -> Session:
        return session if session is not None else self.session

    # Sessions

    def open_session(self) -> Session:
        """Open a new, unauthenticated session"""
        session = Session()
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get_session(self, session_id: Optional[str]) -> Optional[Session]:
        if not session_id:
            return None
        with self._lock:
            return self._sessions.get(session_id)

    def close_session(self, session_id: str) -> bool:
        """Log out and forget a session; the default session cannot be closed"""
        with self._lock:
            if session_id == self.session.session_id:
                return False
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.clear()
        return True

    # User registration

    def _insert(self, user: User) -> bool:
        with self._lock:
            if user.email in self._users_by_email or user.user_id in self._users_by_id:
                return False
            self._users_by_id[user.user_id] = user
            self._users_by_email[user.email] = user
            return True

    def register_user(
        self,
        name: str,
        email: str,
        password: str,
        phone: Optional[str] = None,
        session: Optional[Session] = None
    ) -> bool:
        """
        Register a new CLIENT user and log them in

        Fails if the email is already registered or a field is invalid.
        """
        with self._lock:
            if email in self._users_by_email:
                log_action(self.logger, "info", "Registration rejected: email already registered",
                           action="register_user", extra={"email": email})
                return False

            try:
                user = User(name=name, email=email, password=password, phone=phone, role=Role.CLIENT)
            except ValueError as e:
                log_action(self.logger, "info", f"Registration rejected: {e}",
                           action="register_user", extra={"email": email})
                return False

            if not self._insert(user):
                log_action(self.logger, "warning", f"Registration rejected: user ID {user.user_id} already taken",
                           action="register_user", extra={"email": email})
                return False

        self._resolve(session).set_user(user)

        self.audit_trail.log_event(
            event_type=AuditEventType.USER_REGISTERED,
            entity_type="user",
            entity_id=user.user_id,
            metadata={"email": user.email, "role": user.role},
            user_id=user.user_id
        )
        log_action(self.logger, "info", "User registered", user_id=user.user_id,
                   action="register_user", resource=f"user:{user.user_id}")
        return True

    def add_user(self, user: User) -> bool:
        """
        Privileged insertion of an existing user

        Unlike register_user this never touches any session and accepts any
        role. Fails on duplicate email or ID.
        """
        if user is None or not self._insert(user):
            return False

        self.audit_trail.log_event(
            event_type=AuditEventType.USER_ADDED,
            entity_type="user",
            entity_id=user.user_id,
            metadata={"email": user.email, "role": user.role}
        )
        return True

    # Authentication

    def login(self, email: str, password: str, session: Optional[Session] = None) -> bool:
        """Authenticate by email and plain-text password"""
        user = self.get_user_by_email(email)
        if user is None or not user.check_password(password):
            self.audit_trail.log_event(
                event_type=AuditEventType.LOGIN_FAILED,
                entity_type="user",
                entity_id=user.user_id if user else email,
                metadata={"reason": "unknown email" if user is None else "password mismatch"}
            )
            log_action(self.logger, "warning", "Login failed", action="login",
                       extra={"email": email})
            return False

        self._resolve(session).set_user(user)

        self.audit_trail.log_event(
            event_type=AuditEventType.LOGIN_SUCCESS,
            entity_type="user",
            entity_id=user.user_id,
            user_id=user.user_id
        )
        log_action(self.logger, "info", "Login succeeded", user_id=user.user_id, action="login")
        return True

    def logout(self, session: Optional[Session] = None) -> None:
        """Clear the session's user unconditionally"""
        target = self._resolve(session)
        user = target.user
        target.clear()

        if user is not None:
            self.audit_trail.log_event(
                event_type=AuditEventType.LOGOUT,
                entity_type="user",
                entity_id=user.user_id,
                user_id=user.user_id
            )

    def get_current_user(self, session: Optional[Session] = None) -> Optional[User]:
        return self._resolve(session).user

    def set_current_user(self, user: Optional[User], session: Optional[Session] = None) -> None:
        self._resolve(session).set_user(user)

    def is_logged_in(self, session: Optional[Session] = None) -> bool:
        return self._resolve(session).is_authenticated

    # Accounts

    def create_account(self, initial_balance: AmountLike, session: Optional[Session] = None) -> bool:
        """Open an account owned by the session's user"""
        user = self.get_current_user(session)
        if user is None:
            log_action(self.logger, "info", "Account creation rejected: no session user",
                       action="create_account")
            return False

        try:
            account = Account(initial_balance)
        except ValueError as e:
            log_action(self.logger, "info", f"Account creation rejected: {e}",
                       user_id=user.user_id, action="create_account")
            return False

        if not user.add_account(account):
            return False

        if self.account_registry is not None and not self.account_registry.register_account(account):
            user.remove_account(account)
            return False

        self.audit_trail.log_event(
            event_type=AuditEventType.ACCOUNT_CREATED,
            entity_type="account",
            entity_id=account.account_number,
            metadata={"initial_balance": account.balance, "owner_user_id": user.user_id},
            user_id=user.user_id
        )
        log_action(self.logger, "info", "Account created", user_id=user.user_id,
                   action="create_account", resource=f"account:{account.account_number}")
        return True

    # Lookups

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users_by_id.get(user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        with self._lock:
            return self._users_by_email.get(email)

    def get_all_users(self) -> Dict[int, User]:
        with self._lock:
            return dict(self._users_by_id)
