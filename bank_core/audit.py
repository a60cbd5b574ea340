"""
Audit Trail Module

Append-only record of everything that changes who is logged in, what state
an account is in, or where money went. Each event carries the SHA-256 hash
of its predecessor, so editing or dropping an event breaks the chain and
shows up in verify_integrity().
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional
import hashlib
import json
import threading
import uuid


class AuditEventType(Enum):
    """What happened"""
    USER_REGISTERED = "user_registered"
    USER_ADDED = "user_added"
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"

    ACCOUNT_CREATED = "account_created"
    ACCOUNT_VERIFIED = "account_verified"
    ACCOUNT_SUSPENDED = "account_suspended"
    ACCOUNT_APPEALED = "account_appealed"
    ACCOUNT_CLOSED = "account_closed"

    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_APPROVED = "transaction_approved"
    TRANSACTION_REJECTED = "transaction_rejected"


def _jsonable(value: Any) -> Any:
    """Reduce amounts, timestamps, enums and containers to plain JSON values"""
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


@dataclass
class AuditEvent:
    """One link in the audit chain"""
    event_type: AuditEventType
    entity_type: str
    entity_id: str
    previous_hash: str
    current_hash: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)
    user_id: Optional[int] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.metadata = _jsonable(self.metadata or {})

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'created_at': self.created_at.isoformat(),
            'event_type': self.event_type.value,
            'entity_type': self.entity_type,
            'entity_id': self.entity_id,
            'user_id': self.user_id,
            'metadata': self.metadata,
            'previous_hash': self.previous_hash,
            'current_hash': self.current_hash,
        }

    def calculate_hash(self) -> str:
        """Hash of the canonical JSON form, current_hash excluded"""
        content = self.to_dict()
        del content['current_hash']
        canonical = json.dumps(content, sort_keys=True, separators=(',', ':'))
        return hashlib.sha256(canonical.encode('utf-8')).hexdigest()

    def verify_hash(self) -> bool:
        return self.calculate_hash() == self.current_hash


class AuditTrail:
    """
    In-memory hash chain of audit events

    A disabled trail accepts log_event calls and drops them, which keeps
    callers free of enabled checks.
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._events: List[AuditEvent] = []
        self._lock = threading.Lock()

    def log_event(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: Any,
        metadata: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None
    ) -> Optional[AuditEvent]:
        """
        Append an event to the chain

        Args:
            event_type: What happened
            entity_type: "user", "account" or "transaction"
            entity_id: Identifier of the entity, stored as a string
            metadata: Event details; amounts, enums and timestamps are converted
            user_id: Acting user, if known

        Returns:
            The appended event, or None if the trail is disabled
        """
        if not self.enabled:
            return None

        with self._lock:
            event = AuditEvent(
                event_type=event_type,
                entity_type=entity_type,
                entity_id=str(entity_id),
                previous_hash=self._events[-1].current_hash if self._events else "",
                metadata=metadata,
                user_id=user_id
            )
            event.current_hash = event.calculate_hash()
            self._events.append(event)
        return event

    # Queries

    def get_all_events(self, limit: Optional[int] = None) -> List[AuditEvent]:
        """Events oldest first; with limit, only the most recent ones"""
        with self._lock:
            events = list(self._events)
        return events[-limit:] if limit else events

    def get_events_for_entity(self, entity_type: str, entity_id: Any) -> List[AuditEvent]:
        key = str(entity_id)
        return [
            event for event in self.get_all_events()
            if event.entity_type == entity_type and event.entity_id == key
        ]

    def get_events_by_type(self, event_type: AuditEventType) -> List[AuditEvent]:
        return [event for event in self.get_all_events() if event.event_type == event_type]

    def count_events(self) -> int:
        with self._lock:
            return len(self._events)

    def get_latest_hash(self) -> Optional[str]:
        with self._lock:
            return self._events[-1].current_hash if self._events else None

    def verify_integrity(self) -> Dict[str, Any]:
        """
        Walk the chain and report tampering

        hash_errors lists events whose content no longer matches their
        hash; chain_breaks lists events whose previous_hash does not match
        the event before them.
        """
        events = self.get_all_events()
        hash_errors = []
        chain_breaks = []

        expected_previous = ""
        for position, event in enumerate(events):
            actual = event.calculate_hash()
            if actual != event.current_hash:
                hash_errors.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_hash': actual,
                    'actual_hash': event.current_hash
                })
            if event.previous_hash != expected_previous:
                chain_breaks.append({
                    'event_id': event.id,
                    'position': position,
                    'expected_previous_hash': expected_previous,
                    'actual_previous_hash': event.previous_hash
                })
            expected_previous = event.current_hash

        return {
            'valid': not hash_errors and not chain_breaks,
            'total_events': len(events),
            'hash_errors': hash_errors,
            'chain_breaks': chain_breaks
        }
