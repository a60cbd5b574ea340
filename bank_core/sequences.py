"""
Identifier Sequences

Monotonic, lock-protected integer sequences used for account numbers and
user IDs. Numbers are never reused within a process unless a sequence is
explicitly reset.
"""

import threading
from typing import Optional


class IdSequence:
    """Thread-safe monotonically increasing integer sequence"""
    
    def __init__(self, start: int):
        self._start = start
        self._next = start
        self._lock = threading.Lock()
    
    def next(self) -> int:
        """Issue the next identifier"""
        with self._lock:
            value = self._next
            self._next += 1
            return value
    
    def peek(self) -> int:
        """Identifier that the next call to next() will issue"""
        with self._lock:
            return self._next
    
    def reset(self, start: Optional[int] = None) -> None:
        """Restart the sequence at start (or the original start)"""
        with self._lock:
            if start is not None:
                self._start = start
            self._next = self._start
