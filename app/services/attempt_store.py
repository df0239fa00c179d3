"""
In-process store for multi-step upload attempts.

An attempt (employee import, payslip batch) lives here between the upload
request and the commit request. Entries expire after a TTL; expiry and
explicit discard have no side effects because nothing is written before
commit.
"""

import threading
from datetime import datetime, timedelta
from typing import Dict, Generic, Optional, Protocol, TypeVar
from uuid import UUID

from app.utils.time import utc_now


class Attempt(Protocol):
    id: UUID
    expires_at: datetime


AttemptT = TypeVar("AttemptT", bound=Attempt)


class AttemptStore(Generic[AttemptT]):
    """Attempts keyed by id, dropped once their TTL has passed."""

    def __init__(self, ttl_minutes: int):
        self.ttl = timedelta(minutes=ttl_minutes)
        self._attempts: Dict[UUID, AttemptT] = {}
        self._lock = threading.Lock()

    def new_expiry(self) -> datetime:
        return utc_now() + self.ttl

    def _purge(self) -> None:
        now = utc_now()
        for attempt_id in [k for k, a in self._attempts.items() if a.expires_at <= now]:
            del self._attempts[attempt_id]

    def put(self, attempt: AttemptT) -> None:
        with self._lock:
            self._purge()
            self._attempts[attempt.id] = attempt

    def get(self, attempt_id: UUID) -> Optional[AttemptT]:
        with self._lock:
            self._purge()
            return self._attempts.get(attempt_id)

    def discard(self, attempt_id: UUID) -> bool:
        with self._lock:
            return self._attempts.pop(attempt_id, None) is not None

    def __len__(self) -> int:
        with self._lock:
            self._purge()
            return len(self._attempts)
