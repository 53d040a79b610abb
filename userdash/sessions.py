"""Per-browser-session dashboard controllers."""

from __future__ import annotations

import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional, Tuple

from .controller import DashboardController


@dataclass
class _SessionRecord:
    controller: DashboardController
    expires_at: datetime


class DashboardSessions:
    """Hand each browser session its own controller and view state."""

    def __init__(
        self,
        factory: Callable[[], DashboardController],
        *,
        ttl: timedelta = timedelta(hours=8),
    ) -> None:
        self._factory = factory
        self._ttl = ttl
        self._sessions: Dict[str, _SessionRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create(self) -> Tuple[str, DashboardController]:
        token = secrets.token_urlsafe(32)
        now = self._now()
        controller = self._factory()
        with self._lock:
            self._prune(now)
            self._sessions[token] = _SessionRecord(controller=controller, expires_at=now + self._ttl)
        return token, controller

    def resolve(self, token: Optional[str]) -> Optional[DashboardController]:
        if not token:
            return None
        now = self._now()
        with self._lock:
            record = self._sessions.get(token)
            if record is None:
                return None
            if record.expires_at <= now:
                self._sessions.pop(token, None)
                return None
            record.expires_at = now + self._ttl
            return record.controller

    def destroy(self, token: str) -> None:
        with self._lock:
            self._sessions.pop(token, None)

    def _prune(self, now: datetime) -> None:
        expired = [token for token, record in self._sessions.items() if record.expires_at <= now]
        for token in expired:
            del self._sessions[token]

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)


__all__ = ["DashboardSessions"]
