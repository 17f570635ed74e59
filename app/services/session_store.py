"""
Process-wide, in-memory store for platform OAuth sessions.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, Dict

from app.models.oauth import Platform, PlatformSession


def epoch_millis() -> int:
    return int(time.time() * 1000)


class SessionStore:
    """Hold the current session snapshot for each platform.

    Readers receive immutable snapshots; replacement happens atomically under a
    lock. Only ``TokenRefreshCoordinator`` is expected to call ``replace``.
    """

    def __init__(self, clock: Callable[[], int] = epoch_millis) -> None:
        self._lock = threading.Lock()
        self._sessions: Dict[Platform, PlatformSession] = {
            platform: PlatformSession() for platform in Platform
        }
        self._clock = clock

    def now_ms(self) -> int:
        return self._clock()

    def get(self, platform: Platform) -> PlatformSession:
        with self._lock:
            return self._sessions[platform]

    def is_authenticated(self, platform: Platform) -> bool:
        return self.get(platform).is_valid(self.now_ms())

    def replace(self, platform: Platform, session: PlatformSession) -> None:
        with self._lock:
            self._sessions[platform] = session


__all__ = ["SessionStore", "epoch_millis"]
