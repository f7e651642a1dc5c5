import itertools
import logging
import time
from typing import Callable, Dict, Optional

from momentum.store import SessionStore


class LifecycleController:
    """Guest accounting and debounced reclamation of abandoned sessions.

    A session whose guest count drops to zero is not deleted straight away:
    a timer is armed for `grace_sec` and the session is only removed if, when
    the timer fires, it is still the armed timer and the session still has
    no guests. A subscribe in the meantime cancels the pending timer.
    """

    def __init__(self, store: SessionStore, grace_sec: float,
                 start_task: Callable[..., object],
                 sleep: Callable[[float], object] = time.sleep,
                 logger: Optional[logging.Logger] = None) -> None:
        self.store = store
        self.grace_sec = grace_sec
        self._start_task = start_task
        self._sleep = sleep
        self.logger = logger or logging.getLogger(__name__)
        self._pending: Dict[str, int] = {}
        self._tickets = itertools.count(1)

    def is_pending(self, session_id: str) -> bool:
        return session_id in self._pending

    def guest_joined(self, session_id: str) -> Optional[int]:
        with self.store.lock:
            session = self.store.get(session_id)
            if session is None:
                return None
            session.guest_count += 1
            self.cancel(session_id)
            return session.guest_count

    def guest_left(self, session_id: str) -> Optional[int]:
        with self.store.lock:
            session = self.store.get(session_id)
            if session is None:
                return None
            session.guest_count = max(0, session.guest_count - 1)
            if session.guest_count <= 0:
                self.schedule(session_id)
            return session.guest_count

    def cancel(self, session_id: str) -> None:
        with self.store.lock:
            if self._pending.pop(session_id, None) is None:
                return
        self.logger.info(f"[reclaim-cancel] id={session_id}")

    def schedule(self, session_id: str) -> int:
        with self.store.lock:
            ticket = next(self._tickets)
            self._pending[session_id] = ticket
        self.logger.info(f"[reclaim-set] id={session_id} ticket={ticket} grace={self.grace_sec}s")
        self._start_task(self._runner, session_id, ticket)
        return ticket

    def _runner(self, session_id: str, ticket: int) -> None:
        if self.grace_sec > 0:
            self._sleep(self.grace_sec)
        self.reclaim_if_idle(session_id, ticket)

    def reclaim_if_idle(self, session_id: str, ticket: int) -> bool:
        """Delete the session if `ticket` is still current and nobody joined."""
        with self.store.lock:
            if self._pending.get(session_id) != ticket:
                self.logger.info(f"[reclaim-skip] id={session_id} ticket={ticket} stale")
                return False
            del self._pending[session_id]
            session = self.store.get(session_id)
            if session is None or session.guest_count > 0:
                self.logger.info(f"[reclaim-skip] id={session_id} ticket={ticket} revived or gone")
                return False
            self.store.delete(session_id)
            self.logger.info(f"[reclaim-fire] id={session_id} count={self.store.count()}")
            return True
