import logging
import threading
from typing import Dict, Optional, Tuple

from momentum.models import DEFAULT_GOAL, Session, generate_session_id


class SessionStore:
    """In-memory mapping of session identifier -> Session.

    The store is the only owner of session state. Callers doing a
    read-modify-write hold `lock` for the whole operation.
    """

    def __init__(self, default_goal: int = DEFAULT_GOAL, id_length: int = 4,
                 id_max_attempts: int = 100, id_fallback_length: int = 5,
                 logger: Optional[logging.Logger] = None) -> None:
        self._sessions: Dict[str, Session] = {}
        self.lock = threading.RLock()
        self.default_goal = default_goal
        self.id_length = id_length
        self.id_max_attempts = id_max_attempts
        self.id_fallback_length = id_fallback_length
        self.logger = logger or logging.getLogger(__name__)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def create(self, session_id: Optional[str] = None) -> Tuple[str, Session]:
        """Create a session, under `session_id` when given and still free."""
        with self.lock:
            if session_id and session_id in self._sessions:
                return session_id, self._sessions[session_id]
            if not session_id:
                session_id = generate_session_id(
                    self.__contains__,
                    length=self.id_length,
                    max_attempts=self.id_max_attempts,
                    fallback_length=self.id_fallback_length,
                )
                if len(session_id) != self.id_length:
                    self.logger.warning(
                        f"[session-id-fallback] id={session_id} attempts={self.id_max_attempts} count={len(self._sessions)}"
                    )
                self.logger.info(f"[session-create] id={session_id}")
            else:
                # Stale or bookmarked link: recreate under the requested id
                self.logger.info(f"[session-recreate] id={session_id}")
            session = Session(player_goal=self.default_goal, opponent_goal=self.default_goal)
            self._sessions[session_id] = session
            return session_id, session

    def resolve(self, requested_id: Optional[str] = None) -> Tuple[str, Session]:
        with self.lock:
            if requested_id:
                session = self._sessions.get(requested_id)
                if session is not None:
                    return requested_id, session
            return self.create(requested_id)

    def delete(self, session_id: str) -> None:
        with self.lock:
            self._sessions.pop(session_id, None)

    def count(self) -> int:
        return len(self._sessions)
