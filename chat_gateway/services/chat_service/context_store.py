import threading
from typing import Dict, List

from ...core.logging import logger

USER_LABEL = "Usuario"
ASSISTANT_LABEL = "Asistente"
DEFAULT_SESSION_ID = "default"


class ContextStore:
    """
    Process-resident conversation log per session.

    Each session holds at most `max_turn_pairs` user/assistant pairs; the
    oldest pair is dropped first. Nothing survives a restart.
    """

    def __init__(self, max_turn_pairs: int = 3):
        if max_turn_pairs < 1:
            raise ValueError("max_turn_pairs must be at least 1")
        self.max_messages = max_turn_pairs * 2
        self._sessions: Dict[str, List[str]] = {}
        self._lock = threading.Lock()

    def get(self, session_id: str) -> List[str]:
        with self._lock:
            return list(self._sessions.get(session_id, []))

    def append(self, session_id: str, user_prompt: str, assistant_text: str) -> List[str]:
        with self._lock:
            messages = self._sessions.setdefault(session_id, [])
            messages.append(f"{USER_LABEL}: {user_prompt}")
            messages.append(f"{ASSISTANT_LABEL}: {assistant_text}")

            evicted = 0
            while len(messages) > self.max_messages:
                del messages[:2]
                evicted += 2
            snapshot = list(messages)

        if evicted:
            logger.debug("Evicted oldest context turns", session_id=session_id, evicted=evicted)
        return snapshot

    def clear(self, session_id: str) -> bool:
        """Drop a session; returns False when it did not exist."""
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def __contains__(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
