"""Volatile in-process session and message store used in standalone mode."""

from __future__ import annotations

from dataclasses import replace
from threading import Lock
from typing import Dict, List, Optional

from taurus_ai.broker.errors import SessionNotFoundError
from taurus_ai.broker.models import Message, Session, now_ms


def _copy(session: Session) -> Session:
    return replace(session, raw=dict(session.raw))


class SessionStore:
    """
    Sessions and their ordered messages, guarded by one lock.

    Nothing is persisted; state lives for the lifetime of the store object.
    Callers receive copies of sessions and message lists, so nothing handed
    out can change stored state or observe later writes.
    """

    def __init__(self) -> None:
        self._lock = Lock()
        self._sessions: Dict[str, Session] = {}
        self._messages: Dict[str, List[Message]] = {}

    def list_sessions(self) -> List[Session]:
        with self._lock:
            sessions = [_copy(session) for session in self._sessions.values()]
        return sorted(sessions, key=lambda session: session.updated, reverse=True)

    def create_session(self, title: Optional[str] = None) -> Session:
        session = Session.new(title)
        with self._lock:
            self._sessions[session.id] = session
            self._messages[session.id] = []
        return _copy(session)

    def get_session(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return _copy(session)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            self._sessions.pop(session_id, None)
            self._messages.pop(session_id, None)
        return True

    def get_messages(self, session_id: str) -> List[Message]:
        with self._lock:
            return list(self._messages.get(session_id, []))

    def append_message(self, session_id: str, message: Message) -> List[Message]:
        """Append ``message`` and return a snapshot of the conversation including it."""
        with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            messages = self._messages.setdefault(session_id, [])
            messages.append(message)
            return list(messages)

    def touch(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.updated = max(now_ms(), session.updated)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
