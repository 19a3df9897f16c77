"""Session registry for the HTTP/SSE binding.

A session is born when a client opens the event stream and dies when that
stream ends (client disconnect or server shutdown). Closed ids are removed
from the registry for good; a later POST naming one is "Session not found".
"""

from __future__ import annotations

import asyncio
import secrets
import time
from dataclasses import dataclass, field
from typing import Any

import structlog

from docscout.errors import TransportError

log = structlog.get_logger()

SESSION_ID_BYTES = 32


@dataclass
class Session:
    id: str
    created_at: float = field(default_factory=time.time)
    closed: bool = False
    # Outbound messages for the event stream; ``None`` wakes the stream to exit.
    outbox: asyncio.Queue[dict[str, Any] | None] = field(default_factory=asyncio.Queue)

    def send(self, message: dict[str, Any]) -> None:
        if self.closed:
            raise TransportError(f"Session {self.id} is closed")
        self.outbox.put_nowait(message)

    def close(self) -> None:
        if not self.closed:
            self.closed = True
            self.outbox.put_nowait(None)


class SessionRegistry:
    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}

    def open(self) -> Session:
        session = Session(id=secrets.token_urlsafe(SESSION_ID_BYTES))
        self._sessions[session.id] = session
        log.info("session_opened", session_id=session.id, active=len(self._sessions))
        return session

    def get(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None or session.closed:
            raise TransportError(
                "Session not found",
                suggestion="Open a new event stream to obtain a fresh session id.",
            )
        return session

    def close(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()
            log.info("session_closed", session_id=session_id, active=len(self._sessions))

    def close_all(self) -> None:
        for session_id in list(self._sessions):
            self.close(session_id)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
