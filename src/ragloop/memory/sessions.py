"""Process-wide session map with one serialization lock per session."""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field

from ragloop.config import MemoryConfig
from ragloop.memory.conversation import ConversationMemory
from ragloop.obs.logging import get_logger

logger = get_logger(__name__)


@dataclass(slots=True)
class Session:
    """A conversation identity: its memory plus the lock guarding it.

    Hold `lock` for a whole request (every model call and tool batch in it),
    not per message, so concurrent requests on one session never interleave.
    """

    session_id: str
    memory: ConversationMemory
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class SessionStore:
    """In-memory sessions; nothing survives a process restart."""

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()
        self._sessions: dict[str, Session] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def create(self) -> Session:
        session_id = str(uuid.uuid4())
        session = self._new_session(session_id)
        logger.info("Created new session: %s", session_id)
        return session

    def get(self, session_id: str) -> Session | None:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str | None) -> Session:
        if session_id is None:
            return self.create()
        session = self._sessions.get(session_id)
        if session is None:
            session = self._new_session(session_id)
            logger.info("Created session on first use: %s", session_id)
        return session

    def clear(self, session_id: str) -> bool:
        removed = self._sessions.pop(session_id, None) is not None
        if removed:
            logger.info("Cleared session: %s", session_id)
        return removed

    def _new_session(self, session_id: str) -> Session:
        session = Session(session_id=session_id, memory=ConversationMemory(self.config))
        self._sessions[session_id] = session
        return session
