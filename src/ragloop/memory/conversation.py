"""Bounded, ordered message window for one conversation."""

from __future__ import annotations

from langchain_core.messages import BaseMessage, SystemMessage, get_buffer_string

from ragloop.config import MemoryConfig


class ConversationMemory:
    """Keeps at most `max_messages` messages, evicting the oldest first.

    The cap counts every message, including the system message. A system
    message always sits at index 0, there is at most one, and it is never
    evicted: adding another system message replaces it in place.

    Not safe for concurrent mutation on its own; callers serialize access
    through the owning session's lock.
    """

    def __init__(self, config: MemoryConfig | None = None) -> None:
        self.config = config or MemoryConfig()
        self._messages: list[BaseMessage] = []

    @property
    def max_messages(self) -> int:
        return self.config.max_messages

    def __len__(self) -> int:
        return len(self._messages)

    def append(self, message: BaseMessage) -> None:
        if isinstance(message, SystemMessage):
            if self._has_system():
                self._messages[0] = message
            else:
                self._messages.insert(0, message)
        else:
            self._messages.append(message)
        self._evict_to_cap()

    def messages(self) -> list[BaseMessage]:
        return list(self._messages)

    def system_message(self) -> SystemMessage | None:
        if self._has_system():
            return self._messages[0]  # type: ignore[return-value]
        return None

    def clear(self) -> None:
        self._messages.clear()

    def snapshot(self) -> list[BaseMessage]:
        return list(self._messages)

    def restore(self, snapshot: list[BaseMessage]) -> None:
        self._messages = list(snapshot)

    def render(self) -> str:
        """Serialize the window as the plain-text context sent to the model."""

        return get_buffer_string(self._messages, human_prefix="User", ai_prefix="Assistant")

    def _has_system(self) -> bool:
        return bool(self._messages) and isinstance(self._messages[0], SystemMessage)

    def _evict_to_cap(self) -> None:
        first_evictable = 1 if self._has_system() else 0
        while len(self._messages) > self.max_messages and len(self._messages) > first_evictable:
            del self._messages[first_evictable]
