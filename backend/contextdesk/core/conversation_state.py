"""
Per-session conversation state for the tag-decision flow.

Each session holds exactly one of Idle, AwaitingTagDecision or Resolving.
State lives in process memory only and is lost on restart.
"""

import asyncio
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import AsyncIterator, Dict, List, Union

from .category_tools import SuggestCategory
from ..llm import LLMMessage


@dataclass
class PendingSuggestion:
    """A deferred tag decision and everything needed to resume the turn."""
    suggestion: SuggestCategory
    original_content: str
    original_user_message_id: str
    prompt_transcript: List[LLMMessage]
    tool_call_id: str
    session_id: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "suggestion": self.suggestion.to_dict(),
            "originalContent": self.original_content,
            "originalUserMessageId": self.original_user_message_id,
            "toolCallId": self.tool_call_id,
            "sessionId": self.session_id,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class AwaitingTagDecision:
    pending: PendingSuggestion
    name = "awaiting_tag_decision"


@dataclass(frozen=True)
class Resolving:
    pending: PendingSuggestion
    category_id: str
    name = "resolving"


ConversationState = Union[Idle, AwaitingTagDecision, Resolving]

IDLE = Idle()


class ConversationStateRegistry:
    """
    Holds one state slot and one lock per session id.

    A lock lives only while someone holds or waits for it, or while the
    session has a non-idle state.
    """

    def __init__(self):
        self._states: Dict[str, ConversationState] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def lock_for(self, session_id: str) -> AsyncIterator[None]:
        lock = self._locks.get(session_id)
        if lock is None:
            lock = self._locks[session_id] = asyncio.Lock()
        self._users[session_id] = self._users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[session_id] -= 1
            if not self._users[session_id]:
                del self._users[session_id]
                if session_id not in self._states:
                    del self._locks[session_id]

    def tracked_sessions(self) -> int:
        return len(self._locks)

    def get(self, session_id: str) -> ConversationState:
        return self._states.get(session_id, IDLE)

    def begin_awaiting(self, pending: PendingSuggestion) -> AwaitingTagDecision:
        state = AwaitingTagDecision(pending)
        self._states[pending.session_id] = state
        return state

    def begin_resolving(self, pending: PendingSuggestion, category_id: str) -> Resolving:
        state = Resolving(pending, category_id)
        self._states[pending.session_id] = state
        return state

    def clear(self, session_id: str) -> None:
        self._states.pop(session_id, None)
