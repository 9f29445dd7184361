"""
Message Store - Durable log of sessions and messages using StorageInterface.

Layout under the storage root:
    sessions/index.json                 list of sessions
    sessions/message_index.json         message_id -> session_id
    sessions/<session_id>/messages.json messages in insertion order
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from .interface import StorageInterface
from ..core.errors import MessageNotFoundError, SessionNotFoundError
from ..models import AttachmentMeta, Message, Session, normalize_tags

logger = logging.getLogger(__name__)


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:16]}"


class MessageStore:
    """
    Manages persistent storage of sessions and their messages.
    Read-modify-write cycles are serialized by a single lock, so one process
    must be the only writer for a storage root.
    """

    def __init__(self, storage: StorageInterface):
        self.storage = storage
        self.sessions_dir = "sessions"
        self._sessions_path = f"{self.sessions_dir}/index.json"
        self._message_index_path = f"{self.sessions_dir}/message_index.json"
        self._lock = asyncio.Lock()

    def _messages_path(self, session_id: str) -> str:
        return f"{self.sessions_dir}/{session_id}/messages.json"

    async def _load_sessions(self) -> List[Session]:
        raw = await self.storage.load_json(self._sessions_path, default=[])
        return [Session.model_validate(item) for item in raw]

    async def _save_sessions(self, sessions: List[Session]) -> None:
        await self.storage.save_json(self._sessions_path, [s.to_json_dict() for s in sessions])

    async def _load_messages(self, session_id: str) -> List[Message]:
        raw = await self.storage.load_json(self._messages_path(session_id), default=[])
        return [Message.model_validate(item) for item in raw]

    async def _save_messages(self, session_id: str, messages: List[Message]) -> None:
        await self.storage.save_json(
            self._messages_path(session_id), [m.to_json_dict() for m in messages]
        )

    async def _load_message_index(self) -> Dict[str, str]:
        return await self.storage.load_json(self._message_index_path, default={})

    # Sessions

    async def get_session(self, session_id: str) -> Optional[Session]:
        for session in await self._load_sessions():
            if session.id == session_id:
                return session
        return None

    async def get_current_session(self, user_id: str) -> Optional[Session]:
        """The most recently updated session for the user, if any."""
        owned = [s for s in await self._load_sessions() if s.user_id == user_id]
        if not owned:
            return None
        return max(owned, key=lambda s: s.updated_at)

    async def get_or_create_session(self, user_id: str) -> Session:
        """
        Return the user's current session, creating one on first contact.

        Args:
            user_id: User identifier

        Returns:
            Session: Existing or newly created session
        """
        async with self._lock:
            current = await self.get_current_session(user_id)
            if current is not None:
                return current

            session = Session(id=_new_id("session"), user_id=user_id)
            sessions = await self._load_sessions()
            sessions.append(session)
            await self._save_sessions(sessions)
            logger.info(
                f"Created session {session.id} for user {user_id}",
                extra={"extra_fields": {"session_id": session.id, "user_id": user_id}}
            )
            return session

    async def _touch(self, session_id: str) -> None:
        sessions = await self._load_sessions()
        for session in sessions:
            if session.id == session_id:
                session.updated_at = datetime.now(timezone.utc)
                await self._save_sessions(sessions)
                return
        raise SessionNotFoundError(session_id)

    async def touch_session(self, session_id: str) -> None:
        async with self._lock:
            await self._touch(session_id)

    # Messages

    async def insert_message(
        self,
        session_id: str,
        role: str,
        content: str,
        tags: Optional[Iterable[str]] = None,
        attachments_meta: Optional[List[AttachmentMeta]] = None
    ) -> Message:
        """
        Append a message to a session and bump the session's updated_at.

        Raises:
            SessionNotFoundError: If the session does not exist
        """
        async with self._lock:
            if await self.get_session(session_id) is None:
                raise SessionNotFoundError(session_id)

            message = Message(
                id=_new_id("msg"),
                session_id=session_id,
                role=role,
                content=content,
                tags=list(tags or []),
                attachments_meta=list(attachments_meta or []),
            )

            messages = await self._load_messages(session_id)
            messages.append(message)
            await self._save_messages(session_id, messages)

            index = await self._load_message_index()
            index[message.id] = session_id
            await self.storage.save_json(self._message_index_path, index)

            await self._touch(session_id)

        logger.debug(
            f"Inserted {role} message {message.id}",
            extra={"extra_fields": {
                "session_id": session_id,
                "message_id": message.id,
                "tags": message.tags,
            }}
        )
        return message

    async def get_recent(self, session_id: str, limit: int = 100) -> List[Message]:
        """
        Most recent messages, newest first.
        Chronological consumers must reverse the result themselves.
        """
        if limit <= 0:
            return []
        messages = await self._load_messages(session_id)
        # Reverse first so the stable sort keeps later inserts ahead on equal timestamps
        ordered = sorted(reversed(messages), key=lambda m: m.timestamp, reverse=True)
        return ordered[:limit]

    async def get_message(self, message_id: str) -> Optional[Message]:
        index = await self._load_message_index()
        session_id = index.get(message_id)
        if session_id is None:
            return None
        for message in await self._load_messages(session_id):
            if message.id == message_id:
                return message
        return None

    async def find_paired_reply(self, user_message_id: str) -> Optional[Message]:
        """
        The assistant message directly following a user message, if any.

        Only the explicit paired-delete path uses this; delete_messages never
        looks for pairs on its own.
        """
        index = await self._load_message_index()
        session_id = index.get(user_message_id)
        if session_id is None:
            raise MessageNotFoundError(user_message_id)

        chronological = list(reversed(await self.get_recent(session_id, limit=10**9)))
        for position, message in enumerate(chronological):
            if message.id != user_message_id:
                continue
            if message.role != "user" or position + 1 >= len(chronological):
                return None
            following = chronological[position + 1]
            return following if following.role == "assistant" else None
        return None

    async def delete_messages(self, message_ids: Iterable[str]) -> int:
        """
        Delete exactly the given ids. Unknown ids are ignored.

        Returns:
            int: Number of messages actually deleted
        """
        wanted = set(message_ids)
        if not wanted:
            return 0

        async with self._lock:
            index = await self._load_message_index()
            by_session: Dict[str, set] = {}
            for message_id in wanted:
                session_id = index.get(message_id)
                if session_id is not None:
                    by_session.setdefault(session_id, set()).add(message_id)

            deleted = 0
            for session_id, ids in by_session.items():
                messages = await self._load_messages(session_id)
                kept = [m for m in messages if m.id not in ids]
                deleted += len(messages) - len(kept)
                await self._save_messages(session_id, kept)
                for message_id in ids:
                    index.pop(message_id, None)

            await self.storage.save_json(self._message_index_path, index)

        logger.info(
            f"Deleted {deleted} message(s)",
            extra={"extra_fields": {"requested": sorted(wanted), "deleted": deleted}}
        )
        return deleted

    async def update_tags(self, message_id: str, tags: Iterable[str]) -> List[str]:
        """
        Replace a message's tag set. The replacement is total, never additive.

        Raises:
            MessageNotFoundError: If the message does not exist
        """
        async with self._lock:
            index = await self._load_message_index()
            session_id = index.get(message_id)
            if session_id is None:
                raise MessageNotFoundError(message_id)

            messages = await self._load_messages(session_id)
            for message in messages:
                if message.id == message_id:
                    message.tags = normalize_tags(list(tags))
                    await self._save_messages(session_id, messages)
                    return message.tags

        raise MessageNotFoundError(message_id)
