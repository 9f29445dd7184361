"""
Session Models - Defines structures for chat sessions and their messages.
"""

from datetime import datetime, timezone
from typing import Optional, List, Literal
from pydantic import AliasChoices, Field, field_validator

from .base import CamelModel

MessageRole = Literal["system", "user", "assistant"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_tags(tags: Optional[List[str]]) -> List[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen = []
    for tag in tags or []:
        if tag and tag not in seen:
            seen.append(tag)
    return seen


class Session(CamelModel):
    """A user's conversation context; the newest-updated one is current."""
    id: str
    user_id: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class AttachmentMeta(CamelModel):
    """Attachment metadata. Raw file content never reaches the server."""
    name: str
    size: int = 0
    kind: str = Field(
        default="text",
        validation_alias=AliasChoices("kind", "type"),
        serialization_alias="kind",
    )
    mime_type: Optional[str] = None


class Message(CamelModel):
    """A single persisted chat message."""
    id: str
    session_id: str
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)
    tags: List[str] = Field(default_factory=list)
    attachments_meta: List[AttachmentMeta] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value):
        return normalize_tags(value)
