"""
Request bodies for the chat, message, category and conversation endpoints.

Required fields are declared optional here on purpose where the handler must
answer with a 400 and a readable message instead of a 422 validation dump.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import AliasChoices, Field

from .base import CamelModel
from .session import AttachmentMeta, MessageRole


class ChatTurnMessage(CamelModel):
    role: MessageRole
    content: str


class SubmitMessageRequest(CamelModel):
    user_id: Optional[str] = None
    messages: List[ChatTurnMessage] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    attachments_meta: Optional[List[AttachmentMeta]] = Field(
        default=None,
        validation_alias=AliasChoices("attachmentsMeta", "attachments_meta", "attachments"),
    )


class AssistantReplyRequest(CamelModel):
    session_id: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)


class DeleteMessagesRequest(CamelModel):
    message_ids: List[str] = Field(default_factory=list)


class UpdateTagsRequest(CamelModel):
    tags: Optional[List[str]] = None


class CategoryItemUpsertRequest(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    emphasis: bool = False
    updated_at: Optional[str] = None
    sort_order: int = 0


class CategoryUpsertRequest(CamelModel):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    icon: Optional[str] = None
    accent: Optional[str] = None
    sort_order: int = 0
    pinned: bool = False


class DescriptionPatch(CamelModel):
    description: Optional[str] = None


class IconPatch(CamelModel):
    icon: Optional[str] = None


class AccentPatch(CamelModel):
    accent: Optional[str] = None


class IngestDocument(CamelModel):
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)


class IngestRequest(CamelModel):
    namespace: Optional[str] = None
    documents: Optional[List[IngestDocument]] = None


class ConversationTurnRequest(CamelModel):
    """One inbound utterance for the full orchestration pipeline."""
    user_id: Optional[str] = None
    content: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    attachments_meta: Optional[List[AttachmentMeta]] = None
    active_category_id: Optional[str] = None


DecisionAction = Literal["accept", "select", "force_fallback", "dismiss"]


class DecisionRequest(CamelModel):
    action: DecisionAction
    category_id: Optional[str] = None
