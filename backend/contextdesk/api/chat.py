"""
Chat API endpoints - store a user turn with its context, and store replies.
"""

import logging
from fastapi import APIRouter, HTTPException, Depends, status

from .deps import get_assembler, get_message_store, get_resolver, to_http_exception
from ..core.category_resolver import CategoryResolver
from ..core.context_assembler import ContextAssembler
from ..core.errors import ContextDeskError
from ..models import normalize_tags
from ..models.chat import AssistantReplyRequest, SubmitMessageRequest
from ..storage import MessageStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("")
async def submit_message(
    request: SubmitMessageRequest,
    assembler: ContextAssembler = Depends(get_assembler),
    resolver: CategoryResolver = Depends(get_resolver),
):
    """
    Store the latest user message and return the context gathered for it.

    The message is written before any memory or knowledge call, so it
    survives collaborator failures. A session awaiting a tag decision
    rejects new messages with 409.

    Returns:
        usedMemories, ragDocs, sessionId and userMsgId
    """
    if not request.user_id or not request.messages:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="userId and messages are required."
        )

    latest_user = next((m for m in reversed(request.messages) if m.role == "user"), None)
    if latest_user is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one user message is required."
        )

    tags = normalize_tags(request.tags)
    try:
        user_message = await resolver.submit_message(
            request.user_id,
            latest_user.content,
            tags=tags,
            attachments_meta=request.attachments_meta,
        )
    except ContextDeskError as e:
        raise to_http_exception(e) from e

    context = await assembler.assemble(request.user_id, latest_user.content, tags)

    return {
        "usedMemories": [m.to_json_dict() for m in context.memories],
        "ragDocs": [d.to_json_dict() for d in context.docs],
        "sessionId": user_message.session_id,
        "userMsgId": user_message.id,
    }


@router.post("/response")
async def save_assistant_reply(
    request: AssistantReplyRequest,
    message_store: MessageStore = Depends(get_message_store),
):
    """Persist an assistant reply produced outside the conversation pipeline."""
    if not request.session_id or not request.content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="sessionId and content are required."
        )

    try:
        message = await message_store.insert_message(
            request.session_id, "assistant", request.content, tags=request.tags
        )
    except ContextDeskError as e:
        raise to_http_exception(e) from e

    return {"msgId": message.id}
