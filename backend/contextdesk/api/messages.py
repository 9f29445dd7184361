"""
Message API endpoints - history, deletion and tag updates.
"""

from fastapi import APIRouter, HTTPException, Depends, Query, status

from .deps import get_message_store, to_http_exception
from ..core.errors import ContextDeskError
from ..models.chat import DeleteMessagesRequest, UpdateTagsRequest
from ..storage import MessageStore

router = APIRouter(prefix="/messages", tags=["messages"])


@router.get("/{session_id}")
async def get_messages(
    session_id: str,
    limit: int = Query(100, ge=1, le=1000),
    message_store: MessageStore = Depends(get_message_store),
):
    """Most recent messages of a session, newest first."""
    messages = await message_store.get_recent(session_id, limit)
    return {"messages": [m.to_json_dict() for m in messages]}


@router.delete("")
async def delete_messages(
    request: DeleteMessagesRequest,
    message_store: MessageStore = Depends(get_message_store),
):
    """
    Delete exactly the listed messages.
    Paired replies are not removed; use the /pair endpoint for that.
    """
    if not request.message_ids:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="messageIds array is required."
        )
    deleted = await message_store.delete_messages(request.message_ids)
    return {"ok": True, "deleted": deleted}


@router.delete("/{message_id}/pair")
async def delete_message_pair(
    message_id: str,
    message_store: MessageStore = Depends(get_message_store),
):
    """Delete a user message together with the assistant reply directly after it."""
    try:
        reply = await message_store.find_paired_reply(message_id)
    except ContextDeskError as e:
        raise to_http_exception(e) from e

    ids = [message_id] + ([reply.id] if reply else [])
    deleted = await message_store.delete_messages(ids)
    return {"ok": True, "deleted": deleted, "messageIds": ids}


@router.patch("/{message_id}/tags")
async def update_message_tags(
    message_id: str,
    request: UpdateTagsRequest,
    message_store: MessageStore = Depends(get_message_store),
):
    """Replace the message's tags with the given list."""
    if request.tags is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="tags array is required."
        )
    try:
        tags = await message_store.update_tags(message_id, request.tags)
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return {"ok": True, "messageId": message_id, "tags": tags}
