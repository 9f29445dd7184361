"""
Conversation API endpoints - full turn orchestration and tag decisions.
"""

from typing import Any, Dict
from fastapi import APIRouter, Depends

from .deps import get_resolver, to_http_exception
from ..core.category_resolver import CategoryResolver, DecisionResult, TurnResult
from ..core.conversation_state import AwaitingTagDecision, Resolving
from ..core.errors import ContextDeskError
from ..models.chat import ConversationTurnRequest, DecisionRequest

router = APIRouter(prefix="/conversation", tags=["conversation"])


def _turn_to_dict(result: TurnResult) -> Dict[str, Any]:
    return {
        "status": result.status,
        "sessionId": result.session_id,
        "userMsgId": result.user_message_id,
        "tags": result.tags,
        "reply": result.reply.to_json_dict() if result.reply else None,
        "suggestion": result.suggestion,
        "createdCategories": [c.to_json_dict() for c in result.created_categories],
        "usedMemories": [m.to_json_dict() for m in result.used_memories],
        "ragDocs": [d.to_json_dict() for d in result.rag_docs],
    }


def _decision_to_dict(result: DecisionResult) -> Dict[str, Any]:
    return {
        "status": result.status,
        "sessionId": result.session_id,
        "categoryId": result.category_id,
        "reply": result.reply.to_json_dict() if result.reply else None,
        "error": result.error,
    }


@router.post("/turn")
async def conversation_turn(
    request: ConversationTurnRequest,
    resolver: CategoryResolver = Depends(get_resolver),
):
    """
    Run one user utterance through storage, context assembly, completion and
    category resolution. Returns status "replied" or "awaiting_tag_decision".
    """
    try:
        result = await resolver.handle_turn(
            request.user_id,
            request.content,
            tags=request.tags,
            attachments_meta=request.attachments_meta,
            active_category_id=request.active_category_id,
        )
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return _turn_to_dict(result)


@router.get("/{session_id}/pending")
async def get_pending(
    session_id: str,
    resolver: CategoryResolver = Depends(get_resolver),
):
    state = resolver.get_state(session_id)
    body: Dict[str, Any] = {"state": state.name}
    if isinstance(state, (AwaitingTagDecision, Resolving)):
        body["suggestion"] = state.pending.to_dict()
    return body


@router.post("/{session_id}/decision")
async def decide(
    session_id: str,
    request: DecisionRequest,
    resolver: CategoryResolver = Depends(get_resolver),
):
    """Accept, select, dismiss or force the fallback for a pending suggestion."""
    try:
        result = await resolver.decide(session_id, request.action, request.category_id)
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return _decision_to_dict(result)
