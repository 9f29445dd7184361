"""
Knowledge API endpoints - ingest documents into a namespace.
"""

from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, status

from .deps import get_knowledge_store, to_http_exception
from ..core.errors import ContextDeskError
from ..memory import KnowledgeStore
from ..models.chat import IngestRequest

router = APIRouter(prefix="/rag", tags=["knowledge"])


@router.post("/ingest")
async def ingest_documents(
    request: IngestRequest,
    knowledge_store: Optional[KnowledgeStore] = Depends(get_knowledge_store),
):
    if not request.namespace or request.documents is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="namespace and documents array are required."
        )
    if knowledge_store is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Knowledge store is not configured."
        )

    try:
        count = await knowledge_store.upsert(
            request.namespace,
            [{"text": doc.text, "metadata": doc.metadata} for doc in request.documents],
        )
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return {"ok": True, "count": count}
