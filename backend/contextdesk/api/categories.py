"""
Category API endpoints - catalog management and signal items.
"""

from typing import Literal, Optional
from fastapi import APIRouter, HTTPException, Depends, Query, status

from .deps import get_category_store, get_message_store, to_http_exception
from ..core.errors import ContextDeskError
from ..models import Category, CategoryItem, DEFAULT_ACCENT, DEFAULT_ICON
from ..models.chat import (
    AccentPatch,
    CategoryItemUpsertRequest,
    CategoryUpsertRequest,
    DescriptionPatch,
    IconPatch,
)
from ..storage import CategoryStore, MessageStore

router = APIRouter(prefix="/categories", tags=["categories"])

RECENT_MESSAGE_WINDOW = 200


@router.get("")
async def list_categories(
    order: Literal["store", "display"] = Query("store"),
    user_id: Optional[str] = Query(None, alias="userId"),
    category_store: CategoryStore = Depends(get_category_store),
    message_store: MessageStore = Depends(get_message_store),
):
    """
    List categories with their items.

    order=display puts pinned first, then the most recently used in the
    user's current session, then the rest by title.
    """
    categories = await category_store.list_categories()

    if order == "display":
        messages = []
        if user_id:
            session = await message_store.get_current_session(user_id)
            if session is not None:
                messages = await message_store.get_recent(session.id, RECENT_MESSAGE_WINDOW)
        categories = category_store.order_for_display(categories, messages)

    with_items = await category_store.list_with_items(categories)
    return {"categories": [c.to_json_dict() for c in with_items]}


@router.post("")
async def upsert_category(
    request: CategoryUpsertRequest,
    category_store: CategoryStore = Depends(get_category_store),
):
    if not request.id or not request.title:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="id and title are required."
        )
    await category_store.upsert(Category(
        id=request.id,
        title=request.title,
        description=request.description or None,
        icon=request.icon or DEFAULT_ICON,
        accent=request.accent or DEFAULT_ACCENT,
        sort_order=request.sort_order,
        pinned=request.pinned,
    ))
    return {"ok": True}


@router.post("/{category_id}/pin")
async def toggle_pin(
    category_id: str,
    category_store: CategoryStore = Depends(get_category_store),
):
    try:
        pinned = await category_store.toggle_pinned(category_id)
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return {"ok": True, "pinned": pinned}


async def _update(category_store: CategoryStore, category_id: str, **fields) -> dict:
    try:
        await category_store.update_fields(category_id, **fields)
    except ContextDeskError as e:
        raise to_http_exception(e) from e
    return {"ok": True}


@router.patch("/{category_id}/description")
async def update_description(
    category_id: str,
    request: DescriptionPatch,
    category_store: CategoryStore = Depends(get_category_store),
):
    return await _update(category_store, category_id, description=request.description or None)


@router.patch("/{category_id}/icon")
async def update_icon(
    category_id: str,
    request: IconPatch,
    category_store: CategoryStore = Depends(get_category_store),
):
    return await _update(category_store, category_id, icon=request.icon or DEFAULT_ICON)


@router.patch("/{category_id}/accent")
async def update_accent(
    category_id: str,
    request: AccentPatch,
    category_store: CategoryStore = Depends(get_category_store),
):
    return await _update(category_store, category_id, accent=request.accent or DEFAULT_ACCENT)


@router.post("/{category_id}/items")
async def upsert_item(
    category_id: str,
    request: CategoryItemUpsertRequest,
    category_store: CategoryStore = Depends(get_category_store),
):
    if not request.id or not request.title:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="id and title are required."
        )
    await category_store.upsert_item(CategoryItem(
        id=request.id,
        category_id=category_id,
        title=request.title,
        description=request.description or None,
        emphasis=request.emphasis,
        updated_at=request.updated_at,
        sort_order=request.sort_order,
    ))
    return {"ok": True}


@router.delete("/{category_id}/items/{item_id}")
async def delete_item(
    category_id: str,
    item_id: str,
    category_store: CategoryStore = Depends(get_category_store),
):
    await category_store.delete_item(item_id)
    return {"ok": True}


@router.delete("/{category_id}")
async def delete_category(
    category_id: str,
    category_store: CategoryStore = Depends(get_category_store),
):
    """Delete a category and its items. Message tags keep referencing it."""
    await category_store.delete_category(category_id)
    return {"ok": True}
