"""
Category Models - Topic categories and their signal items.
"""

from typing import Optional, List
from pydantic import Field

from .base import CamelModel

DEFAULT_ICON = "Sparkles"
DEFAULT_ACCENT = "from-grokPurple to-grokBlue"


class Category(CamelModel):
    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    icon: str = DEFAULT_ICON
    accent: str = DEFAULT_ACCENT
    sort_order: int = 0
    pinned: bool = False


class CategoryItem(CamelModel):
    """A signal item owned by a category."""
    id: str = Field(..., min_length=1)
    category_id: str
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    emphasis: bool = False
    updated_at: Optional[str] = None
    sort_order: int = 0


class CategoryWithItems(Category):
    items: List[CategoryItem] = Field(default_factory=list)
