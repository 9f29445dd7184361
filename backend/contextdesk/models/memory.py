"""
Boundary types exchanged with the memory and knowledge collaborators.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import Field

from .base import CamelModel

MemoryType = Literal["preference", "profile", "goal", "note"]
MEMORY_TYPES = ("preference", "profile", "goal", "note")


class MemoryAtom(CamelModel):
    """A short extracted fact about a user."""
    text: str
    type: MemoryType = "note"
    tags: List[str] = Field(default_factory=list)


class KnowledgeDoc(CamelModel):
    """A retrievable domain-knowledge snippet."""
    id: Optional[str] = None
    text: str
    metadata: Dict[str, Any] = Field(default_factory=dict)
