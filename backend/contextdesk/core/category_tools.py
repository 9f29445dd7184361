"""
Function tools offered to the model for categorising a conversation, and the
decoder that turns raw tool calls into typed actions.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from ..llm import ToolCall
from ..models import DEFAULT_ACCENT, DEFAULT_ICON

logger = logging.getLogger(__name__)

SUGGEST_CATEGORY = "suggest_category"
CREATE_CONTEXT_CATEGORY = "create_context_category"

_NEW_CATEGORY_PROPERTIES: Dict[str, Any] = {
    "title": {"type": "string", "description": "Short name for the category"},
    "description": {"type": "string", "description": "One-sentence summary of the topic"},
    "icon": {
        "type": "string",
        "description": "Icon name, e.g. Sparkles, Briefcase, Heart, Code, BookOpen",
    },
    "accent": {
        "type": "string",
        "description": "Tailwind gradient classes, e.g. 'from-grokPurple to-grokBlue'",
    },
    "signals": {
        "type": "array",
        "description": "Initial signal items to seed the category with",
        "items": {
            "type": "object",
            "properties": {
                "title": {"type": "string"},
                "description": {"type": "string"},
            },
            "required": ["title"],
        },
    },
}

SUGGEST_CATEGORY_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": SUGGEST_CATEGORY,
        "description": (
            "Suggest which context category this message belongs to: either one "
            "of the existing categories or a new one. The user confirms the choice."
        ),
        "parameters": {
            "type": "object",
            "properties": {
                "suggestion_type": {"type": "string", "enum": ["new", "existing"]},
                "existing_category_id": {
                    "type": "string",
                    "description": "Id of the existing category when suggestion_type is 'existing'",
                },
                "new_category": {
                    "type": "object",
                    "description": "The proposed category when suggestion_type is 'new'",
                    "properties": _NEW_CATEGORY_PROPERTIES,
                    "required": ["title"],
                },
                "reasoning": {"type": "string", "description": "Why this category fits"},
            },
            "required": ["suggestion_type", "reasoning"],
        },
    },
}

CREATE_CONTEXT_CATEGORY_TOOL: Dict[str, Any] = {
    "type": "function",
    "function": {
        "name": CREATE_CONTEXT_CATEGORY,
        "description": (
            "Create a new context category when the user starts a distinct topic "
            "or explicitly asks for a new focus area."
        ),
        "parameters": {
            "type": "object",
            "properties": _NEW_CATEGORY_PROPERTIES,
            "required": ["title", "description"],
        },
    },
}


@dataclass
class SignalProposal:
    title: str
    description: Optional[str] = None


@dataclass
class CategoryProposal:
    """A category the model wants to create."""
    title: str
    description: Optional[str] = None
    icon: str = DEFAULT_ICON
    accent: str = DEFAULT_ACCENT
    signals: List[SignalProposal] = field(default_factory=list)

    @staticmethod
    def from_args(args: Dict[str, Any]) -> "CategoryProposal":
        title = args.get("title")
        if not isinstance(title, str) or not title.strip():
            raise ValueError("category proposal needs a title")
        signals = []
        for signal in args.get("signals") or []:
            if isinstance(signal, dict) and signal.get("title"):
                signals.append(SignalProposal(str(signal["title"]), signal.get("description")))
        return CategoryProposal(
            title=title.strip(),
            description=args.get("description") or None,
            icon=args.get("icon") or DEFAULT_ICON,
            accent=args.get("accent") or DEFAULT_ACCENT,
            signals=signals,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "icon": self.icon,
            "accent": self.accent,
            "signals": [{"title": s.title, "description": s.description} for s in self.signals],
        }


@dataclass
class SuggestCategory:
    tool_call_id: str
    suggestion_type: str  # "new" or "existing"
    reasoning: str = ""
    existing_category_id: Optional[str] = None
    new_category: Optional[CategoryProposal] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.suggestion_type,
            "existingCategoryId": self.existing_category_id,
            "newCategory": self.new_category.to_dict() if self.new_category else None,
            "reasoning": self.reasoning,
        }


@dataclass
class CreateCategory:
    tool_call_id: str
    proposal: CategoryProposal


CategoryAction = Union[SuggestCategory, CreateCategory]


def _decode(call: ToolCall) -> Optional[CategoryAction]:
    args = json.loads(call.arguments or "{}")
    if not isinstance(args, dict):
        raise ValueError("tool arguments must be a JSON object")

    if call.name == SUGGEST_CATEGORY:
        suggestion_type = args.get("suggestion_type")
        if suggestion_type not in ("new", "existing"):
            raise ValueError(f"unknown suggestion_type {suggestion_type!r}")
        new_category = None
        if suggestion_type == "new":
            new_category = CategoryProposal.from_args(args.get("new_category") or {})
        return SuggestCategory(
            tool_call_id=call.id,
            suggestion_type=suggestion_type,
            reasoning=str(args.get("reasoning") or ""),
            existing_category_id=args.get("existing_category_id") or None,
            new_category=new_category,
        )

    if call.name == CREATE_CONTEXT_CATEGORY:
        return CreateCategory(tool_call_id=call.id, proposal=CategoryProposal.from_args(args))

    return None


def decode_tool_calls(calls: List[ToolCall]) -> List[CategoryAction]:
    """Decode each call once; unknown tools and malformed arguments are skipped."""
    actions: List[CategoryAction] = []
    for call in calls:
        try:
            action = _decode(call)
        except (ValueError, TypeError) as e:
            logger.warning(
                f"Skipping malformed tool call {call.name}: {e}",
                extra={"extra_fields": {"tool_call_id": call.id, "tool": call.name}}
            )
            continue
        if action is None:
            logger.warning(
                f"Skipping unknown tool call {call.name}",
                extra={"extra_fields": {"tool_call_id": call.id, "tool": call.name}}
            )
            continue
        actions.append(action)
    return actions
