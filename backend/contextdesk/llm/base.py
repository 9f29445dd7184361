"""
LLM Provider Base - Abstract base for all LLM API providers.
Supports tool calling in the OpenAI-compatible function format.
"""

import json
from abc import ABC, abstractmethod
from typing import Dict, Any, Optional, List, Union
from dataclasses import dataclass, field


@dataclass
class ToolCall:
    """A structured action request returned by the model."""
    id: str
    name: str
    arguments: str  # raw JSON string as returned by the API

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "ToolCall":
        function = data.get("function") or {}
        arguments = function.get("arguments", "")
        if not isinstance(arguments, str):
            arguments = json.dumps(arguments)
        return ToolCall(id=data.get("id", ""), name=function.get("name", ""), arguments=arguments)


@dataclass
class LLMMessage:
    """
    Represents a message in a conversation.
    Assistant messages may carry tool calls; tool messages answer one by id.
    """
    role: str  # "system", "user", "assistant", "tool"
    content: Optional[Union[str, List[Dict[str, Any]]]]
    tool_calls: Optional[List[ToolCall]] = None
    tool_call_id: Optional[str] = None

    @staticmethod
    def text(role: str, text: str) -> "LLMMessage":
        """Create a text-only message."""
        return LLMMessage(role=role, content=text)

    @staticmethod
    def assistant_tool_calls(tool_calls: List[ToolCall], content: Optional[str] = None) -> "LLMMessage":
        return LLMMessage(role="assistant", content=content, tool_calls=list(tool_calls))

    @staticmethod
    def tool_result(tool_call_id: str, payload: Dict[str, Any]) -> "LLMMessage":
        """Create a tool message answering the call with the given id."""
        return LLMMessage(role="tool", content=json.dumps(payload), tool_call_id=tool_call_id)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id:
            data["tool_call_id"] = self.tool_call_id
        return data


@dataclass
class LLMResponse:
    """Response from an LLM API call."""
    content: str
    model: str = ""
    usage: Dict[str, int] = field(default_factory=dict)
    tool_calls: List[ToolCall] = field(default_factory=list)
    raw: Optional[Dict[str, Any]] = None


class LLMProvider(ABC):
    """
    Abstract base class for LLM API providers.
    All providers must implement chat_completion.
    """

    def __init__(self, api_key: str, model: str, base_url: Optional[str] = None,
                 default_temperature: float = 0.6, default_max_tokens: int = 700,
                 default_top_p: float = 0.9):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url
        self.default_temperature = default_temperature
        self.default_max_tokens = default_max_tokens
        self.default_top_p = default_top_p

    @abstractmethod
    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages
            temperature: Sampling temperature override
            max_tokens: Max tokens override
            tools: Function tool schemas offered to the model
            tool_choice: "auto", "required" or "none"; ignored without tools
            **kwargs: Additional provider-specific parameters (model, top_p)

        Returns:
            LLMResponse with the generated content and any tool calls
        """
        pass

    def _format_messages(self, messages: List[LLMMessage]) -> List[Dict[str, Any]]:
        """Convert LLMMessage list to API-compatible format."""
        return [m.to_dict() for m in messages]
