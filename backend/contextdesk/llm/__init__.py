"""LLM module - provides unified interface for LLM API providers."""

from .base import LLMProvider, LLMMessage, LLMResponse, ToolCall
from .openai_provider import OpenAIProvider
from .grok_provider import GrokProvider
from .factory import create_llm_provider

__all__ = [
    'LLMProvider',
    'LLMMessage',
    'LLMResponse',
    'ToolCall',
    'OpenAIProvider',
    'GrokProvider',
    'create_llm_provider',
]
