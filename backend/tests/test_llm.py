"""
Unit tests for the LLM module.
Tests LLMMessage, ToolCall, providers, and factory.
"""

import pytest
import json
from unittest.mock import AsyncMock, patch, MagicMock

from contextdesk.llm.base import LLMMessage, LLMResponse, ToolCall
from contextdesk.llm.openai_provider import OpenAIProvider
from contextdesk.llm.grok_provider import GrokProvider
from contextdesk.llm.factory import create_llm_provider


def _mock_client(mock_client, payload):
    mock_response = MagicMock()
    mock_response.json.return_value = payload
    mock_response.raise_for_status = MagicMock()

    mock_instance = AsyncMock()
    mock_instance.post.return_value = mock_response
    mock_instance.__aenter__ = AsyncMock(return_value=mock_instance)
    mock_instance.__aexit__ = AsyncMock(return_value=False)
    mock_client.return_value = mock_instance
    return mock_instance


class TestLLMMessage:
    """Tests for LLMMessage dataclass."""

    def test_text_message(self):
        msg = LLMMessage.text("user", "Hello")
        assert msg.to_dict() == {"role": "user", "content": "Hello"}

    def test_tool_result(self):
        msg = LLMMessage.tool_result("call-1", {"success": True})
        assert msg.to_dict() == {
            "role": "tool",
            "content": json.dumps({"success": True}),
            "tool_call_id": "call-1",
        }

    def test_assistant_tool_calls(self):
        call = ToolCall(id="call-1", name="suggest_category", arguments="{}")
        data = LLMMessage.assistant_tool_calls([call]).to_dict()
        assert data["role"] == "assistant"
        assert data["content"] is None
        assert data["tool_calls"] == [{
            "id": "call-1",
            "type": "function",
            "function": {"name": "suggest_category", "arguments": "{}"},
        }]


class TestToolCall:

    def test_from_dict_keeps_string_arguments(self):
        call = ToolCall.from_dict({
            "id": "c1",
            "type": "function",
            "function": {"name": "create_context_category", "arguments": '{"title": "X"}'},
        })
        assert call.name == "create_context_category"
        assert json.loads(call.arguments) == {"title": "X"}

    def test_from_dict_serializes_object_arguments(self):
        call = ToolCall.from_dict({"id": "c1", "function": {"name": "n", "arguments": {"a": 1}}})
        assert json.loads(call.arguments) == {"a": 1}


class TestLLMResponse:

    def test_defaults(self):
        resp = LLMResponse(content="Hello!", model="grok-beta")
        assert resp.usage == {}
        assert resp.tool_calls == []
        assert resp.raw is None


class TestOpenAIProvider:
    """Tests for OpenAI-compatible provider."""

    def test_init_defaults(self):
        provider = OpenAIProvider(api_key="test-key")
        assert provider.model == "gpt-4o"
        assert provider.base_url == "https://api.openai.com/v1"
        assert provider.default_temperature == 0.6
        assert provider.default_top_p == 0.9
        assert provider.default_max_tokens == 700

    def test_headers(self):
        provider = OpenAIProvider(api_key="sk-test123")
        headers = provider._get_headers()
        assert headers["Authorization"] == "Bearer sk-test123"
        assert headers["Content-Type"] == "application/json"

    @pytest.mark.asyncio
    async def test_chat_completion_success(self):
        provider = OpenAIProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {
                "choices": [{"message": {"content": "Test response"}}],
                "model": "gpt-4o",
                "usage": {"prompt_tokens": 10, "completion_tokens": 5},
            })

            result = await provider.chat_completion([LLMMessage.text("user", "Hello")])

            assert result.content == "Test response"
            assert result.tool_calls == []
            payload = mock_instance.post.call_args.kwargs["json"]
            assert payload["temperature"] == 0.6
            assert payload["top_p"] == 0.9
            assert payload["max_tokens"] == 700
            assert "tools" not in payload

    @pytest.mark.asyncio
    async def test_chat_completion_with_tools(self):
        provider = OpenAIProvider(api_key="test-key")
        tool = {"type": "function", "function": {"name": "suggest_category", "parameters": {}}}

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {
                "choices": [{"message": {
                    "content": None,
                    "tool_calls": [{
                        "id": "call-9",
                        "type": "function",
                        "function": {"name": "suggest_category", "arguments": "{\"suggestion_type\": \"new\"}"},
                    }],
                }}],
                "model": "gpt-4o",
            })

            result = await provider.chat_completion(
                [LLMMessage.text("user", "Hello")], tools=[tool], tool_choice="required"
            )

            assert result.content == ""
            assert result.tool_calls[0].id == "call-9"
            payload = mock_instance.post.call_args.kwargs["json"]
            assert payload["tools"] == [tool]
            assert payload["tool_choice"] == "required"

    @pytest.mark.asyncio
    async def test_http_error_is_raised(self):
        provider = OpenAIProvider(api_key="test-key")

        with patch("httpx.AsyncClient") as mock_client:
            mock_instance = _mock_client(mock_client, {})
            mock_instance.post.return_value.raise_for_status.side_effect = RuntimeError("500")

            with pytest.raises(RuntimeError):
                await provider.chat_completion([LLMMessage.text("user", "Hello")])


class TestGrokProvider:

    def test_init_defaults(self):
        provider = GrokProvider(api_key="xai-key")
        assert provider.model == "grok-beta"
        assert provider.base_url == "https://api.x.ai/v1"
        assert provider.provider_name == "xai"


class TestLLMFactory:
    """Tests for LLM provider factory."""

    def test_create_openai_provider(self):
        provider = create_llm_provider(provider="openai", api_key="test-key", model="gpt-4o-mini")
        assert isinstance(provider, OpenAIProvider)
        assert provider.model == "gpt-4o-mini"

    @pytest.mark.parametrize("name", ["xai", "grok"])
    def test_create_grok_provider(self, name):
        assert isinstance(create_llm_provider(provider=name, api_key="k"), GrokProvider)

    def test_no_api_key_returns_none(self):
        assert create_llm_provider(provider="xai", api_key="") is None
        assert create_llm_provider(provider="xai", api_key=None) is None

    def test_unsupported_provider_raises(self):
        with pytest.raises(ValueError, match="Unsupported"):
            create_llm_provider(provider="unsupported", api_key="key")

    def test_custom_base_url(self):
        provider = create_llm_provider(provider="openai", api_key="key", base_url="https://custom.api.com/v1")
        assert provider.base_url == "https://custom.api.com/v1"
