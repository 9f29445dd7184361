"""
OpenAI-compatible LLM Provider.
Uses the Chat Completions endpoint with function tools over plain httpx.
"""

import httpx
import logging
import time
from typing import Optional, List, Dict, Any

from .base import LLMProvider, LLMMessage, LLMResponse, ToolCall

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """
    Provider for OpenAI and any API speaking the same chat/completions format.
    """

    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str = "https://api.openai.com/v1",
        default_temperature: float = 0.6,
        default_max_tokens: int = 700,
        default_top_p: float = 0.9,
        timeout: float = 120.0,
    ):
        super().__init__(api_key, model, base_url.rstrip("/"), default_temperature,
                         default_max_tokens, default_top_p)
        self.timeout = timeout

    def _get_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _build_payload(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float],
        max_tokens: Optional[int],
        tools: Optional[List[Dict[str, Any]]],
        tool_choice: Optional[str],
        **kwargs
    ) -> Dict[str, Any]:
        top_p = kwargs.get("top_p")
        payload: Dict[str, Any] = {
            "model": kwargs.get("model", self.model),
            "messages": self._format_messages(messages),
            "temperature": temperature if temperature is not None else self.default_temperature,
            "top_p": top_p if top_p is not None else self.default_top_p,
            "max_tokens": max_tokens or self.default_max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = tool_choice or "auto"
        return payload

    async def chat_completion(
        self,
        messages: List[LLMMessage],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Send request to the Chat Completions endpoint."""
        start_time = time.time()
        url = f"{self.base_url}/chat/completions"
        payload = self._build_payload(messages, temperature, max_tokens, tools, tool_choice, **kwargs)

        if logger.isEnabledFor(logging.DEBUG):
            message_summary = f"{len(messages)} messages"
            if messages:
                first_msg = str(messages[0].content)[:200] if messages[0].content else ""
                message_summary += f", first: {first_msg}"
            logger.debug(
                f"LLM API call starting: provider={self.provider_name}, model={payload['model']}, "
                f"temperature={payload['temperature']}, tools={len(tools or [])}, {message_summary}"
            )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(url, json=payload, headers=self._get_headers())
                logger.debug(f"LLM API response status: {resp.status_code}")
                resp.raise_for_status()
                data = resp.json()

            message = data["choices"][0]["message"]
            usage = data.get("usage", {})
            tool_calls = [ToolCall.from_dict(call) for call in message.get("tool_calls") or []]
            duration_ms = (time.time() - start_time) * 1000

            logger.info(
                f"LLM API call completed",
                extra={"extra_fields": {
                    "provider": self.provider_name,
                    "model": data.get("model", self.model),
                    "prompt_tokens": usage.get("prompt_tokens", 0),
                    "completion_tokens": usage.get("completion_tokens", 0),
                    "total_tokens": usage.get("total_tokens", 0),
                    "tool_calls": [call.name for call in tool_calls],
                    "duration_ms": round(duration_ms, 2),
                }}
            )

            return LLMResponse(
                content=message.get("content") or "",
                model=data.get("model", self.model),
                usage=usage,
                tool_calls=tool_calls,
                raw=data,
            )
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"LLM API call failed: {str(e)}",
                exc_info=True,
                extra={"extra_fields": {
                    "provider": self.provider_name,
                    "model": payload.get("model"),
                    "duration_ms": round(duration_ms, 2),
                    "error": str(e),
                }}
            )
            raise
