"""
xAI Grok LLM Provider.
The xAI API is OpenAI-compatible, so only the defaults differ.
"""

from .openai_provider import OpenAIProvider


class GrokProvider(OpenAIProvider):
    """Provider for the xAI Grok chat/completions endpoint."""

    provider_name = "xai"

    def __init__(
        self,
        api_key: str,
        model: str = "grok-beta",
        base_url: str = "https://api.x.ai/v1",
        **kwargs
    ):
        super().__init__(api_key, model=model, base_url=base_url, **kwargs)
