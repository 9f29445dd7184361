"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_PERSONA = (
    "You are an adaptive operations co-pilot. Maintain a resilient tone and "
    "weave in relevant context signals when responding."
)


class Settings(BaseSettings):
    """Application settings."""

    # App info
    app_name: str = "ContextDesk"
    app_version: str = "1.0.0"
    debug: bool = True

    # Storage
    local_storage_path: str = "./data"

    # Completion provider settings
    llm_provider: str = "xai"  # "xai" / "grok" or "openai"
    llm_api_key: Optional[str] = None
    llm_model: Optional[str] = None  # uses provider default if not set
    llm_base_url: Optional[str] = None  # uses provider default if not set
    llm_temperature: float = 0.6
    llm_top_p: float = 0.9
    llm_max_tokens: int = 700

    # Memory collaborator
    memory_provider: str = "local"  # "local", "mem0" or "none"
    mem0_api_key: Optional[str] = None
    mem0_base_url: str = "https://api.mem0.ai"
    memory_search_limit: int = 8

    # Knowledge collaborator
    knowledge_default_namespace: str = "default"
    knowledge_top_k: int = 5

    # Conversation pipeline
    assistant_persona: str = DEFAULT_PERSONA
    history_window: int = 12
    collaborator_timeout_seconds: float = 20.0

    # CORS
    cors_origins: list[str] = [
        "http://localhost:5173",
        "http://localhost:3000",
        "http://127.0.0.1:5173",
    ]

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/contextdesk.log"
    log_file_enabled: bool = True
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log all API requests/responses
    log_llm_calls: bool = True  # Log completion calls with token usage

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
