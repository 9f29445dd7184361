"""
Service wiring shared by the routers.

Services are built once at startup by init_services() and read back through
the get_* functions, which routers use as FastAPI dependencies.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import HTTPException, status

from ..core.category_resolver import CategoryResolver
from ..core.context_assembler import ContextAssembler
from ..core.conversation_state import ConversationStateRegistry
from ..core.errors import (
    CategoryNotFoundError,
    CompletionError,
    ContextDeskError,
    MessageNotFoundError,
    NoPendingSuggestionError,
    SessionNotFoundError,
    SuggestionPendingError,
    ValidationError,
)
from ..llm import LLMProvider, create_llm_provider
from ..memory import KnowledgeStore, create_knowledge_store, create_memory_provider
from ..storage import CategoryStore, LocalStorage, MessageStore, StorageInterface

logger = logging.getLogger(__name__)


@dataclass
class Services:
    storage: StorageInterface
    message_store: MessageStore
    category_store: CategoryStore
    knowledge_store: Optional[KnowledgeStore]
    assembler: ContextAssembler
    resolver: CategoryResolver


_services: Optional[Services] = None


def init_services(
    config,
    storage: Optional[StorageInterface] = None,
    llm: Optional[LLMProvider] = None,
) -> Services:
    """
    Initialize the global service container.

    Args:
        config: Settings instance
        storage: Optional StorageInterface implementation. If None, creates LocalStorage.
        llm: Optional completion provider. If None, builds one from config.
    """
    global _services
    if storage is None:
        storage = LocalStorage(config.local_storage_path)
    if llm is None:
        llm = create_llm_provider(
            provider=config.llm_provider,
            api_key=config.llm_api_key,
            model=config.llm_model,
            base_url=config.llm_base_url,
            default_temperature=config.llm_temperature,
            default_max_tokens=config.llm_max_tokens,
            default_top_p=config.llm_top_p,
        )

    message_store = MessageStore(storage)
    category_store = CategoryStore(storage)
    knowledge_store = create_knowledge_store(storage)
    assembler = ContextAssembler(
        memory_provider=create_memory_provider(
            config.memory_provider,
            storage=storage,
            api_key=config.mem0_api_key,
            base_url=config.mem0_base_url,
        ),
        knowledge_store=knowledge_store,
        default_namespace=config.knowledge_default_namespace,
        memory_search_limit=config.memory_search_limit,
        knowledge_top_k=config.knowledge_top_k,
        timeout=config.collaborator_timeout_seconds,
    )
    resolver = CategoryResolver(
        message_store,
        category_store,
        assembler,
        registry=ConversationStateRegistry(),
        llm=llm,
        persona=config.assistant_persona,
        history_window=config.history_window,
        temperature=config.llm_temperature,
        top_p=config.llm_top_p,
        max_tokens=config.llm_max_tokens,
    )

    _services = Services(
        storage=storage,
        message_store=message_store,
        category_store=category_store,
        knowledge_store=knowledge_store,
        assembler=assembler,
        resolver=resolver,
    )
    logger.info(
        "Services initialized",
        extra={"extra_fields": {
            "llm_provider": config.llm_provider if llm else None,
            "memory_provider": config.memory_provider,
        }}
    )
    return _services


def get_services() -> Services:
    """
    Get the global service container.

    Raises:
        RuntimeError: If services have not been initialized
    """
    if _services is None:
        raise RuntimeError("Services not initialized. Call init_services() first.")
    return _services


def get_message_store() -> MessageStore:
    return get_services().message_store


def get_category_store() -> CategoryStore:
    return get_services().category_store


def get_knowledge_store() -> Optional[KnowledgeStore]:
    return get_services().knowledge_store


def get_assembler() -> ContextAssembler:
    return get_services().assembler


def get_resolver() -> CategoryResolver:
    return get_services().resolver


def to_http_exception(exc: ContextDeskError) -> HTTPException:
    """Translate a domain error into the matching HTTP response."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, (SessionNotFoundError, MessageNotFoundError, CategoryNotFoundError)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (SuggestionPendingError, NoPendingSuggestionError)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, CompletionError):
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="The completion service is unavailable"
        )
    logger.error(f"Unhandled domain error: {exc!r}", exc_info=exc)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="Internal storage error"
    )
