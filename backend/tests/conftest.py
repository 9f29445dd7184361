"""
Shared test fixtures and configuration.
"""

import json
import os
import tempfile

import pytest
from typing import List, Optional

# Set test environment variables before importing app modules
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("LOCAL_STORAGE_PATH", os.path.join(tempfile.gettempdir(), "contextdesk_test_data"))

from contextdesk.core.context_assembler import ContextAssembler
from contextdesk.core.category_resolver import CategoryResolver
from contextdesk.llm.base import LLMProvider, LLMResponse, ToolCall
from contextdesk.memory import LocalKnowledgeStore, LocalMemoryProvider
from contextdesk.models import Category
from contextdesk.storage import CategoryStore, LocalStorage, MessageStore


class ScriptedLLM(LLMProvider):
    """
    Completion provider that replays queued responses.
    Queue an Exception instance to make the next call raise it.
    """

    def __init__(self, responses: Optional[list] = None):
        super().__init__(api_key="test", model="scripted")
        self.responses = list(responses or [])
        self.calls: List[dict] = []

    def queue(self, *responses) -> None:
        self.responses.extend(responses)

    async def chat_completion(self, messages, temperature=None, max_tokens=None,
                              tools=None, tool_choice=None, **kwargs) -> LLMResponse:
        self.calls.append({
            "messages": list(messages),
            "tools": tools,
            "tool_choice": tool_choice,
        })
        if not self.responses:
            return LLMResponse(content="ok", model="scripted")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def tool_response(name: str, arguments: dict, call_id: str = "call-1", content: str = "") -> LLMResponse:
    return LLMResponse(
        content=content,
        model="scripted",
        tool_calls=[ToolCall(id=call_id, name=name, arguments=json.dumps(arguments))],
    )


@pytest.fixture
def make_tool_response():
    return tool_response


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def message_store(storage):
    return MessageStore(storage)


@pytest.fixture
def category_store(storage):
    return CategoryStore(storage)


@pytest.fixture
def memory_provider(storage):
    return LocalMemoryProvider(storage)


@pytest.fixture
def knowledge_store(storage):
    return LocalKnowledgeStore(storage)


@pytest.fixture
def assembler(memory_provider, knowledge_store):
    return ContextAssembler(memory_provider=memory_provider, knowledge_store=knowledge_store)


@pytest.fixture
def llm():
    return ScriptedLLM()


@pytest.fixture
def resolver(message_store, category_store, assembler, llm):
    return CategoryResolver(message_store, category_store, assembler, llm=llm, persona="Test persona.")


@pytest.fixture
def ops_category():
    return Category(id="ops", title="Operations")
