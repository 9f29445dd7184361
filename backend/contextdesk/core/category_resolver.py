"""
Category Resolver - runs a conversation turn and the tag-decision flow.

A turn stores the user message, gathers context, asks the model for a reply
and decides which category the exchange belongs to. When the model suggests a
category instead of answering, the turn is suspended until the user accepts,
selects, dismisses or forces the fallback. Decisions resume it with exactly
one follow-up completion.

Per session:  Idle -> AwaitingTagDecision -> Resolving -> Idle
"""

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import prompt_builder
from .category_tools import (
    CREATE_CONTEXT_CATEGORY_TOOL,
    SUGGEST_CATEGORY_TOOL,
    CategoryProposal,
    CreateCategory,
    SuggestCategory,
    decode_tool_calls,
)
from .context_assembler import ContextAssembler
from .conversation_state import (
    AwaitingTagDecision,
    ConversationState,
    ConversationStateRegistry,
    Idle,
    PendingSuggestion,
)
from .errors import (
    CategoryNotFoundError,
    CompletionError,
    MessageNotFoundError,
    NoPendingSuggestionError,
    SuggestionPendingError,
    ValidationError,
)
from .logging_config import ContextLoggerAdapter
from ..llm import LLMMessage, LLMProvider, LLMResponse, ToolCall
from ..models import (
    AttachmentMeta,
    Category,
    CategoryItem,
    KnowledgeDoc,
    MemoryAtom,
    Message,
    normalize_tags,
)
from ..storage import CategoryStore, MessageStore

logger = logging.getLogger(__name__)

DEFAULT_FOLLOW_UP = "I understand. Let me help you with that."
DECISION_ACTIONS = ("accept", "select", "force_fallback", "dismiss")


@dataclass
class TurnResult:
    status: str  # "replied" or "awaiting_tag_decision"
    session_id: str
    user_message_id: str
    tags: List[str] = field(default_factory=list)
    reply: Optional[Message] = None
    suggestion: Optional[Dict[str, Any]] = None
    created_categories: List[Category] = field(default_factory=list)
    used_memories: List[MemoryAtom] = field(default_factory=list)
    rag_docs: List[KnowledgeDoc] = field(default_factory=list)


@dataclass
class DecisionResult:
    status: str  # "resolved" or "cleared"
    session_id: str
    category_id: Optional[str] = None
    reply: Optional[Message] = None
    error: Optional[str] = None


class CategoryResolver:
    def __init__(
        self,
        message_store: MessageStore,
        category_store: CategoryStore,
        assembler: ContextAssembler,
        registry: Optional[ConversationStateRegistry] = None,
        llm: Optional[LLMProvider] = None,
        persona: str = "You are an adaptive operations co-pilot.",
        history_window: int = 12,
        temperature: float = 0.6,
        top_p: float = 0.9,
        max_tokens: int = 700,
    ):
        self.message_store = message_store
        self.category_store = category_store
        self.assembler = assembler
        self.registry = registry or ConversationStateRegistry()
        self.llm = llm
        self.persona = persona
        self.history_window = history_window
        self.temperature = temperature
        self.top_p = top_p
        self.max_tokens = max_tokens

    def get_state(self, session_id: str) -> ConversationState:
        return self.registry.get(session_id)

    def _ensure_idle(self, session_id: str) -> None:
        if not isinstance(self.registry.get(session_id), Idle):
            raise SuggestionPendingError(session_id)

    async def submit_message(
        self,
        user_id: str,
        content: str,
        tags: Optional[Sequence[str]] = None,
        attachments_meta: Optional[List[AttachmentMeta]] = None,
    ) -> Message:
        """
        Store a user message in the current session without running a turn.

        Raises:
            SuggestionPendingError: The session is awaiting a tag decision
        """
        session = await self.message_store.get_or_create_session(user_id)
        async with self.registry.lock_for(session.id):
            self._ensure_idle(session.id)
            return await self.message_store.insert_message(
                session.id, "user", content,
                tags=normalize_tags(list(tags or [])),
                attachments_meta=attachments_meta,
            )

    # Completion

    async def _complete(
        self,
        messages: List[LLMMessage],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[str] = None,
    ) -> LLMResponse:
        return await self.llm.chat_completion(
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            tools=tools,
            tool_choice=tool_choice,
            top_p=self.top_p,
        )

    # Category creation

    async def _create_category(self, proposal: CategoryProposal) -> Tuple[Category, int]:
        category = Category(
            id=f"focus-{uuid.uuid4().hex[:12]}",
            title=proposal.title,
            description=proposal.description,
            icon=proposal.icon,
            accent=proposal.accent,
        )
        await self.category_store.upsert(category)

        for index, signal in enumerate(proposal.signals):
            await self.category_store.upsert_item(CategoryItem(
                id=f"signal-{uuid.uuid4().hex[:12]}",
                category_id=category.id,
                title=signal.title,
                description=signal.description,
                sort_order=index,
            ))
        return category, len(proposal.signals)

    async def _anchor_for(self, category_id: Optional[str]) -> Optional[str]:
        if not category_id:
            return None
        items = await self.category_store.list_items(category_id)
        return items[0].title if items else None

    # Turn handling

    async def handle_turn(
        self,
        user_id: Optional[str],
        content: Optional[str],
        tags: Optional[Sequence[str]] = None,
        attachments_meta: Optional[List[AttachmentMeta]] = None,
        active_category_id: Optional[str] = None,
    ) -> TurnResult:
        """
        Run one inbound utterance through the pipeline.

        Raises:
            ValidationError: Missing user id or empty utterance
            SuggestionPendingError: The session is awaiting a tag decision
            CompletionError: The model call failed; the user message stays stored
        """
        if not user_id:
            raise ValidationError("userId is required")
        if not content or not content.strip():
            raise ValidationError("content is required")

        tags = normalize_tags(list(tags or []))
        session = await self.message_store.get_or_create_session(user_id)
        log = ContextLoggerAdapter(logger, {"session_id": session.id, "user_id": user_id})

        async with self.registry.lock_for(session.id):
            self._ensure_idle(session.id)

            user_message = await self.message_store.insert_message(
                session.id, "user", content, tags=tags, attachments_meta=attachments_meta
            )
            context = await self.assembler.assemble(user_id, content, tags)
            categories = await self.category_store.list_categories()

            recent = await self.message_store.get_recent(session.id, limit=max(self.history_window * 10, 100))
            history = prompt_builder.select_history(
                recent, user_message.id, self.history_window, active_category_id
            )

            created: List[Category] = []
            if self.llm is None:
                log.info("No completion provider configured, using placeholder reply")
                fallback_id = categories[0].id if categories else None
                reply_text = prompt_builder.synthesize_placeholder_reply(
                    content, await self._anchor_for(tags[0] if tags else fallback_id)
                )
            else:
                suggest = not tags and bool(categories)
                tools = [SUGGEST_CATEGORY_TOOL, CREATE_CONTEXT_CATEGORY_TOOL] if suggest else [CREATE_CONTEXT_CATEGORY_TOOL]
                system_prompt = prompt_builder.build_system_prompt(
                    self.persona,
                    context.memories,
                    context.docs,
                    prompt_builder.tool_instruction(suggest, categories),
                )
                messages = prompt_builder.build_messages(
                    system_prompt, history, content, attachments_meta or []
                )

                try:
                    response = await self._complete(messages, tools, "required" if suggest else "auto")
                except Exception as e:
                    raise CompletionError("Completion request failed") from e

                calls_by_id = {call.id: call for call in response.tool_calls}
                processed: List[ToolCall] = []
                tool_results: List[LLMMessage] = []
                proposals: List[Tuple[Category, int]] = []

                for action in decode_tool_calls(response.tool_calls):
                    processed.append(calls_by_id[action.tool_call_id])

                    if isinstance(action, SuggestCategory):
                        transcript = messages + [
                            LLMMessage.assistant_tool_calls(processed, response.content or None)
                        ] + tool_results
                        pending = PendingSuggestion(
                            suggestion=action,
                            original_content=content,
                            original_user_message_id=user_message.id,
                            prompt_transcript=transcript,
                            tool_call_id=action.tool_call_id,
                            session_id=session.id,
                        )
                        self.registry.begin_awaiting(pending)
                        log.info(
                            "Turn suspended for category decision",
                            extra={"extra_fields": {"suggestion_type": action.suggestion_type}}
                        )
                        return TurnResult(
                            status="awaiting_tag_decision",
                            session_id=session.id,
                            user_message_id=user_message.id,
                            tags=user_message.tags,
                            suggestion=action.to_dict(),
                            created_categories=[c for c, _ in proposals],
                            used_memories=context.memories,
                            rag_docs=context.docs,
                        )

                    if isinstance(action, CreateCategory):
                        category, signals_count = await self._create_category(action.proposal)
                        proposals.append((category, signals_count))
                        tool_results.append(LLMMessage.tool_result(action.tool_call_id, {
                            "success": True,
                            "category_id": category.id,
                            "title": category.title,
                            "description": category.description,
                            "signals_count": signals_count,
                        }))

                created = [c for c, _ in proposals]
                if proposals:
                    follow_up = messages + [
                        LLMMessage.assistant_tool_calls(processed, response.content or None)
                    ] + tool_results
                    try:
                        follow_up_response = await self._complete(follow_up)
                    except Exception as e:
                        raise CompletionError("Follow-up completion failed") from e

                    first, signals_count = proposals[0]
                    reply_text = follow_up_response.content or prompt_builder.created_category_reply(
                        first.title, first.description, signals_count
                    )
                else:
                    reply_text = response.content or DEFAULT_FOLLOW_UP

            if tags:
                resolved = tags
            elif created:
                resolved = [created[0].id]
            elif categories:
                resolved = [categories[0].id]
            else:
                resolved = []

            if resolved != user_message.tags:
                await self.message_store.update_tags(user_message.id, resolved)

            reply = await self.message_store.insert_message(
                session.id, "assistant", reply_text, tags=resolved
            )
            log.info(
                "Turn replied",
                extra={"extra_fields": {"tags": resolved, "created": [c.id for c in created]}}
            )
            return TurnResult(
                status="replied",
                session_id=session.id,
                user_message_id=user_message.id,
                tags=resolved,
                reply=reply,
                created_categories=created,
                used_memories=context.memories,
                rag_docs=context.docs,
            )

    # Decisions

    async def _accepted_category(self, suggestion: SuggestCategory) -> Optional[Category]:
        if suggestion.suggestion_type == "new" and suggestion.new_category is not None:
            category, _ = await self._create_category(suggestion.new_category)
            return category

        if suggestion.existing_category_id:
            existing = await self.category_store.get_category(suggestion.existing_category_id)
            if existing is not None:
                return existing
        return await self.category_store.first_category()

    async def decide(
        self, session_id: str, action: str, category_id: Optional[str] = None
    ) -> DecisionResult:
        """
        Apply the user's decision on a pending suggestion and resume the turn.

        The session always returns to Idle, even if the follow-up completion
        fails; in that case no reply is stored and `error` is set.

        Raises:
            ValidationError: Unknown action or select without a category id
            NoPendingSuggestionError: The session is not awaiting a decision
            CategoryNotFoundError: select named an unknown category; still awaiting
        """
        if action not in DECISION_ACTIONS:
            raise ValidationError(f"Unknown decision action: {action}")

        async with self.registry.lock_for(session_id):
            state = self.registry.get(session_id)
            if not isinstance(state, AwaitingTagDecision):
                raise NoPendingSuggestionError(session_id, state.name)
            pending = state.pending

            selected: Optional[Category] = None
            if action == "select":
                if not category_id:
                    raise ValidationError("categoryId is required for select")
                selected = await self.category_store.get_category(category_id)
                if selected is None:
                    raise CategoryNotFoundError(category_id)

            log = ContextLoggerAdapter(logger, {"session_id": session_id, "action": action})
            try:
                if action == "accept":
                    chosen = await self._accepted_category(pending.suggestion)
                elif action == "select":
                    chosen = selected
                else:
                    chosen = await self.category_store.first_category()

                if chosen is None:
                    log.info("No category available, clearing pending suggestion")
                    return DecisionResult(status="cleared", session_id=session_id)

                self.registry.begin_resolving(pending, chosen.id)
                return await self._resolve(pending, chosen, log)
            finally:
                self.registry.clear(session_id)

    async def _resolve(
        self, pending: PendingSuggestion, category: Category, log: logging.LoggerAdapter
    ) -> DecisionResult:
        try:
            await self.message_store.update_tags(pending.original_user_message_id, [category.id])
        except MessageNotFoundError:
            log.warning("Original user message was deleted before the decision")

        tool_result = LLMMessage.tool_result(pending.tool_call_id, {
            "chosen_category_id": category.id,
            "category_title": category.title,
        })

        if self.llm is None:
            reply_text = DEFAULT_FOLLOW_UP
        else:
            try:
                response = await self._complete(pending.prompt_transcript + [tool_result])
            except Exception as e:
                log.error(f"Follow-up completion failed: {e!r}", exc_info=True)
                return DecisionResult(
                    status="resolved",
                    session_id=pending.session_id,
                    category_id=category.id,
                    error="Follow-up completion failed",
                )
            reply_text = response.content or DEFAULT_FOLLOW_UP

        reply = await self.message_store.insert_message(
            pending.session_id, "assistant", reply_text, tags=[category.id]
        )
        log.info("Pending suggestion resolved", extra={"extra_fields": {"category_id": category.id}})
        return DecisionResult(
            status="resolved",
            session_id=pending.session_id,
            category_id=category.id,
            reply=reply,
        )
