"""Prompt assembly for a conversation turn.

Builds the system prompt and the message list from already retrieved inputs.
No I/O happens here; the resolver decides which tool branch applies.

Component order of the system prompt:
    1) persona
    2) "Known about this user and context (from memory):" block
    3) "Relevant knowledge base:" block
    4) tool instruction for the branch
"""

from typing import List, Optional, Sequence

from ..llm import LLMMessage
from ..models import AttachmentMeta, Category, KnowledgeDoc, Message, MemoryAtom

NO_MEMORIES = "None yet."
NO_KNOWLEDGE = "None available."

SUGGEST_INSTRUCTION = (
    "You have tools available:\n"
    "1. suggest_category: The user did NOT select a context category. You MUST use "
    "this tool to suggest either an existing category or creating a new one. "
    "Available existing categories:\n{category_list}\n"
    "2. create_context_category: If user explicitly asks to create a new category."
)

CREATE_INSTRUCTION = (
    "You have the ability to create new context categories using the "
    "create_context_category tool. Use this when the user is discussing a new topic "
    "that would benefit from its own dedicated space, or when they explicitly ask to "
    "create a new category/focus area. Choose appropriate icons and colors that match "
    "the topic."
)

PLACEHOLDER_TRIM = 140


def memory_section(memories: Sequence[MemoryAtom]) -> str:
    if not memories:
        return NO_MEMORIES
    return "\n".join(f"- ({memory.type}) {memory.text}" for memory in memories)


def knowledge_section(docs: Sequence[KnowledgeDoc]) -> str:
    if not docs:
        return NO_KNOWLEDGE
    return "\n".join(f"- {doc.text}" for doc in docs)


def tool_instruction(suggest: bool, categories: Sequence[Category] = ()) -> str:
    """Instruction text for the suggest branch or the create-only branch."""
    if suggest:
        category_list = "\n".join(f"- {c.id}: {c.title}" for c in categories)
        return SUGGEST_INSTRUCTION.format(category_list=category_list)
    return CREATE_INSTRUCTION


def build_system_prompt(
    persona: str,
    memories: Sequence[MemoryAtom],
    docs: Sequence[KnowledgeDoc],
    instruction: Optional[str] = None,
) -> str:
    prompt = (
        f"{persona}\n\n"
        f"Known about this user and context (from memory):\n{memory_section(memories)}\n\n"
        f"Relevant knowledge base:\n{knowledge_section(docs)}"
    )
    if instruction:
        prompt += f"\n\n{instruction}"
    return prompt


def user_content(content: str, attachments: Sequence[AttachmentMeta] = ()) -> str:
    """The current utterance, with attachment names listed after it."""
    if not attachments:
        return content
    names = "\n".join(f"- {a.name} ({a.kind})" for a in attachments)
    return f"{content}\n\nAttachments:\n{names}"


def select_history(
    recent_newest_first: Sequence[Message],
    exclude_id: Optional[str],
    window: int,
    active_category_id: Optional[str] = None,
) -> List[Message]:
    """
    Prior turns in chronological order, capped at `window`.
    System messages and the current message are never included.
    """
    chronological = [
        m for m in reversed(recent_newest_first)
        if m.role != "system"
        and m.id != exclude_id
        and (active_category_id is None or active_category_id in m.tags)
    ]
    if window <= 0:
        return []
    return chronological[-window:]


def build_messages(
    system_prompt: str,
    history: Sequence[Message],
    content: str,
    attachments: Sequence[AttachmentMeta] = (),
) -> List[LLMMessage]:
    messages = [LLMMessage.text("system", system_prompt)]
    messages.extend(LLMMessage.text(m.role, m.content) for m in history)
    messages.append(LLMMessage.text("user", user_content(content, attachments)))
    return messages


def created_category_reply(title: str, description: Optional[str], signals_count: int) -> str:
    """Reply used when the follow-up after a category creation comes back empty."""
    reply = f'I\'ve created a new context category called "{title}"'
    if description:
        reply += f" - {description}"
    reply += "."
    if signals_count:
        plural = "s" if signals_count > 1 else ""
        reply += (
            f" I've also added {signals_count} initial signal{plural} "
            f"to help organize your thoughts."
        )
    return reply


def synthesize_placeholder_reply(content: str, anchor: Optional[str] = None) -> str:
    """Locally generated reply for when no completion provider is configured."""
    trimmed = content if len(content) <= PLACEHOLDER_TRIM else f"{content[:PLACEHOLDER_TRIM]}…"
    return "\n".join([
        f"Pulling from **{anchor or 'selected context'}** and adjacent signals.",
        f'Here is the high-signal summary for: "{trimmed}"',
        "",
        "No completion provider is configured, so this reply was generated locally.",
    ])
