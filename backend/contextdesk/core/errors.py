"""
Domain exceptions raised by the stores and the conversation pipeline.
Routers translate these into HTTP responses.
"""

from typing import Optional


class ContextDeskError(Exception):
    """Base class for all ContextDesk domain errors."""


class ValidationError(ContextDeskError):
    """Request is missing required data; raised before any side effect."""


class SessionNotFoundError(ContextDeskError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class MessageNotFoundError(ContextDeskError):
    def __init__(self, message_id: str):
        super().__init__(f"Message not found: {message_id}")
        self.message_id = message_id


class CategoryNotFoundError(ContextDeskError):
    def __init__(self, category_id: str):
        super().__init__(f"Category not found: {category_id}")
        self.category_id = category_id


class SuggestionPendingError(ContextDeskError):
    """A tag decision is outstanding for the session; new turns are blocked."""

    def __init__(self, session_id: str):
        super().__init__(
            f"Session {session_id} is awaiting a category decision; "
            f"resolve it before sending another message"
        )
        self.session_id = session_id


class NoPendingSuggestionError(ContextDeskError):
    def __init__(self, session_id: str, state: Optional[str] = None):
        detail = f"No category suggestion is awaiting a decision for session {session_id}"
        if state:
            detail += f" (state={state})"
        super().__init__(detail)
        self.session_id = session_id
        self.state = state


class CompletionError(ContextDeskError):
    """The completion collaborator failed while producing a reply."""


class StorageError(ContextDeskError):
    """A durable write could not be completed."""
