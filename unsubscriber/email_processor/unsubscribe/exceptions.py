"""
Custom exceptions for unsubscribe processing with enhanced error context.

Parse failures are never raised; they degrade to "field not found". Only
retrieval and execution problems surface as exceptions.
"""

from typing import Dict, Any, Optional


class UnsubscribeError(Exception):
    """Base class for unsubscribe errors carrying optional context."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context

    def __str__(self) -> str:
        base_message = super().__str__()
        if self.context is not None and self.context:
            context_info = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base_message} (context: {context_info})"
        return base_message


class RetrievalError(UnsubscribeError):
    """Raised when message content or identities cannot be retrieved."""

    def __init__(self, message: str, message_id: Any = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if message_id is not None:
            context.setdefault('message_id', message_id)
        super().__init__(message, context)
        self.message_id = message_id


class ExecutionError(UnsubscribeError):
    """Raised by a transport when an unsubscribe action cannot be carried out."""

    def __init__(self, message: str, method: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None):
        context = dict(context or {})
        if method:
            context.setdefault('method', method)
        super().__init__(message, context)
        self.method = method


class ActionNotFoundError(UnsubscribeError):
    """Raised when no classified action exists for a message."""

    def __init__(self, message_id: Any):
        super().__init__(f"No unsubscribe action available for message {message_id}",
                         {'message_id': message_id})
        self.message_id = message_id
