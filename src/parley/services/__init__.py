# src/parley/services/__init__.py
"""Business logic services for the Parley application."""

from .conversation_service import ConversationService
from .message_service import MessageService
from .notifier import ConnectionRegistry, Notifier, NullNotifier, RegistryNotifier

__all__ = [
    "ConversationService",
    "MessageService",
    "ConnectionRegistry",
    "Notifier",
    "NullNotifier",
    "RegistryNotifier",
]
