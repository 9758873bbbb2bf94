from .base import AdapterError, ChatAdapter, MessageHandler

__all__ = ["AdapterError", "ChatAdapter", "MessageHandler"]
