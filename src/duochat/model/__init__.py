"""Model classes of the chat: messages and session configuration."""

from .config import PORT_MAX, PORT_MIN, SessionConfig, validate_name
from .message import Message

__all__ = ("Message", "PORT_MAX", "PORT_MIN", "SessionConfig", "validate_name")
