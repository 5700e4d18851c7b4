"""Models representing chat messages."""

from typing import Any

from pydantic import BaseModel, ConfigDict

from .enums import MessageRole


class ChatMessage(BaseModel):
    """Represents a single turn in a conversation.

    Messages are created by the client and never modified afterwards, so
    the model is frozen.  ``content`` accepts any JSON value and is relayed
    as sent: only the trailing message of a conversation is checked, and
    that check (string, bounded length) lives in the request validator.
    """

    model_config = ConfigDict(frozen=True)

    role: MessageRole
    content: Any = None
