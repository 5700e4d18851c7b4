"""Request model for the chat relay API."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .chat_message import ChatMessage


class ConversationRequest(BaseModel):
    """The body of a relay request.

    ``messages`` holds the conversation in chronological order.  ``model``
    optionally selects the provider model for this request; when omitted
    (or empty) the configured default is used.
    """

    messages: list[ChatMessage] = Field(
        default_factory=list,
        description="Conversation history, oldest message first.",
    )
    model: str | None = Field(
        default=None,
        description="Optional provider model identifier overriding the default.",
    )

    @field_validator("messages", mode="before")
    @classmethod
    def null_messages_are_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def last_message(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None
