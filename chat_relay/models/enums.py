"""Enumerations used across models."""

from enum import Enum


class MessageRole(str, Enum):
    """Enum for message roles in a conversation.

    ``USER`` denotes a human message, ``ASSISTANT`` a reply from the
    completion provider and ``SYSTEM`` an instruction message such as the
    preamble prepended before relaying.
    """

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"
