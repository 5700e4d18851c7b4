"""Expose commonly used model classes at the package level.

Importing these classes here allows consumers to write concise imports like::

    from chat_relay.models import ChatMessage, ConversationRequest

These names refer to the underlying Pydantic models defined in their
respective modules.
"""

from .chat_message import ChatMessage  # noqa: F401
from .chat_request import ConversationRequest  # noqa: F401
from .chat_response import CompletionResponse, ErrorResponse  # noqa: F401
from .enums import MessageRole  # noqa: F401
from .model_catalog import ModelCatalog, ModelOption  # noqa: F401
