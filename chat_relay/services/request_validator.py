"""Inbound request validation for the chat relay.

Given the client address and the raw JSON body of a request, the
:class:`RequestValidator` either produces a :class:`ConversationRequest`
ready to forward or raises a :class:`RelayError` describing the rejection.
"""

from __future__ import annotations

import json
from typing import Any, Mapping

from loguru import logger
from pydantic import ValidationError

from ..models.chat_request import ConversationRequest
from ..utils.error_handler import InvalidRequestError, MessageTooLongError
from .rate_limiter import RateLimiter

UNKNOWN_CLIENT = "unknown"


def client_address(headers: Mapping[str, str]) -> str:
    """Derive the rate-limit key for a request.

    Prefers ``X-Forwarded-For``, then ``X-Real-IP``.  Requests carrying
    neither share the ``"unknown"`` bucket.
    """
    return headers.get("x-forwarded-for") or headers.get("x-real-ip") or UNKNOWN_CLIENT


def parse_body(raw_body: bytes) -> ConversationRequest:
    """Decode a request body into a :class:`ConversationRequest`."""
    try:
        payload: Any = json.loads(raw_body) if raw_body else {}
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidRequestError("Request body must be valid JSON.") from exc
    if not isinstance(payload, dict):
        raise InvalidRequestError("Request body must be a JSON object.")
    try:
        return ConversationRequest.model_validate(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise InvalidRequestError(f"Invalid request body: {location}: {first['msg']}") from exc


class RequestValidator:
    """Applies the rate limit and the trailing-message length bound."""

    def __init__(self, rate_limiter: RateLimiter, max_message_length: int = 500) -> None:
        self.rate_limiter = rate_limiter
        self.max_message_length = max_message_length

    def validate(self, address: str, raw_body: bytes) -> ConversationRequest:
        """Return the validated conversation or raise a :class:`RelayError`.

        The rate limit is checked (and the request recorded) before the body
        is even parsed, so a malformed body still counts against the client.
        """
        self.rate_limiter.check(address)
        conversation = parse_body(raw_body)
        self.check_length(conversation)
        logger.debug(
            "Accepted request from {} with {} message(s)",
            address,
            len(conversation.messages),
        )
        return conversation

    def check_length(self, conversation: ConversationRequest) -> None:
        last = conversation.last_message
        if last is None:
            return
        if not isinstance(last.content, str) or len(last.content) > self.max_message_length:
            raise MessageTooLongError(self.max_message_length)
