"""Error handling utilities and custom exceptions.

Every failure the relay knows about is a :class:`RelayError` carrying the
HTTP status and the message shown to the client.  Client-side rejections
(4xx) are rendered as ``{"error": ...}`` JSON so the chat UI can show them
in its error banner; server-side failures (5xx) are rendered as plain text
with the upstream details included verbatim.
"""

from __future__ import annotations

from fastapi import Request, status
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from loguru import logger


class RelayError(Exception):
    """Base exception for failures of a relayed chat request."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidRequestError(RelayError):
    """The request body is not valid JSON or not a conversation."""

    status_code = status.HTTP_400_BAD_REQUEST


class MessageTooLongError(RelayError):
    """The trailing message exceeds the configured maximum length."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, max_length: int) -> None:
        super().__init__(f"Message too long. Maximum length is {max_length} characters.")
        self.max_length = max_length


class RateLimitExceeded(RelayError):
    """The client sent another request inside the rate-limit window."""

    status_code = status.HTTP_429_TOO_MANY_REQUESTS

    def __init__(self, retry_after_ms: int | None = None) -> None:
        super().__init__(
            "You are sending messages too quickly. Please wait a moment before trying again."
        )
        self.retry_after_ms = retry_after_ms


class ConfigurationError(RelayError):
    """The deployment is missing something the relay needs, e.g. the API key."""


class UpstreamError(RelayError):
    """The completion provider failed or returned an unusable response."""

    def __init__(
        self,
        message: str,
        upstream_status: int | None = None,
        upstream_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class RelayTimeoutError(RelayError):
    """The relay did not complete within the execution ceiling."""

    status_code = status.HTTP_504_GATEWAY_TIMEOUT


def error_response(exc: RelayError) -> Response:
    """Render a :class:`RelayError` in the shape the client expects."""
    if exc.status_code < 500:
        headers = None
        if isinstance(exc, RateLimitExceeded) and exc.retry_after_ms is not None:
            # Retry-After is whole seconds
            headers = {"Retry-After": str(max(1, -(-exc.retry_after_ms // 1000)))}
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.message},
            headers=headers,
        )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


async def relay_exception_handler(request: Request, exc: RelayError) -> Response:
    """Convert a RelayError raised by a route into an HTTP response."""
    if exc.status_code >= 500:
        logger.error("RelayError on {} {}: {}", request.method, request.url.path, exc)
    else:
        logger.warning("Rejected {} {}: {}", request.method, request.url.path, exc)
    return error_response(exc)
