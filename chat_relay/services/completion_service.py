"""Service forwarding conversations to the hosted completion provider.

The provider speaks the OpenAI-compatible chat-completions protocol.  The
service prepends the system preamble, attaches the resolved model and the
output token cap, POSTs the payload with bearer authentication and maps the
reply (or the failure) onto the relay's response types.
"""

from __future__ import annotations

import time
from typing import Any

import httpx
from loguru import logger

from ..config.llm_config import LlmConfig, get_llm_config
from ..models.chat_request import ConversationRequest
from ..models.chat_response import CompletionResponse
from ..models.enums import MessageRole
from ..utils.error_handler import ConfigurationError, UpstreamError

PROVIDER_NAME = "Together AI"
NO_RESPONSE_PLACEHOLDER = "No response from AI."


def extract_reply(data: Any) -> str:
    """Return the first choice's message content, or the placeholder."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        return NO_RESPONSE_PLACEHOLDER
    if not isinstance(content, str) or not content:
        return NO_RESPONSE_PLACEHOLDER
    return content


class CompletionService:
    """Forward validated conversations to the completion provider.

    Parameters
    ----------
    llm_config: LlmConfig, optional
        Provider credentials, endpoint and tuning parameters.  Loaded from
        the environment via :func:`get_llm_config` when omitted.
    transport: httpx.AsyncBaseTransport, optional
        Transport for the outbound client.  Tests pass an
        :class:`httpx.MockTransport` here instead of reaching the network.
    """

    def __init__(
        self,
        llm_config: LlmConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.llm_config = llm_config if llm_config is not None else get_llm_config()
        self._transport = transport

    def build_payload(self, conversation: ConversationRequest, model: str) -> dict[str, Any]:
        messages = [{"role": MessageRole.SYSTEM.value, "content": self.llm_config.system_prompt}]
        messages.extend(
            {"role": message.role.value, "content": message.content}
            for message in conversation.messages
        )
        return {
            "model": model,
            "messages": messages,
            "max_tokens": self.llm_config.max_tokens,
        }

    def require_api_key(self) -> str:
        """Return the provider API key or raise :class:`ConfigurationError`."""
        if not self.llm_config.api_key:
            raise ConfigurationError(f"{PROVIDER_NAME} API key not set in environment.")
        return self.llm_config.api_key

    async def complete(self, conversation: ConversationRequest) -> CompletionResponse:
        """Relay ``conversation`` to the provider and return its reply.

        Raises
        ------
        ConfigurationError
            If no provider API key is configured.
        UpstreamError
            If the provider cannot be reached, answers with a non-success
            status or returns a body that is not JSON.
        """
        api_key = self.require_api_key()
        model = self.llm_config.resolve_model(conversation.model)
        payload = self.build_payload(conversation, model)
        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        logger.debug(
            "Forwarding {} message(s) to {} model={}",
            len(conversation.messages),
            PROVIDER_NAME,
            model,
        )
        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(
                timeout=self.llm_config.timeout,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.llm_config.completions_url,
                    json=payload,
                    headers=headers,
                )
        except httpx.TimeoutException as exc:
            raise UpstreamError(
                f"{PROVIDER_NAME} request timed out after {self.llm_config.timeout:g}s."
            ) from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{PROVIDER_NAME} request failed: {exc}") from exc
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("{} response time: {:.0f} ms", PROVIDER_NAME, elapsed_ms)

        if not response.is_success:
            body = response.text
            raise UpstreamError(
                f"{PROVIDER_NAME} error: {response.status_code} {response.reason_phrase} - {body}",
                upstream_status=response.status_code,
                upstream_body=body,
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UpstreamError(
                f"{PROVIDER_NAME} returned a response that is not JSON: {response.text}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            ) from exc

        return CompletionResponse(content=extract_reply(data))
