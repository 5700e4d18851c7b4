"""Orchestration of a single relayed chat request.

The :class:`RelayService` runs the request validator and then the
completion forwarder, bounded by the execution ceiling.  Controllers stay
thin: they hand over the client address and raw body and render whatever
comes back.
"""

from __future__ import annotations

import asyncio

from fastapi import Request
from loguru import logger

from ..config.app_config import AppConfig, get_app_config
from ..config.llm_config import SELECTABLE_MODELS
from ..models.chat_response import CompletionResponse
from ..models.model_catalog import ModelCatalog, ModelOption
from ..utils.error_handler import RelayTimeoutError
from .completion_service import CompletionService
from .rate_limiter import RateLimiter
from .request_validator import RequestValidator


class RelayService:
    """Validate a chat request and forward it to the completion provider."""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        app_config: AppConfig | None = None,
        completion_service: CompletionService | None = None,
    ) -> None:
        self.app_config = app_config if app_config is not None else get_app_config()
        self.completion_service = (
            completion_service if completion_service is not None else CompletionService()
        )
        self.validator = RequestValidator(
            rate_limiter,
            max_message_length=self.app_config.max_message_length,
        )

    async def relay(self, address: str, raw_body: bytes) -> CompletionResponse:
        """Validate ``raw_body`` from ``address`` and return the provider reply.

        Raises
        ------
        RelayError
            For every rejection or failure with a known cause.
        """
        # A missing credential fails every request, whatever it contains.
        self.completion_service.require_api_key()
        conversation = self.validator.validate(address, raw_body)
        try:
            return await asyncio.wait_for(
                self.completion_service.complete(conversation),
                timeout=self.app_config.app_max_duration,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "Relay for {} exceeded {}s ceiling",
                address,
                self.app_config.app_max_duration,
            )
            raise RelayTimeoutError(
                f"Request timed out after {self.app_config.app_max_duration:g} seconds."
            ) from exc

    def model_catalog(self) -> ModelCatalog:
        llm_config = self.completion_service.llm_config
        return ModelCatalog(
            default=llm_config.resolve_model(),
            models=[ModelOption(**option) for option in SELECTABLE_MODELS],
        )


def get_relay_service(request: Request) -> RelayService:
    """FastAPI dependency returning the relay service owned by the app."""
    return request.app.state.relay_service
