"""Controllers for chat relay endpoints."""

import time

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse, Response
from loguru import logger

from ..models.chat_response import CompletionResponse, ErrorResponse
from ..models.model_catalog import ModelCatalog
from ..services.relay_service import RelayService, get_relay_service
from ..services.request_validator import client_address
from ..utils.error_handler import RelayError

router = APIRouter(prefix="/api", tags=["Chat"])


@router.post(
    "/chat",
    response_model=CompletionResponse,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_429_TOO_MANY_REQUESTS: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"content": {"text/plain": {}}},
    },
)
async def chat_endpoint(
    request: Request,
    service: RelayService = Depends(get_relay_service),
) -> CompletionResponse | Response:
    """Relay a conversation to the completion provider and return its reply.

    The body is read raw so the rate limit is applied before the body is
    parsed.  Known failures propagate as :class:`RelayError` to the app's
    exception handler; anything else becomes a plain-text 500 here.
    """
    started = time.perf_counter()
    address = client_address(request.headers)
    with logger.contextualize(client=address):
        try:
            raw_body = await request.body()
            response = await service.relay(address, raw_body)
            logger.info("Reply relayed")
            return response
        except RelayError:
            raise
        except Exception as exc:
            logger.exception("Unhandled exception while relaying chat")
            return PlainTextResponse(
                f"Server error: {exc}",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info("Total /api/chat POST time: {:.0f} ms", elapsed_ms)


@router.get("/models", response_model=ModelCatalog)
async def models_endpoint(
    service: RelayService = Depends(get_relay_service),
) -> ModelCatalog:
    """List the models a client may select and the default model."""
    return service.model_catalog()
