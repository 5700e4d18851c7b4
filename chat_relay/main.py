"""FastAPI application entry point.

This module initialises the FastAPI app, configures logging, builds the
rate limiter and relay service owned by the app, and registers the API
routes.  The `uvicorn` ASGI server can point to ``chat_relay.main:app`` to
serve the application.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from .config.app_config import AppConfig, get_app_config
from .config.llm_config import LlmConfig, get_llm_config
from .controllers.chat_controller import router as chat_router
from .services.completion_service import CompletionService
from .services.rate_limiter import RateLimiter
from .services.relay_service import RelayService
from .utils.error_handler import RelayError, relay_exception_handler
from .utils.logger import setup_logging


def create_app(
    app_config: AppConfig | None = None,
    llm_config: LlmConfig | None = None,
    rate_limiter: RateLimiter | None = None,
    completion_service: CompletionService | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Every collaborator may be injected; anything omitted is built from the
    environment.  The rate limiter is owned by the returned app, so two apps
    never share rate-limit state.
    """
    if app_config is None:
        app_config = get_app_config()
    setup_logging(app_config)

    app = FastAPI(title="Chat Relay", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(RelayError, relay_exception_handler)

    if rate_limiter is None:
        rate_limiter = RateLimiter.from_config(app_config)
    if completion_service is None:
        if llm_config is None:
            llm_config = get_llm_config()
        completion_service = CompletionService(llm_config=llm_config)
    app.state.rate_limiter = rate_limiter
    app.state.relay_service = RelayService(
        rate_limiter,
        app_config=app_config,
        completion_service=completion_service,
    )

    app.include_router(chat_router)

    @app.get("/health", tags=["Health"])
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        logger.debug("Health check invoked")
        return {"status": "ok"}

    return app


# Create an application instance for ASGI servers
app = create_app()
