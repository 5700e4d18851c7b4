"""Run the relay with uvicorn: ``python -m chat_relay``."""

import uvicorn

from .config.app_config import get_app_config


def main() -> None:
    app_config = get_app_config()
    uvicorn.run(
        "chat_relay.main:app",
        host=app_config.app_host,
        port=app_config.app_port,
        reload=app_config.app_debug,
    )


if __name__ == "__main__":
    main()
