"""Application entry point for the governance server."""

from __future__ import annotations

import logging
import os

import uvicorn

from community_wallet.config.settings import AppConfig


def main() -> None:
    """Start the governance server."""
    config = AppConfig()
    logging.basicConfig(
        level=config.log_level.value.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    reload = os.getenv("CWALLET_RELOAD", "false").lower() in ("1", "true", "yes")
    uvicorn.run(
        "community_wallet.api.app:create_app",
        factory=True,
        host=config.server.host,
        port=config.server.port,
        reload=reload,
        log_level=config.log_level.value,
    )


if __name__ == "__main__":
    main()
