"""CORS middleware configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.middleware.cors import CORSMiddleware

from community_wallet.api.middleware.auth import AUTH_HEADER_ADDRESS

if TYPE_CHECKING:
    from fastapi import FastAPI


def setup_cors(app: FastAPI) -> None:
    """Allow any origin and let browsers send the forwarded caller header."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", AUTH_HEADER_ADDRESS],
        expose_headers=[AUTH_HEADER_ADDRESS],
    )
