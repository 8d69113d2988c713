"""API middleware — caller auth, CORS."""

from community_wallet.api.middleware.auth import AUTH_HEADER_ADDRESS, CallerContext
from community_wallet.api.middleware.cors import setup_cors

__all__ = ["AUTH_HEADER_ADDRESS", "CallerContext", "setup_cors"]
