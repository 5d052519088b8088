"""API middleware for rate limiting and security."""

import logging

from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from core.config import HTTPConfig
from core.error_handling import ErrorFormat, format_error_response
from core.exceptions import ConfigurationError, MCPMySQLError
from protocol.sse_server import get_allowed_origins

logger = logging.getLogger(__name__)

# Create rate limiter instance with configurable default limit
_http_config = HTTPConfig.from_env()
limiter = Limiter(key_func=get_remote_address, default_limits=[_http_config.rate_limit_default])

GZIP_MIN_SIZE = 1000


def setup_rate_limiting(app: FastAPI):
    """Configure rate limiting for FastAPI application."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


def setup_middleware(app: FastAPI):
    """Configure all middleware for FastAPI application.

    Sets up CORS, GZip compression, rate limiting and error handlers.
    """
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_allowed_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=_http_config.cors_preflight_max_age,
    )

    app.add_middleware(GZipMiddleware, minimum_size=GZIP_MIN_SIZE)

    setup_rate_limiting(app)
    setup_error_handlers(app)


def setup_error_handlers(app: FastAPI):
    """Report gateway exceptions that escape a route as REST error bodies."""

    @app.exception_handler(MCPMySQLError)
    async def gateway_error_handler(request: Request, exc: MCPMySQLError):
        status_code = 500 if isinstance(exc, ConfigurationError) else 400
        return JSONResponse(status_code=status_code, content=format_error_response(exc, ErrorFormat.REST_API))
