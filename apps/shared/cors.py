"""Centralised CORS configuration for the API routes."""

import os
from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send


# Production origins (always allowed)
PRODUCTION_ORIGINS = [
    "https://blog.example.com",
]

# Development origins (dev environment only)
DEV_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
]

ALLOWED_HEADERS = ["Content-Type", "Authorization"]
ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
EXPOSED_HEADERS = ["Content-Length"]
PREFLIGHT_MAX_AGE = 600

API_PREFIX = "/api/"


def get_allowed_origins() -> list[str]:
    """Return the allowed CORS origins for the current environment."""
    origins = list(PRODUCTION_ORIGINS)

    # Add FRONTEND_URL from env if set
    frontend_url = os.getenv("FRONTEND_URL")
    if frontend_url:
        clean_url = frontend_url.rstrip("/")
        if clean_url not in origins:
            origins.append(clean_url)

    # Add dev origins outside production
    env = os.getenv("ENVIRONMENT", "development")
    if env != "production":
        origins.extend(o for o in DEV_ORIGINS if o not in origins)

    return origins


class PathPrefixCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that only handles requests under a path prefix."""

    def __init__(self, app: ASGIApp, path_prefix: str = API_PREFIX, **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.path_prefix = path_prefix

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and not scope["path"].startswith(self.path_prefix):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)


def setup_cors(app: FastAPI, origins: list[str] = None) -> None:
    """Add the CORS middleware for /api/* routes to a FastAPI app."""
    app.add_middleware(
        PathPrefixCORSMiddleware,
        path_prefix=API_PREFIX,
        allow_origins=origins if origins is not None else get_allowed_origins(),
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=EXPOSED_HEADERS,
        max_age=PREFLIGHT_MAX_AGE,
    )
