"""
CORS for the POS front ends (till, kitchen display, back office).
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pos_shared.config.settings import settings

LOCAL_FRONTEND_PORTS = (3000, 5173)

# Headers the till sends besides the defaults
POS_REQUEST_HEADERS = ["Authorization", "Content-Type", "Idempotency-Key", "X-Request-ID", "Accept"]


def get_cors_origins() -> list[str]:
    """ALLOWED_ORIGINS (comma-separated) when set, localhost dev servers otherwise."""
    configured = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    if configured:
        return configured
    return [f"http://{host}:{port}" for host in ("localhost", "127.0.0.1") for port in LOCAL_FRONTEND_PORTS]


def configure_cors(app: FastAPI) -> None:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "OPTIONS"],
        allow_headers=POS_REQUEST_HEADERS,
        expose_headers=["X-Request-ID"],
        max_age=0 if settings.environment == "development" else 600,
    )
