"""Application middleware configuration."""

from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from openwrite.config import settings

SESSION_COOKIE_NAME = "openwrite_session"


def _cors_origins():
    return [origin.strip() for origin in settings.CORS_ORIGIN.split(",") if origin.strip()]


def setup_middleware(app):
    """Configure all application middleware."""
    # Signed cookie session; holds only the user id and the active organization
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.SESSION_SECRET_KEY,
        session_cookie=SESSION_COOKIE_NAME,
        max_age=settings.SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.SESSION_HTTPS_ONLY,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    return app
