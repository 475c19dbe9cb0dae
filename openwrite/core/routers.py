"""Router registration for the application."""

import logging
from fastapi import FastAPI

logger = logging.getLogger(__name__)


def register_routers(app: FastAPI):
    """Register all application routers."""

    # Import all routers
    from openwrite.routes.health_routes import router as health_router
    from openwrite.routes.auth_routes import router as auth_router
    from openwrite.routes.organization_routes import router as organization_router
    from openwrite.routes.project_routes import router as project_router
    from openwrite.routes.work_routes import router as work_router
    from openwrite.routes.codex_routes import router as codex_router
    from openwrite.routes.graph_routes import router as graph_router
    from openwrite.routes.writing_session_routes import router as writing_session_router
    from openwrite.routes.ai_provider_routes import router as ai_provider_router

    # Health and session endpoints
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(organization_router)

    # Project content
    app.include_router(project_router)
    app.include_router(work_router)
    app.include_router(codex_router)
    app.include_router(graph_router)
    app.include_router(writing_session_router)

    # Per-user settings
    app.include_router(ai_provider_router)

    logger.info("All routers registered successfully")
