"""
FastAPI Main Application

Web API for the water permit portal's application records.

Endpoints:
- /applications/* - encode/decode forms and manage stored applications
- GET /health     - Health check

Settings come from environment variables (see applications/config.py);
PERMIT_LOG_LEVEL sets the log level (default INFO).
"""

from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from permit_portal.applications.application_store import ApplicationStore
from permit_portal.applications.applications_api import router as applications_router
from permit_portal.applications.config import load_codec_config, load_store_settings

logger = logging.getLogger(__name__)


# =============================================================================
# FastAPI App Setup
# =============================================================================

def create_app() -> FastAPI:
    """Build the app with a store and codec settings read from the environment."""
    logging.basicConfig(
        level=os.getenv("PERMIT_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title="Water Permit Application API",
        description=(
            "Stores water permit applications and translates between the "
            "application wizard's form model and the applications table."
        ),
        version="0.1.0",
    )

    # CORS middleware (allows the portal UI to call this API)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    settings = load_store_settings()
    app.state.store = ApplicationStore(root_dir=settings.applications_dir)
    app.state.codec_config = load_codec_config()
    app.state.user_context = None
    logger.info("Application store at %s", settings.applications_dir)

    app.include_router(applications_router)

    @app.get("/health")
    def health():
        """Basic liveness check; does not touch the store."""
        return {"status": "ok"}

    return app


app = create_app()
