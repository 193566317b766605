from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from settlement_app.api.settlement_api import router
from settlement_app.core.config import ServiceConfig
from settlement_app.core.orchestrator import SubmissionOrchestrator
from settlement_app.core.telemetry import configure_logging

logger = logging.getLogger(__name__)

SERVICE_NAME = "Settlement Intake API"
SERVICE_VERSION = "1.0.0"


def create_app(
    config: Optional[ServiceConfig] = None,
    orchestrator: Optional[SubmissionOrchestrator] = None,
) -> FastAPI:
    """Build the API. Without an orchestrator the production one is wired at startup."""
    config = config or ServiceConfig.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level)
        if getattr(app.state, "orchestrator", None) is None:
            app.state.orchestrator = SubmissionOrchestrator.from_config(config)
        logger.info("%s %s ready", SERVICE_NAME, SERVICE_VERSION)
        yield

    app = FastAPI(title=f"{SERVICE_NAME} (v{SERVICE_VERSION})", lifespan=lifespan)
    app.state.config = config
    app.state.orchestrator = orchestrator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.get("/")
    async def root():
        orch = app.state.orchestrator
        return {
            "status": "ONLINE",
            "system": f"{SERVICE_NAME} v{SERVICE_VERSION}",
            "background_failures": len(orch.failure_report) if orch else 0,
        }

    return app
