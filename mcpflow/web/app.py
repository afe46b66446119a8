"""
FastAPI application for MCPFlow.
"""
import logging
import os
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn

from .routes import plans, services
from .models.responses import ErrorResponse, HealthResponse
from mcpflow.agents.orchestrator import Orchestrator
from mcpflow.core.errors import InvalidTransition, PlanNotFound
from mcpflow.tools import initialize_tools

logger = logging.getLogger(__name__)


def create_app(orchestrator: Optional[Orchestrator] = None) -> FastAPI:
    """Build the app around *orchestrator* (default: built-in services)."""
    app = FastAPI(
        title="MCPFlow",
        description="Dependency-graph orchestration over tool-providing services",
        version="1.0.0"
    )
    app.state.orchestrator = orchestrator or Orchestrator(initialize_tools())

    app.include_router(plans.router, prefix="/api/plans", tags=["plans"])
    app.include_router(services.router, prefix="/api/services", tags=["services"])

    @app.exception_handler(PlanNotFound)
    async def plan_not_found(request: Request, exc: PlanNotFound):
        return JSONResponse(status_code=404, content=ErrorResponse(error="PlanNotFound", message=str(exc)).model_dump())

    @app.exception_handler(InvalidTransition)
    async def invalid_transition(request: Request, exc: InvalidTransition):
        return JSONResponse(status_code=409, content=ErrorResponse(error="InvalidTransition", message=str(exc)).model_dump())

    @app.get("/health", response_model=HealthResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy", service="mcpflow-web")

    return app


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(
        create_app(),
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
