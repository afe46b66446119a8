"""
Service API endpoints for MCPFlow web interface.
"""
import logging
from typing import List

from fastapi import APIRouter, HTTPException, Request

from ..models.responses import ServiceSummary

logger = logging.getLogger(__name__)
router = APIRouter()


def _summary(service) -> ServiceSummary:
    return ServiceSummary(**service.to_summary())


@router.get("/", response_model=List[ServiceSummary])
async def list_services(request: Request):
    """List registered services and their tools."""
    registry = request.app.state.orchestrator.registry
    return [_summary(s) for s in registry.get_all_services()]


@router.post("/{service_id}/connect", response_model=ServiceSummary)
async def connect_service(service_id: str, request: Request):
    """Connect a service."""
    registry = request.app.state.orchestrator.registry
    if registry.get_service(service_id) is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return _summary(registry.connect(service_id))


@router.post("/{service_id}/disconnect", response_model=ServiceSummary)
async def disconnect_service(service_id: str, request: Request):
    """Disconnect a service."""
    registry = request.app.state.orchestrator.registry
    if registry.get_service(service_id) is None:
        raise HTTPException(status_code=404, detail="Service not found")
    return _summary(registry.disconnect(service_id))
