"""
Plan API endpoints for MCPFlow web interface.
"""
import logging
from typing import List

from fastapi import APIRouter, BackgroundTasks, Request

from ..models.requests import CreatePlanRequest
from ..models.responses import ExecutionResponse
from mcpflow.core.errors import InvalidTransition, PlanNotFound
from mcpflow.core.types import Plan, PlanStatus

logger = logging.getLogger(__name__)
router = APIRouter()


async def run_plan(orchestrator, plan_id: str) -> None:
    """Execute a plan in the background."""
    try:
        await orchestrator.execute_plan(plan_id)
    except InvalidTransition as e:
        logger.error(f"Plan {plan_id} could not start: {e}")


@router.post("/", response_model=Plan)
async def create_plan(body: CreatePlanRequest, request: Request, background_tasks: BackgroundTasks):
    """Plan a request over the connected services."""
    orchestrator = request.app.state.orchestrator
    plan = orchestrator.create_plan(body.request)
    if body.execute:
        background_tasks.add_task(run_plan, orchestrator, plan.id)
    return plan


@router.get("/", response_model=List[Plan])
async def list_plans(request: Request):
    """List all plans."""
    return request.app.state.orchestrator.list_plans()


@router.get("/{plan_id}", response_model=Plan)
async def get_plan(plan_id: str, request: Request):
    """Get the latest state of a plan."""
    plan = request.app.state.orchestrator.get_plan(plan_id)
    if plan is None:
        raise PlanNotFound(plan_id)
    return plan


@router.post("/{plan_id}/execute", response_model=ExecutionResponse, status_code=202)
async def execute_plan(plan_id: str, request: Request, background_tasks: BackgroundTasks):
    """Start executing a plan."""
    orchestrator = request.app.state.orchestrator
    plan = orchestrator.get_plan(plan_id)
    if plan is None:
        raise PlanNotFound(plan_id)
    if plan.status != PlanStatus.PLANNING:
        raise InvalidTransition(plan_id, plan.status.value, PlanStatus.EXECUTING.value)

    background_tasks.add_task(run_plan, orchestrator, plan_id)
    return ExecutionResponse(plan_id=plan_id, status=plan.status, message="Execution scheduled")


@router.post("/{plan_id}/cancel", response_model=ExecutionResponse)
async def cancel_plan(plan_id: str, request: Request):
    """Ask a plan to stop at its next wavefront boundary."""
    orchestrator = request.app.state.orchestrator
    orchestrator.cancel_plan(plan_id)
    plan = orchestrator.get_plan(plan_id)
    return ExecutionResponse(plan_id=plan_id, status=plan.status, message="Cancellation requested")
