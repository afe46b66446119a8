"""
Response models for MCPFlow web API.
"""
from typing import List, Optional, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from mcpflow.core.types import PlanStatus


class ToolSummary(BaseModel):
    name: str = Field(..., description="Tool name")
    description: str = Field(..., description="What the tool does")
    input_schema: Dict[str, Any] = Field(default_factory=dict, description="JSON schema of the arguments")


class ServiceSummary(BaseModel):
    """Service model for API responses."""
    id: str = Field(..., description="Service identifier")
    name: str = Field(..., description="Service name")
    description: str = Field(default="", description="Service description")
    enabled: bool = Field(..., description="Whether the service may be used")
    status: str = Field(..., description="Connection status")
    last_error: Optional[str] = Field(default=None, description="Last connection error")
    tools: List[ToolSummary] = Field(default_factory=list, description="Tools offered")


class ExecutionResponse(BaseModel):
    """Response when execution of a plan is scheduled."""
    plan_id: str = Field(..., description="Plan identifier")
    status: PlanStatus = Field(..., description="Plan status when the request was accepted")
    message: str = Field(..., description="Status message")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    timestamp: datetime = Field(default_factory=datetime.now, description="Response timestamp")
