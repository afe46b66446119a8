"""
Request models for MCPFlow web API.
"""
from pydantic import BaseModel, Field


class CreatePlanRequest(BaseModel):
    """Request model for planning a request."""
    request: str = Field(..., description="Free-text user request", min_length=1, max_length=2000)
    execute: bool = Field(default=False, description="Start execution right after planning")
