"""Pydantic request schemas for the REST API."""

from typing import Any

from pydantic import BaseModel, Field


class OptimizeRequest(BaseModel):
    """Request for computing a cutting plan from a full configuration."""

    config: dict[str, Any] = Field(..., description="Full cut plan configuration JSON")


class JobSubmitRequest(BaseModel):
    """Request for submitting an optimization job."""

    config: dict[str, Any] = Field(..., description="Full cut plan configuration JSON")


class ConfigValidateRequest(BaseModel):
    """Request for validating a configuration."""

    config: dict[str, Any] = Field(..., description="Cut plan configuration JSON")
