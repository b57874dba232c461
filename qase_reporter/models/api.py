"""Pydantic models for Qase API requests and responses."""

from collections.abc import Sequence
from typing import Literal

from pydantic import BaseModel, Field

from qase_reporter.models.base import Model

type ResultStatus = Literal["passed", "failed", "skipped", "blocked"]


class RunCreate(Model):
    """Request body for creating a run."""

    title: str = Field(..., description="Run title shown in Qase")
    description: str | None = Field(default=None, description="Run description")
    tags: Sequence[str] = Field(default_factory=list, description="Run tags")


class ResultCreate(Model):
    """Request body for recording the result of one case in a run."""

    case_id: int = Field(..., description="Qase case id")
    status: ResultStatus = Field(..., description="Result status")
    time_ms: int | None = Field(default=None, description="Duration in ms")
    stacktrace: str | None = Field(default=None, description="Failure details")
    comment: str | None = Field(default=None, description="Failure summary")


class RunCreated(BaseModel):
    """Result payload of the create run API."""

    id: int


class ResultCreated(BaseModel):
    """Result payload of the create result API."""

    case_id: int | None = None
    hash: str


class RunCreatedResponse(BaseModel):
    """Response from create run API."""

    status: bool
    result: RunCreated


class ResultCreatedResponse(BaseModel):
    """Response from create result API."""

    status: bool
    result: ResultCreated
