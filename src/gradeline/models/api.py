# Copyright (c) Syntropy Systems
"""Pydantic models for gradeline API requests and responses."""

from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator

from .base import GradelineBaseModel


class GradeRequest(GradelineBaseModel):
    """Request to grade one test case with one rubric.

    When ``actual_output`` is omitted the server generates the candidate
    answer from ``input`` before grading it.
    """

    input: str = ""
    expected_output: str = ""
    rubric: str = ""
    grader_name: Optional[str] = Field(default=None, alias="graderName")
    actual_output: Optional[str] = None

    @field_validator("input", "expected_output", "rubric", mode="before")
    @classmethod
    def _null_as_empty(cls, value: object) -> object:
        return "" if value is None else value


class GenerateRequest(GradelineBaseModel):
    """Request to generate a model answer for an input."""

    input: str = ""


class GenerateResponse(GradelineBaseModel):
    """Generated model output."""

    output: str


class SaveResponse(GradelineBaseModel):
    """Response from saving the full state."""

    ok: bool = True


class ErrorResponse(GradelineBaseModel):
    """Error response."""

    error: str


class HealthResponse(GradelineBaseModel):
    """Health check response."""

    status: str
