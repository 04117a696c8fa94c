# Copyright (c) Syntropy Systems
"""Pydantic models for gradeline."""

from .api import (
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    GradeRequest,
    HealthResponse,
    SaveResponse,
)
from .base import GradelineBaseModel, JSONObject, JSONValue
from .state import (
    AppState,
    Dataset,
    ExperimentResult,
    GradeVerdict,
    Grader,
    ResultKey,
    TestCase,
)

__all__ = [
    "AppState",
    "Dataset",
    "ErrorResponse",
    "ExperimentResult",
    "GenerateRequest",
    "GenerateResponse",
    "GradeRequest",
    "GradeVerdict",
    "Grader",
    "GradelineBaseModel",
    "HealthResponse",
    "JSONObject",
    "JSONValue",
    "ResultKey",
    "SaveResponse",
    "TestCase",
]
