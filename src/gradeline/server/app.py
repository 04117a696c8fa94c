# Copyright (c) Syntropy Systems
"""FastAPI application for the gradeline server."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..config import GradelineConfig, load_config
from ..db import PersistenceError, StateDatabase, get_database
from ..generator import GenerationError
from ..grading import GENERIC_ERROR_REASON, GradingPolicy
from ..models import (
    AppState,
    ErrorResponse,
    GenerateRequest,
    GenerateResponse,
    GradeRequest,
    GradeVerdict,
    HealthResponse,
    SaveResponse,
)

logger = logging.getLogger(__name__)

# Global instances, set by create_app
_db: Optional[StateDatabase] = None
_policy: Optional[GradingPolicy] = None


def get_db() -> StateDatabase:
    """Get the database gateway."""
    if _db is None:
        raise RuntimeError("Database not initialized")
    return _db


def get_policy() -> GradingPolicy:
    """Get the grading policy."""
    if _policy is None:
        raise RuntimeError("Grading policy not initialized")
    return _policy


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def _failed_verdict(verdict: GradeVerdict) -> JSONResponse:
    return JSONResponse(status_code=500, content=verdict.to_payload())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle manager for the FastAPI app."""
    yield

    # Shutdown
    if _policy is not None:
        _policy.close()


def create_app(
    db_path: Optional[Path] = None,
    config: Optional[GradelineConfig] = None,
    policy: Optional[GradingPolicy] = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        db_path: SQLite database path; resolved from GRADELINE_DATABASE or the
            nearest .gradeline project when omitted
        config: Loaded configuration (defaults to load_config())
        policy: Grading policy (defaults to one built from config)

    Returns:
        Configured FastAPI application
    """
    global _db, _policy

    config = config or load_config()
    _db = get_database(db_path)
    _policy = policy or GradingPolicy.from_config(config)

    if _db.is_configured:
        _db.init_schema()
    else:
        logger.warning("No database configured; data will not be persisted")

    app = FastAPI(
        title="gradeline server",
        description="Datasets, graders and LLM grading over HTTP",
        version="0.1.0",
        lifespan=lifespan,
    )

    # --- Data Endpoints ---

    @app.get("/api/data")
    def load_data(db: StateDatabase = Depends(get_db)):
        """Load the full state. Empty collections when no database is configured."""
        try:
            state = db.load()
        except PersistenceError:
            logger.exception("Load data error")
            return _error(500, "Failed to load data")
        return state.to_payload()

    @app.post("/api/data", response_model=SaveResponse)
    async def save_data(request: Request, db: StateDatabase = Depends(get_db)):
        """Save the full state in one transaction."""
        if not db.is_configured:
            return _error(
                503,
                "Database not configured. Set GRADELINE_DATABASE or run 'gradeline init'.",
            )
        try:
            body = await request.json()
            if not isinstance(body, dict):
                msg = "Expected a JSON object"
                raise ValueError(msg)
            state = AppState.model_validate(
                {
                    "datasets": body.get("datasets") or [],
                    "graders": body.get("graders") or [],
                    "results": body.get("results") or [],
                }
            )
            await run_in_threadpool(db.save, state)
        except (ValueError, ValidationError, PersistenceError):
            logger.exception("Save data error")
            return _error(500, "Failed to save data")
        return SaveResponse(ok=True)

    # --- Grading Endpoints ---

    @app.post("/api/grade")
    async def grade(request: Request, policy: GradingPolicy = Depends(get_policy)):
        """Grade one test case. Failures keep the verdict shape, with status 500.

        The body is read by hand so that malformed JSON and wrong field types
        come back as a failing verdict rather than a validation error.
        """
        try:
            body = await request.json()
            grade_request = GradeRequest.model_validate(body)
        except (ValueError, ValidationError) as e:
            logger.warning("Invalid grade request: %s", e)
            return _failed_verdict(
                GradeVerdict(pass_=False, reason=str(e) or GENERIC_ERROR_REASON, error=True)
            )

        verdict = await run_in_threadpool(
            policy.grade,
            grade_request.input,
            grade_request.expected_output,
            grade_request.rubric,
            actual_output=grade_request.actual_output,
        )
        if verdict.error:
            logger.warning(
                "Grading failed for grader %s: %s",
                grade_request.grader_name or "(unnamed)",
                verdict.reason,
            )
            return _failed_verdict(verdict)
        return verdict.to_payload()

    @app.post("/api/generate", response_model=GenerateResponse)
    def generate(request: GenerateRequest, policy: GradingPolicy = Depends(get_policy)):
        """Generate a model answer for an input."""
        if not policy.ai_available or policy.generator is None:
            return _error(503, "OPENROUTER_API_KEY is not configured")
        try:
            output = policy.generator.generate(request.input or "")
        except GenerationError as e:
            logger.exception("Generate API error")
            return _error(500, str(e) or "Generation failed")
        return GenerateResponse(output=output)

    @app.get("/health", response_model=HealthResponse)
    def health_check():
        """Health check endpoint."""
        return HealthResponse(status="healthy")

    return app
