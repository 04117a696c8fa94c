# Copyright (c) Syntropy Systems
"""HTTP client for the gradeline server."""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional, TypeVar, cast, overload

import httpx
from pydantic import BaseModel, ValidationError
from typing_extensions import Self

from gradeline.grading import GENERIC_ERROR_REASON
from gradeline.models import (
    AppState,
    ErrorResponse,
    GenerateResponse,
    GradeVerdict,
    HealthResponse,
    SaveResponse,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from types import TracebackType

    from gradeline.models.base import JSONValue

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


class GradelineClientError(Exception):
    """Error from gradeline server communication."""


class GradelineClient:
    """HTTP client for a gradeline server.

    ``grade`` matches the local GradingPolicy signature, so a client can stand
    in for the policy when running an experiment against a remote server.
    """

    server_url: str
    timeout: float

    def __init__(
        self,
        server_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        """Initialize the client.

        Args:
            server_url: Base URL of the gradeline server (e.g., "http://localhost:8080")
            timeout: Request timeout in seconds
            client: Preconfigured httpx client

        """
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self._client = client or httpx.Client(timeout=timeout)

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> Self:
        """Enter the client context and return self."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the client context and close the HTTP client."""
        self.close()

    @overload
    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: type[ResponseModel],
    ) -> ResponseModel:
        ...

    @overload
    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: None = None,
    ) -> dict[str, JSONValue]:
        ...

    def _request(
        self,
        method: str,
        path: str,
        json: Mapping[str, object] | None = None,
        *,
        response_model: type[ResponseModel] | None = None,
    ) -> ResponseModel | dict[str, JSONValue]:
        """Make an HTTP request to the server."""
        url = f"{self.server_url}{path}"
        try:
            response = self._client.request(method=method, url=url, json=json)
            _ = response.raise_for_status()
            data = cast("object", response.json())
            if response_model is None:
                return cast("dict[str, JSONValue]", data)
            return response_model.model_validate(data)
        except httpx.HTTPStatusError as e:
            # Try to get error detail from response
            try:
                detail = ErrorResponse.model_validate(e.response.json()).error
            except (ValidationError, ValueError):
                detail = str(e)
            msg = f"Server error: {detail}"
            raise GradelineClientError(msg) from e
        except httpx.RequestError as e:
            msg = f"Connection error: {e}"
            raise GradelineClientError(msg) from e
        except (ValidationError, ValueError) as e:
            msg = f"Invalid response from server: {e}"
            raise GradelineClientError(msg) from e

    # --- Data Operations ---

    def load_data(self) -> AppState:
        """Fetch the full state from the server."""
        return self._request("GET", "/api/data", response_model=AppState)

    def save_data(self, state: AppState) -> SaveResponse:
        """Replace the server's state with ``state``."""
        return self._request(
            "POST",
            "/api/data",
            json=state.to_payload(),
            response_model=SaveResponse,
        )

    # --- Grading Operations ---

    def generate(self, input: str) -> str:
        """Generate a model answer for an input on the server."""
        result = self._request(
            "POST",
            "/api/generate",
            json={"input": input},
            response_model=GenerateResponse,
        )
        return result.output

    def grade(
        self,
        input: str,
        expected_output: str,
        rubric: str,
        actual_output: Optional[str] = None,
    ) -> GradeVerdict:
        """Grade one test case on the server.

        Never raises: a failing status or a transport error comes back as a
        failing verdict with ``error=True``.
        """
        payload: dict[str, object] = {
            "input": input,
            "expected_output": expected_output,
            "rubric": rubric,
        }
        if actual_output is not None:
            payload["actual_output"] = actual_output

        try:
            response = self._client.post(f"{self.server_url}/api/grade", json=payload)
        except httpx.RequestError as e:
            return GradeVerdict(pass_=False, reason=f"Connection error: {e}", error=True)

        try:
            verdict = GradeVerdict.model_validate(response.json())
        except (ValidationError, ValueError):
            return GradeVerdict(
                pass_=False,
                reason=f"Server error: HTTP {response.status_code}",
                error=True,
            )

        if not response.is_success:
            return GradeVerdict(
                pass_=False,
                reason=verdict.reason or GENERIC_ERROR_REASON,
                error=True,
            )
        return verdict

    def health(self) -> HealthResponse:
        """Check server health."""
        return self._request("GET", "/health", response_model=HealthResponse)
