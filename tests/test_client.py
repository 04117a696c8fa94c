# Copyright (c) Syntropy Systems
"""Tests for the gradeline HTTP client."""

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from gradeline.client import GradelineClient, GradelineClientError
from gradeline.config import GradelineConfig
from gradeline.db import StateDatabase
from gradeline.experiment import run_experiment
from gradeline.grading import GradingPolicy
from gradeline.models import AppState, Dataset, Grader, TestCase
from gradeline.server import create_app
from gradeline.store import EvalStore


def _mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> GradelineClient:
    transport = httpx.MockTransport(handler)
    return GradelineClient("http://gradeline.test/", client=httpx.Client(transport=transport))


@pytest.fixture
def served(tmp_path: Path) -> GradelineClient:
    """Client talking to an in-process server."""
    app = create_app(db_path=tmp_path / "served.db", config=GradelineConfig(), policy=GradingPolicy())
    return GradelineClient("http://testserver", client=TestClient(app))


class TestAgainstServer:
    """Round trips through a real app."""

    def test_health(self, served: GradelineClient) -> None:
        assert served.health().status == "healthy"

    def test_save_and_load(self, served: GradelineClient) -> None:
        state = AppState(
            datasets=[Dataset(id="d1", name="Logic", test_cases=[TestCase(id="t1", input="q", expected_output="a")])],
            graders=[Grader(id="g1", name="Strict")],
        )
        assert served.save_data(state).ok is True
        loaded = served.load_data()
        assert loaded.datasets[0].test_cases[0].expected_output == "a"

    def test_grade(self, served: GradelineClient) -> None:
        verdict = served.grade("What is 2 + 2?", "4", "")
        assert verdict.pass_ is True
        assert not verdict.error

    def test_generate_without_credentials(self, served: GradelineClient) -> None:
        with pytest.raises(GradelineClientError, match="OPENROUTER_API_KEY is not configured"):
            _ = served.generate("hi")

    def test_remote_experiment(self, served: GradelineClient, tmp_path: Path) -> None:
        store = EvalStore(StateDatabase(tmp_path / "local.db"))
        dataset = store.add_dataset("Science")
        _ = store.add_test_case(dataset.id, "Chemical symbol for water?", "H2O")
        _ = store.add_test_case(dataset.id, "What is the chemical symbol for gold?", "")
        grader = store.add_grader("Correctness")

        run = run_experiment(store, served, dataset.id, [grader.id])

        assert run.passed == 1
        assert run.failed == 1
        assert len(store.results) == 2


class TestErrorMapping:
    """Failures map to GradelineClientError, except for grade."""

    def test_server_error_detail(self) -> None:
        client = _mock_client(lambda r: httpx.Response(500, json={"error": "Failed to load data"}))
        with pytest.raises(GradelineClientError, match="Server error: Failed to load data"):
            _ = client.load_data()

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(GradelineClientError, match="Connection error"):
            _ = _mock_client(handler).health()

    def test_invalid_response(self) -> None:
        client = _mock_client(lambda r: httpx.Response(200, json={"unexpected": True}))
        with pytest.raises(GradelineClientError, match="Invalid response"):
            _ = client.health()

    def test_url_trailing_slash_stripped(self) -> None:
        urls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            urls.append(str(request.url))
            return httpx.Response(200, json={"status": "healthy"})

        _ = _mock_client(handler).health()
        assert urls == ["http://gradeline.test/health"]

    def test_grade_500_becomes_error_verdict(self) -> None:
        client = _mock_client(
            lambda r: httpx.Response(500, json={"pass": False, "reason": "OpenRouter 429"})
        )
        verdict = client.grade("q", "a", "")
        assert verdict.error
        assert verdict.reason == "OpenRouter 429"

    def test_grade_connection_error_becomes_error_verdict(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        verdict = _mock_client(handler).grade("q", "a", "")
        assert verdict.error
        assert verdict.pass_ is False
        assert verdict.reason.startswith("Connection error")

    def test_grade_non_json_body(self) -> None:
        verdict = _mock_client(lambda r: httpx.Response(502, text="bad gateway")).grade("q", "a", "")
        assert verdict.error
        assert verdict.reason == "Server error: HTTP 502"

    def test_grade_sends_actual_output_only_when_given(self) -> None:
        bodies: list[bytes] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(request.content)
            return httpx.Response(200, json={"pass": True, "reason": "ok"})

        client = _mock_client(handler)
        _ = client.grade("q", "a", "r")
        _ = client.grade("q", "a", "r", actual_output="a")

        assert b"actual_output" not in bodies[0]
        assert b'"actual_output"' in bodies[1]
