# Copyright (c) Syntropy Systems
"""Tests for the chat-completions generator."""

import json
from collections.abc import Callable

import httpx
import pytest

from gradeline.config import DEFAULT_API_URL, GradelineConfig
from gradeline.generator import GenerationError, ReferenceGenerator


def _generator(handler: Callable[[httpx.Request], httpx.Response], api_key: str = "sk-test"):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return ReferenceGenerator(api_key=api_key, model="test/model", client=client)


def _completion(content: object) -> httpx.Response:
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


class TestReferenceGenerator:
    """Tests for ReferenceGenerator.generate."""

    def test_request_shape(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return _completion("4")

        with _generator(handler) as generator:
            assert generator.generate("What is 2 + 2?", system="Be brief.") == "4"

        request = requests[0]
        assert str(request.url) == DEFAULT_API_URL
        assert request.headers["Authorization"] == "Bearer sk-test"
        body = json.loads(request.content)
        assert body["model"] == "test/model"
        assert body["messages"] == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "What is 2 + 2?"},
        ]

    def test_no_system_message(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return _completion("hi")

        _ = _generator(handler).generate("hello")
        assert bodies[0]["messages"] == [{"role": "user", "content": "hello"}]

    def test_missing_key(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        generator = _generator(handler, api_key="")
        assert not generator.is_configured
        with pytest.raises(GenerationError, match="OPENROUTER_API_KEY"):
            _ = generator.generate("hello")

    def test_error_message_from_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(429, json={"error": {"message": "Rate limit exceeded"}})

        with pytest.raises(GenerationError, match="Rate limit exceeded"):
            _ = _generator(handler).generate("hello")

    def test_error_status_without_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(GenerationError, match="OpenRouter 502"):
            _ = _generator(handler).generate("hello")

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(GenerationError, match="Connection error"):
            _ = _generator(handler).generate("hello")

    def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(GenerationError, match="timed out"):
            _ = _generator(handler).generate("hello")

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        with pytest.raises(GenerationError, match="invalid JSON"):
            _ = _generator(handler).generate("hello")

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
            {"choices": [{"message": {"content": ["part"]}}]},
        ],
    )
    def test_missing_content_is_empty(self, payload) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=payload)

        assert _generator(handler).generate("hello") == ""

    def test_from_config(self) -> None:
        config = GradelineConfig(model="x/y", api_key="sk-1", request_timeout=5)
        generator = ReferenceGenerator.from_config(config)
        try:
            assert generator.model == "x/y"
            assert generator.is_configured
        finally:
            generator.close()
