# Copyright (c) Syntropy Systems
"""Grading policy: mock rule, candidate generation, prompting and fallback.

``expected_output`` is always the ground truth. The text being judged is the
caller-supplied ``actual_output`` or, when that is omitted, an answer freshly
generated from ``input``.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol

from typing_extensions import Self

from gradeline.generator import ReferenceGenerator
from gradeline.models import GradeVerdict
from gradeline.verdict import extract_verdict_fields

if TYPE_CHECKING:
    from types import TracebackType

    from gradeline.config import GradelineConfig

logger = logging.getLogger(__name__)

DEFAULT_RUBRIC = "Evaluate correctness and completeness."
NO_INPUT = "(no input)"
EMPTY_FIELD = "(none)"
RAW_REPLY_LIMIT = 200

MOCK_PASS_REASON = "Mock: input and expected output provided."
MISSING_INPUT_REASON = "Missing or empty input."
MISSING_EXPECTED_REASON = "Missing or empty expected output."
UNCLEAR_PREFIX = "AI response unclear. Raw: "
GENERIC_ERROR_REASON = "Error during grading."


class TextGenerator(Protocol):
    """Anything that turns a prompt into text."""

    @property
    def is_configured(self) -> bool: ...

    def generate(self, prompt: str, system: Optional[str] = None) -> str: ...


def _has_text(value: Optional[str]) -> bool:
    return bool((value or "").strip())


def mock_rule(input: Optional[str], expected_output: Optional[str]) -> bool:
    """Pass iff both the input and the expected output are non-blank."""
    return _has_text(input) and _has_text(expected_output)


def mock_verdict(input: Optional[str], expected_output: Optional[str]) -> GradeVerdict:
    """Deterministic verdict used when AI grading is unavailable."""
    if not _has_text(input):
        return GradeVerdict(pass_=False, reason=MISSING_INPUT_REASON)
    if not _has_text(expected_output):
        return GradeVerdict(pass_=False, reason=MISSING_EXPECTED_REASON)
    return GradeVerdict(pass_=True, reason=MOCK_PASS_REASON)


def build_system_prompt(rubric: Optional[str]) -> str:
    """System prompt carrying the rubric and the strict reply format."""
    return (
        "You are an evaluation assistant. Grade the response against the rubric. "
        "Reply with exactly one JSON object and nothing else, in this format:\n"
        '{"pass": true|false, "reason": "brief explanation"}\n'
        "\n"
        'Rules for "reason":\n'
        "- When failing: state the core issue in one short, factual sentence "
        "(what is wrong, or what the correct answer is).\n"
        '- When passing: one short sentence (e.g. "Correct." or "Matches expected.").\n'
        "- Do not use double quotes inside the reason.\n"
        "\n"
        "Rubric:\n"
        f"{rubric or DEFAULT_RUBRIC}"
    )


def build_user_prompt(
    input: Optional[str],
    expected_output: Optional[str],
    output: Optional[str],
) -> str:
    """User prompt listing the input, the ground truth and the text to judge."""
    return (
        f"Input: {input or EMPTY_FIELD}\n"
        "\n"
        f"Expected output: {expected_output or EMPTY_FIELD}\n"
        "\n"
        f"Actual output to grade: {output or EMPTY_FIELD}\n"
        "\n"
        "Does the actual output satisfy the expected output according to the "
        "rubric? Reply with JSON only."
    )


def unclear_reason(raw: Optional[str]) -> str:
    return f"{UNCLEAR_PREFIX}{(raw or '')[:RAW_REPLY_LIMIT]}"


class GradingPolicy:
    """Grades one (input, expected_output) pair against a rubric.

    ``grade`` is total: every failure becomes a failing verdict with
    ``error=True``, never an exception.

    A policy built by ``from_config`` owns its generator; ``close`` releases
    it. Generators passed in by the caller are left open.
    """

    def __init__(self, generator: Optional[TextGenerator] = None) -> None:
        self.generator = generator
        self._owned: Optional[ReferenceGenerator] = None

    @classmethod
    def from_config(cls, config: GradelineConfig) -> GradingPolicy:
        """Attach a generator only when a credential is configured."""
        if not config.ai_enabled:
            logger.info("OPENROUTER_API_KEY not set; using mock grading")
            return cls()
        generator = ReferenceGenerator.from_config(config)
        policy = cls(generator)
        policy._owned = generator
        return policy

    def close(self) -> None:
        """Close the HTTP client of an owned generator."""
        if self._owned is not None:
            self._owned.close()
            self._owned = None

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def ai_available(self) -> bool:
        return self.generator is not None and self.generator.is_configured

    def grade(
        self,
        input: str,
        expected_output: str,
        rubric: str,
        actual_output: Optional[str] = None,
    ) -> GradeVerdict:
        """Grade one test case.

        Args:
            input: The test case input
            expected_output: Ground-truth answer
            rubric: Grader instructions, embedded verbatim in the prompt
            actual_output: Answer to judge; generated from ``input`` if None

        Returns:
            The verdict; ``generated_output`` is set only when this call
            generated the judged answer itself

        """
        if not self.ai_available or self.generator is None:
            return mock_verdict(input, expected_output)

        try:
            return self._grade_with_model(
                self.generator, input, expected_output, rubric, actual_output
            )
        except Exception as e:  # noqa: BLE001
            logger.warning("Grading failed: %s", e)
            return GradeVerdict(
                pass_=False,
                reason=str(e) or GENERIC_ERROR_REASON,
                error=True,
            )

    def _grade_with_model(
        self,
        generator: TextGenerator,
        input: str,
        expected_output: str,
        rubric: str,
        actual_output: Optional[str],
    ) -> GradeVerdict:
        generated: Optional[str] = None
        if actual_output is None:
            prompt = (input or "").strip() or NO_INPUT
            generated = (generator.generate(prompt) or "").strip()
            output_to_grade = generated
        else:
            output_to_grade = actual_output

        reply = generator.generate(
            build_user_prompt(input, expected_output, output_to_grade),
            system=build_system_prompt(rubric),
        )

        fields = extract_verdict_fields(reply)
        verdict = fields.to_verdict()
        if verdict is not None:
            return GradeVerdict(
                pass_=verdict.pass_,
                reason=verdict.reason,
                generated_output=generated,
            )

        logger.info("Unparseable grading reply; falling back to mock rule")
        return GradeVerdict(
            pass_=mock_rule(input, expected_output),
            reason=fields.reason if fields.reason is not None else unclear_reason(reply),
            generated_output=generated,
        )
