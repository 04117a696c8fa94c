# Copyright (c) Syntropy Systems
"""Pydantic models for datasets, graders and experiment results."""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from typing_extensions import TypeAlias

from .base import JSONValue, GradelineBaseModel

ResultKey: TypeAlias = tuple[str, str]


class TestCase(GradelineBaseModel):
    """Single test case: an input plus the expected answer."""

    __test__ = False  # not a pytest class

    id: str
    input: str = ""
    expected_output: str = ""


class Grader(GradelineBaseModel):
    """Grader definition. The rubric is passed verbatim to the grading prompt."""

    id: str
    name: str
    description: str = ""
    rubric: str = ""


class Dataset(GradelineBaseModel):
    """Named, ordered collection of test cases."""

    id: str
    name: str
    test_cases: list[TestCase] = Field(default_factory=list, alias="testCases")

    def get_test_case(self, test_case_id: str) -> Optional[TestCase]:
        """Return the test case with the given id, if present."""
        for test_case in self.test_cases:
            if test_case.id == test_case_id:
                return test_case
        return None


class GradeVerdict(GradelineBaseModel):
    """Verdict returned by the grading policy.

    ``error`` marks verdicts produced from a failure (generation or transport).
    It never leaves the process; the wire shape stays ``{pass, reason}``.
    """

    pass_: bool = Field(alias="pass")
    reason: str
    generated_output: Optional[str] = None
    error: bool = Field(default=False, exclude=True)

    def to_payload(self) -> dict[str, JSONValue]:
        """Serialize to the wire shape, omitting an absent generated_output."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ExperimentResult(GradelineBaseModel):
    """Persisted verdict for one (test case, grader) pair."""

    test_case_id: str = Field(alias="testCaseId")
    grader_id: str = Field(alias="graderId")
    pass_: bool = Field(alias="pass")
    reason: str = ""
    generated_output: Optional[str] = None

    @property
    def key(self) -> ResultKey:
        return (self.test_case_id, self.grader_id)

    @classmethod
    def from_verdict(
        cls,
        test_case_id: str,
        grader_id: str,
        verdict: GradeVerdict,
    ) -> ExperimentResult:
        """Build a result record from a grading verdict."""
        return cls(
            test_case_id=test_case_id,
            grader_id=grader_id,
            pass_=verdict.pass_,
            reason=verdict.reason,
            generated_output=verdict.generated_output,
        )


class AppState(GradelineBaseModel):
    """Full application state: datasets, graders and results."""

    datasets: list[Dataset] = Field(default_factory=list)
    graders: list[Grader] = Field(default_factory=list)
    results: list[ExperimentResult] = Field(default_factory=list)

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        for dataset in self.datasets:
            if dataset.id == dataset_id:
                return dataset
        return None

    def get_grader(self, grader_id: str) -> Optional[Grader]:
        for grader in self.graders:
            if grader.id == grader_id:
                return grader
        return None

    def test_case_ids(self) -> set[str]:
        """Ids of every test case across all datasets."""
        return {tc.id for dataset in self.datasets for tc in dataset.test_cases}

    def grader_ids(self) -> set[str]:
        return {grader.id for grader in self.graders}

    def to_payload(self) -> dict[str, JSONValue]:
        """Serialize to the camelCase wire format used by the HTTP API."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
