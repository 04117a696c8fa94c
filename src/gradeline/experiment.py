# Copyright (c) Syntropy Systems
"""Run a dataset through a set of graders and record the results."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Optional, Protocol

from gradeline.models import ExperimentResult

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gradeline.models import Grader, GradeVerdict, TestCase
    from gradeline.store import EvalStore

logger = logging.getLogger(__name__)

ResultCallback = Callable[["TestCase", "Grader", "GradeVerdict"], None]


class SupportsGrade(Protocol):
    """A local GradingPolicy or a remote GradelineClient."""

    def grade(
        self,
        input: str,
        expected_output: str,
        rubric: str,
        actual_output: Optional[str] = None,
    ) -> GradeVerdict: ...


@dataclass
class PairError:
    """A (test case, grader) pair whose grading failed."""

    test_case_id: str
    grader_id: str
    message: str


@dataclass
class ExperimentRun:
    """Outcome of one experiment run."""

    dataset_id: str
    grader_ids: list[str]
    results: list[ExperimentResult] = field(default_factory=list)
    errors: list[PairError] = field(default_factory=list)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.pass_)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.pass_)

    @property
    def total(self) -> int:
        return len(self.results) + len(self.errors)


def run_experiment(
    store: EvalStore,
    policy: SupportsGrade,
    dataset_id: str,
    grader_ids: Sequence[str],
    on_result: Optional[ResultCallback] = None,
) -> ExperimentRun:
    """Grade every test case of a dataset with every selected grader.

    Pairs are graded one at a time, test cases in dataset order and graders in
    selection order. Failed pairs are reported in ``errors`` and not recorded.
    The batch is merged into the stored results in a single save, leaving
    results of other datasets and graders untouched. There is no way to
    cancel a run part-way.
    """
    dataset = store.get_dataset(dataset_id)
    if dataset is None:
        msg = f"Dataset {dataset_id} not found"
        raise ValueError(msg)

    graders: list[Grader] = []
    for grader_id in dict.fromkeys(grader_ids):
        grader = store.get_grader(grader_id)
        if grader is None:
            logger.warning("Skipping unknown grader %s", grader_id)
            continue
        graders.append(grader)

    run = ExperimentRun(dataset_id=dataset.id, grader_ids=[g.id for g in graders])
    logger.info(
        "Running %d test cases x %d graders on %s",
        len(dataset.test_cases),
        len(graders),
        dataset.name,
    )

    for test_case in dataset.test_cases:
        for grader in graders:
            verdict = policy.grade(
                input=test_case.input,
                expected_output=test_case.expected_output,
                rubric=grader.rubric,
            )
            if on_result is not None:
                on_result(test_case, grader, verdict)

            if verdict.error:
                run.errors.append(
                    PairError(
                        test_case_id=test_case.id,
                        grader_id=grader.id,
                        message=verdict.reason,
                    )
                )
                continue

            run.results.append(ExperimentResult.from_verdict(test_case.id, grader.id, verdict))

    if run.results:
        store.record_results(run.results)

    logger.info(
        "Experiment finished: %d passed, %d failed, %d errors",
        run.passed,
        run.failed,
        len(run.errors),
    )
    return run
