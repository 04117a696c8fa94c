# Copyright (c) Syntropy Systems
"""Merge newly graded results into the persisted result set."""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from gradeline.models import AppState, ExperimentResult, ResultKey


def result_index(results: Iterable[ExperimentResult]) -> dict[ResultKey, ExperimentResult]:
    """Map (test case id, grader id) to its result. Later entries win."""
    return {result.key: result for result in results}


def merge_results(
    existing: Sequence[ExperimentResult],
    new_batch: Iterable[ExperimentResult],
) -> list[ExperimentResult]:
    """Upsert ``new_batch`` into ``existing`` by (test case, grader) key.

    Existing keys are replaced in place; unseen keys are appended in batch
    order. Results whose key is not in the batch are returned untouched, so
    merging the same batch twice gives the same list as merging it once.
    """
    incoming = result_index(new_batch)

    merged: list[ExperimentResult] = []
    seen: set[ResultKey] = set()
    for result in existing:
        if result.key in seen:
            continue
        seen.add(result.key)
        merged.append(incoming.get(result.key, result))

    merged.extend(result for key, result in incoming.items() if key not in seen)
    return merged


def prune_results(state: AppState) -> list[ExperimentResult]:
    """Results whose test case and grader both still exist."""
    test_case_ids = state.test_case_ids()
    grader_ids = state.grader_ids()
    return [
        result
        for result in state.results
        if result.test_case_id in test_case_ids and result.grader_id in grader_ids
    ]
