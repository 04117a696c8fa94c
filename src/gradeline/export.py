# Copyright (c) Syntropy Systems
"""Export a dataset's results to CSV or JSON."""
from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

from pydantic import TypeAdapter

from gradeline.models.base import JSONValue
from gradeline.reconcile import result_index

if TYPE_CHECKING:
    from collections.abc import Sequence

    from gradeline.models import Dataset, ExperimentResult, Grader

_EXPORT_ADAPTER = TypeAdapter(list[dict[str, JSONValue]])


def csv_header(graders: Sequence[Grader]) -> list[str]:
    """Header row: input, expected_output, then pass/reason/generated per grader."""
    header = ["input", "expected_output"]
    for grader in graders:
        header.extend(
            [f"{grader.name}_pass", f"{grader.name}_reason", f"{grader.name}_generated"]
        )
    return header


def results_to_csv(
    dataset: Dataset,
    graders: Sequence[Grader],
    results: Sequence[ExperimentResult],
) -> str:
    """Render one row per test case. A missing result exports as ``fail``.

    Fields containing a comma, quote or newline are quoted with inner quotes
    doubled; rows end with CRLF.
    """
    index = result_index(results)

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writerow(csv_header(graders))

    for test_case in dataset.test_cases:
        row = [test_case.input or "", test_case.expected_output or ""]
        for grader in graders:
            result = index.get((test_case.id, grader.id))
            row.extend(
                [
                    "pass" if result is not None and result.pass_ else "fail",
                    result.reason if result is not None else "",
                    (result.generated_output or "") if result is not None else "",
                ]
            )
        writer.writerow(row)

    # No trailing line break after the last row
    return buffer.getvalue().removesuffix("\r\n")


def results_to_json(
    dataset: Dataset,
    graders: Sequence[Grader],
    results: Sequence[ExperimentResult],
) -> str:
    """Render per-test-case records with a verdict (or null) per grader name."""
    index = result_index(results)

    records: list[dict[str, JSONValue]] = []
    for test_case in dataset.test_cases:
        verdicts: dict[str, JSONValue] = {}
        for grader in graders:
            result = index.get((test_case.id, grader.id))
            verdicts[grader.name] = (
                result.model_dump(
                    mode="json",
                    by_alias=True,
                    exclude_none=True,
                    exclude={"test_case_id", "grader_id"},
                )
                if result is not None
                else None
            )
        records.append(
            {
                "id": test_case.id,
                "input": test_case.input,
                "expected_output": test_case.expected_output,
                "graders": verdicts,
            }
        )

    return _EXPORT_ADAPTER.dump_json(records, indent=2).decode("utf-8")
