# Copyright (c) Syntropy Systems
"""In-process state container for datasets, graders and results.

Every mutation builds the next state, persists it, and only then replaces the
in-memory copy and notifies subscribers. If the save fails the store keeps
its previous state and the error propagates, so unsaved work stays visible
as unsaved.
"""
from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, Callable, Optional

from gradeline.db import PersistenceError
from gradeline.models import AppState, Dataset, Grader, TestCase
from gradeline.reconcile import merge_results, prune_results

if TYPE_CHECKING:
    from collections.abc import Iterable

    from gradeline.db import StateDatabase
    from gradeline.models import ExperimentResult

logger = logging.getLogger(__name__)

Listener = Callable[[AppState], None]


def new_id() -> str:
    """Generate a short random id for new entities."""
    return uuid.uuid4().hex[:9]


class EvalStore:
    """State owned by one session, persisted through a StateDatabase.

    With ``database=None`` the store is memory-only.
    """

    def __init__(self, database: Optional[StateDatabase] = None) -> None:
        self.database = database
        self._state = AppState()
        self._listeners: list[Listener] = []

    # --- Loading and subscriptions ---

    def load(self, strict: bool = False) -> AppState:
        """Load persisted state.

        A failed load degrades to empty state, unless ``strict`` is set, in
        which case the PersistenceError propagates.
        """
        if self.database is None:
            return self._state
        try:
            state = self.database.load()
        except PersistenceError as e:
            if strict:
                raise
            logger.error("Load failed, starting with empty state: %s", e)
            state = AppState()
        self._state = state
        self._notify()
        return state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback for state changes; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)

    def _commit(self, next_state: AppState) -> None:
        if self.database is not None:
            self.database.save(next_state)
        self._state = next_state
        self._notify()

    def _draft(self) -> AppState:
        return self._state.model_copy(deep=True)

    # --- Read accessors ---

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def datasets(self) -> list[Dataset]:
        return self._state.datasets

    @property
    def graders(self) -> list[Grader]:
        return self._state.graders

    @property
    def results(self) -> list[ExperimentResult]:
        return self._state.results

    def get_dataset(self, dataset_id: str) -> Optional[Dataset]:
        return self._state.get_dataset(dataset_id)

    def get_grader(self, grader_id: str) -> Optional[Grader]:
        return self._state.get_grader(grader_id)

    def find_dataset(self, ref: str) -> Optional[Dataset]:
        """Find a dataset by id, or by case-insensitive name."""
        dataset = self.get_dataset(ref)
        if dataset is not None:
            return dataset
        for candidate in self.datasets:
            if candidate.name.lower() == ref.lower():
                return candidate
        return None

    def find_grader(self, ref: str) -> Optional[Grader]:
        """Find a grader by id, or by case-insensitive name."""
        grader = self.get_grader(ref)
        if grader is not None:
            return grader
        for candidate in self.graders:
            if candidate.name.lower() == ref.lower():
                return candidate
        return None

    # --- Dataset mutations ---

    def add_dataset(self, name: str) -> Dataset:
        dataset = Dataset(id=new_id(), name=name)
        draft = self._draft()
        draft.datasets.append(dataset)
        self._commit(draft)
        return dataset

    def rename_dataset(self, dataset_id: str, name: str) -> None:
        draft = self._draft()
        _require_dataset(draft, dataset_id).name = name
        self._commit(draft)

    def delete_dataset(self, dataset_id: str) -> None:
        """Delete a dataset with its test cases and their results."""
        draft = self._draft()
        _require_dataset(draft, dataset_id)
        draft.datasets = [d for d in draft.datasets if d.id != dataset_id]
        draft.results = prune_results(draft)
        self._commit(draft)

    # --- Test case mutations ---

    def add_test_case(self, dataset_id: str, input: str, expected_output: str) -> TestCase:
        test_case = TestCase(id=new_id(), input=input, expected_output=expected_output)
        draft = self._draft()
        _require_dataset(draft, dataset_id).test_cases.append(test_case)
        self._commit(draft)
        return test_case

    def update_test_case(
        self,
        dataset_id: str,
        test_case_id: str,
        input: Optional[str] = None,
        expected_output: Optional[str] = None,
    ) -> TestCase:
        """Edit a test case. Changing its content drops its prior results."""
        draft = self._draft()
        dataset = _require_dataset(draft, dataset_id)
        test_case = dataset.get_test_case(test_case_id)
        if test_case is None:
            msg = f"Test case {test_case_id} not found in dataset {dataset.name}"
            raise ValueError(msg)

        changed = False
        if input is not None and input != test_case.input:
            test_case.input = input
            changed = True
        if expected_output is not None and expected_output != test_case.expected_output:
            test_case.expected_output = expected_output
            changed = True

        if changed:
            draft.results = [r for r in draft.results if r.test_case_id != test_case_id]
        self._commit(draft)
        return test_case

    def delete_test_case(self, dataset_id: str, test_case_id: str) -> None:
        draft = self._draft()
        dataset = _require_dataset(draft, dataset_id)
        dataset.test_cases = [tc for tc in dataset.test_cases if tc.id != test_case_id]
        draft.results = [r for r in draft.results if r.test_case_id != test_case_id]
        self._commit(draft)

    # --- Grader mutations ---

    def add_grader(self, name: str, description: str = "", rubric: str = "") -> Grader:
        grader = Grader(id=new_id(), name=name, description=description, rubric=rubric)
        draft = self._draft()
        draft.graders.append(grader)
        self._commit(draft)
        return grader

    def update_grader(
        self,
        grader_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        rubric: Optional[str] = None,
    ) -> Grader:
        draft = self._draft()
        grader = draft.get_grader(grader_id)
        if grader is None:
            msg = f"Grader {grader_id} not found"
            raise ValueError(msg)
        if name is not None:
            grader.name = name
        if description is not None:
            grader.description = description
        if rubric is not None:
            grader.rubric = rubric
        self._commit(draft)
        return grader

    def delete_grader(self, grader_id: str) -> None:
        """Delete a grader and every result it produced."""
        draft = self._draft()
        draft.graders = [g for g in draft.graders if g.id != grader_id]
        draft.results = [r for r in draft.results if r.grader_id != grader_id]
        self._commit(draft)

    def import_entities(
        self,
        datasets: Iterable[Dataset],
        graders: Iterable[Grader],
    ) -> tuple[list[Dataset], list[Grader]]:
        """Add datasets and graders in one save, skipping names already in use.

        Returns the datasets and graders that were actually added.
        """
        draft = self._draft()
        dataset_names = {d.name.lower() for d in draft.datasets}
        grader_names = {g.name.lower() for g in draft.graders}

        added_datasets = [d for d in datasets if d.name.lower() not in dataset_names]
        added_graders = [g for g in graders if g.name.lower() not in grader_names]
        if not added_datasets and not added_graders:
            return [], []

        draft.datasets.extend(added_datasets)
        draft.graders.extend(added_graders)
        self._commit(draft)
        return added_datasets, added_graders

    # --- Results ---

    def record_results(self, batch: Iterable[ExperimentResult]) -> list[ExperimentResult]:
        """Merge a batch of results into the stored set and persist it."""
        draft = self._draft()
        draft.results = merge_results(draft.results, batch)
        self._commit(draft)
        return draft.results


def _require_dataset(state: AppState, dataset_id: str) -> Dataset:
    dataset = state.get_dataset(dataset_id)
    if dataset is None:
        msg = f"Dataset {dataset_id} not found"
        raise ValueError(msg)
    return dataset
