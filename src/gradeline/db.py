# Copyright (c) Syntropy Systems
"""SQLite persistence for datasets, graders and results.

The full state is saved as one unit: every save is a single ``BEGIN
IMMEDIATE`` transaction that upserts the payload and deletes rows the payload
no longer contains. A failed save rolls back and leaves the previous state in
place.
"""

import logging
import sqlite3
from pathlib import Path
from typing import Optional

from gradeline.config import ConfigurationError, default_db_path
from gradeline.models import AppState, Dataset, ExperimentResult, Grader, TestCase

logger = logging.getLogger(__name__)

# SQL schema for gradeline database
SCHEMA = """
CREATE TABLE IF NOT EXISTS datasets (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS test_cases (
    id TEXT PRIMARY KEY,
    dataset_id TEXT NOT NULL REFERENCES datasets(id) ON DELETE CASCADE,
    position INTEGER NOT NULL DEFAULT 0,  -- order within the dataset
    input TEXT NOT NULL,
    expected_output TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS graders (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    description TEXT NOT NULL,
    rubric TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS results (
    test_case_id TEXT NOT NULL REFERENCES test_cases(id) ON DELETE CASCADE,
    grader_id TEXT NOT NULL REFERENCES graders(id) ON DELETE CASCADE,
    pass INTEGER NOT NULL,
    reason TEXT NOT NULL,
    generated_output TEXT,  -- NULL unless the grader generated the answer
    PRIMARY KEY (test_case_id, grader_id)
);

CREATE INDEX IF NOT EXISTS idx_test_cases_dataset ON test_cases(dataset_id);
CREATE INDEX IF NOT EXISTS idx_results_test_case ON results(test_case_id);
CREATE INDEX IF NOT EXISTS idx_results_grader ON results(grader_id);
"""


class PersistenceError(Exception):
    """Reading or writing the stored state failed."""


def get_connection(db_path: Path) -> sqlite3.Connection:
    """
    Get a database connection with proper settings for concurrent access.

    - isolation_level=None for explicit transaction control
    - WAL mode for concurrent readers/writers
    - busy_timeout to wait for locks instead of failing immediately
    - foreign_keys so cascades and references are enforced
    - Row factory for dict-like access
    """
    conn = sqlite3.connect(str(db_path), timeout=5.0, isolation_level=None)
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=5000")
    conn.execute("PRAGMA foreign_keys=ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: Path) -> None:
    """Initialize the database with the schema."""
    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
    finally:
        conn.close()


# --- Load ---

def load_state(conn: sqlite3.Connection) -> AppState:
    """Load all datasets, test cases, graders and results."""
    try:
        dataset_rows = conn.execute(
            "SELECT id, name FROM datasets ORDER BY name, id"
        ).fetchall()
        test_case_rows = conn.execute(
            """
            SELECT id, dataset_id, input, expected_output
            FROM test_cases
            ORDER BY dataset_id, position, rowid
            """
        ).fetchall()
        grader_rows = conn.execute(
            "SELECT id, name, description, rubric FROM graders ORDER BY name, id"
        ).fetchall()
        result_rows = conn.execute(
            """
            SELECT test_case_id, grader_id, pass, reason, generated_output
            FROM results
            ORDER BY rowid
            """
        ).fetchall()
    except sqlite3.Error as e:
        msg = f"Failed to load data: {e}"
        raise PersistenceError(msg) from e

    # Group test cases by dataset for the nested structure
    by_dataset: dict[str, list[TestCase]] = {}
    for row in test_case_rows:
        by_dataset.setdefault(row["dataset_id"], []).append(
            TestCase(
                id=row["id"],
                input=row["input"],
                expected_output=row["expected_output"],
            )
        )

    return AppState(
        datasets=[
            Dataset(id=row["id"], name=row["name"], test_cases=by_dataset.get(row["id"], []))
            for row in dataset_rows
        ],
        graders=[
            Grader(
                id=row["id"],
                name=row["name"],
                description=row["description"],
                rubric=row["rubric"],
            )
            for row in grader_rows
        ],
        results=[
            ExperimentResult(
                test_case_id=row["test_case_id"],
                grader_id=row["grader_id"],
                pass_=row["pass"] == 1,
                reason=row["reason"],
                generated_output=row["generated_output"] or None,
            )
            for row in result_rows
        ],
    )


# --- Save ---

def check_integrity(state: AppState) -> None:
    """Reject payloads with duplicate ids or results that reference nothing."""
    problems: list[str] = []

    dataset_ids = [d.id for d in state.datasets]
    if len(dataset_ids) != len(set(dataset_ids)):
        problems.append("duplicate dataset ids")

    test_case_ids = [tc.id for d in state.datasets for tc in d.test_cases]
    if len(test_case_ids) != len(set(test_case_ids)):
        problems.append("duplicate test case ids")

    grader_ids = [g.id for g in state.graders]
    if len(grader_ids) != len(set(grader_ids)):
        problems.append("duplicate grader ids")

    keys = [r.key for r in state.results]
    if len(keys) != len(set(keys)):
        problems.append("duplicate (testCaseId, graderId) results")

    known_test_cases = set(test_case_ids)
    known_graders = set(grader_ids)
    for result in state.results:
        if result.test_case_id not in known_test_cases:
            problems.append(f"result references unknown test case {result.test_case_id}")
        if result.grader_id not in known_graders:
            problems.append(f"result references unknown grader {result.grader_id}")

    if problems:
        msg = "Invalid state: " + "; ".join(problems)
        raise PersistenceError(msg)


def _delete_missing(
    conn: sqlite3.Connection,
    table: str,
    column: str,
    keep: list[str],
) -> None:
    """Delete rows whose ``column`` is not in ``keep``."""
    conn.execute("CREATE TEMP TABLE IF NOT EXISTS _keep (id TEXT PRIMARY KEY)")
    conn.execute("DELETE FROM _keep")
    conn.executemany("INSERT OR IGNORE INTO _keep (id) VALUES (?)", [(k,) for k in keep])
    conn.execute(f"DELETE FROM {table} WHERE {column} NOT IN (SELECT id FROM _keep)")  # noqa: S608


def save_state(conn: sqlite3.Connection, state: AppState) -> None:
    """
    Save the full state incrementally in one transaction.

    Rows present in ``state`` are upserted; rows absent from it are deleted.
    Unchanged rows are left alone. On any error the transaction is rolled
    back and PersistenceError is raised.
    """
    check_integrity(state)

    try:
        conn.execute("BEGIN IMMEDIATE")

        for dataset in state.datasets:
            conn.execute(
                """
                INSERT INTO datasets (id, name) VALUES (?, ?)
                ON CONFLICT(id) DO UPDATE SET name = excluded.name
                """,
                (dataset.id, dataset.name),
            )

        for dataset in state.datasets:
            for position, tc in enumerate(dataset.test_cases):
                conn.execute(
                    """
                    INSERT INTO test_cases (id, dataset_id, position, input, expected_output)
                    VALUES (?, ?, ?, ?, ?)
                    ON CONFLICT(id) DO UPDATE SET
                        dataset_id = excluded.dataset_id,
                        position = excluded.position,
                        input = excluded.input,
                        expected_output = excluded.expected_output
                    """,
                    (tc.id, dataset.id, position, tc.input or "", tc.expected_output or ""),
                )

        for grader in state.graders:
            conn.execute(
                """
                INSERT INTO graders (id, name, description, rubric) VALUES (?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    description = excluded.description,
                    rubric = excluded.rubric
                """,
                (grader.id, grader.name, grader.description or "", grader.rubric or ""),
            )

        for result in state.results:
            conn.execute(
                """
                INSERT INTO results (test_case_id, grader_id, pass, reason, generated_output)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(test_case_id, grader_id) DO UPDATE SET
                    pass = excluded.pass,
                    reason = excluded.reason,
                    generated_output = excluded.generated_output
                """,
                (
                    result.test_case_id,
                    result.grader_id,
                    1 if result.pass_ else 0,
                    result.reason or "",
                    result.generated_output,
                ),
            )

        # Remove what the payload no longer holds. Results go first so the
        # remaining deletes never rely on cascades for rows we keep.
        keep_pairs = {r.key for r in state.results}
        stored_pairs = conn.execute("SELECT test_case_id, grader_id FROM results").fetchall()
        conn.executemany(
            "DELETE FROM results WHERE test_case_id = ? AND grader_id = ?",
            [
                (row["test_case_id"], row["grader_id"])
                for row in stored_pairs
                if (row["test_case_id"], row["grader_id"]) not in keep_pairs
            ],
        )
        _delete_missing(
            conn, "test_cases", "id", [tc.id for d in state.datasets for tc in d.test_cases]
        )
        _delete_missing(conn, "graders", "id", [g.id for g in state.graders])
        _delete_missing(conn, "datasets", "id", [d.id for d in state.datasets])

        conn.execute("COMMIT")
    except sqlite3.Error as e:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        msg = f"Failed to save data: {e}"
        raise PersistenceError(msg) from e


# --- Gateway ---

class StateDatabase:
    """Load/save gateway over one SQLite file.

    With no path the gateway is "not configured": ``load`` returns empty
    state and ``save`` raises ConfigurationError.
    """

    def __init__(self, db_path: Optional[Path]) -> None:
        self.db_path = db_path

    @property
    def is_configured(self) -> bool:
        return self.db_path is not None

    def init_schema(self) -> None:
        if self.db_path is not None:
            init_db(self.db_path)

    def load(self) -> AppState:
        """Load the full state."""
        if self.db_path is None:
            return AppState()
        conn = _open(self.db_path)
        try:
            conn.executescript(SCHEMA)
            return load_state(conn)
        except sqlite3.Error as e:
            msg = f"Failed to load data: {e}"
            raise PersistenceError(msg) from e
        finally:
            conn.close()

    def save(self, state: AppState) -> None:
        """Save the full state atomically."""
        if self.db_path is None:
            msg = "Database not configured. Run 'gradeline init' or set GRADELINE_DATABASE."
            raise ConfigurationError(msg)
        conn = _open(self.db_path)
        try:
            conn.executescript(SCHEMA)
            save_state(conn, state)
        except sqlite3.Error as e:
            msg = f"Failed to save data: {e}"
            raise PersistenceError(msg) from e
        finally:
            conn.close()
        logger.debug(
            "Saved %d datasets, %d graders, %d results",
            len(state.datasets),
            len(state.graders),
            len(state.results),
        )


def _open(db_path: Path) -> sqlite3.Connection:
    try:
        return get_connection(db_path)
    except sqlite3.Error as e:
        msg = f"Cannot open database {db_path}: {e}"
        raise PersistenceError(msg) from e


def get_database(db_path: Optional[Path] = None) -> StateDatabase:
    """
    Resolve the database from an explicit path, GRADELINE_DATABASE, or the
    nearest .gradeline project. Returns an unconfigured gateway if none apply.
    """
    return StateDatabase(db_path or default_db_path())
