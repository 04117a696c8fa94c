# Copyright (c) Syntropy Systems
"""Pytest fixtures for gradeline tests."""

import os
import sqlite3
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Optional, Union

import pytest

# Store original cwd at module load time
_original_cwd = Path.cwd()


class FakeGenerator:
    """Scripted text generator. Records every (prompt, system) call.

    Each reply is returned in order; an Exception in the script is raised
    instead. The last reply repeats once the script runs out.
    """

    def __init__(self, *replies: Union[str, Exception], configured: bool = True) -> None:
        self.replies = list(replies)
        self.configured = configured
        self.calls: list[tuple[str, Optional[str]]] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def generate(self, prompt: str, system: Optional[str] = None) -> str:
        self.calls.append((prompt, system))
        index = min(len(self.calls), len(self.replies)) - 1
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory) -> None:
    """Keep the developer's credentials and global config out of tests."""
    monkeypatch.delenv("OPENROUTER_API_KEY", raising=False)
    monkeypatch.delenv("OPENROUTER_MODEL", raising=False)
    monkeypatch.delenv("GRADELINE_DATABASE", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))


@pytest.fixture
def make_generator() -> Callable[..., FakeGenerator]:
    """Factory for scripted generators."""
    return FakeGenerator


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def gradeline_project(temp_dir: Path) -> Generator[Path, None, None]:
    """Create a temporary gradeline project directory."""
    from gradeline.db import init_db

    gradeline_dir = temp_dir / ".gradeline"
    gradeline_dir.mkdir()

    # Initialize database
    db_path = gradeline_dir / "gradeline.db"
    init_db(db_path)

    # Change to temp directory
    os.chdir(temp_dir)

    yield temp_dir

    # Always return to original cwd
    os.chdir(_original_cwd)


@pytest.fixture
def db_path(gradeline_project: Path) -> Path:
    """Path of the test project's database."""
    return gradeline_project / ".gradeline" / "gradeline.db"


@pytest.fixture
def db_connection(db_path: Path) -> Generator[sqlite3.Connection, None, None]:
    """Get a database connection for the test project."""
    from gradeline.db import get_connection

    conn = get_connection(db_path)
    yield conn
    conn.close()
