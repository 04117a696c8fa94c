# Copyright (c) Syntropy Systems
"""Configuration management for gradeline."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import cast

import yaml

DEFAULT_MODEL = "openai/gpt-oss-120b:free"
DEFAULT_API_URL = "https://openrouter.ai/api/v1/chat/completions"

# Project layout: <root>/.gradeline/{config.yaml,gradeline.db}
PROJECT_DIR = ".gradeline"
CONFIG_FILE = "config.yaml"
DATABASE_FILE = "gradeline.db"

NO_PROJECT_MESSAGE = "No .gradeline directory found. Run 'gradeline init' first."


class ConfigurationError(Exception):
    """A required setting (credential, database) is not configured."""


@dataclass
class GradelineConfig:
    """Configuration for gradeline."""

    # Chat model used for both answer generation and grading
    model: str = DEFAULT_MODEL

    # Chat-completions endpoint
    api_url: str = DEFAULT_API_URL

    # Timeout for a single generation call (seconds)
    request_timeout: float = 60.0

    # Credential, read from OPENROUTER_API_KEY only
    api_key: str | None = None

    @property
    def ai_enabled(self) -> bool:
        """Whether AI-backed grading can be used."""
        return bool(self.api_key)


def find_project_dir(start: Path | None = None) -> Path | None:
    """Return the nearest .gradeline directory at or above ``start`` (default: cwd)."""
    origin = (start or Path.cwd()).resolve()
    for directory in (origin, *origin.parents):
        candidate = directory / PROJECT_DIR
        if candidate.is_dir():
            return candidate
    return None


def _config_file(project_dir: Path | None) -> Path | None:
    # Explicit project, then the nearest one, then ~/.gradeline
    if project_dir is None:
        project_dir = find_project_dir()
    if project_dir is None:
        project_dir = Path.home() / PROJECT_DIR
    path = project_dir / CONFIG_FILE
    return path if path.exists() else None


def load_config(project_dir: Path | None = None) -> GradelineConfig:
    """Load configuration from .gradeline/config.yaml, defaults and environment.

    OPENROUTER_MODEL overrides the file; the API key only ever comes from
    OPENROUTER_API_KEY.
    """
    config = GradelineConfig()

    config_path = _config_file(project_dir)
    if config_path is not None:
        with config_path.open() as f:
            data = cast("dict[str, object]", yaml.safe_load(f) or {})

        model = data.get("model")
        if isinstance(model, str) and model:
            config.model = model
        api_url = data.get("api_url")
        if isinstance(api_url, str) and api_url:
            config.api_url = api_url
        request_timeout = data.get("request_timeout")
        if isinstance(request_timeout, (int, float)):
            config.request_timeout = float(request_timeout)

    env_model = os.environ.get("OPENROUTER_MODEL")
    if env_model:
        config.model = env_model

    config.api_key = os.environ.get("OPENROUTER_API_KEY") or None

    return config


def project_db_path(project_dir: Path | None = None) -> Path:
    """Database of the given (or nearest) project.

    Raises:
        ConfigurationError: no .gradeline directory was found
    """
    project_dir = project_dir or find_project_dir()
    if project_dir is None:
        raise ConfigurationError(NO_PROJECT_MESSAGE)
    return project_dir / DATABASE_FILE


def default_db_path() -> Path | None:
    """GRADELINE_DATABASE if set, else the nearest project's database, else None."""
    env_path = os.environ.get("GRADELINE_DATABASE")
    if env_path:
        return Path(env_path)
    project_dir = find_project_dir()
    return project_dir / DATABASE_FILE if project_dir is not None else None
