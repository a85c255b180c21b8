"""Configuration for quiz-client commands.

Settings live in ``quiz_client.toml`` inside the workspace ``config``
directory. Values are merged over built-in defaults (unknown keys are
rejected) and validated into frozen dataclasses. ``QUIZ_CLIENT_BASE_URL``
overrides the backend URL; a ``.env`` file is honoured when the process
environment is used.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from .core import config as core_config
from .core import workspace as workspace_mod

__all__ = [
    "BASE_URL_ENV",
    "CONFIG_ENV",
    "CONFIG_FILENAME",
    "BackendConfig",
    "LoadResult",
    "LoggingConfig",
    "QuizClientConfig",
    "QuizClientConfigError",
    "QuizDefaults",
    "config_template",
    "load_config",
    "write_template",
]

CONFIG_FILENAME = "quiz_client.toml"
CONFIG_ENV = "QUIZ_CLIENT_CONFIG"
BASE_URL_ENV = "QUIZ_CLIENT_BASE_URL"

# Environment variables that override one setting each.
_ENV_OVERRIDES = {BASE_URL_ENV: "backend.base_url"}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class QuizClientConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


@dataclass(frozen=True)
class BackendConfig:
    base_url: str
    timeout_seconds: float


@dataclass(frozen=True)
class QuizDefaults:
    question_count: int
    category: Optional[str]
    difficulty: Optional[str]


@dataclass(frozen=True)
class LoggingConfig:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizClientConfig:
    backend: BackendConfig
    quiz: QuizDefaults
    logging: LoggingConfig


@dataclass(frozen=True)
class LoadResult:
    """Loaded configuration plus the workspace it was resolved against."""

    config: QuizClientConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve, parse and validate the active configuration.

    Precedence is environment > TOML file > defaults. A missing file is only
    an error when it was requested explicitly (argument or ``CONFIG_ENV``).
    """

    if env is None:
        load_dotenv()
        env = os.environ

    layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    explicit = config_path
    if explicit is None and env.get(CONFIG_ENV, "").strip():
        explicit = Path(env[CONFIG_ENV].strip())
    target = (
        explicit.expanduser()
        if explicit is not None
        else layout.path_for("config") / CONFIG_FILENAME
    )

    overrides = {
        dotted: env[name].strip()
        for name, dotted in _ENV_OVERRIDES.items()
        if env.get(name, "").strip()
    }
    try:
        tree, loaded_path = core_config.load_layered(
            _DEFAULTS, target, required=explicit is not None
        )
        core_config.apply_overrides(tree, overrides)
    except core_config.TomlConfigError as exc:
        raise QuizClientConfigError(str(exc)) from exc

    return LoadResult(
        config=_build_config(tree),
        layout=layout,
        config_path=loaded_path,
    )


def config_template() -> str:
    """Return the commented TOML written by ``quiz-client init``."""

    return _CONFIG_TEMPLATE.strip() + "\n"


def write_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=config_template(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizClientConfigError(str(exc)) from exc


def _build_config(tree: Mapping[str, Any]) -> QuizClientConfig:
    backend = tree["backend"]
    quiz = tree["quiz"]
    logging_section = tree["logging"]
    return QuizClientConfig(
        backend=BackendConfig(
            base_url=_require_url(
                backend.get("base_url"), field="backend.base_url"
            ),
            timeout_seconds=_require_positive_number(
                backend.get("timeout_seconds"),
                field="backend.timeout_seconds",
            ),
        ),
        quiz=QuizDefaults(
            question_count=_require_positive_int(
                quiz.get("question_count"), field="quiz.question_count"
            ),
            category=_optional_string(
                quiz.get("category"), field="quiz.category"
            ),
            difficulty=_optional_string(
                quiz.get("difficulty"), field="quiz.difficulty"
            ),
        ),
        logging=_build_logging(logging_section),
    )


def _build_logging(section: Mapping[str, Any]) -> LoggingConfig:
    level = section.get("level")
    if not isinstance(level, str) or level.strip().upper() not in _LOG_LEVELS:
        raise QuizClientConfigError(
            "logging.level must be one of " + ", ".join(_LOG_LEVELS) + "."
        )
    verbose = section.get("verbose")
    if not isinstance(verbose, bool):
        raise QuizClientConfigError("'logging.verbose' must be a boolean.")
    return LoggingConfig(level=level.strip().upper(), verbose=verbose)


def _require_url(value: Any, *, field: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise QuizClientConfigError(f"'{field}' must be a non-empty string.")
    url = value.strip()
    if not url.startswith(("http://", "https://")):
        raise QuizClientConfigError(
            f"'{field}' must start with http:// or https://."
        )
    return url if url.endswith("/") else url + "/"


def _require_positive_int(value: Any, *, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise QuizClientConfigError(f"'{field}' must be a positive integer.")
    return value


def _require_positive_number(value: Any, *, field: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise QuizClientConfigError(f"'{field}' must be a number.")
    if value <= 0:
        raise QuizClientConfigError(f"'{field}' must be greater than zero.")
    return float(value)


def _optional_string(value: Any, *, field: str) -> Optional[str]:
    # TOML has no null, so an empty string means "not set".
    if value is None:
        return None
    if not isinstance(value, str):
        raise QuizClientConfigError(f"'{field}' must be a string.")
    return value.strip() or None


_DEFAULTS: Dict[str, Any] = {
    "backend": {
        "base_url": "http://localhost:8080/",
        "timeout_seconds": 30,
    },
    "quiz": {
        "question_count": 10,
        "category": "",
        "difficulty": "",
    },
    "logging": {
        "level": "INFO",
        "verbose": False,
    },
}


_CONFIG_TEMPLATE = """
# quiz-client configuration

[backend]
# Root URL of the quiz backend (QUIZ_CLIENT_BASE_URL overrides this)
base_url = "http://localhost:8080/"
# Per-request timeout in seconds
timeout_seconds = 30

[quiz]
# Questions requested per round
question_count = 10
# Optional filters; leave empty for any
category = ""
difficulty = ""

[logging]
level = "INFO"
# Mirror log records to stderr
verbose = false
"""
