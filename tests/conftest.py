from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

# Ensure src/ is importable when the package is not installed.
ROOT = TESTS_DIR.parent
for extra in (ROOT, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from quiz_client import config as config_mod  # noqa: E402
from quiz_client.core import workspace as workspace_mod  # noqa: E402


@pytest.fixture
def workspace_home(tmp_path, monkeypatch) -> Path:
    """Point every quiz-client command at a throwaway workspace."""

    home = tmp_path / "workspace"
    monkeypatch.setenv(workspace_mod.WORKSPACE_ENV, str(home))
    monkeypatch.delenv(config_mod.BASE_URL_ENV, raising=False)
    monkeypatch.delenv(config_mod.CONFIG_ENV, raising=False)
    return home


@pytest.fixture(autouse=True)
def _reset_quiz_client_logger() -> Iterator[None]:
    yield
    logger = logging.getLogger("quiz_client")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
