"""
conftest.py - テスト共通 fixture
"""
from __future__ import annotations

import sys
from pathlib import Path

_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import pytest

from alias_map.logging_utils import reset_configuration


@pytest.fixture(autouse=True)
def _clean_env_vars(monkeypatch):
    """テスト間で環境変数が漏れないようにする"""
    for var in (
        "ALIAS_MAP_LOG_LEVEL",
        "ALIAS_MAP_LOG_FORMAT",
        "ALIAS_MAP_MAX_FILE_BYTES",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture(autouse=True)
def _reset_logging():
    """各テスト後にログ設定をリセットする"""
    yield
    reset_configuration()
