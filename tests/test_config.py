"""
Tests for environment-backed config accessors.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from agbank.utils import config


def test_api_base_url_strips_trailing_slash(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGBANK_API_URL", "https://bank.example/api/")
    assert config.api_base_url() == "https://bank.example/api"


def test_invalid_timeout_falls_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("AGBANK_API_TIMEOUT", "soon")
    assert config.api_timeout() == 30
    monkeypatch.setenv("AGBANK_API_TIMEOUT", "5")
    assert config.api_timeout() == 5


def test_session_dir_override(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("AGBANK_SESSION_DIR", str(tmp_path))
    assert config.session_dir() == tmp_path
    monkeypatch.setenv("AGBANK_SESSION_DIR", "")
    assert config.session_dir() == config.project_root() / "data" / "sessions"
