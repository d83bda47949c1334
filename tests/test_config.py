"""Settings tests: defaults, environment overrides, validation."""

import pytest
from pydantic import ValidationError

from pageprops.config import Settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("PAGEPROPS_LOG_FORMAT", raising=False)
    settings = Settings(_env_file=None)
    assert settings.max_concurrency == 8
    assert settings.once_cache_prefix == "pageprops.once"
    assert settings.session_id_key == "pageprops.session_id"
    assert settings.encrypt_history is False
    assert settings.log_format == "json"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("PAGEPROPS_MAX_CONCURRENCY", "2")
    monkeypatch.setenv("PAGEPROPS_ENCRYPT_HISTORY", "true")
    monkeypatch.setenv("PAGEPROPS_LOG_FORMAT", "TEXT")
    settings = Settings(_env_file=None)
    assert settings.max_concurrency == 2
    assert settings.encrypt_history is True
    assert settings.log_format == "text"


def test_rejects_zero_concurrency():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, max_concurrency=0)
