"""Tests for application settings."""

import pytest
from pydantic import ValidationError

from contexthub.core.config import Settings


def test_defaults():
    settings = Settings(_env_file=None)
    assert settings.list_default_limit == 20
    assert settings.list_max_limit == 200
    assert settings.query_default_limit == 50
    assert settings.query_max_limit == 200
    assert settings.max_collection_fields == 50
    assert settings.max_slug_length == 150


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("CONTEXTHUB_QUERY_DEFAULT_LIMIT", "10")
    monkeypatch.setenv("CONTEXTHUB_ENVIRONMENT", "testing")
    settings = Settings(_env_file=None)
    assert settings.query_default_limit == 10
    assert settings.is_testing


def test_log_level_is_case_insensitive():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_default_limit_cannot_exceed_maximum():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, list_default_limit=500, list_max_limit=200)
