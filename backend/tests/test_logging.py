from __future__ import annotations

import logging

import pytest
from pydantic import ValidationError

from core.config import Settings
from core.logging import resolve_log_level


def _settings(**overrides) -> Settings:
    return Settings(database_url="sqlite://", jwt_secret_key="test-secret-key", **overrides)


def test_level_follows_environment():
    assert resolve_log_level(_settings(environment="development")) == logging.DEBUG
    assert resolve_log_level(_settings(environment="Production")) == logging.INFO


def test_explicit_level_wins():
    assert resolve_log_level(_settings(environment="development", log_level=" warning ")) == logging.WARNING


def test_unknown_level_is_rejected():
    with pytest.raises(ValidationError):
        _settings(log_level="chatty")
