"""Tests for environment-driven configuration."""

from __future__ import annotations

import logging

import pytest

from posturescore import config


def test_log_level_default(monkeypatch):
    monkeypatch.delenv(config.LOG_LEVEL_ENV, raising=False)
    assert config.get_log_level() == logging.WARNING


def test_log_level_from_env(monkeypatch):
    monkeypatch.setenv(config.LOG_LEVEL_ENV, " debug ")
    assert config.get_log_level() == logging.DEBUG


def test_log_level_invalid_fails_closed(monkeypatch):
    monkeypatch.setenv(config.LOG_LEVEL_ENV, "chatty")
    with pytest.raises(RuntimeError, match=config.LOG_LEVEL_ENV):
        config.get_log_level()


def test_tier_weights_sum_to_max_score():
    w = config.TIER_WEIGHTS
    assert w.basic + w.review + w.context + w.thorough_review + w.admin_thorough_review == 10


def test_token_deductions_are_read_only():
    with pytest.raises(TypeError):
        config.TOKEN_WRITE_DEDUCTIONS["contents"] = 0.0


def test_configure_logging_applies_env_level(monkeypatch):
    calls = []
    monkeypatch.setenv(config.LOG_LEVEL_ENV, "INFO")
    monkeypatch.setattr(logging, "basicConfig", lambda **kw: calls.append(kw))
    config.configure_logging()
    assert calls == [{"level": logging.INFO, "format": config.LOG_FORMAT}]
