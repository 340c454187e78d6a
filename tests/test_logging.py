"""Logging redaction tests."""

import logging

import structlog

from projecthub.logging_config import (
    REDACTED,
    SENSITIVE_KEYS,
    configure_logging,
    redact_sensitive,
)


def test_sensitive_values_are_redacted():
    event = {
        "event": "identity.login_failed",
        "username": "bob",
        "password": "hunter22",
        "Authorization": "Bearer abc",
        "access_token": "abc",
    }
    result = redact_sensitive(None, "info", event)

    assert result["username"] == "bob"
    assert result["password"] == REDACTED
    assert result["Authorization"] == REDACTED
    assert result["access_token"] == REDACTED


def test_nested_dict_values_are_redacted():
    event = {"event": "api.request", "body": {"username": "bob", "password": "hunter22"}}
    result = redact_sensitive(None, "info", event)

    assert result["body"] == {"username": "bob", "password": REDACTED}


def test_password_hash_is_sensitive():
    assert "password_hash" in SENSITIVE_KEYS


def test_configure_logging_installs_single_handler():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging("production", "warning")
        assert len(root.handlers) == 1
        assert root.level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
        structlog.reset_defaults()
