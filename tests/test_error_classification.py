import asyncio

import pytest

from docpilot.error_handling import (
    ConfigurationError,
    CriticalTaskError,
    NoAnalyzableContentError,
    RetryConfig,
    classify_error,
    friendly_message,
)
from docpilot.models import ErrorKind


class StatusError(Exception):
    def __init__(self, message: str, code: int):
        super().__init__(message)
        self.code = code


@pytest.mark.parametrize(
    "error, expected",
    [
        (Exception("API key not valid. Please pass a valid API key."), ErrorKind.UNAUTHENTICATED),
        (Exception("429 RESOURCE_EXHAUSTED: quota exceeded"), ErrorKind.QUOTA_EXCEEDED),
        (Exception("Request timed out"), ErrorKind.TIMEOUT),
        (Exception("getaddrinfo ENOTFOUND generativelanguage.googleapis.com"), ErrorKind.NETWORK_UNAVAILABLE),
        (Exception("models/gemini-x is not found for API version v1beta"), ErrorKind.MODEL_UNAVAILABLE),
        (Exception("something odd happened"), ErrorKind.UNKNOWN),
    ],
)
def test_message_patterns(error, expected):
    assert classify_error(error) == expected


def test_builtin_exception_types():
    assert classify_error(TimeoutError()) == ErrorKind.TIMEOUT
    assert classify_error(asyncio.TimeoutError()) == ErrorKind.TIMEOUT
    assert classify_error(ConnectionRefusedError()) == ErrorKind.NETWORK_UNAVAILABLE


def test_status_codes_take_precedence_over_message():
    assert classify_error(StatusError("error", 401)) == ErrorKind.UNAUTHENTICATED
    assert classify_error(StatusError("error", 429)) == ErrorKind.QUOTA_EXCEEDED
    assert classify_error(StatusError("error", 504)) == ErrorKind.TIMEOUT
    assert classify_error(StatusError("error", 404)) == ErrorKind.MODEL_UNAVAILABLE


def test_own_exceptions_carry_their_kind():
    assert classify_error(ConfigurationError("no key")) == ErrorKind.UNAUTHENTICATED
    assert classify_error(NoAnalyzableContentError("empty")) == ErrorKind.MALFORMED_OUTPUT


def test_friendly_messages_exist_for_every_kind():
    for kind in ErrorKind:
        assert friendly_message(kind)
    assert "try again later" in friendly_message(ErrorKind.QUOTA_EXCEEDED)


def test_critical_task_error_carries_user_message():
    error = CriticalTaskError("clauses", ErrorKind.QUOTA_EXCEEDED, "429")

    assert error.kind == ErrorKind.QUOTA_EXCEEDED
    assert error.user_message == friendly_message(ErrorKind.QUOTA_EXCEEDED)
    assert "clauses" in str(error)


def test_retry_config_delays_and_retryable_kinds():
    config = RetryConfig()

    assert [config.calculate_delay(attempt) for attempt in range(3)] == [1.0, 2.0, 4.0]
    assert RetryConfig(max_delay=3.0).calculate_delay(5) == 3.0

    assert config.should_retry(ErrorKind.TIMEOUT)
    assert config.should_retry(ErrorKind.NETWORK_UNAVAILABLE)
    assert config.should_retry(ErrorKind.UNKNOWN)
    assert not config.should_retry(ErrorKind.UNAUTHENTICATED)
    assert not config.should_retry(ErrorKind.QUOTA_EXCEEDED)
    assert not config.should_retry(ErrorKind.MODEL_UNAVAILABLE)


def test_retry_config_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryConfig(attempts=0)
