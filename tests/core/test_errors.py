"""Tests for the structured error hierarchy."""

from syncguard.core.errors import (
    ConfigError,
    DatabaseError,
    ErrorCategory,
    JobDecodeError,
    SyncGuardError,
    TransientError,
    ValidationError,
    is_retryable,
)


class TestCategories:
    def test_defaults_per_class(self):
        assert TransientError("x").category == ErrorCategory.NETWORK
        assert ValidationError("x").category == ErrorCategory.VALIDATION
        assert ConfigError("x").category == ErrorCategory.CONFIG
        assert DatabaseError("x").category == ErrorCategory.DATABASE
        assert SyncGuardError("x").category == ErrorCategory.INTERNAL

    def test_decode_error_is_validation(self):
        error = JobDecodeError("bad row")
        assert isinstance(error, ValidationError)
        assert error.retryable is False

    def test_retryable_override(self):
        assert DatabaseError("locked", retryable=True).retryable is True


class TestContext:
    def test_with_context_known_and_extra_keys(self):
        error = ValidationError("Unknown action", field="action", value="move")
        error.with_context(module="crm", attempt=2)
        assert error.context.module == "crm"
        assert error.context.metadata == {"attempt": 2}

    def test_to_dict(self):
        cause = OSError("boom")
        error = TransientError("smtp down", cause=cause, retry_after=30)
        error.with_context(correlation_id="abc")
        data = error.to_dict()
        assert data["error_type"] == "TransientError"
        assert data["category"] == "NETWORK"
        assert data["retryable"] is True
        assert data["retry_after"] == 30
        assert data["context"] == {"correlation_id": "abc"}
        assert data["cause"] == "boom"
        assert error.__cause__ is cause

    def test_validation_to_dict_includes_field(self):
        data = ValidationError("bad", field="priority", value=42).to_dict()
        assert data["field"] == "priority"
        assert data["value"] == "42"


class TestIsRetryable:
    def test_syncguard_errors(self):
        assert is_retryable(TransientError("x")) is True
        assert is_retryable(ValidationError("x")) is False

    def test_builtin_errors(self):
        assert is_retryable(ConnectionError()) is True
        assert is_retryable(TimeoutError()) is True
        assert is_retryable(ValueError()) is False
