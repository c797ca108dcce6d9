"""Tests for custom exception hierarchy."""

import pytest

from throttlekit.errors.exceptions import (
    CommandFailedError,
    ConfigurationError,
    InvalidCallableError,
    InvalidTaskError,
    TaskClearedError,
    ThrottleKitError,
)


class TestExceptionHierarchy:
    def test_all_inherit_from_base(self):
        assert issubclass(ConfigurationError, ThrottleKitError)
        assert issubclass(InvalidCallableError, ThrottleKitError)
        assert issubclass(InvalidTaskError, ThrottleKitError)
        assert issubclass(TaskClearedError, ThrottleKitError)
        assert issubclass(CommandFailedError, ThrottleKitError)

    def test_all_inherit_from_exception(self):
        assert issubclass(ThrottleKitError, Exception)

    def test_builtin_compatibility(self):
        assert issubclass(ConfigurationError, ValueError)
        assert issubclass(InvalidCallableError, TypeError)
        assert issubclass(InvalidTaskError, InvalidCallableError)


class TestConfigurationError:
    def test_attributes(self):
        err = ConfigurationError("bad wait", field="wait", value=-1)
        assert err.field == "wait"
        assert err.value == -1
        assert err.message == "bad wait"
        assert "bad wait" in str(err)

    def test_catchable_as_value_error(self):
        with pytest.raises(ValueError):
            raise ConfigurationError("nope")


class TestInvalidCallableError:
    def test_default_message(self):
        err = InvalidCallableError(received=42)
        assert err.received == 42
        assert "callable" in str(err)


class TestCommandFailedError:
    def test_attributes(self):
        err = CommandFailedError("exit 3", 3)
        assert err.command == "exit 3"
        assert err.returncode == 3
        assert "status 3" in str(err)
