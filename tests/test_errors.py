"""Tests for whisker._errors."""

import pytest

from whisker._errors import (
    ArityMismatchError,
    CommitError,
    ConfigError,
    HandlerExecutionError,
    InvalidTargetError,
    MessageError,
    NotAHandlerError,
    RenderError,
    UnknownHandlerError,
    WhiskerError,
)

_ALL = (
    ConfigError,
    MessageError,
    InvalidTargetError,
    UnknownHandlerError,
    NotAHandlerError,
    ArityMismatchError,
    HandlerExecutionError,
    RenderError,
    CommitError,
)


class TestErrorHierarchy:
    """All whisker errors inherit from WhiskerError."""

    def test_whisker_error_is_exception(self) -> None:
        assert issubclass(WhiskerError, Exception)

    @pytest.mark.parametrize("error_cls", _ALL)
    def test_inherits_from_base(self, error_cls: type[Exception]) -> None:
        assert issubclass(error_cls, WhiskerError)

    def test_catch_all_whisker_errors(self) -> None:
        """All specific errors are catchable via WhiskerError."""
        for error_cls in _ALL:
            with pytest.raises(WhiskerError):
                raise error_cls("test")

    def test_errors_are_distinct(self) -> None:
        assert not issubclass(UnknownHandlerError, NotAHandlerError)
        assert not issubclass(HandlerExecutionError, RenderError)
