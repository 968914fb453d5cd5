"""Tests for whisker.channel.failures — exception summaries."""

from whisker._errors import HandlerExecutionError
from whisker.channel.failures import exception_location, root_cause, summarize_exception


def _raise_and_catch() -> BaseException:
    try:
        int("x")
    except ValueError as exc:
        return exc
    raise AssertionError


class TestFailures:
    """Location, cause unwrapping and one-line summaries."""

    def test_location_of_raised_exception(self) -> None:
        filename, lineno = exception_location(_raise_and_catch())
        assert filename.endswith("test_failures.py")
        assert lineno > 0

    def test_location_of_unraised_exception(self) -> None:
        assert exception_location(ValueError("x")) == ("", 0)

    def test_root_cause(self) -> None:
        original = ValueError("x")
        wrapped = HandlerExecutionError("wrapped")
        wrapped.__cause__ = original
        assert root_cause(wrapped) is original
        assert root_cause(original) is original

    def test_summary_uses_original(self) -> None:
        original = _raise_and_catch()
        wrapped = HandlerExecutionError("wrapped")
        wrapped.__cause__ = original
        summary = summarize_exception(wrapped)
        assert summary.startswith("ValueError: invalid literal")
        assert "test_failures.py:" in summary

    def test_summary_without_traceback(self) -> None:
        assert summarize_exception(KeyError("k")) == "KeyError: 'k'"
