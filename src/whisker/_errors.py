"""Whisker error hierarchy.

All whisker-specific errors inherit from WhiskerError for easy catching.
The channel converts every error except ``CommitError`` and ``ConfigError``
into a single ``error`` server message broadcast to the topic.
"""


class WhiskerError(Exception):
    """Base error for all whisker operations."""


class ConfigError(WhiskerError):
    """Invalid or missing configuration (including registry setup)."""


class MessageError(WhiskerError):
    """Inbound reflex message is malformed."""


class InvalidTargetError(WhiskerError):
    """Reflex target string cannot be split into a reflex and a method."""


class UnknownHandlerError(WhiskerError):
    """No registered type matches the resolved reflex name."""


class NotAHandlerError(WhiskerError):
    """A registered type matched, but it is not a Reflex subclass."""


class ArityMismatchError(WhiskerError):
    """Supplied arguments do not fit the reflex method's signature."""


class HandlerExecutionError(WhiskerError):
    """An exception escaped user reflex logic."""


class RenderError(WhiskerError):
    """An exception occurred while rendering or broadcasting morphs."""


class CommitError(WhiskerError):
    """Session state could not be committed after a page render."""
