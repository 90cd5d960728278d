"""
Error taxonomy for ChatCut.

None of these are fatal to the session: validation and range errors leave
the timeline as it was, service and media errors are reported through the
chat/status channel by whoever triggered the operation.
"""

from typing import Optional


class ChatCutError(Exception):
    """Base class for all ChatCut errors."""


class ValidationError(ChatCutError):
    """A segment set (or an externally supplied record) breaks a timeline rule."""

    def __init__(self, message: str, rule: str = "schema"):
        super().__init__(message)
        self.rule = rule


class OutOfRangeError(ChatCutError):
    """A query or seek time lies outside the media duration."""

    def __init__(self, time: float, duration: float):
        super().__init__(f"Time {time:.3f}s is outside [0, {duration:.3f})")
        self.time = time
        self.duration = duration


class ServiceError(ChatCutError):
    """An external service (analysis, edit proposal, speech, export) failed."""

    def __init__(self, service: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.cause = cause


class ExportError(ServiceError):
    """The renderer refused or failed to produce output."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__("export", message, cause)


class MediaUnavailableError(ChatCutError):
    """No media is loaded, or the input cannot be accepted for analysis."""
