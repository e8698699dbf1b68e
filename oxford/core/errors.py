"""
Error taxonomy for the Oxford client.

Every failure a caller can see derives from :class:`OxfordError`. Nothing in
the client retries automatically; the only place transient errors are
tolerated is the long-running-operation poll loop (see ``is_transient``).
"""

from __future__ import annotations

from typing import Any, Optional


class OxfordError(Exception):
    """Base class for all client errors."""


class ConfigurationError(OxfordError):
    """Client constructed without a usable API key or host."""


class InvalidSource(OxfordError):
    """No input variant, or more than one, supplied to an upload-style call."""


class SourceReadError(OxfordError):
    """A local source file could not be read."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"Cannot read source file {path!r}: {reason}")
        self.path = path
        self.reason = reason


class TransportError(OxfordError):
    """Network-level failure: DNS, refused connection, timeout."""


class ParseError(OxfordError):
    """Success status with a body that is not valid JSON."""

    def __init__(self, message: str, status_code: Optional[int] = None, raw: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.raw = raw


class ApiError(OxfordError):
    """The remote service answered with a structured (or unstructured) error."""

    def __init__(
        self,
        code: Optional[str],
        message: Optional[str],
        status_code: Optional[int] = None,
        raw: Any = None,
    ) -> None:
        super().__init__(f"[{status_code}] {code or 'Error'}: {message or ''}".rstrip(": "))
        self.code = code
        self.message = message
        self.status_code = status_code
        self.raw = raw


class PollTimeout(OxfordError):
    """Polling a long-running operation exceeded its time budget."""

    def __init__(self, poll_url: str, waited: float) -> None:
        super().__init__(f"Operation {poll_url} not finished after {waited:.1f}s")
        self.poll_url = poll_url
        self.waited = waited


class OperationFailed(OxfordError):
    """A long-running operation reached the terminal ``Failed`` state."""

    def __init__(self, poll_url: str, message: Optional[str] = None, raw: Any = None) -> None:
        super().__init__(f"Operation {poll_url} failed: {message or 'no details'}")
        self.poll_url = poll_url
        self.message = message
        self.raw = raw


class PollCancelled(OxfordError):
    """Polling stopped by the caller; the remote job is not cancelled."""

    def __init__(self, poll_url: str) -> None:
        super().__init__(f"Polling of {poll_url} cancelled")
        self.poll_url = poll_url


def is_transient(exc: BaseException) -> bool:
    """Whether a single failed poll attempt may be retried by the poll loop."""
    if isinstance(exc, (TransportError, ParseError)):
        return True
    if isinstance(exc, ApiError):
        return exc.status_code is not None and (exc.status_code >= 500 or exc.status_code == 429)
    return False
