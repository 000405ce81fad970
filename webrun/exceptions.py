"""
Exception types raised by the remote execution bridge.

Remote scripts signal failures by throwing ``Error("[webrun:<reason_code>] message")``.
Playwright surfaces those as ``playwright.async_api.Error`` with the remote message
embedded; ``from_remote_error`` maps the tag back onto the typed errors below.
"""

from __future__ import annotations

import re

from .constants import REMOTE_ERROR_TAG

_REMOTE_TAG_RE = re.compile(r"\[" + REMOTE_ERROR_TAG + r":(?P<code>[a-z_]+)\]\s*(?P<message>[^\n]*)")


class WebrunError(RuntimeError):
    """Base class for bridge errors."""

    reason_code = "error"

    def __init__(self, message: str, *, reason_code: str | None = None) -> None:
        super().__init__(message)
        if reason_code is not None:
            self.reason_code = reason_code


class ElementNotFoundError(WebrunError):
    """The selector or handle resolved to no element at call time."""

    reason_code = "element_not_found"


class MemberNotCallableError(WebrunError):
    """The named member is missing or is not a function."""

    reason_code = "member_not_callable"


class RemoteTimeoutError(WebrunError):
    """A bounded wait elapsed before its condition held."""

    reason_code = "timeout"

    def __init__(
        self,
        message: str,
        *,
        timeout_ms: float,
        label: str,
        attempts: int | None = None,
    ) -> None:
        super().__init__(message)
        self.timeout_ms = timeout_ms
        self.label = label
        self.attempts = attempts


class CaptureFailedError(WebrunError):
    """Screenshot capture or baseline comparison failed."""

    reason_code = "capture_failed"


_ERRORS_BY_CODE: dict[str, type[WebrunError]] = {
    ElementNotFoundError.reason_code: ElementNotFoundError,
    MemberNotCallableError.reason_code: MemberNotCallableError,
}


def from_remote_error(exc: Exception) -> WebrunError | None:
    """
    Translate an error thrown inside the page into a typed WebrunError.

    Returns None when the message carries no webrun tag, in which case the
    caller should let the original error propagate.
    """
    match = _REMOTE_TAG_RE.search(str(exc))
    if match is None:
        return None
    code = match.group("code")
    message = match.group("message").strip()
    if code == RemoteTimeoutError.reason_code:
        timeout = re.search(r"Timeout (\d+(?:\.\d+)?)ms", message)
        return RemoteTimeoutError(
            message,
            timeout_ms=float(timeout.group(1)) if timeout else 0.0,
            label=message,
        )
    error_cls = _ERRORS_BY_CODE.get(code, WebrunError)
    return error_cls(message, reason_code=code)
