"""Exception hierarchy for wefy.

All exceptions inherit from :class:`WefyError`, which carries a stable
``kind`` tag callers can branch on and an ``exit_code`` attribute mapped to
a constant from :mod:`wefy.exit_codes`. The CLI entry point in
:func:`wefy.app.main` catches ``WefyError`` and exits with that code.

Subclass hierarchy::

    WefyError (exit 1)
    +-- ValidationError          (exit 2)
    |   +-- InvalidModifierError (exit 2)
    +-- DuplicateExtensionError  (exit 2)
    +-- StateMutationError       (exit 3)
    +-- AlreadyInitializedError  (exit 3)
    +-- NotInitializedError      (exit 3)
    +-- HookExecutionError       (exit 3)
    +-- RequestTimeoutError      (exit 5)
    +-- RequestAbortedError      (exit 5)
    +-- ParseError               (exit 7)
    +-- TransportError           (exit 6)
    +-- RequestError             (exit 4)
    +-- ConfigError              (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional

from wefy.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_EXTENSION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_PARSE_ERROR,
    EXIT_REQUEST_FAILURE,
    EXIT_TIMEOUT,
)

if TYPE_CHECKING:
    from wefy.extensions.scheduler import HookFailure


class WefyError(Exception):
    """Base exception for all wefy errors.

    Every subclass sets a class-level ``kind`` (a short machine-readable
    tag) and ``exit_code`` (one of the constants in :mod:`wefy.exit_codes`).

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    kind: str = "error"
    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ValidationError(WefyError):
    """Raised for an invalid extension descriptor, state key or client config."""

    kind = "validation"
    exit_code = EXIT_INVALID_USAGE

    def __init__(self, message: str, extension_name: Optional[str] = None):
        super().__init__(message)
        self.extension_name = extension_name


class InvalidModifierError(ValidationError):
    """Raised when ``set_state`` receives something that is not callable."""

    kind = "invalid_modifier"


class DuplicateExtensionError(WefyError):
    """Raised when two extensions are registered under the same name."""

    kind = "duplicate_extension"
    exit_code = EXIT_INVALID_USAGE

    def __init__(self, extension_name: str):
        super().__init__(f"Duplicate extension name: {extension_name}")
        self.extension_name = extension_name


class StateMutationError(WefyError):
    """Raised when a state reducer or an ``on_state_change`` hook fails."""

    kind = "state_mutation"
    exit_code = EXIT_EXTENSION_ERROR

    def __init__(self, message: str, extension_name: str):
        super().__init__(f"Failed to update state of '{extension_name}': {message}")
        self.extension_name = extension_name


class AlreadyInitializedError(WefyError):
    """Raised when :meth:`HookScheduler.initialize` is called a second time."""

    kind = "already_initialized"
    exit_code = EXIT_EXTENSION_ERROR


class NotInitializedError(WefyError):
    """Raised when a hook other than ``init`` runs before initialisation."""

    kind = "not_initialized"
    exit_code = EXIT_EXTENSION_ERROR


class HookExecutionError(WefyError):
    """Aggregate failure of one hook phase.

    Carries every per-extension failure recorded while the phase ran, in
    execution order.

    Attributes:
        hook: The hook name that was executed.
        failures: One :class:`~wefy.extensions.scheduler.HookFailure` per
            failing extension.
    """

    kind = "hook_execution"
    exit_code = EXIT_EXTENSION_ERROR

    def __init__(self, hook: str, failures: list[HookFailure]):
        summary = ", ".join(f"{f.extension_name}: {f.message}" for f in failures)
        super().__init__(f"Hook {hook} errors: {summary}")
        self.hook = hook
        self.failures = list(failures)

    @property
    def extension_names(self) -> list[str]:
        return [f.extension_name for f in self.failures]


class RequestTimeoutError(WefyError):
    """Raised when the transport does not answer within the call timeout."""

    kind = "timeout"
    exit_code = EXIT_TIMEOUT

    def __init__(self, timeout: float):
        super().__init__(f"Request timed out after {timeout:g}s")
        self.timeout = timeout


class RequestAbortedError(WefyError):
    """Raised when a caller-supplied abort signal fires during ``send``."""

    kind = "aborted"
    exit_code = EXIT_TIMEOUT


class ParseError(WefyError):
    """Raised when a response body cannot be decoded for its content type."""

    kind = "parse"
    exit_code = EXIT_PARSE_ERROR

    def __init__(self, content_type: str, reason: str):
        super().__init__(f"Failed to parse {content_type or 'response'} body: {reason}")
        self.content_type = content_type


class TransportError(WefyError):
    """Raised on network-level failures (DNS, connection refused, TLS)."""

    kind = "transport"
    exit_code = EXIT_CONNECTION_ERROR


class RequestError(WefyError):
    """Raised when the server answers with a non-2xx status.

    Attributes:
        status: The HTTP status code.
        reason: The reason phrase, when the server sent one.
        data: The decoded error body (may be ``None``).
        method: The request method.
        url: The final request URL.
    """

    kind = "request"
    exit_code = EXIT_REQUEST_FAILURE

    def __init__(
        self,
        status: int,
        reason: str = "",
        data: Any = None,
        method: str = "",
        url: str = "",
    ):
        prefix = f"HTTP {status}"
        if reason:
            prefix = f"{prefix} {reason}"
        if method:
            prefix = f"{prefix} ({method} {url})"
        super().__init__(prefix)
        self.status = status
        self.reason = reason
        self.data = data
        self.method = method
        self.url = url


class ConfigError(WefyError):
    """Raised for configuration problems (invalid JSON, bad credential sources)."""

    kind = "config"
    exit_code = EXIT_GENERIC_FAILURE
