"""Numeric process exit codes used by the ``wefy`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~wefy.exceptions.WefyError` subclass. Shell scripts
wrapping ``wefy request`` can branch on the exit code instead of parsing
stderr.

Example::

    $ wefy request GET /users/42
    $ echo $?
    4   # EXIT_REQUEST_FAILURE -- the server answered with a non-2xx status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an invalid extension setup."""

EXIT_EXTENSION_ERROR = 3
"""One or more extension hooks failed."""

EXIT_REQUEST_FAILURE = 4
"""The server answered with a non-2xx HTTP status."""

EXIT_TIMEOUT = 5
"""The request timed out or was aborted before a response arrived."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (DNS failure, connection refused, TLS error)."""

EXIT_PARSE_ERROR = 7
"""The response body could not be decoded for its declared content type."""
