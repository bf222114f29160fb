"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~httpstash.exceptions.HttpstashError` subclass.
Shell wrappers can inspect the exit code to tell the failure class apart
without parsing stderr.

Example::

    $ httpstash get /users/1
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- the server answered 401
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The request could not be built (bad URL, missing or unencodable body)."""

EXIT_AUTH_FAILURE = 3
"""The server rejected the credentials (HTTP 401 / 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote API returned an HTTP 5xx server error."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_DECODE_ERROR = 7
"""A response or cached payload could not be decoded."""

EXIT_UNEXPECTED_STATUS = 8
"""The server answered with a status code outside the well-known set."""
