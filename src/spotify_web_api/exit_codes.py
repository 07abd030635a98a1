"""Numeric process exit codes used by the ``spotify-web-api`` CLI.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~spotify_web_api.exceptions.SpotifyError` subclass.
Shell wrappers can inspect the exit code to determine the failure class
without parsing stderr.

Example::

    $ spotify-web-api me
    $ echo $?
    3   # EXIT_AUTH_FAILURE -- no token stored, or it was rejected
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command or library call was made with invalid arguments or out of sequence."""

EXIT_AUTH_FAILURE = 3
"""Authentication or token refresh failed."""

EXIT_API_ERROR = 4
"""The Spotify Web API rejected the call (HTTP 4xx / 5xx)."""

EXIT_DECODE_ERROR = 5
"""A response could not be decoded into the expected shape."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, DNS failure, connection refused)."""
