"""
=============================================================================
MINISERVER ERRORS
=============================================================================

One small hierarchy so embedding code can catch everything this package
raises with a single ``except MiniServerError``.

    MiniServerError
     ├── UnsupportedExtension       MIME table has no entry for an extension
     ├── NotFoundError              file missing or extension not allowed
     ├── MarkdownNotInstalledError  patitas converter requested, not installed
     └── HTTPParseError             malformed request bytes (carries a status)

Failing to start at all is NOT an exception: ``MiniServer.serve()`` returns
the ``STARTUP_UNSUPPORTED`` sentinel instead.

=============================================================================
"""

from pathlib import Path


class MiniServerError(Exception):
    """Base for all miniserver errors."""


class UnsupportedExtension(MiniServerError, KeyError):
    """
    Raised when an extension is not in the MIME allow-list.

    Subclasses KeyError because it is, at heart, a failed table lookup.
    """

    def __init__(self, extension: str):
        super().__init__(extension)
        self.extension = extension

    def __str__(self) -> str:
        return f"Unsupported file extension: {self.extension!r}"


class NotFoundError(MiniServerError):
    """Raised when a requested file cannot be served (maps to 404)."""

    def __init__(self, path: str | Path, reason: str = "not found"):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class MarkdownNotInstalledError(MiniServerError):
    """Raised when patitas is not installed."""


class HTTPParseError(MiniServerError):
    """
    Raised when HTTP request parsing fails.

    Carries the status code the transport should answer with:

        400 Bad Request                - malformed request syntax
        405 Method Not Allowed         - unknown method
        413 Payload Too Large          - request exceeds size limit
        505 HTTP Version Not Supported - unknown HTTP version
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
