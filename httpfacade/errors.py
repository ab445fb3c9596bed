from __future__ import annotations

from typing import Optional


class HttpFacadeError(Exception):
    """
    Base exception for all client failures.
    """

    pass


class InvalidArgument(HttpFacadeError, ValueError):
    """
    Raised when a required parameter is missing or blank, or a request is misused.
    """

    pass


class ConnectionFailure(HttpFacadeError):
    """Raised when a request cannot be built, sent or read.

    Always carries the URL that was being processed. The lower-level
    exception is chained as ``__cause__``.

    """

    def __init__(self, message: str, *, url: Optional[str] = None, method: Optional[str] = None):
        super().__init__(message)
        self.url = url
        self.method = method


class RequestTimeout(ConnectionFailure):
    """
    Raised when the connect or read timeout is exceeded.
    """

    pass


class EncodingFailure(HttpFacadeError):
    """
    Raised when text cannot be percent-encoded or converted with a charset.
    """

    pass


class ParseFailure(HttpFacadeError, ValueError):
    """Raised when text handed to the JSON helper is not the expected JSON."""

    def __init__(self, message: str, *, text: Optional[str] = None):
        super().__init__(message)
        self.text = text
