from __future__ import annotations

from typing import Any, Optional, Union
from urllib.parse import urlsplit

from httpfacade.client.config import Timeouts
from httpfacade.client.multipart import MultipartBody
from httpfacade.client.request import Method, Request
from httpfacade.errors import ConnectionFailure, InvalidArgument
from httpfacade.utils.io import blank

Content = Union[bytes, bytearray, str, None]


class Http:
    """Factory for one-shot requests against a base URL.

    Relative paths are appended to the base URL; anything starting with
    ``http`` is used as is. Timeouts are in milliseconds and default to
    5000 each unless overridden per facade or per call.

    Instances are immutable and can be shared between threads: every
    factory call returns a new, independent ``Request``. No network I/O
    happens until that request is executed.

    """

    __slots__ = ("_base_url", "_hostname", "_timeouts")

    def __init__(self, base_url: str, timeouts: Optional[Timeouts] = None):
        if blank(base_url):
            raise InvalidArgument("base url cannot be null")
        url = str(base_url).strip()
        try:
            parts = urlsplit(url)
        except ValueError as e:
            raise InvalidArgument(f"malformed base url: {url}") from e
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise InvalidArgument(f"base url must be an absolute http(s) url: {url}")

        if not url.endswith("/"):
            url = url + "/"
        self._base_url = url
        self._hostname = parts.hostname
        self._timeouts = timeouts or Timeouts()

    def __repr__(self) -> str:
        return f"Http({self._base_url!r})"

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def hostname(self) -> str:
        return self._hostname

    @property
    def timeouts(self) -> Timeouts:
        return self._timeouts

    def resolve(self, url: str) -> str:
        """Return ``url`` if it starts with ``http``, else ``base_url + url``.

        This is a literal prefix test, not a scheme parse.

        """

        if url is None:
            raise InvalidArgument("url cannot be null")
        if blank(url):
            raise InvalidArgument("url cannot be blank")
        if url.startswith("http"):
            return url
        return self._base_url + url

    def _build(
        self,
        method: Method,
        url: str,
        body: Any = None,
        connect_timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
    ) -> Request:
        target = self.resolve(url)
        timeouts = self._timeouts.override(connect_timeout, read_timeout)
        try:
            return Request(
                method,
                target,
                body=body,
                connect_timeout=timeouts.connect_ms,
                read_timeout=timeouts.read_ms,
            )
        except InvalidArgument:
            raise
        except ValueError as e:
            raise ConnectionFailure(
                f"Failed URL: {target}", url=target, method=method.value
            ) from e

    def get(
        self, url: str, *, connect_timeout: Optional[int] = None, read_timeout: Optional[int] = None
    ) -> Request:
        """Create a GET request."""

        return self._build(Method.GET, url, None, connect_timeout, read_timeout)

    def post(
        self,
        url: str,
        body: Content = None,
        *,
        connect_timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
    ) -> Request:
        """Create a POST request.

        ``body`` may be bytes, text (sent as UTF-8) or None. Without a body,
        form parameters can be added with ``Request.param``; otherwise an
        empty body is sent.

        """

        return self._build(Method.POST, url, body, connect_timeout, read_timeout)

    def put(
        self,
        url: str,
        body: Content = None,
        *,
        connect_timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
    ) -> Request:
        """Create a PUT request."""

        return self._build(Method.PUT, url, body, connect_timeout, read_timeout)

    def patch(
        self,
        url: str,
        body: Content = None,
        *,
        connect_timeout: Optional[int] = None,
        read_timeout: Optional[int] = None,
    ) -> Request:
        """Create a PATCH request."""

        return self._build(Method.PATCH, url, body, connect_timeout, read_timeout)

    def delete(
        self, url: str, *, connect_timeout: Optional[int] = None, read_timeout: Optional[int] = None
    ) -> Request:
        """Create a DELETE request."""

        return self._build(Method.DELETE, url, None, connect_timeout, read_timeout)

    def multipart(
        self, url: str, *, connect_timeout: Optional[int] = None, read_timeout: Optional[int] = None
    ) -> Request:
        """Create a multipart/form-data POST.

        Add parts with ``field``/``file``/``file_from_path`` before executing.

        """

        return self._build(Method.POST, url, MultipartBody(), connect_timeout, read_timeout)
