from __future__ import annotations

import http.client
import logging
import os
import ssl
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
from urllib.parse import quote, urlsplit

from starlette.datastructures import Headers

from httpfacade.client.config import CONNECTION_TIMEOUT_MS, READ_TIMEOUT_MS, Timeouts
from httpfacade.client.multipart import MultipartBody
from httpfacade.errors import (
    ConnectionFailure,
    EncodingFailure,
    InvalidArgument,
    RequestTimeout,
)
from httpfacade.utils.io import blank, decode, map_to_content, read_file_bytes, to_base64
from httpfacade.utils.json_helper import to_map

log = logging.getLogger("httpfacade.client")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"

# printable ASCII other than space passes through the request target as is
_TARGET_SAFE = "".join(chr(c) for c in range(0x21, 0x7F))


class Method(str, Enum):
    """
    HTTP methods supported by the client.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def allows_body(self) -> bool:
        return self in (Method.POST, Method.PUT, Method.PATCH)


@dataclass(frozen=True, slots=True)
class BytesBody:
    """Raw request body."""

    data: bytes
    content_type: Optional[str] = None

    def render(self) -> Tuple[bytes, Optional[str]]:
        return self.data, self.content_type


class FormBody:
    """URL-encoded form parameters, sent in insertion order."""

    def __init__(self, params: Optional[Dict[str, Any]] = None):
        self._params: Dict[str, str] = {}
        for name, value in (params or {}).items():
            self.add(name, value)

    @property
    def params(self) -> Dict[str, str]:
        return dict(self._params)

    def add(self, name: str, value: Any) -> "FormBody":
        if blank(name):
            raise InvalidArgument("parameter name cannot be blank")
        self._params[name] = "" if value is None else str(value)
        return self

    def render(self) -> Tuple[bytes, Optional[str]]:
        return map_to_content(self._params).encode("utf-8"), FORM_CONTENT_TYPE


Body = Union[BytesBody, FormBody, MultipartBody]


@dataclass(frozen=True, slots=True)
class HttpResponse:
    """Materialized response: status, headers and the fully drained body.

    Notes:
    - ``headers`` is case-insensitive; ``headers.getlist(name)`` returns every value.
    - ``body_bytes`` is untrusted server input.

    """

    status: int
    message: str
    headers: Headers
    body_bytes: bytes
    url: str
    method: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def charset(self) -> Optional[str]:
        """Charset declared in the Content-Type header, if any."""

        content_type = self.headers.get("content-type") or ""
        for param in content_type.split(";")[1:]:
            key, _, value = param.strip().partition("=")
            if key.strip().lower() == "charset" and value.strip():
                return value.strip().strip('"')
        return None

    def text(self, charset: Optional[str] = None) -> str:
        """Decode the body (explicit charset, then declared charset, then UTF-8)."""

        return decode(self.body_bytes, charset or self.charset or "utf-8")

    def json(self) -> Any:
        """Decode body as a JSON object."""

        return to_map(self.text())


def _coerce_body(body: Any) -> Optional[Body]:
    if body is None or isinstance(body, (BytesBody, FormBody, MultipartBody)):
        return body
    if isinstance(body, str):
        return BytesBody(body.encode("utf-8"))
    if isinstance(body, (bytes, bytearray, memoryview)):
        return BytesBody(bytes(body))
    raise InvalidArgument(f"unsupported body type: {type(body).__name__}")


def _check_latin1(label: str, value: str) -> None:
    try:
        value.encode("latin-1")
    except UnicodeEncodeError as e:
        raise EncodingFailure(f"{label} is not latin-1 encodable: {value!r}") from e


class Request:
    """One HTTP request/response cycle.

    A request is configured with the builder methods, then executed exactly
    once by ``execute()`` (or implicitly by the response accessors). The
    connection is opened, used and closed inside that single call.

    Not safe for concurrent use; build one request per call site.

    """

    def __init__(
        self,
        method: Union[Method, str],
        url: str,
        *,
        body: Any = None,
        connect_timeout: int = CONNECTION_TIMEOUT_MS,
        read_timeout: int = READ_TIMEOUT_MS,
    ):
        if blank(url):
            raise InvalidArgument("url cannot be null")
        self.method = Method(str(method.value if isinstance(method, Method) else method).upper())
        self.url = url
        self._target = urlsplit(url)
        if self._target.scheme not in ("http", "https"):
            raise ValueError(f"unsupported URL scheme: {self._target.scheme or '<none>'}")
        if not self._target.hostname:
            raise ValueError(f"URL has no host: {url}")
        # raises ValueError for a malformed port
        self._port = self._target.port

        self.timeouts = Timeouts(connect_ms=connect_timeout, read_ms=read_timeout)

        self._body = _coerce_body(body)
        if self._body is not None and not self.method.allows_body:
            raise InvalidArgument(f"{self.method.value} requests do not carry a body")

        self._headers: List[Tuple[str, str]] = []
        self._started = False
        self._response: Optional[HttpResponse] = None

    def __repr__(self) -> str:
        return f"Request({self.method.value} {self.url})"

    @property
    def body(self) -> Optional[Body]:
        return self._body

    @property
    def request_headers(self) -> List[Tuple[str, str]]:
        return list(self._headers)

    @property
    def executed(self) -> bool:
        return self._started

    def _ensure_not_started(self) -> None:
        if self._started:
            raise InvalidArgument(f"request already executed: {self.method.value} {self.url}")

    # builders

    def header(self, name: str, value: Any) -> "Request":
        """Add a request header. Repeated names are all sent."""

        self._ensure_not_started()
        if blank(name):
            raise InvalidArgument("header name cannot be blank")
        value = "" if value is None else str(value)
        if ":" in name or any(c.isspace() or c == "\0" for c in name):
            raise InvalidArgument(f"invalid header name: {name!r}")
        if any(c in "\r\n\0" for c in value):
            raise InvalidArgument(f"header value for {name} contains CR, LF or NUL")
        _check_latin1("header name", name)
        _check_latin1("header value", value)
        self._headers.append((name, value))
        return self

    def basic(self, user: str, password: str) -> "Request":
        """Add HTTP Basic authentication."""

        if user is None or password is None:
            raise InvalidArgument("user and password cannot be null")
        token = to_base64(f"{user}:{password}".encode("utf-8"))
        return self.header("Authorization", f"Basic {token}")

    def param(self, name: str, value: Any) -> "Request":
        """Add a URL-encoded form parameter (POST only)."""

        self._ensure_not_started()
        if self.method is not Method.POST:
            raise InvalidArgument("form parameters are only supported on POST")
        if self._body is None:
            self._body = FormBody()
        if not isinstance(self._body, FormBody):
            raise InvalidArgument("request already has a body; cannot add form parameters")
        self._body.add(name, value)
        return self

    def _multipart(self) -> MultipartBody:
        self._ensure_not_started()
        if not isinstance(self._body, MultipartBody):
            raise InvalidArgument("only multipart requests accept form parts")
        return self._body

    def field(self, name: str, value: Any) -> "Request":
        self._multipart().add_field(name, value)
        return self

    def file(
        self, name: str, filename: str, data: bytes, content_type: Optional[str] = None
    ) -> "Request":
        self._multipart().add_file(name, filename, data, content_type)
        return self

    def file_from_path(self, name: str, path: str, content_type: Optional[str] = None) -> "Request":
        """Attach a local file; the filename sent is the path's base name."""

        body = self._multipart()
        body.add_file(name, os.path.basename(path), read_file_bytes(path), content_type)
        return self

    # execution

    def execute(self) -> HttpResponse:
        """Run the request/response cycle once and return the response.

        Later calls return the same response without network I/O. A request
        whose execution failed cannot be executed again.

        """

        if self._response is not None:
            return self._response
        self._ensure_not_started()
        self._started = True

        start = time.monotonic()
        fields = {
            "method": self.method.value,
            "host": self._target.hostname,
            "path": self._target.path or "/",
        }
        try:
            response = self._exchange()
        except TimeoutError as e:
            # socket.timeout is an alias of TimeoutError
            log.warning(
                "http_request_failed",
                extra={**fields, "error": "timeout", "duration_ms": _elapsed_ms(start)},
            )
            raise RequestTimeout(
                f"Timed out: {self.method.value} {self.url}", url=self.url, method=self.method.value
            ) from e
        except (OSError, ValueError, http.client.HTTPException) as e:
            # ValueError covers UnicodeError from putrequest/putheader
            log.warning(
                "http_request_failed",
                extra={**fields, "error": type(e).__name__, "duration_ms": _elapsed_ms(start)},
            )
            raise ConnectionFailure(
                f"Failed URL: {self.url}: {e}", url=self.url, method=self.method.value
            ) from e

        log.info(
            "http_request",
            extra={
                **fields,
                "status_code": response.status,
                "duration_ms": _elapsed_ms(start),
                "body_bytes": len(response.body_bytes),
            },
        )
        self._response = response
        return response

    def _render_body(self) -> Tuple[Optional[bytes], Optional[str]]:
        if not self.method.allows_body:
            return None, None
        if self._body is None:
            return b"", None
        return self._body.render()

    def _open_connection(self) -> http.client.HTTPConnection:
        host = self._target.hostname
        port = self._port
        timeout = self.timeouts.connect_seconds
        if self._target.scheme == "https":
            return http.client.HTTPSConnection(
                host, port, timeout=timeout, context=ssl.create_default_context()
            )
        return http.client.HTTPConnection(host, port, timeout=timeout)

    def _request_target(self) -> str:
        path = self._target.path or "/"
        if self._target.query:
            path += "?" + self._target.query
        return quote(path, safe=_TARGET_SAFE)

    def _exchange(self) -> HttpResponse:
        payload, content_type = self._render_body()
        names = {name.lower() for name, _ in self._headers}

        conn = self._open_connection()
        try:
            conn.connect()
            if conn.sock is not None:
                conn.sock.settimeout(self.timeouts.read_seconds)

            conn.putrequest(
                self.method.value,
                self._request_target(),
                skip_host="host" in names,
                skip_accept_encoding="accept-encoding" in names,
            )
            if content_type and "content-type" not in names:
                conn.putheader("Content-Type", content_type)
            for name, value in self._headers:
                conn.putheader(name, value)
            if payload is not None and "content-length" not in names:
                conn.putheader("Content-Length", str(len(payload)))
            conn.endheaders()
            if payload:
                conn.send(payload)

            resp = conn.getresponse()
            try:
                body = resp.read()
            finally:
                resp.close()

            raw = [
                (k.lower().encode("latin-1"), str(v).encode("latin-1", errors="replace"))
                for k, v in resp.getheaders()
            ]
            return HttpResponse(
                status=int(resp.status),
                message=resp.reason or "",
                headers=Headers(raw=raw),
                body_bytes=body,
                url=self.url,
                method=self.method.value,
            )
        finally:
            _close_quietly(conn)

    # response accessors (execute on first use)

    @property
    def status(self) -> int:
        return self.execute().status

    @property
    def message(self) -> str:
        return self.execute().message

    @property
    def headers(self) -> Headers:
        return self.execute().headers

    @property
    def body_bytes(self) -> bytes:
        return self.execute().body_bytes

    def text(self, charset: Optional[str] = None) -> str:
        return self.execute().text(charset)

    def json(self) -> Any:
        return self.execute().json()


def _elapsed_ms(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def _close_quietly(conn: http.client.HTTPConnection) -> None:
    # close failures cannot affect an already-read response
    try:
        conn.close()
    except OSError:
        pass
