from __future__ import annotations

import mimetypes
import uuid
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

from httpfacade.errors import InvalidArgument
from httpfacade.utils.io import blank

CRLF = b"\r\n"
DEFAULT_FILE_CONTENT_TYPE = "application/octet-stream"


@dataclass(frozen=True, slots=True)
class FormField:
    """Plain text form value."""

    name: str
    value: str


@dataclass(frozen=True, slots=True)
class FileField:
    """File attachment."""

    name: str
    filename: str
    content_type: str
    data: bytes


Part = Union[FormField, FileField]


def new_boundary() -> str:
    """Random boundary token, unlikely to collide with part content."""

    return "----httpfacade-" + uuid.uuid4().hex


def guess_content_type(filename: str) -> str:
    return mimetypes.guess_type(filename)[0] or DEFAULT_FILE_CONTENT_TYPE


def _quote(value: str) -> str:
    # HTML form-data escaping for header parameter values
    return value.replace('"', "%22").replace("\r", "%0D").replace("\n", "%0A")


def encode_multipart(parts: Iterable[Part], boundary: str) -> bytes:
    """Encode parts as a multipart/form-data body.

    Layout per part:
      --<boundary>
      Content-Disposition: form-data; name="<name>"[; filename="<filename>"]
      [Content-Type: <type>]
      <blank line>
      <value bytes>

    followed by the closing ``--<boundary>--`` line.

    """

    delimiter = f"--{boundary}".encode("ascii")
    chunks: List[bytes] = []

    for part in parts:
        chunks.append(delimiter + CRLF)
        disposition = f'Content-Disposition: form-data; name="{_quote(part.name)}"'
        if isinstance(part, FileField):
            disposition += f'; filename="{_quote(part.filename)}"'
            chunks.append(disposition.encode("utf-8") + CRLF)
            chunks.append(f"Content-Type: {part.content_type}".encode("utf-8") + CRLF)
            chunks.append(CRLF)
            chunks.append(part.data)
        else:
            chunks.append(disposition.encode("utf-8") + CRLF)
            chunks.append(CRLF)
            chunks.append(part.value.encode("utf-8"))
        chunks.append(CRLF)

    chunks.append(delimiter + b"--" + CRLF)
    return b"".join(chunks)


class MultipartBody:
    """Ordered, append-only sequence of form parts.

    Owned by a single request. Encoding happens only in ``render`` and
    performs no I/O.

    """

    def __init__(self, parts: Optional[Iterable[Part]] = None):
        self._parts: List[Part] = list(parts or [])

    @property
    def parts(self) -> Tuple[Part, ...]:
        return tuple(self._parts)

    def add_field(self, name: str, value: str) -> "MultipartBody":
        if blank(name):
            raise InvalidArgument("part name cannot be blank")
        self._parts.append(FormField(name=name, value="" if value is None else str(value)))
        return self

    def add_file(
        self,
        name: str,
        filename: str,
        data: bytes,
        content_type: Optional[str] = None,
    ) -> "MultipartBody":
        if blank(name):
            raise InvalidArgument("part name cannot be blank")
        if blank(filename):
            raise InvalidArgument("filename cannot be blank")
        if data is None:
            raise InvalidArgument("file content cannot be null")
        self._parts.append(
            FileField(
                name=name,
                filename=filename,
                content_type=content_type or guess_content_type(filename),
                data=bytes(data),
            )
        )
        return self

    def render(self, boundary: Optional[str] = None) -> Tuple[bytes, str]:
        """Return the encoded body and its Content-Type header value."""

        boundary = boundary or new_boundary()
        body = encode_multipart(self._parts, boundary)
        return body, f"multipart/form-data; boundary={boundary}"
