from __future__ import annotations

import base64
import codecs
import os
from typing import Any, BinaryIO, Mapping, Optional
from urllib.parse import quote_plus

from httpfacade.errors import EncodingFailure, InvalidArgument

_CHUNK = 1024


def read_bytes(stream: Optional[BinaryIO]) -> bytes:
    """Read all bytes of a binary stream into memory."""

    if stream is None:
        raise InvalidArgument("input stream cannot be null")
    chunks = []
    while True:
        chunk = stream.read(_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
    return b"".join(chunks)


def read_text(stream: Optional[BinaryIO], charset: str = "utf-8") -> str:
    """Read all bytes of a binary stream and decode them with ``charset``."""

    data = read_bytes(stream)
    return decode(data, charset)


def decode(data: bytes, charset: str = "utf-8") -> str:
    """Decode bytes, mapping unknown charsets and bad input to EncodingFailure."""

    try:
        codecs.lookup(charset)
        return data.decode(charset)
    except (LookupError, UnicodeDecodeError) as e:
        raise EncodingFailure(f"failed to decode {len(data)} bytes as {charset}") from e


def read_file_bytes(path: str, max_bytes: Optional[int] = None) -> bytes:
    """Read a local file, optionally enforcing a size cap."""

    if blank(path):
        raise InvalidArgument("path cannot be null")
    if max_bytes is not None:
        size = os.stat(path).st_size
        if size > max_bytes:
            raise InvalidArgument(f"file too large: {size} > {max_bytes}")
    with open(path, "rb") as f:
        return read_bytes(f)


def blank(value: Any) -> bool:
    """True for None or a value whose string form is empty after stripping."""

    return value is None or len(str(value).strip()) == 0


def url_encode(value: str) -> str:
    """Percent-encode with UTF-8 in form style (spaces become ``+``)."""

    try:
        return quote_plus(value, encoding="utf-8")
    except (TypeError, UnicodeEncodeError) as e:
        raise EncodingFailure("failed to urlencode") from e


def map_to_content(params: Mapping[str, Any]) -> str:
    """Join a mapping into ``k=v&k=v`` form, encoding keys and values."""

    try:
        return "&".join(
            f"{url_encode(str(k))}={url_encode(str(v))}" for k, v in params.items()
        )
    except (AttributeError, EncodingFailure) as e:
        raise EncodingFailure("failed to generate content from map") from e


def to_base64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def from_base64(text: str) -> bytes:
    return base64.b64decode(text)
