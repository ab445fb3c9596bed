"""One-shot HTTP client.

Usage:
    http = Http("https://api.example.com/v1")
    resp = http.post("items", '{"name": "x"}').header("Content-Type", "application/json").execute()

Notes:
- Treat server responses as untrusted input.
- Avoid logging raw request or response bodies.
"""
from __future__ import annotations

from httpfacade.client.config import CONNECTION_TIMEOUT_MS, READ_TIMEOUT_MS, Timeouts
from httpfacade.client.http import Http
from httpfacade.client.multipart import FileField, FormField, MultipartBody, encode_multipart
from httpfacade.client.request import BytesBody, FormBody, HttpResponse, Method, Request
from httpfacade.errors import (
    ConnectionFailure,
    EncodingFailure,
    HttpFacadeError,
    InvalidArgument,
    ParseFailure,
    RequestTimeout,
)

__all__ = [
    "BytesBody",
    "CONNECTION_TIMEOUT_MS",
    "ConnectionFailure",
    "EncodingFailure",
    "FileField",
    "FormBody",
    "FormField",
    "Http",
    "HttpFacadeError",
    "HttpResponse",
    "InvalidArgument",
    "Method",
    "MultipartBody",
    "ParseFailure",
    "READ_TIMEOUT_MS",
    "Request",
    "RequestTimeout",
    "Timeouts",
    "encode_multipart",
]
