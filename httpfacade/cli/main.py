from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional, Tuple

from httpfacade.client import Http, HttpFacadeError, HttpResponse, Request, Timeouts
from httpfacade.utils.io import read_file_bytes, to_base64

DEFAULT_BASE_URL = "http://127.0.0.1:8080"


def _print_json(obj: object) -> None:
    """Print JSON to stdout."""
    print(json.dumps(obj, indent=2, sort_keys=True, default=str))


def _split_pair(raw: str, sep: str, what: str) -> Tuple[str, str]:
    name, found, value = raw.partition(sep)
    if not found or not name.strip():
        raise argparse.ArgumentTypeError(f"{what} must look like NAME{sep}VALUE: {raw!r}")
    return name.strip(), value


def _header_arg(raw: str) -> Tuple[str, str]:
    name, value = _split_pair(raw, ":", "header")
    return name, value.strip()


def _pair_arg(raw: str) -> Tuple[str, str]:
    return _split_pair(raw, "=", "value")


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else os.environ.get("HTTPFACADE_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


def _facade(args: argparse.Namespace) -> Http:
    timeouts = Timeouts.from_env().override(args.connect_timeout, args.read_timeout)
    return Http(args.base_url, timeouts=timeouts)


def _decorate(req: Request, args: argparse.Namespace) -> Request:
    for name, value in args.header or []:
        req.header(name, value)
    if args.user:
        user, _, password = args.user.partition(":")
        req.basic(user, password)
    return req


def _emit(resp: HttpResponse, out_path: Optional[str]) -> int:
    """Print the response summary (or save the body) and map status to an exit code."""

    summary = {
        "status": resp.status,
        "message": resp.message,
        "url": resp.url,
        "headers": {k: ", ".join(resp.headers.getlist(k)) for k in resp.headers.keys()},
    }
    if out_path:
        with open(out_path, "wb") as f:
            f.write(resp.body_bytes)
        summary["saved_to"] = os.path.abspath(out_path)
    else:
        try:
            summary["body"] = resp.text()
        except HttpFacadeError:
            summary["body_b64"] = to_base64(resp.body_bytes)
    _print_json(summary)
    return 0 if resp.status < 400 else 2


def _run(args: argparse.Namespace, build) -> int:
    try:
        req = _decorate(build(_facade(args)), args)
        resp = req.execute()
    except (HttpFacadeError, OSError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return _emit(resp, args.out)


def _body_from_args(args: argparse.Namespace) -> Optional[bytes]:
    if args.data is not None and args.data_file:
        raise HttpFacadeError("use either --data or --data-file, not both")
    if args.data_file:
        return read_file_bytes(args.data_file)
    if args.data is not None:
        return args.data.encode("utf-8")
    return None


def cmd_get(args: argparse.Namespace) -> int:
    """GET a resource."""
    return _run(args, lambda http: http.get(args.url))


def cmd_delete(args: argparse.Namespace) -> int:
    """DELETE a resource."""
    return _run(args, lambda http: http.delete(args.url))


def cmd_send(args: argparse.Namespace) -> int:
    """POST/PUT/PATCH a body (text, file or nothing)."""

    def build(http: Http) -> Request:
        factory = getattr(http, args.method)
        req = factory(args.url, _body_from_args(args))
        if args.content_type:
            req.header("Content-Type", args.content_type)
        return req

    return _run(args, build)


def cmd_upload(args: argparse.Namespace) -> int:
    """Send a multipart/form-data upload."""

    def build(http: Http) -> Request:
        req = http.multipart(args.url)
        for name, value in args.field or []:
            req.field(name, value)
        for name, path in args.file or []:
            req.file_from_path(name, path)
        return req

    return _run(args, build)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    p = argparse.ArgumentParser(prog="httpfacade", description="One-shot HTTP requests")
    p.add_argument(
        "--base-url",
        default=os.environ.get("HTTPFACADE_BASE_URL") or DEFAULT_BASE_URL,
        help="Base URL for relative paths",
    )
    p.add_argument("--connect-timeout", type=int, default=None, help="Connect timeout (ms)")
    p.add_argument("--read-timeout", type=int, default=None, help="Read timeout (ms)")
    p.add_argument(
        "-H", "--header", type=_header_arg, action="append", help="Extra header NAME:VALUE"
    )
    p.add_argument("--user", default=None, help="Basic auth USER:PASSWORD")
    p.add_argument("--out", default=None, help="Write the raw response body to this file")
    p.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = p.add_subparsers(dest="cmd", required=True)

    g = sub.add_parser("get", help="GET a URL or path")
    g.add_argument("url")
    g.set_defaults(func=cmd_get)

    d = sub.add_parser("delete", help="DELETE a URL or path")
    d.add_argument("url")
    d.set_defaults(func=cmd_delete)

    for method in ("post", "put", "patch"):
        s = sub.add_parser(method, help=f"{method.upper()} a body to a URL or path")
        s.add_argument("url")
        s.add_argument("--data", default=None, help="Body text (sent as UTF-8)")
        s.add_argument("--data-file", default=None, help="Read the body from a file")
        s.add_argument("--content-type", default=None, help="Content-Type header")
        s.set_defaults(func=cmd_send, method=method)

    u = sub.add_parser("upload", help="multipart/form-data upload")
    u.add_argument("url")
    u.add_argument("--field", type=_pair_arg, action="append", help="Form field NAME=VALUE")
    u.add_argument("--file", type=_pair_arg, action="append", help="File part NAME=PATH")
    u.set_defaults(func=cmd_upload)

    return p


def main(argv: List[str] | None = None) -> int:
    """CLI entry."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
