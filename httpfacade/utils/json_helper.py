from __future__ import annotations

import base64
import json
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping

from httpfacade.errors import ParseFailure

_MAX_TEXT_IN_MESSAGE = 200


def to_jsonable(obj: Any) -> Any:
    """
    Convert common Python objects to JSON-serializable equivalents.

    Plain objects are converted property by property: public ``property``
    members in class-body order, then public instance attributes in
    assignment order.

    """
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj

    # datetime/date -> ISO 8601
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()

    if isinstance(obj, Path):
        return str(obj)

    # bytes -> base64 string
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode("ascii")

    # dataclasses, in field declaration order
    if is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_jsonable(getattr(obj, f.name)) for f in fields(obj)}

    if isinstance(obj, Mapping):
        return {str(k): to_jsonable(v) for k, v in obj.items()}

    if isinstance(obj, (list, tuple, set, frozenset)):
        return [to_jsonable(x) for x in obj]

    props = _readable_properties(obj)
    if props is not None:
        return {name: to_jsonable(value) for name, value in props.items()}

    # fallback: string representation
    return str(obj)


def _readable_properties(obj: Any):
    """Collect the public readable properties of a plain object, or None."""

    out: Dict[str, Any] = {}
    for klass in reversed(type(obj).__mro__):
        for name, member in vars(klass).items():
            if isinstance(member, property) and not name.startswith("_"):
                out.setdefault(name, None)
    for name in out:
        out[name] = getattr(obj, name)

    instance_vars = getattr(obj, "__dict__", None)
    if instance_vars is None and not out:
        return None
    for name, value in (instance_vars or {}).items():
        if not name.startswith("_") and name not in out:
            out[name] = value
    return out


def to_json_string(obj: Any) -> str:
    """Serialize an object to compact JSON text."""

    return json.dumps(to_jsonable(obj), separators=(",", ":"), ensure_ascii=False)


def _parse(text: str) -> Any:
    if text is None:
        raise ParseFailure("cannot parse null JSON text", text=None)
    try:
        return json.loads(text)
    except (TypeError, json.JSONDecodeError) as e:
        raise ParseFailure(f"failed to parse JSON: {_shorten(text)}", text=text) from e


def _shorten(text: Any) -> str:
    s = str(text)
    if len(s) > _MAX_TEXT_IN_MESSAGE:
        return s[:_MAX_TEXT_IN_MESSAGE] + "..."
    return s


def to_map(text: str) -> Dict[str, Any]:
    """Parse a JSON object into a dict (insertion order preserved)."""

    value = _parse(text)
    if not isinstance(value, dict):
        raise ParseFailure(f"expected a JSON object: {_shorten(text)}", text=text)
    return value


def to_list(text: str) -> List[Any]:
    """Parse a JSON array into a list."""

    value = _parse(text)
    if not isinstance(value, list):
        raise ParseFailure(f"expected a JSON array: {_shorten(text)}", text=text)
    return value


def to_maps(text: str) -> List[Dict[str, Any]]:
    """Parse a JSON array of objects into a list of dicts."""

    items = to_list(text)
    if not all(isinstance(item, dict) for item in items):
        raise ParseFailure(f"expected a JSON array of objects: {_shorten(text)}", text=text)
    return items
