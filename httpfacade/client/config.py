from __future__ import annotations

import os
from dataclasses import dataclass

from httpfacade.errors import InvalidArgument

# Milliseconds.
CONNECTION_TIMEOUT_MS = 5000
READ_TIMEOUT_MS = 5000


def _env_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back to ``default``."""

    raw = os.environ.get(name, "").strip()
    if not raw:
        return int(default)
    try:
        return int(raw)
    except ValueError:
        return int(default)


@dataclass(frozen=True, slots=True)
class Timeouts:
    """Connect and read timeouts in milliseconds.

    A value of 0 means "no timeout": the socket blocks until the peer acts.

    """

    connect_ms: int = CONNECTION_TIMEOUT_MS
    read_ms: int = READ_TIMEOUT_MS

    def __post_init__(self) -> None:
        for label, value in (("connect", self.connect_ms), ("read", self.read_ms)):
            if value is None or int(value) < 0:
                raise InvalidArgument(f"{label} timeout must be a non-negative number of ms")

    @property
    def connect_seconds(self):
        return _to_seconds(self.connect_ms)

    @property
    def read_seconds(self):
        return _to_seconds(self.read_ms)

    def override(self, connect_ms=None, read_ms=None) -> "Timeouts":
        """Return a copy with the given values replaced (``None`` keeps the current one)."""

        return Timeouts(
            connect_ms=self.connect_ms if connect_ms is None else int(connect_ms),
            read_ms=self.read_ms if read_ms is None else int(read_ms),
        )

    @staticmethod
    def from_env() -> "Timeouts":
        """Create timeouts from environment variables.

        - HTTPFACADE_CONNECT_TIMEOUT_MS (default 5000)
        - HTTPFACADE_READ_TIMEOUT_MS (default 5000)

        """

        connect_ms = _env_int("HTTPFACADE_CONNECT_TIMEOUT_MS", CONNECTION_TIMEOUT_MS)
        read_ms = _env_int("HTTPFACADE_READ_TIMEOUT_MS", READ_TIMEOUT_MS)
        return Timeouts(connect_ms=max(0, connect_ms), read_ms=max(0, read_ms))


def _to_seconds(ms: int):
    # socket timeout of None blocks forever
    return None if ms == 0 else ms / 1000.0
