from __future__ import annotations

import pytest

from httpfacade.client import CONNECTION_TIMEOUT_MS, READ_TIMEOUT_MS, InvalidArgument, Timeouts


def test_defaults() -> None:
    t = Timeouts()
    assert (t.connect_ms, t.read_ms) == (CONNECTION_TIMEOUT_MS, READ_TIMEOUT_MS) == (5000, 5000)
    assert t.connect_seconds == 5.0
    assert t.read_seconds == 5.0


def test_zero_means_block() -> None:
    assert Timeouts(connect_ms=0, read_ms=0).read_seconds is None


def test_override_keeps_unset_values() -> None:
    t = Timeouts(connect_ms=1, read_ms=2).override(read_ms=3)
    assert t == Timeouts(connect_ms=1, read_ms=3)


def test_negative_rejected() -> None:
    with pytest.raises(InvalidArgument):
        Timeouts(connect_ms=-5)


def test_from_env(monkeypatch) -> None:
    monkeypatch.setenv("HTTPFACADE_CONNECT_TIMEOUT_MS", "250")
    monkeypatch.setenv("HTTPFACADE_READ_TIMEOUT_MS", "bogus")
    t = Timeouts.from_env()
    assert t.connect_ms == 250
    assert t.read_ms == READ_TIMEOUT_MS


def test_from_env_defaults(monkeypatch) -> None:
    monkeypatch.delenv("HTTPFACADE_CONNECT_TIMEOUT_MS", raising=False)
    monkeypatch.delenv("HTTPFACADE_READ_TIMEOUT_MS", raising=False)
    assert Timeouts.from_env() == Timeouts()
