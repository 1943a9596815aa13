# tests/conftest.py
# Keep test runs quiet and offline; shared clocks and fakes live in tests/fakes.

from __future__ import annotations

import os
import socket

import pytest


def _set_test_env() -> None:
    """Silence console logging and drop any real credentials from the environment."""
    os.environ["CX_LOG_CONSOLE"] = "0"
    os.environ.pop("CX_LOG_DIR", None)
    for name in ("CX_GROQ_API_KEY", "GROQ_API_KEY"):
        os.environ.pop(name, None)


_set_test_env()


@pytest.fixture(autouse=True)
def forbid_network(monkeypatch):
    """Block real outbound connections; httpx.MockTransport never opens sockets."""
    real_create_connection = socket.create_connection

    def guarded(address, *args, **kwargs):
        host = address[0] if isinstance(address, tuple) else address
        if host not in {"127.0.0.1", "::1", "localhost"}:
            raise RuntimeError(f"Blocked outbound connection to {host}")
        return real_create_connection(address, *args, **kwargs)

    monkeypatch.setattr(socket, "create_connection", guarded, raising=True)


@pytest.fixture
def clock():
    from tests.fakes.fake_clock import FakeClock

    return FakeClock()

