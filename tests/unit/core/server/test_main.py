"""Tests for the server entry point's bind guard."""

from __future__ import annotations

import pytest

from healthbridge.core.server import main


@pytest.mark.parametrize("host", ["127.0.0.1", "localhost", "::1"])
def test_loopback_hosts(host):
    assert main._is_loopback_host(host)


@pytest.mark.parametrize("host", ["0.0.0.0", "192.168.1.20", "example.com"])
def test_non_loopback_hosts(host):
    assert not main._is_loopback_host(host)


def test_refuses_insecure_bind(monkeypatch):
    monkeypatch.setenv("HB_HOST", "0.0.0.0")
    monkeypatch.setattr(main, "create_app", lambda: pytest.fail("server should not be created"))
    with pytest.raises(RuntimeError, match="non-loopback"):
        main.run()


def test_runs_streamable_http(monkeypatch):
    calls = []

    class FakeServer:
        def run(self, **kwargs):
            calls.append(kwargs)

    monkeypatch.setenv("HB_PORT", "8123")
    monkeypatch.setattr(main, "create_app", lambda: FakeServer())
    main.run()
    assert calls == [{"transport": "streamable-http", "host": "127.0.0.1", "port": 8123}]
