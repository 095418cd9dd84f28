"""Tests for the OAuth callback receiver."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from smartmark.web import create_server
from smartmark.web.server import create_app


@pytest.fixture
def client(anon_gate):
    return TestClient(create_app(anon_gate))


class TestCallback:
    def test_code_completes_login(self, client, anon_gate, anon_remote):
        resp = client.get("/auth/callback", params={"code": "good-code"})
        assert resp.status_code == 200
        assert "Signed in as ada@example.com" in resp.text
        assert anon_gate.user is not None
        assert anon_gate.user.email == "ada@example.com"
        assert ("exchange_code", "good-code") in anon_remote.calls

    def test_provider_error(self, client, anon_gate, anon_remote):
        resp = client.get(
            "/auth/callback",
            params={"error": "access_denied", "error_description": "User cancelled"},
        )
        assert resp.status_code == 400
        assert "User cancelled" in resp.text
        assert anon_gate.user is None
        assert anon_remote.calls == []

    def test_missing_code(self, client, anon_gate):
        resp = client.get("/auth/callback")
        assert resp.status_code == 400
        assert "no authorization code" in resp.text
        assert anon_gate.user is None

    def test_failed_exchange(self, client, anon_gate):
        resp = client.get("/auth/callback", params={"code": "bad-code"})
        assert resp.status_code == 502
        assert "invalid flow state" in resp.text
        assert anon_gate.user is None

    def test_message_is_escaped(self, client):
        resp = client.get("/auth/callback", params={"error": "<script>x</script>"})
        assert "<script>x</script>" not in resp.text
        assert "&lt;script&gt;" in resp.text


class TestIndex:
    def test_reports_waiting(self, client):
        resp = client.get("/")
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/plain")
        assert resp.text == "SmartMark callback listener: waiting for sign-in"

    def test_reports_signed_in(self, client):
        client.get("/auth/callback", params={"code": "good-code"})
        assert client.get("/").text == "SmartMark callback listener: signed in"


def test_create_server_binds_configured_origin(anon_gate):
    server = create_server(anon_gate, "127.0.0.1", 9123)
    assert server.config.host == "127.0.0.1"
    assert server.config.port == 9123
    assert server.should_exit is False
