"""Shared test fixtures for the smartmark test suite."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from smartmark.core.remote import ChangeCallback, ChangeEvent
from smartmark.core.session_gate import SessionGate
from smartmark.errors import RemoteError
from smartmark.models import Identity
from smartmark.preferences import AuthPreferences

BASE_TIME = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)


class FakeSubscription:
    def __init__(self, remote: FakeRemote, callback: ChangeCallback) -> None:
        self.remote = remote
        self.callback = callback
        self.closed = False

    async def close(self) -> None:
        self.closed = True
        if self in self.remote.subscriptions:
            self.remote.subscriptions.remove(self)


class FakeRemote:
    """In-memory ``RemoteStore``.

    * ``fail_*`` flags make the matching call raise ``RemoteError``.
    * ``write_gate``: when set to an ``asyncio.Event``, inserts and deletes
      wait on it before touching ``rows`` (simulates network latency).
    * ``fetch_gates``: events consumed one per fetch; the fetch snapshots
      ``rows`` first, then waits, so responses can be delivered out of order.
    * Successful writes emit a change event to every subscriber, as the
      realtime channel does for the writer's own changes.
    """

    def __init__(self, identity: Identity | None = None) -> None:
        self.identity = identity
        self.rows: list[dict[str, Any]] = []
        self.calls: list[tuple] = []
        self.subscriptions: list[FakeSubscription] = []
        self.fail_get_identity = False
        self.fail_sign_in = False
        self.fail_sign_out = False
        self.fail_fetch = False
        self.fail_insert = False
        self.fail_delete = False
        self.fail_subscribe = False
        self.write_gate: asyncio.Event | None = None
        self.fetch_gates: list[asyncio.Event] = []
        self.closed = False
        self._next_id = 100
        self._clock = BASE_TIME

    # -- helpers --------------------------------------------------------------

    def add_row(
        self, id: str, title: str, url: str, created_at: datetime | None = None
    ) -> dict[str, Any]:
        self._clock += timedelta(minutes=1)
        row = {
            "id": id,
            "title": title,
            "url": url,
            "user_id": self.identity.id if self.identity else "user-1",
            "created_at": (created_at or self._clock).isoformat(),
        }
        self.rows.append(row)
        return row

    def emit(self, event_type: str) -> None:
        event = ChangeEvent(event_type=event_type, schema="public", table="bookmarks")
        for sub in list(self.subscriptions):
            sub.callback(event)

    def write_calls(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in ("insert", "delete")]

    # -- auth -----------------------------------------------------------------

    async def get_identity(self) -> Identity | None:
        self.calls.append(("get_identity",))
        if self.fail_get_identity:
            raise RemoteError("session expired")
        return self.identity

    async def sign_in(self, provider: str, redirect_to: str) -> str:
        self.calls.append(("sign_in", provider, redirect_to))
        if self.fail_sign_in:
            raise RemoteError("provider disabled")
        return f"https://auth.example.test/authorize?provider={provider}"

    async def exchange_code(self, code: str) -> Identity:
        self.calls.append(("exchange_code", code))
        if code == "bad-code":
            raise RemoteError("invalid flow state", "bad_code_verifier")
        self.identity = Identity(id="user-1", email="ada@example.com")
        return self.identity

    async def sign_out(self) -> None:
        self.calls.append(("sign_out",))
        if self.fail_sign_out:
            raise RemoteError("network down")
        self.identity = None

    # -- collection -----------------------------------------------------------

    async def fetch_bookmarks(self) -> list[Mapping[str, Any]]:
        self.calls.append(("fetch",))
        snapshot = sorted(
            (dict(r) for r in self.rows),
            key=lambda r: r.get("created_at") or "",
            reverse=True,
        )
        if self.fetch_gates:
            await self.fetch_gates.pop(0).wait()
        if self.fail_fetch:
            raise RemoteError("fetch failed")
        return snapshot

    async def insert_bookmark(self, fields: Mapping[str, str]) -> None:
        self.calls.append(("insert", dict(fields)))
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_insert:
            raise RemoteError("new row violates row-level security policy", "42501")
        self._next_id += 1
        self._clock += timedelta(minutes=1)
        self.rows.append(
            {**fields, "id": str(self._next_id), "created_at": self._clock.isoformat()}
        )
        self.emit("INSERT")

    async def delete_bookmark(self, bookmark_id: str) -> None:
        self.calls.append(("delete", bookmark_id))
        if self.write_gate is not None:
            await self.write_gate.wait()
        if self.fail_delete:
            raise RemoteError("delete failed")
        self.rows = [r for r in self.rows if r["id"] != bookmark_id]
        self.emit("DELETE")

    # -- realtime -------------------------------------------------------------

    async def subscribe(self, callback: ChangeCallback) -> FakeSubscription:
        self.calls.append(("subscribe",))
        if self.fail_subscribe:
            raise RemoteError("channel error")
        sub = FakeSubscription(self, callback)
        self.subscriptions.append(sub)
        return sub

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def user() -> Identity:
    return Identity(id="user-1", email="ada@example.com")


@pytest.fixture
def remote(user: Identity) -> FakeRemote:
    """A backend with a signed-in session."""
    return FakeRemote(identity=user)


@pytest.fixture
def anon_remote() -> FakeRemote:
    """A backend with no session."""
    return FakeRemote()


@pytest.fixture
def opened_urls() -> list[str]:
    return []


@pytest.fixture
def gate(remote: FakeRemote, opened_urls: list[str]) -> SessionGate:
    return SessionGate(remote, AuthPreferences(), open_url=opened_urls.append)


@pytest.fixture
def anon_gate(anon_remote: FakeRemote, opened_urls: list[str]) -> SessionGate:
    return SessionGate(anon_remote, AuthPreferences(), open_url=opened_urls.append)
