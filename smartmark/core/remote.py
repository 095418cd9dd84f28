"""Remote store adapter: hosted database, auth and realtime channel.

:class:`RemoteStore` is the contract the bookmark store and session gate
are written against.  :class:`SupabaseRemote` implements it with the
``supabase`` async client; every library exception is turned into
:class:`~smartmark.errors.RemoteError` here so callers never see
PostgREST/GoTrue/httpx types.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Protocol

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient, AsyncClientOptions, acreate_client
from supabase._async.client import SupabaseException
from supabase_auth.errors import AuthError

from ..errors import RemoteError
from ..models import Identity
from ..persistence import FileSessionStorage
from ..preferences import SupabasePreferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """What the realtime channel tells us: no row diff, just the kind of change."""

    event_type: str  # INSERT, UPDATE, DELETE
    schema: str
    table: str

    @classmethod
    def from_payload(cls, payload: Any) -> ChangeEvent:
        data = payload
        if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
            data = payload["data"]
        if not isinstance(data, Mapping):
            return cls(event_type="UNKNOWN", schema="", table="")
        return cls(
            event_type=str(data.get("type") or data.get("eventType") or "UNKNOWN"),
            schema=str(data.get("schema", "")),
            table=str(data.get("table", "")),
        )


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription(Protocol):
    async def close(self) -> None: ...


class RemoteStore(Protocol):
    """Backend operations used by SmartMark."""

    async def get_identity(self) -> Identity | None: ...

    async def sign_in(self, provider: str, redirect_to: str) -> str: ...

    async def exchange_code(self, code: str) -> Identity: ...

    async def sign_out(self) -> None: ...

    async def fetch_bookmarks(self) -> list[Mapping[str, Any]]: ...

    async def insert_bookmark(self, fields: Mapping[str, str]) -> None: ...

    async def delete_bookmark(self, bookmark_id: str) -> None: ...

    async def subscribe(self, callback: ChangeCallback) -> Subscription: ...

    async def close(self) -> None: ...


@asynccontextmanager
async def _remote_call(action: str) -> AsyncIterator[None]:
    """Translate backend library errors raised inside the block."""
    try:
        yield
    except APIError as exc:
        raise RemoteError(exc.message or str(exc), exc.code) from exc
    except AuthError as exc:
        raise RemoteError(exc.message, getattr(exc, "code", None)) from exc
    except httpx.HTTPError as exc:
        raise RemoteError(f"{action}: {exc}") from exc
    except SupabaseException as exc:
        raise RemoteError(f"{action}: {exc}") from exc


class SupabaseSubscription:
    """One realtime channel; ``close()`` removes it from the client."""

    def __init__(self, client: AsyncClient, channel: Any) -> None:
        self._client = client
        self._channel = channel
        self.closed = False

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            await self._client.remove_channel(self._channel)
        except Exception as exc:
            raise RemoteError(f"Could not release channel: {exc}") from exc


# (attribute, close coroutine) pairs on the async client
_CLIENT_CLOSERS = (("realtime", "close"), ("auth", "close"), ("postgrest", "aclose"))


async def _close_client(client: AsyncClient) -> None:
    """Close the realtime socket and the HTTP sessions held by *client*."""
    for name, method in _CLIENT_CLOSERS:
        try:
            await getattr(getattr(client, name), method)()
        except Exception:
            logger.warning("failed to close %s connection", name, exc_info=True)


class SupabaseRemote:
    """``RemoteStore`` backed by a lazily created Supabase async client."""

    def __init__(
        self,
        settings: SupabasePreferences,
        *,
        storage: FileSessionStorage | None = None,
    ) -> None:
        self.settings = settings
        self._storage = storage or FileSessionStorage()
        self._client: AsyncClient | None = None
        self._lock = asyncio.Lock()
        self._subscriptions: list[SupabaseSubscription] = []

    async def client(self) -> AsyncClient:
        """Return the connected client, creating it on first use."""
        async with self._lock:
            if self._client is None:
                logger.debug("connecting to %s", self.settings.url)
                options = AsyncClientOptions(
                    schema=self.settings.schema,
                    storage=self._storage,
                    flow_type="pkce",
                    persist_session=True,
                    auto_refresh_token=True,
                )
                async with _remote_call("connect"):
                    self._client = await acreate_client(
                        self.settings.url, self.settings.anon_key, options=options
                    )
            return self._client

    # -- auth -----------------------------------------------------------------

    async def get_identity(self) -> Identity | None:
        client = await self.client()
        async with _remote_call("get user"):
            resp = await client.auth.get_user()
        if resp is None or resp.user is None:
            return None
        return Identity.from_user(resp.user)

    async def sign_in(self, provider: str, redirect_to: str) -> str:
        client = await self.client()
        async with _remote_call("sign in"):
            resp = await client.auth.sign_in_with_oauth(
                {"provider": provider, "options": {"redirect_to": redirect_to}}
            )
        return resp.url

    async def exchange_code(self, code: str) -> Identity:
        client = await self.client()
        async with _remote_call("exchange code"):
            resp = await client.auth.exchange_code_for_session({"auth_code": code})
        if resp.user is None:
            raise RemoteError("Sign-in did not return a user")
        return Identity.from_user(resp.user)

    async def sign_out(self) -> None:
        client = await self.client()
        async with _remote_call("sign out"):
            await client.auth.sign_out()

    # -- collection -----------------------------------------------------------

    async def fetch_bookmarks(self) -> list[Mapping[str, Any]]:
        client = await self.client()
        async with _remote_call("fetch bookmarks"):
            resp = await (
                client.table(self.settings.table)
                .select("*")
                .order("created_at", desc=True)
                .execute()
            )
        return list(resp.data or [])

    async def insert_bookmark(self, fields: Mapping[str, str]) -> None:
        client = await self.client()
        async with _remote_call("insert bookmark"):
            await client.table(self.settings.table).insert([dict(fields)]).execute()

    async def delete_bookmark(self, bookmark_id: str) -> None:
        client = await self.client()
        async with _remote_call("delete bookmark"):
            await (
                client.table(self.settings.table)
                .delete()
                .eq("id", bookmark_id)
                .execute()
            )

    # -- realtime -------------------------------------------------------------

    async def subscribe(self, callback: ChangeCallback) -> SupabaseSubscription:
        client = await self.client()

        def _on_change(payload: Any) -> None:
            callback(ChangeEvent.from_payload(payload))

        channel = client.channel(self.settings.channel)
        channel.on_postgres_changes(
            "*",
            schema=self.settings.schema,
            table=self.settings.table,
            callback=_on_change,
        )
        try:
            await channel.subscribe()
        except Exception as exc:
            raise RemoteError(f"Could not subscribe to changes: {exc}") from exc
        sub = SupabaseSubscription(client, channel)
        self._subscriptions.append(sub)
        logger.info("subscribed to %s", self.settings.channel)
        return sub

    async def close(self) -> None:
        """Release every channel opened through this adapter."""
        subs, self._subscriptions = self._subscriptions, []
        for sub in subs:
            try:
                await sub.close()
            except RemoteError:
                logger.warning("failed to release realtime channel", exc_info=True)
        client, self._client = self._client, None
        if client is not None:
            await _close_client(client)


# -- process-wide connection ----------------------------------------------------

_remote: SupabaseRemote | None = None


def get_remote(settings: SupabasePreferences) -> SupabaseRemote:
    """Return the shared adapter, creating it on first call."""
    global _remote
    if _remote is None:
        _remote = SupabaseRemote(settings)
    return _remote


async def close_remote() -> None:
    """Tear down the shared adapter (application shutdown)."""
    global _remote
    remote, _remote = _remote, None
    if remote is not None:
        await remote.close()
