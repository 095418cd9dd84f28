"""Client-side projection of the remote bookmark collection.

The local list is kept consistent with the backend by:

* a full fetch that replaces the list wholesale,
* a realtime subscription where *any* change event triggers a full fetch,
* optimistic add/delete applied immediately, with the remote write running
  as a task.  A failed write is logged, compensated with a fetch and
  surfaced through ``on_error``; a failed insert also drops its placeholder
  so it cannot outlive a fetch that fails too.  A successful write needs no action; the
  fetch triggered by its own change event replaces the pending entry.

All of this runs on one asyncio loop (the Textual app's).  The most
recently issued fetch wins; an older response arriving late is dropped.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Callable, Coroutine

from ..errors import MalformedRecordError, RemoteError
from ..models import Bookmark, sort_newest_first
from .remote import ChangeEvent, RemoteStore, Subscription
from .session_gate import SessionGate

logger = logging.getLogger(__name__)

ADD_FAILED = "Failed to save bookmark."
DELETE_FAILED = "Failed to delete bookmark."


class BookmarkStore:
    """Ordered (newest first) bookmarks for the signed-in user.

    Parameters
    ----------
    remote:
        Backend adapter.
    gate:
        Session gate; add/delete do nothing while nobody is signed in.
    on_change:
        Called with the new tuple of bookmarks after every local change.
    on_error:
        Called with a user-facing message when a write fails.
    """

    def __init__(
        self,
        remote: RemoteStore,
        gate: SessionGate,
        *,
        on_change: Callable[[tuple[Bookmark, ...]], object] | None = None,
        on_error: Callable[[str], object] | None = None,
    ) -> None:
        self._remote = remote
        self._gate = gate
        self._on_change = on_change
        self._on_error = on_error
        self._items: list[Bookmark] = []
        self._tasks: set[asyncio.Task] = set()
        self._subscription: Subscription | None = None
        self._fetch_seq = 0
        self._applied_seq = 0
        self.stale = False

    @property
    def items(self) -> tuple[Bookmark, ...]:
        return tuple(self._items)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    def get(self, bookmark_id: str) -> Bookmark | None:
        for bookmark in self._items:
            if bookmark.id == bookmark_id:
                return bookmark
        return None

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self.items)

    def _alert(self, message: str) -> None:
        if self._on_error is not None:
            self._on_error(message)

    def _spawn(self, coro: Coroutine[Any, Any, object]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    # -- fetch ----------------------------------------------------------------

    async def refresh(self) -> bool:
        """Replace the local list with the backend's.  Returns False on failure."""
        self._fetch_seq += 1
        seq = self._fetch_seq
        try:
            rows = await self._remote.fetch_bookmarks()
        except RemoteError as exc:
            if seq < self._applied_seq:
                logger.debug("fetch #%d failed after a newer one applied: %s", seq, exc)
                return False
            logger.warning(
                "Fetch failed, keeping %d cached bookmarks: %s", len(self._items), exc
            )
            if not self.stale:
                self.stale = True
                self._changed()
            return False

        if seq < self._applied_seq:
            logger.debug(
                "dropping fetch #%d, #%d already applied", seq, self._applied_seq
            )
            return True
        self._applied_seq = seq

        bookmarks = []
        for row in rows:
            try:
                bookmarks.append(Bookmark.from_row(row))
            except MalformedRecordError as exc:
                logger.warning("skipping malformed bookmark row: %s", exc)
        self._items = sort_newest_first(bookmarks)
        self.stale = False
        self._changed()
        return True

    def clear(self) -> None:
        """Forget every bookmark (after logout)."""
        self._items = []
        self.stale = False
        self._changed()

    # -- realtime -------------------------------------------------------------

    def _on_remote_change(self, event: ChangeEvent) -> None:
        logger.debug(
            "change on %s.%s: %s", event.schema, event.table, event.event_type
        )
        self._spawn(self.refresh())

    async def subscribe(self) -> None:
        """Open the change channel (once)."""
        if self._subscription is not None:
            return
        self._subscription = await self._remote.subscribe(self._on_remote_change)

    async def unsubscribe(self) -> None:
        sub, self._subscription = self._subscription, None
        if sub is not None:
            await sub.close()

    @asynccontextmanager
    async def subscription(self) -> AsyncIterator[BookmarkStore]:
        """Hold the change channel for the duration of the block."""
        await self.subscribe()
        try:
            yield self
        finally:
            await self.unsubscribe()

    # -- mutations ------------------------------------------------------------

    def add(self, title: str, url: str) -> asyncio.Task | None:
        """Optimistically add a bookmark and start the remote insert.

        Returns the insert task, or ``None`` when nobody is signed in.
        Raises :class:`~smartmark.errors.InvalidBookmarkError` for blank input.
        """
        user = self._gate.user
        if user is None:
            return None
        bookmark = Bookmark.optimistic(title, url, user.id)
        self._items.insert(0, bookmark)
        self._changed()
        return self._spawn(self._insert(bookmark))

    async def _insert(self, bookmark: Bookmark) -> None:
        try:
            await self._remote.insert_bookmark(bookmark.insert_payload())
        except RemoteError as exc:
            logger.error("Add failed: %s", exc.message)
            self._items = [b for b in self._items if b.id != bookmark.id]
            self._changed()
            await self.refresh()
            self._alert(ADD_FAILED)

    def delete(self, bookmark_id: str) -> asyncio.Task | None:
        """Optimistically remove a bookmark and start the remote delete."""
        if self._gate.user is None:
            return None
        self._items = [b for b in self._items if b.id != bookmark_id]
        self._changed()
        return self._spawn(self._delete(bookmark_id))

    async def _delete(self, bookmark_id: str) -> None:
        try:
            await self._remote.delete_bookmark(bookmark_id)
        except RemoteError as exc:
            logger.error("Delete failed: %s", exc.message)
            await self.refresh()
            self._alert(DELETE_FAILED)

    # -- teardown -------------------------------------------------------------

    async def drain(self) -> None:
        """Wait for in-flight writes and fetches to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def aclose(self) -> None:
        await self.unsubscribe()
        await self.drain()
