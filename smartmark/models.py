"""Bookmark and identity records.

Rows coming back from the backend are validated here and turned into
:class:`Bookmark` instances; nothing untyped travels further into the app.
"""

from __future__ import annotations

import secrets
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from .errors import InvalidBookmarkError, MalformedRecordError

TEMP_ID_PREFIX = "tmp-"


def normalize_url(url: str) -> str:
    """Return *url* with a scheme, defaulting bare hosts to ``https://``.

    >>> normalize_url("example.com")
    'https://example.com'
    >>> normalize_url("http://example.com")
    'http://example.com'
    """
    url = url.strip()
    if url.lower().startswith("http"):
        return url
    return f"https://{url}"


def new_temp_id() -> str:
    """Random placeholder id for a bookmark that has not been persisted yet."""
    return TEMP_ID_PREFIX + secrets.token_hex(8)


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str) and value:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as exc:
            raise MalformedRecordError(f"bad created_at: {value!r}") from exc
    else:
        raise MalformedRecordError(f"bad created_at: {value!r}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


@dataclass(frozen=True)
class Identity:
    """The signed-in user."""

    id: str
    email: str | None = None

    @classmethod
    def from_user(cls, user: Any) -> Identity:
        """Build from an auth-provider user object (attribute or mapping access)."""
        if isinstance(user, Mapping):
            uid, email = user.get("id"), user.get("email")
        else:
            uid, email = getattr(user, "id", None), getattr(user, "email", None)
        if not uid:
            raise MalformedRecordError("user without id")
        return cls(id=str(uid), email=email or None)


@dataclass(frozen=True)
class Bookmark:
    """One saved link.

    ``pending`` marks an optimistic entry that still carries a temporary id.
    """

    id: str
    title: str
    url: str
    user_id: str
    created_at: datetime
    pending: bool = False

    @classmethod
    def optimistic(
        cls,
        title: str,
        url: str,
        user_id: str,
        now: datetime | None = None,
    ) -> Bookmark:
        """Create a local placeholder for a bookmark about to be inserted."""
        title = title.strip()
        if not title:
            raise InvalidBookmarkError("Title is required.")
        if not url.strip():
            raise InvalidBookmarkError("URL is required.")
        return cls(
            id=new_temp_id(),
            title=title,
            url=normalize_url(url),
            user_id=user_id,
            created_at=now or datetime.now(timezone.utc),
            pending=True,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Bookmark:
        """Validate a backend row.  Raises :class:`MalformedRecordError`."""
        if not isinstance(row, Mapping):
            raise MalformedRecordError(f"row is not a mapping: {type(row).__name__}")
        missing = [
            key
            for key in ("id", "title", "url", "user_id")
            if row.get(key) in (None, "")
        ]
        if missing:
            raise MalformedRecordError(f"row missing {', '.join(missing)}")
        return cls(
            id=str(row["id"]),
            title=str(row["title"]),
            url=normalize_url(str(row["url"])),
            user_id=str(row["user_id"]),
            created_at=_parse_timestamp(row.get("created_at")),
        )

    def insert_payload(self) -> dict[str, str]:
        """Fields sent on insert; the backend assigns id and created_at."""
        return {"title": self.title, "url": self.url, "user_id": self.user_id}


def sort_newest_first(bookmarks: Iterable[Bookmark]) -> list[Bookmark]:
    return sorted(bookmarks, key=lambda b: b.created_at, reverse=True)
