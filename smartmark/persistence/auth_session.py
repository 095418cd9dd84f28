"""Auth session persistence.

The Supabase auth client keeps its session (and the PKCE code verifier
during sign-in) in a key/value storage object.  ``FileSessionStorage``
backs that with a JSON file so a login survives restarts.
"""

from __future__ import annotations

from pathlib import Path

from supabase_auth import AsyncSupportedStorage

from ._base import JsonStore
from ..log import logger

SESSION_PATH = Path.home() / ".smartmark" / "auth-session.json"


class AuthSessionStore(JsonStore):
    """Flat ``{key: value}`` map of auth storage items."""

    def load(self) -> dict[str, str]:
        raw = self.load_raw()
        if isinstance(raw, dict):
            return {str(k): str(v) for k, v in raw.items()}
        return {}

    def get(self, key: str) -> str | None:
        return self.load().get(key)

    def set(self, key: str, value: str) -> None:
        items = self.load()
        items[key] = value
        self.save_raw(items)

    def remove(self, key: str) -> None:
        items = self.load()
        if items.pop(key, None) is not None:
            self.save_raw(items)

    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError:
            logger.debug("failed to clear auth session %s", self.path, exc_info=True)


class FileSessionStorage(AsyncSupportedStorage):
    """Async storage adapter handed to the Supabase client options."""

    def __init__(self, store: AuthSessionStore | None = None) -> None:
        self.store = store or AuthSessionStore(SESSION_PATH)

    async def get_item(self, key: str) -> str | None:
        return self.store.get(key)

    async def set_item(self, key: str, value: str) -> None:
        try:
            self.store.set(key, value)
        except OSError:
            logger.warning("could not persist auth session item %s", key, exc_info=True)

    async def remove_item(self, key: str) -> None:
        try:
            self.store.remove(key)
        except OSError:
            logger.warning("could not remove auth session item %s", key, exc_info=True)
