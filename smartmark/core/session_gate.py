"""Session gate: who is signed in, and the OAuth login/logout flow."""

from __future__ import annotations

import logging
import webbrowser
from typing import Callable

from ..errors import RemoteError
from ..models import Identity
from ..preferences import AuthPreferences
from .remote import RemoteStore

logger = logging.getLogger(__name__)

UserListener = Callable[["Identity | None"], None]


class SessionGate:
    """Tracks the authenticated identity and gates the rest of the app on it.

    ``login()`` only starts the browser redirect; the flow finishes when the
    callback receiver hands the authorization code to ``complete_login()``.
    """

    def __init__(
        self,
        remote: RemoteStore,
        auth: AuthPreferences | None = None,
        *,
        open_url: Callable[[str], object] = webbrowser.open,
    ) -> None:
        self._remote = remote
        self.auth = auth or AuthPreferences()
        self._open_url = open_url
        self._user: Identity | None = None
        self._listeners: list[UserListener] = []

    @property
    def user(self) -> Identity | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    def add_listener(self, callback: UserListener) -> None:
        self._listeners.append(callback)

    def _set_user(self, user: Identity | None) -> None:
        self._user = user
        for callback in list(self._listeners):
            callback(user)

    async def initialize(self) -> Identity | None:
        """Ask the auth provider once for an existing session."""
        try:
            user = await self._remote.get_identity()
        except RemoteError as exc:
            logger.warning("could not restore session: %s", exc)
            user = None
        self._set_user(user)
        return user

    async def login(self) -> None:
        """Start the OAuth redirect flow in the user's browser."""
        redirect_to = self.auth.redirect_url
        url = await self._remote.sign_in(self.auth.provider, redirect_to)
        logger.info("opening %s sign-in (callback %s)", self.auth.provider, redirect_to)
        self._open_url(url)

    async def complete_login(self, code: str) -> Identity:
        """Exchange the callback's authorization code for a session."""
        user = await self._remote.exchange_code(code)
        logger.info("signed in as %s", user.email or user.id)
        self._set_user(user)
        return user

    async def logout(self) -> None:
        """End the session; local state is cleared only if sign-out succeeds."""
        try:
            await self._remote.sign_out()
        except RemoteError as exc:
            logger.error("Logout failed: %s", exc)
            raise
        self._set_user(None)
