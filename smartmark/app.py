"""Main SmartMark TUI application."""

from __future__ import annotations

import webbrowser
from pathlib import Path
from typing import Callable

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.css.query import NoMatches
from textual.screen import Screen
from textual.widgets import Button, Static

from .core.bookmark_store import BookmarkStore
from .core.remote import RemoteStore, close_remote, get_remote
from .core.session_gate import SessionGate
from .errors import InvalidBookmarkError, RemoteError
from .log import logger
from .models import Bookmark, Identity
from .preferences import Preferences, load_preferences, save_theme_name
from .theme import TEXTUAL_THEMES, next_theme_name
from .widgets import (
    AlertScreen,
    BookmarkForm,
    BookmarkItem,
    BookmarkList,
    ShortcutOverlay,
)


class SmartMarkApp(App):
    """SmartMark - bookmarks synced in real time."""

    CSS_PATH = "styles.tcss"
    TITLE = "SmartMark"

    BINDINGS = [
        Binding("ctrl+r", "refresh", "Refresh", show=True),
        Binding("ctrl+t", "toggle_theme", "Theme", show=True),
        Binding("ctrl+l", "logout", "Logout", show=True),
        Binding("f1", "show_shortcuts", "Help", show=True),
        Binding("ctrl+q", "quit", "Quit", show=True),
    ]

    def __init__(
        self,
        prefs: Preferences | None = None,
        *,
        remote: RemoteStore | None = None,
        config_path: Path | None = None,
        start_callback_server: bool = True,
        open_url: Callable[[str], object] = webbrowser.open,
    ) -> None:
        super().__init__()
        self._prefs = prefs or load_preferences(config_path)
        self._config_path = config_path
        self._owns_remote = remote is None
        self.remote: RemoteStore = remote or get_remote(self._prefs.supabase)
        self.gate = SessionGate(self.remote, self._prefs.auth, open_url=open_url)
        self.store = BookmarkStore(
            self.remote,
            self.gate,
            on_change=self._on_bookmarks_changed,
            on_error=self._show_alert,
        )
        self.gate.add_listener(self._on_user_changed)
        self._start_callback_server = start_callback_server
        self._callback_server: object | None = None
        self._theme_name = self._prefs.display.theme
        self._closing = False

    # -- Layout ---------------------------------------------------------------

    def compose(self) -> ComposeResult:
        with Vertical(id="login-view"):
            with Vertical(id="login-card"):
                yield Static("Smart[b #818cf8]Mark[/]", id="login-title")
                yield Static(
                    "Your digital library, synced in real-time.", id="login-tagline"
                )
                yield Button(
                    "Sign in with Google", id="login-button", variant="primary"
                )
        with Vertical(id="bookmarks-view"):
            with Horizontal(id="header"):
                yield Static("My Bookmarks", id="header-title")
                yield Button("Logout", id="logout-button")
            yield BookmarkForm(id="bookmark-form")
            yield BookmarkList(
                id="bookmark-list", show_timestamps=self._prefs.display.show_timestamps
            )
        with Horizontal(id="status-bar"):
            yield Static("Not signed in", id="status-user")
            yield Static("", id="status-count")
            yield Static("Starting", id="status-state")

    async def on_mount(self) -> None:
        for theme in TEXTUAL_THEMES.values():
            self.register_theme(theme)
        self.theme = TEXTUAL_THEMES[self._theme_name].name

        self._show_view(signed_in=False)
        if self._start_callback_server:
            self._callback_server_worker()
        self._init_session_worker()

    async def on_unmount(self) -> None:
        self._closing = True
        if self._callback_server is not None:
            self._callback_server.should_exit = True  # type: ignore[attr-defined]
        try:
            await self.store.aclose()
        except RemoteError:
            logger.warning("failed to release change channel", exc_info=True)
        if self._owns_remote:
            await close_remote()

    # -- Workers --------------------------------------------------------------

    @work(group="callback-server", exit_on_error=False)
    async def _callback_server_worker(self) -> None:
        """Serve the OAuth redirect target on this event loop."""
        from .web import create_server

        auth = self._prefs.auth
        server = create_server(self.gate, auth.callback_host, auth.callback_port)
        self._callback_server = server
        try:
            await server.serve()
        except (OSError, SystemExit):
            # uvicorn exits the process on bind failure; keep the TUI alive
            logger.error(
                "sign-in listener could not start on port %d", auth.callback_port
            )
            self.notify(
                f"Sign-in listener could not use port {auth.callback_port}.",
                severity="error",
            )

    @work(exclusive=True, group="session")
    async def _init_session_worker(self) -> None:
        self._update_status("Connecting...")
        user = await self.gate.initialize()
        if user is None:
            self._update_status("Ready")

    @work(exclusive=True, group="sync")
    async def _start_sync_worker(self) -> None:
        self._update_status("Syncing...")
        try:
            await self.store.subscribe()
        except RemoteError as exc:
            logger.warning("live updates unavailable: %s", exc)
            self.notify(
                "Live updates unavailable; use Ctrl+R to refresh.", severity="warning"
            )
        await self.store.refresh()

    @work(exclusive=True, group="sync")
    async def _stop_sync_worker(self) -> None:
        try:
            await self.store.unsubscribe()
        except RemoteError:
            logger.warning("failed to release change channel", exc_info=True)
        self.store.clear()
        self._update_status("Ready")

    @work(exclusive=True, group="auth")
    async def _login_worker(self) -> None:
        try:
            await self.gate.login()
        except RemoteError as exc:
            logger.error("could not start sign-in: %s", exc)
            self._show_alert(f"Could not start sign-in: {exc.message}")
            return
        self._update_status("Waiting for browser sign-in...")
        self.notify("Finish signing in in your browser.")

    @work(exclusive=True, group="auth")
    async def _logout_worker(self) -> None:
        try:
            await self.gate.logout()
        except RemoteError:
            self._show_alert("Failed to log out.")

    @work(group="refresh")
    async def _refresh_worker(self) -> None:
        if not await self.store.refresh():
            self.notify("Refresh failed; showing cached bookmarks.", severity="warning")

    @property
    def _main(self) -> Screen:
        """The base screen; queries go here even while a modal is open."""
        return self.screen_stack[0]

    # -- Store / gate callbacks -----------------------------------------------

    def _on_user_changed(self, user: Identity | None) -> None:
        if self._closing:
            return
        self._show_view(signed_in=user is not None)
        try:
            self._main.query_one("#status-user", Static).update(
                (user.email or user.id) if user else "Not signed in"
            )
        except NoMatches:
            pass
        if user is not None:
            self._start_sync_worker()
        else:
            self._stop_sync_worker()

    def _on_bookmarks_changed(self, bookmarks: tuple[Bookmark, ...]) -> None:
        if self._closing:
            return
        try:
            self._main.query_one("#bookmark-list", BookmarkList).show(bookmarks)
            count = len(bookmarks)
            self._main.query_one("#status-count", Static).update(
                f"{count} bookmark{'s' if count != 1 else ''}"
            )
            state = self._main.query_one("#status-state", Static)
        except NoMatches:
            return
        state.set_class(self.store.stale, "stale")
        if self.store.stale:
            state.update("stale")
        else:
            state.update("Live" if self.store.subscribed else "Offline")

    def _show_alert(self, message: str) -> None:
        if self._closing:
            return
        self.push_screen(AlertScreen(message))

    # -- View helpers ---------------------------------------------------------

    def _show_view(self, *, signed_in: bool) -> None:
        self._main.query_one("#login-view").display = not signed_in
        self._main.query_one("#bookmarks-view").display = signed_in
        if signed_in:
            self._main.query_one("#title-input").focus()
        else:
            self._main.query_one("#login-button").focus()

    def _update_status(self, state: str = "Ready") -> None:
        try:
            self._main.query_one("#status-state", Static).update(state)
        except NoMatches:
            pass

    # -- Events ---------------------------------------------------------------

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "login-button":
            self._login_worker()
        elif event.button.id == "logout-button":
            self.action_logout()

    def on_bookmark_form_submitted(self, event: BookmarkForm.Submitted) -> None:
        try:
            self.store.add(event.title, event.url)
        except InvalidBookmarkError as exc:
            self.notify(str(exc), severity="warning")

    def on_bookmark_item_delete_requested(
        self, event: BookmarkItem.DeleteRequested
    ) -> None:
        self.store.delete(event.bookmark_id)

    # -- Actions --------------------------------------------------------------

    def action_refresh(self) -> None:
        if self.gate.is_authenticated:
            self._refresh_worker()

    def action_logout(self) -> None:
        if self.gate.is_authenticated:
            self._logout_worker()

    def action_toggle_theme(self) -> None:
        self._theme_name = next_theme_name(self._theme_name)
        self.theme = TEXTUAL_THEMES[self._theme_name].name
        save_theme_name(self._theme_name, self._config_path)
        self.notify(f"Theme: {self._theme_name}")

    def action_show_shortcuts(self) -> None:
        self.push_screen(ShortcutOverlay())


def run_app(prefs: Preferences | None = None, config_path: Path | None = None) -> None:
    """Run the SmartMark TUI."""
    app = SmartMarkApp(prefs, config_path=config_path)
    app.run()
