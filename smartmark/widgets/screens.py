"""Modal screen widgets for SmartMark."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static

SHORTCUTS_TEXT = """\
            Keyboard Shortcuts
────────────────────────────────────────

  Enter            Add bookmark (in the form)
  Tab              Cycle focus
  Ctrl+R           Refresh from server
  Ctrl+T           Switch theme
  Ctrl+L           Log out
  F1               This help
  Ctrl+Q           Quit

  Entries marked … are still being saved.
  A "stale" status means the last refresh failed.
"""


class AlertScreen(ModalScreen[None]):
    """Blocking message box; dismissed with OK, Enter or Escape."""

    BINDINGS = [
        Binding("escape", "close", show=False),
        Binding("enter", "close", show=False),
    ]

    def __init__(self, message: str, *, title: str = "Error") -> None:
        super().__init__()
        self.message = message
        self.title_text = title

    def compose(self) -> ComposeResult:
        with Vertical(id="alert-modal"):
            yield Static(self.title_text, id="alert-title")
            yield Static(self.message, id="alert-message")
            yield Button("OK", id="alert-ok", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#alert-ok", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.dismiss(None)

    def action_close(self) -> None:
        self.dismiss(None)


class ShortcutOverlay(ModalScreen):
    """Modal overlay listing the keyboard shortcuts."""

    BINDINGS = [
        Binding("escape", "dismiss_overlay", show=False),
        Binding("f1", "dismiss_overlay", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical(id="shortcut-modal"):
            yield Static(SHORTCUTS_TEXT, id="shortcut-content")

    def action_dismiss_overlay(self) -> None:
        self.app.pop_screen()

    def on_click(self, event) -> None:
        """Dismiss overlay when clicking outside the modal content."""
        modal = self.query_one("#shortcut-modal")
        if (event.screen_x, event.screen_y) not in modal.region:
            self.app.pop_screen()
