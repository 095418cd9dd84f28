"""Bookmark list, list entries and the add form."""

from __future__ import annotations

from rich.style import Style
from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.message import Message
from textual.widgets import Button, Input, Static

from ..models import Bookmark


class BookmarkItem(Horizontal):
    """One row: title, clickable url and a Delete button.

    Pending (optimistic) rows are dimmed and cannot be deleted until the
    server copy replaces them.
    """

    class DeleteRequested(Message):
        def __init__(self, bookmark_id: str) -> None:
            super().__init__()
            self.bookmark_id = bookmark_id

    def __init__(self, bookmark: Bookmark, *, show_timestamp: bool = True) -> None:
        classes = "bookmark-item pending" if bookmark.pending else "bookmark-item"
        super().__init__(classes=classes)
        self.bookmark = bookmark
        self.show_timestamp = show_timestamp

    @property
    def bookmark_id(self) -> str:
        return self.bookmark.id

    def compose(self) -> ComposeResult:
        b = self.bookmark
        with Vertical(classes="bookmark-text"):
            title = f"{b.title} …" if b.pending else b.title
            yield Static(title, classes="bookmark-title", markup=False)
            yield Static(Text(b.url, style=Style(link=b.url)), classes="bookmark-url")
            if self.show_timestamp:
                stamp = b.created_at.astimezone().strftime("%Y-%m-%d %H:%M")
                yield Static(stamp, classes="bookmark-time")
        yield Button(
            "Delete",
            classes="bookmark-delete",
            variant="error",
            disabled=b.pending,
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.post_message(self.DeleteRequested(self.bookmark.id))


class BookmarkList(VerticalScroll):
    """Scrollable list rebuilt wholesale whenever the store changes."""

    def __init__(self, *, show_timestamps: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.show_timestamps = show_timestamps

    def show(self, bookmarks: tuple[Bookmark, ...] | list[Bookmark]) -> None:
        with self.app.batch_update():
            self.remove_children()
            if bookmarks:
                self.mount_all(
                    BookmarkItem(b, show_timestamp=self.show_timestamps)
                    for b in bookmarks
                )
            else:
                self.mount(
                    Static("No bookmarks yet. Add one above.", classes="empty-list")
                )


class BookmarkForm(Horizontal):
    """Title + URL inputs.  Enter or the Add button submits."""

    class Submitted(Message):
        def __init__(self, title: str, url: str) -> None:
            super().__init__()
            self.title = title
            self.url = url

    def compose(self) -> ComposeResult:
        yield Input(placeholder="Title", id="title-input")
        yield Input(placeholder="URL", id="url-input")
        yield Button("Add", id="add-button", variant="primary")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.submit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "add-button":
            event.stop()
            self.submit()

    def submit(self) -> bool:
        """Post ``Submitted`` and clear both inputs; refuse blank fields."""
        title_input = self.query_one("#title-input", Input)
        url_input = self.query_one("#url-input", Input)
        for field in (title_input, url_input):
            if not field.value.strip():
                self.notify(f"{field.placeholder} is required.", severity="warning")
                field.focus()
                return False

        self.post_message(self.Submitted(title_input.value, url_input.value))
        title_input.value = ""
        url_input.value = ""
        title_input.focus()
        return True
