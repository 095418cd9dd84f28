"""Widget classes for the SmartMark TUI."""

from .bookmarks import BookmarkForm, BookmarkItem, BookmarkList
from .screens import AlertScreen, ShortcutOverlay

__all__ = [
    "AlertScreen",
    "BookmarkForm",
    "BookmarkItem",
    "BookmarkList",
    "ShortcutOverlay",
]
