"""Theme definitions for SmartMark.

Each entry is a Textual Theme that controls the base UI colors
($background, $surface, $panel, $primary, ...) used by styles.tcss.
Keys match the ``display.theme`` values accepted in config.yaml.
"""

from textual.theme import Theme

TEXTUAL_THEMES: dict[str, Theme] = {
    "dark": Theme(
        name="smartmark-dark",
        primary="#6366f1",
        secondary="#22d3ee",
        accent="#818cf8",
        background="#0f172a",
        surface="#1e293b",
        panel="#334155",
        success="#34d399",
        warning="#fbbf24",
        error="#f87171",
        dark=True,
    ),
    "light": Theme(
        name="smartmark-light",
        primary="#4f46e5",
        secondary="#0891b2",
        accent="#6366f1",
        background="#f8fafc",
        surface="#f1f5f9",
        panel="#cbd5e1",
        success="#059669",
        warning="#d97706",
        error="#dc2626",
        dark=False,
    ),
}


def next_theme_name(current: str) -> str:
    """Return the theme that follows *current* in ``TEXTUAL_THEMES`` order."""
    names = list(TEXTUAL_THEMES)
    if current not in names:
        return names[0]
    return names[(names.index(current) + 1) % len(names)]
