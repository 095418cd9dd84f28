"""User configuration for SmartMark.

Loads service and display settings from ~/.smartmark/config.yaml.
Falls back to defaults if the file doesn't exist or is invalid, and
creates a commented default file on first run so users can discover it.
``SUPABASE_URL`` / ``SUPABASE_ANON_KEY`` in the environment win over the file.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field
from pathlib import Path

import yaml

from .errors import ConfigError
from .log import logger

CONFIG_PATH = Path.home() / ".smartmark" / "config.yaml"

THEME_NAMES = ("dark", "light")

_DEFAULT_YAML = """\
# SmartMark configuration
# Delete this file to reset to defaults.

supabase:
  url: ""                        # https://<project>.supabase.co (or $SUPABASE_URL)
  anon_key: ""                   # public anon key (or $SUPABASE_ANON_KEY)
  schema: "public"
  table: "bookmarks"
  channel: "realtime-bookmarks"  # realtime channel name

auth:
  provider: "google"             # OAuth provider configured in Supabase
  callback_host: "localhost"     # must be an allowed redirect URL in Supabase
  callback_port: 54321

display:
  theme: "dark"                  # dark | light
  show_timestamps: true          # show created time next to each bookmark
"""


@dataclass
class SupabasePreferences:
    """Hosted backend endpoint and the bookmark table/channel names."""

    url: str = ""
    anon_key: str = ""
    schema: str = "public"
    table: str = "bookmarks"
    channel: str = "realtime-bookmarks"


@dataclass
class AuthPreferences:
    """OAuth provider and the local callback origin."""

    provider: str = "google"
    callback_host: str = "localhost"
    callback_port: int = 54321

    @property
    def redirect_url(self) -> str:
        return f"http://{self.callback_host}:{self.callback_port}/auth/callback"


@dataclass
class DisplayPreferences:
    theme: str = "dark"
    show_timestamps: bool = True


@dataclass
class Preferences:
    """Top-level SmartMark configuration."""

    supabase: SupabasePreferences = field(default_factory=SupabasePreferences)
    auth: AuthPreferences = field(default_factory=AuthPreferences)
    display: DisplayPreferences = field(default_factory=DisplayPreferences)

    @property
    def service_configured(self) -> bool:
        return bool(self.supabase.url and self.supabase.anon_key)

    def require_service(self) -> None:
        """Raise :class:`ConfigError` unless url and key are both set."""
        missing = [
            name
            for name, value in (
                ("supabase.url", self.supabase.url),
                ("supabase.anon_key", self.supabase.anon_key),
            )
            if not value
        ]
        if missing:
            raise ConfigError(f"Missing configuration: {', '.join(missing)}")


_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


def _coerce_bool(value: object) -> bool:
    """Accept YAML booleans, 0/1, and quoted true/false spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        word = value.strip().lower()
        if word in _TRUE_WORDS:
            return True
        if word in _FALSE_WORDS:
            return False
    raise ValueError(f"not a boolean: {value!r}")


def _apply_section(target: object, data: object) -> None:
    """Copy known keys from *data* onto dataclass *target*, coercing types."""
    if not isinstance(data, dict):
        return
    for key, value in data.items():
        if not hasattr(target, key) or value is None:
            continue
        current = getattr(target, key)
        if isinstance(current, bool):
            setattr(target, key, _coerce_bool(value))
        elif isinstance(current, int):
            setattr(target, key, int(value))
        else:
            setattr(target, key, str(value))


def load_preferences(
    path: Path | None = None, env: dict[str, str] | None = None
) -> Preferences:
    """Load configuration from YAML, then apply environment overrides."""
    path = path or CONFIG_PATH
    env = os.environ if env is None else env
    prefs = Preferences()

    if path.exists():
        try:
            data = yaml.safe_load(path.read_text()) or {}
            if isinstance(data, dict):
                _apply_section(prefs.supabase, data.get("supabase"))
                _apply_section(prefs.auth, data.get("auth"))
                _apply_section(prefs.display, data.get("display"))
        except (OSError, yaml.YAMLError, TypeError, ValueError):
            logger.warning("ignoring invalid config at %s", path, exc_info=True)
            prefs = Preferences()
    else:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(_DEFAULT_YAML)
        except OSError:
            logger.debug("could not write default config to %s", path, exc_info=True)

    if prefs.display.theme not in THEME_NAMES:
        prefs.display.theme = "dark"

    if env.get("SUPABASE_URL"):
        prefs.supabase.url = env["SUPABASE_URL"]
    if env.get("SUPABASE_ANON_KEY"):
        prefs.supabase.anon_key = env["SUPABASE_ANON_KEY"]

    return prefs


def save_theme_name(name: str, path: Path | None = None) -> None:
    """Persist the display theme.

    Surgically updates only the theme line, preserving the rest of the
    file (including user comments) as-is.
    """
    path = path or CONFIG_PATH
    try:
        if path.exists():
            text = path.read_text()
        else:
            path.parent.mkdir(parents=True, exist_ok=True)
            text = _DEFAULT_YAML

        value = f'"{name}"'
        if re.search(r"^\s+theme:", text, re.MULTILINE):
            text = re.sub(
                r'^(\s+theme:)\s*(?:"[^"]*"|\S+)(.*?)$',
                rf"\1 {value}\2",
                text,
                count=1,
                flags=re.MULTILINE,
            )
        elif re.search(r"^display:", text, re.MULTILINE):
            text = re.sub(
                r"^(display:.*)$",
                f"\\1\n  theme: {value}",
                text,
                count=1,
                flags=re.MULTILINE,
            )
        else:
            text = text.rstrip() + f"\n\ndisplay:\n  theme: {value}\n"

        path.write_text(text)
    except OSError:
        logger.debug("failed to save theme to %s", path, exc_info=True)
