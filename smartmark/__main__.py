"""Entry point for the SmartMark CLI."""

from __future__ import annotations

import argparse
import socket
import sys
from pathlib import Path

from .errors import ConfigError
from .log import logger, setup_logging
from .preferences import CONFIG_PATH, Preferences, load_preferences

VERSION = "0.1.0"


def _check_supabase() -> bool:
    """Return True if the supabase client library is importable."""
    try:
        import supabase  # noqa: F401

        return True
    except ImportError:
        return False


def _port_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def _run_doctor(prefs: Preferences, config_path: Path) -> None:
    """Print an environment health report and exit."""
    from .persistence.auth_session import SESSION_PATH

    print("SmartMark -- Environment Doctor\n")
    print(f"  Python:   {sys.executable} ({sys.version.split()[0]})")
    print(f"  Config:   {config_path}")
    print()

    all_ok = True

    def _row(ok: bool | None, label: str, detail: str) -> None:
        mark = {True: "[ok]", False: "[!!]", None: "[--]"}[ok]
        print(f"  {mark} {label:24s}  {detail}")

    if _check_supabase():
        import supabase

        _row(True, "supabase library", getattr(supabase, "__version__", "installed"))
    else:
        _row(False, "supabase library", "NOT IMPORTABLE")
        all_ok = False

    if prefs.supabase.url:
        _row(True, "service url", prefs.supabase.url)
    else:
        _row(False, "service url", "not set (supabase.url or $SUPABASE_URL)")
        all_ok = False

    if prefs.supabase.anon_key:
        _row(True, "anon key", f"{prefs.supabase.anon_key[:8]}...")
    else:
        _row(False, "anon key", "not set (supabase.anon_key or $SUPABASE_ANON_KEY)")
        all_ok = False

    auth = prefs.auth
    if _port_free(auth.callback_host, auth.callback_port):
        _row(True, "callback port", auth.redirect_url)
    else:
        _row(False, "callback port", f"{auth.callback_port} is in use")
        all_ok = False

    if SESSION_PATH.exists():
        _row(True, "saved session", str(SESSION_PATH))
    else:
        _row(None, "saved session", "none (you will be asked to sign in)")

    print()
    if all_ok:
        print("  All checks passed.")
    else:
        print(f"  Some checks failed.  Edit {config_path} or set the")
        print("  SUPABASE_URL / SUPABASE_ANON_KEY environment variables.")

    sys.exit(0 if all_ok else 1)


def main(argv: list[str] | None = None) -> None:
    """Run SmartMark."""
    parser = argparse.ArgumentParser(
        prog="smartmark", description="SmartMark bookmark manager"
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"smartmark {VERSION}",
    )
    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Check configuration and environment, then exit",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to config file (default: {CONFIG_PATH})",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="OAuth callback port (overrides auth.callback_port)",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Write debug-level records to the log file",
    )

    args = parser.parse_args(argv)
    log_path = setup_logging(debug=args.debug)

    config_path = args.config or CONFIG_PATH
    prefs = load_preferences(config_path)
    if args.port is not None:
        prefs.auth.callback_port = args.port

    if args.doctor:
        _run_doctor(prefs, config_path)
        return

    try:
        prefs.require_service()
    except ConfigError as exc:
        print(
            f"{exc}\n"
            f"Set them in {config_path} or via SUPABASE_URL / SUPABASE_ANON_KEY,\n"
            "then run 'smartmark --doctor' to check.",
            file=sys.stderr,
        )
        sys.exit(1)

    try:
        from .app import run_app

        run_app(prefs, config_path=config_path)
    except (KeyboardInterrupt, SystemExit):
        pass
    except Exception:
        logger.exception("Fatal error in smartmark")
        print(f"SmartMark crashed; details in {log_path}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
