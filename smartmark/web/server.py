"""FastAPI app that receives the OAuth provider's redirect."""

from __future__ import annotations

import html
import logging

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse

from ..core.session_gate import SessionGate
from ..errors import RemoteError

logger = logging.getLogger(__name__)

_PAGE = """\
<!doctype html>
<html>
<head><meta charset="utf-8"><title>SmartMark</title></head>
<body style="font-family: sans-serif; background: #0f172a; color: #e2e8f0;
             display: flex; align-items: center; justify-content: center;
             min-height: 100vh; margin: 0">
  <div style="text-align: center">
    <h1>Smart<span style="color: #818cf8">Mark</span></h1>
    <p id="message">{message}</p>
  </div>
</body>
</html>
"""


def _page(message: str, status_code: int = 200) -> HTMLResponse:
    return HTMLResponse(
        content=_PAGE.format(message=html.escape(message)), status_code=status_code
    )


def create_app(gate: SessionGate) -> FastAPI:
    """Create the callback app bound to *gate*."""
    app = FastAPI(title="SmartMark sign-in", docs_url=None, redoc_url=None)

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        state = "signed in" if gate.is_authenticated else "waiting for sign-in"
        return f"SmartMark callback listener: {state}"

    @app.get("/auth/callback", response_class=HTMLResponse)
    async def auth_callback(
        code: str | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ) -> HTMLResponse:
        """Finish the OAuth flow started by ``SessionGate.login``."""
        if error:
            logger.warning(
                "sign-in rejected by provider: %s %s", error, error_description
            )
            return _page(f"Sign-in failed: {error_description or error}", 400)
        if not code:
            return _page("Sign-in failed: no authorization code received.", 400)
        try:
            user = await gate.complete_login(code)
        except RemoteError as exc:
            logger.error("code exchange failed: %s", exc)
            return _page(f"Sign-in failed: {exc.message}", 502)
        who = user.email or "your account"
        return _page(f"Signed in as {who}. You can close this tab.")

    return app
