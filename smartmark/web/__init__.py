"""Local OAuth callback receiver for SmartMark."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import uvicorn

    from ..core.session_gate import SessionGate


def create_server(gate: SessionGate, host: str, port: int) -> uvicorn.Server:
    """Build (but do not start) the uvicorn server for the callback app.

    The caller awaits ``server.serve()`` on its own event loop so the code
    exchange shares the loop with the rest of the app; set
    ``server.should_exit`` to stop it.
    """
    import uvicorn

    from .server import create_app

    config = uvicorn.Config(
        create_app(gate),
        host=host,
        port=port,
        log_level="warning",
        access_log=False,
        lifespan="off",
    )
    return uvicorn.Server(config)
