"""Admin endpoints for the WhatsApp session, with simple token auth."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import HTMLResponse, Response

from gym_membership.adapters.qr_codes import render_qr_svg

if TYPE_CHECKING:
    from gym_membership.containers import AppContainer
    from gym_membership.services.messaging import SessionManager

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/whatsapp", dependencies=[Depends(require_admin)])
async def whatsapp_status(request: Request) -> dict[str, object]:
    """Return the messaging session state."""
    container: AppContainer = request.app.state.container
    return _session_status(container.session_manager)


@router.get("/whatsapp/qr", dependencies=[Depends(require_admin)])
async def whatsapp_qr(request: Request) -> Response:
    """Return the pending login QR code as SVG."""
    container: AppContainer = request.app.state.container
    qr = container.session_manager.latest_qr
    if qr is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No login QR pending"
        )
    return Response(content=render_qr_svg(qr), media_type="image/svg+xml")


@router.post("/whatsapp/reconnect", dependencies=[Depends(require_admin)])
async def whatsapp_reconnect(request: Request) -> dict[str, object]:
    """Start a fresh connection, e.g. after the account was logged out."""
    container: AppContainer = request.app.state.container
    await container.session_manager.initialize()
    return _session_status(container.session_manager)


def _session_status(manager: SessionManager) -> dict[str, object]:
    reconnect = manager.pending_reconnect
    return {
        "state": str(manager.state),
        "awaiting_qr_scan": manager.latest_qr is not None,
        "reconnect_pending": reconnect is not None and not reconnect.done(),
    }


@router.get("/ui", response_class=HTMLResponse)
async def admin_ui() -> HTMLResponse:
    """Minimal admin page showing the session state and login QR."""
    return HTMLResponse(_ADMIN_UI_HTML)


_ADMIN_UI_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Gym Membership Admin</title>
    <style>
      body { font-family: ui-sans-serif, system-ui, sans-serif; margin: 2rem; }
      .row { margin-bottom: 1rem; }
      input { padding: 0.4rem 0.6rem; width: 320px; }
      button { padding: 0.4rem 0.8rem; margin-right: 0.5rem; }
      pre { background: #f6f6f6; padding: 1rem; overflow: auto; }
      #qr svg { width: 280px; height: 280px; }
    </style>
  </head>
  <body>
    <h1>WhatsApp session</h1>
    <div class="row">
      <label>Admin token</label><br />
      <input id="token" type="password" placeholder="X-Admin-Token" />
    </div>
    <div class="row">
      <button onclick="loadStatus()">Status</button>
      <button onclick="loadQr()">Login QR</button>
      <button onclick="reconnect()">Reconnect</button>
    </div>
    <pre id="output">Ready.</pre>
    <div id="qr"></div>
    <script>
      function headers() {
        return { 'X-Admin-Token': document.getElementById('token').value };
      }
      async function show(res) {
        const output = document.getElementById('output');
        if (!res.ok) {
          output.textContent = 'Error: ' + res.status;
          return;
        }
        output.textContent = JSON.stringify(await res.json(), null, 2);
      }
      async function loadStatus() {
        await show(await fetch('/admin/whatsapp', { headers: headers() }));
      }
      async function reconnect() {
        await show(await fetch('/admin/whatsapp/reconnect', {
          method: 'POST', headers: headers()
        }));
      }
      async function loadQr() {
        const res = await fetch('/admin/whatsapp/qr', { headers: headers() });
        const qr = document.getElementById('qr');
        qr.innerHTML = res.ok ? await res.text() : 'No QR pending.';
      }
    </script>
  </body>
</html>
"""
