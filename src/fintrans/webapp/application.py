"""FastAPI frontend for the fintrans demo wallet.

Pages are rendered server side. Every browser gets its own ``device_id`` in
the signed session cookie and its own key space in the SQLite backed storage,
which stands in for the browser's local storage. Transfers are started in the
request and finished in a background task, so the page shows them as pending
until the processor has answered.
"""

from __future__ import annotations

import threading
from datetime import datetime, tzinfo
from html import escape as html_escape
from pathlib import Path
from typing import Dict, Optional, Tuple
from uuid import uuid4

from fastapi import BackgroundTasks, FastAPI, Form, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from starlette.middleware.sessions import SessionMiddleware

from ..api import ApiExporter
from ..client import HttpProcessorClient, LocalProcessorClient, ProcessorClient
from ..config import (
    LOG_FILE,
    PROCESSOR_DELAY_SECONDS,
    PROCESSOR_URL,
    SESSION_SECRET,
    STARTING_BALANCE,
)
from ..exceptions import SignInError, TransferValidationError
from ..models import TransactionDirection, TransactionRecord
from ..money import format_currency
from ..ops import StructuredLogger
from ..processor import TransferProcessor, build_processor_router
from ..storage import NamespacedStorage
from ..stores import ProfileStore, TransactionLogStore
from ..transfers import TransferFlow
from .persistence import SqlStorage, engine


# ---------------------------------------------------------------------------
# FastAPI application setup
# ---------------------------------------------------------------------------
app = FastAPI(title="Financial Trans Demo")
app.add_middleware(
    SessionMiddleware,
    secret_key=SESSION_SECRET,
    same_site="lax",
    max_age=None,
)

logger = StructuredLogger(path=Path(LOG_FILE) if LOG_FILE else None)
processor = TransferProcessor(delay=PROCESSOR_DELAY_SECONDS)
storage_backend = SqlStorage(engine)
exporter = ApiExporter()

app.include_router(build_processor_router(processor, logger=logger))

# Wallets with work in flight, by device. Idle wallets are rebuilt from storage.
_flows: Dict[str, TransferFlow] = {}
_flows_lock = threading.Lock()


def processor_client() -> ProcessorClient:
    if PROCESSOR_URL:
        return HttpProcessorClient(PROCESSOR_URL)
    return LocalProcessorClient(processor)


def device_id(request: Request) -> str:
    current = request.session.get("device_id")
    if not current:
        current = uuid4().hex
        request.session["device_id"] = current
    return current


def device_storage(request: Request) -> NamespacedStorage:
    return NamespacedStorage(storage_backend, device_id(request))


def current_flow(request: Request) -> Optional[TransferFlow]:
    key = device_id(request)
    with _flows_lock:
        cached = _flows.get(key)
    if cached is not None:
        return cached
    storage = device_storage(request)
    profiles = ProfileStore(storage, logger=logger)
    profile = profiles.load()
    if profile is None:
        return None
    flow = TransferFlow(
        profile,
        processor=processor_client(),
        profiles=profiles,
        history=TransactionLogStore(storage, logger=logger),
        logger=logger,
    )
    with _flows_lock:
        return _flows.setdefault(key, flow)


def retain_flow(key: str, flow: TransferFlow) -> None:
    with _flows_lock:
        _flows[key] = flow


def release_idle_flow(key: str, flow: TransferFlow) -> None:
    """Drop ``flow`` from the registry once storage holds all of its state."""

    with _flows_lock:
        if flow.busy or flow.has_pending:
            return
        if _flows.get(key) is flow:
            del _flows[key]


def forget_flow(request: Request) -> None:
    with _flows_lock:
        flow = _flows.pop(device_id(request), None)
    if flow is not None:
        flow.close()


async def settle_transfer(key: str, flow: TransferFlow, record: TransactionRecord) -> None:
    await flow.finish_transfer(record)
    release_idle_flow(key, flow)


def set_notice(request: Request, message: str, kind: str = "info") -> None:
    request.session["notice"] = message
    request.session["notice_kind"] = kind


def pop_notice(request: Request) -> Tuple[Optional[str], str]:
    message = request.session.pop("notice", None)
    kind = request.session.pop("notice_kind", "info")
    return message, kind


# ---------------------------------------------------------------------------
# Rendering helpers
# ---------------------------------------------------------------------------
def format_timestamp(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """Format like ``Oct 18, 2026 4:05 PM`` in ``tz`` (server local time by default)."""

    moment = moment.astimezone(tz)
    hour = moment.hour % 12 or 12
    return f"{moment:%b} {moment.day}, {moment:%Y} {hour}:{moment:%M} {moment:%p}"


def base_styles() -> str:
    return """
:root{ --bg:#f3f4f6; --card:#ffffff; --accent:#0b69ff }
body{ font-family: Inter, system-ui, sans-serif; background:var(--bg); margin:0; padding:20px }
.container{ max-width:900px; margin:0 auto }
header{ display:flex; justify-content:space-between; align-items:center; margin-bottom:16px }
.card{ background:var(--card); padding:16px; border-radius:12px; box-shadow:0 6px 20px rgba(0,0,0,0.06); margin-bottom:12px }
input{ display:block; width:100%; padding:8px; margin:8px 0; border-radius:8px; border:1px solid #ddd; box-sizing:border-box }
button{ padding:8px 12px; border-radius:8px; border:none; background:var(--accent); color:white }
button[disabled]{ opacity:0.5 }
button.secondary{ background:#666; margin-left:12px }
.history{ list-style:none; padding:0 }
.history li{ display:flex; justify-content:space-between; padding:8px 0; border-bottom:1px dashed #eee }
.muted{ color:#666; font-size:13px }
.notice{ padding:8px 12px; border-radius:8px; margin-bottom:12px; background:#e0ecff }
.notice.error{ background:#fde2e2; color:#a40000 }
li.completed{ color:green }
li.pending{ color:orange }
li.failed{ color:red }
"""


def frame(title: str, inner: str, head_extra: str = "") -> str:
    return f"""<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1.0" />
    <title>{html_escape(title)}</title>
    <style>{base_styles()}</style>
    {head_extra}
  </head>
  <body>
    <div class="container">{inner}</div>
  </body>
</html>"""


def render_page(request: Request, title: str, inner: str, head_extra: str = "") -> HTMLResponse:
    message, kind = pop_notice(request)
    notice = ""
    if message:
        notice = f"<div class='notice {html_escape(kind)}'>{html_escape(message)}</div>"
    return HTMLResponse(frame(title, notice + inner, head_extra))


def history_item_html(record: TransactionRecord) -> str:
    if record.direction is TransactionDirection.SENT:
        label, preposition = "Sent", "to"
    else:
        label, preposition = "Received", "from"
    return f"""
      <li class="{record.status.value}">
        <div>
          <div><strong>{label}</strong> {preposition} {html_escape(record.counterparty)}</div>
          <div class="muted">{format_timestamp(record.timestamp)}</div>
        </div>
        <div>
          <div>{format_currency(record.amount)}</div>
          <div class="muted">{record.status.value}</div>
        </div>
      </li>"""


def login_page(request: Request) -> HTMLResponse:
    inner = """
    <div class="card">
      <h2>Sign in (demo)</h2>
      <form method="post" action="/login">
        <label>Name</label>
        <input name="name" autocomplete="name" />
        <label>PIN</label>
        <input name="pin" type="password" inputmode="numeric" />
        <button type="submit">Sign in</button>
      </form>
    </div>
    """
    return render_page(request, "Financial Trans Demo - Sign In", inner)


def home_page(request: Request, flow: TransferFlow) -> HTMLResponse:
    if flow.history:
        items = "".join(history_item_html(record) for record in flow.history)
        history_html = f"<ul class='history'>{items}</ul>"
    else:
        history_html = "<p>No transactions yet.</p>"
    disabled = " disabled" if flow.busy else ""
    inner = f"""
    <header>
      <h1>Welcome, {html_escape(flow.profile.name)}</h1>
      <div>
        <strong>Balance:</strong> {format_currency(flow.balance)}
        <form method="post" action="/logout" style="display:inline">
          <button type="submit" class="secondary">Logout</button>
        </form>
      </div>
    </header>

    <section class="card">
      <h3>Send Money</h3>
      <form method="post" action="/send">
        <input name="recipient" placeholder="Recipient" value="{html_escape(flow.recipient)}" />
        <input name="amount" placeholder="Amount" value="{html_escape(flow.amount_input)}" />
        <button type="submit"{disabled}>Send</button>
      </form>
    </section>

    <section class="card">
      <h3>Transaction History</h3>
      {history_html}
    </section>
    """
    head_extra = "<meta http-equiv='refresh' content='1' />" if flow.has_pending else ""
    return render_page(request, "Financial Trans Demo", inner, head_extra)


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
@app.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    flow = current_flow(request)
    if flow is None:
        return login_page(request)
    response = home_page(request, flow)
    release_idle_flow(device_id(request), flow)
    return response


@app.post("/login")
def login(request: Request, name: str = Form(""), pin: str = Form("")):
    # The PIN is collected for the look of it; the demo does not check it.
    forget_flow(request)
    profiles = ProfileStore(device_storage(request), logger=logger)
    try:
        profiles.sign_in(name, starting_balance=STARTING_BALANCE)
    except SignInError as exc:
        set_notice(request, str(exc), "error")
    return RedirectResponse("/", status_code=302)


@app.post("/logout")
def logout(request: Request):
    forget_flow(request)
    ProfileStore(device_storage(request), logger=logger).sign_out()
    return RedirectResponse("/", status_code=302)


@app.post("/send")
def send(
    request: Request,
    background_tasks: BackgroundTasks,
    recipient: str = Form(""),
    amount: str = Form(""),
):
    flow = current_flow(request)
    if flow is None:
        return RedirectResponse("/", status_code=302)
    try:
        record = flow.start_transfer(recipient, amount)
    except TransferValidationError as exc:
        set_notice(request, str(exc), "error")
        return RedirectResponse("/", status_code=302)
    key = device_id(request)
    retain_flow(key, flow)
    background_tasks.add_task(settle_transfer, key, flow, record)
    set_notice(request, f"Sending {format_currency(record.amount)} to {record.counterparty}.")
    return RedirectResponse("/", status_code=302)


@app.get("/api/wallet")
def wallet(request: Request) -> JSONResponse:
    flow = current_flow(request)
    if flow is None:
        return JSONResponse({"error": "Not signed in"}, status_code=401)
    snapshot = exporter.wallet_snapshot(flow)
    release_idle_flow(device_id(request), flow)
    return JSONResponse(snapshot)


__all__ = [
    "app",
    "current_flow",
    "format_timestamp",
    "logger",
    "processor",
    "processor_client",
    "release_idle_flow",
    "storage_backend",
]
