"""HTTP/SSE and stdio bindings for the JSON-RPC dispatcher.

HTTP binding:
  GET  <path>                   opens an event stream; the first event names
                                the session's POST address
  POST <path>?sessionId=<id>    one JSON-RPC message in, its response out
                                (replies are also pushed onto the stream)
  GET  /health                  liveness probe

stdio binding: newline-delimited JSON-RPC on stdin/stdout with a single
implicit session. stdout carries protocol traffic only.
"""

from __future__ import annotations

import asyncio
import json
import sys
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, TextIO

import structlog
import uvicorn
from mcp.types import INVALID_REQUEST, PARSE_ERROR
from starlette.applications import Starlette
from starlette.datastructures import Headers
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse
from starlette.routing import Route

from docscout.dispatcher import SUPPORTED_PROTOCOL_VERSIONS, Dispatcher, failure
from docscout.errors import TransportError

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.types import ASGIApp, Receive, Scope, Send

    from docscout.sessions import Session, SessionRegistry
    from docscout.state import AppState

log = structlog.get_logger()

KEEPALIVE_COMMENT = ": ping\n\n"


class ProtocolVersionMiddleware:
    """Pure ASGI middleware rejecting unknown ``MCP-Protocol-Version`` headers.

    Implemented as pure ASGI (not BaseHTTPMiddleware) so that SSE streaming
    responses are never buffered by the middleware layer.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            headers = Headers(scope=scope)
            proto_version = headers.get("mcp-protocol-version", "")
            if proto_version and proto_version not in SUPPORTED_PROTOCOL_VERSIONS:
                await Response(
                    f"Unsupported protocol version: {proto_version}",
                    status_code=400,
                )(scope, receive, send)
                return

        await self.app(scope, receive, send)


# ---------------------------------------------------------------------------
# HTTP binding
# ---------------------------------------------------------------------------


def format_event(data: str, event: str | None = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {data}\n\n"


async def sse_events(
    session: Session,
    registry: SessionRegistry,
    endpoint_url: str,
    *,
    keepalive_seconds: float,
) -> AsyncIterator[str]:
    """Event stream for one session. The session is closed when the stream ends."""
    try:
        yield format_event(endpoint_url, "endpoint")
        while True:
            try:
                message = await asyncio.wait_for(session.outbox.get(), timeout=keepalive_seconds)
            except TimeoutError:
                yield KEEPALIVE_COMMENT
                continue
            if message is None:
                break
            yield format_event(json.dumps(message), "message")
    finally:
        registry.close(session.id)


async def open_stream(request: Request) -> Response:
    state: AppState = request.app.state.docscout
    session = state.sessions.open()
    endpoint_url = f"{request.url.path}?sessionId={session.id}"
    return StreamingResponse(
        sse_events(
            session,
            state.sessions,
            endpoint_url,
            keepalive_seconds=state.settings.server.keepalive_seconds,
        ),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


async def post_message(request: Request) -> Response:
    state: AppState = request.app.state.docscout
    dispatcher: Dispatcher = request.app.state.dispatcher

    session_id = request.query_params.get("sessionId")
    if not session_id:
        return PlainTextResponse("Missing sessionId parameter", status_code=400)
    try:
        session = state.sessions.get(session_id)
    except TransportError:
        return PlainTextResponse("Session not found", status_code=404)

    try:
        message = json.loads(await request.body())
    except ValueError:
        return JSONResponse(failure(None, PARSE_ERROR, "Parse error"))

    structlog.contextvars.bind_contextvars(session_id=session_id)
    try:
        response = await dispatcher.dispatch(message)
    finally:
        structlog.contextvars.unbind_contextvars("session_id")

    # Mirror replies onto the event stream for clients that only listen there.
    if isinstance(message, dict) and "id" in message and not session.closed:
        session.send(response)
    return JSONResponse(response)


async def health(request: Request) -> Response:
    state: AppState = request.app.state.docscout
    return JSONResponse({"status": "healthy", "sessions": len(state.sessions)})


def build_http_app(state: AppState) -> Starlette:
    path = state.settings.server.path
    app = Starlette(
        routes=[
            Route(path, open_stream, methods=["GET"]),
            Route(path, post_message, methods=["POST"]),
            Route("/health", health, methods=["GET"]),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["Content-Type"],
            ),
            Middleware(ProtocolVersionMiddleware),
        ],
    )
    app.state.docscout = state
    app.state.dispatcher = Dispatcher(state)
    return app


async def run_http_server(state: AppState) -> None:
    """Serve the HTTP binding until uvicorn is asked to exit."""
    settings = state.settings.server
    config = uvicorn.Config(
        build_http_app(state),
        host=settings.host,
        port=settings.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
        timeout_graceful_shutdown=5,
    )
    log.info("http_server_listening", host=settings.host, port=settings.port, path=settings.path)
    try:
        await uvicorn.Server(config).serve()
    finally:
        state.sessions.close_all()


# ---------------------------------------------------------------------------
# stdio binding
# ---------------------------------------------------------------------------


def _wants_reply(message: Any, response: dict[str, Any]) -> bool:
    """Notifications (no ``id``) get no reply unless the envelope itself was bad."""
    if isinstance(message, dict) and "id" not in message:
        return response.get("error", {}).get("code") == INVALID_REQUEST
    return True


async def run_stdio_server(
    state: AppState,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
) -> None:
    """Read newline-delimited JSON-RPC until EOF, dispatching requests concurrently."""
    reader = stdin or sys.stdin
    writer = stdout or sys.stdout
    dispatcher = Dispatcher(state)
    session = state.sessions.open()
    write_lock = asyncio.Lock()
    pending: set[asyncio.Task[None]] = set()

    def _write_line(text: str) -> None:
        writer.write(text + "\n")
        writer.flush()

    async def _reply(payload: dict[str, Any]) -> None:
        async with write_lock:
            await asyncio.to_thread(_write_line, json.dumps(payload))

    async def _handle(line: str) -> None:
        try:
            message = json.loads(line)
        except ValueError:
            await _reply(failure(None, PARSE_ERROR, "Parse error"))
            return
        response = await dispatcher.dispatch(message)
        if _wants_reply(message, response):
            await _reply(response)

    log.info("stdio_server_started", session_id=session.id)
    try:
        while True:
            line = await asyncio.to_thread(reader.readline)
            if not line:
                break
            if not line.strip():
                continue
            task = asyncio.create_task(_handle(line))
            pending.add(task)
            task.add_done_callback(pending.discard)
        if pending:
            await asyncio.gather(*pending)
    finally:
        state.sessions.close(session.id)
        log.info("stdio_server_stopped")
