"""FastAPI application wiring the session broker, event streams and the Hedera tool gateway."""

from __future__ import annotations

import json
import logging
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, Field

from taurus_ai import __version__
from taurus_ai.broker import (
    BackendUnavailableError,
    BrokerError,
    BrokerNotInitializedError,
    EventSubscription,
    ModelRef,
    PromptOptions,
    PromptRejectedError,
    SessionBroker,
    SessionNotFoundError,
    parts_from_payload,
)
from taurus_ai.broker.models import now_ms
from taurus_ai.config import default_config
from taurus_ai.hedera_api import HederaApiError, default_client
from taurus_ai.logging_setup import configure_logging
from taurus_ai.mcp import (
    CALL_METHODS,
    INVALID_REQUEST,
    LIST_METHODS,
    PARSE_ERROR,
    McpDispatcher,
    extract_tool_call,
    jsonrpc_error_payload,
)
from taurus_ai.metrics import default_metrics
from taurus_ai.rate_limiter import PerKeyRateLimiter
from taurus_ai.tools import HederaToolExecutor

configure_logging(default_config)
logger = logging.getLogger(__name__)

rate_limiter = PerKeyRateLimiter(
    rate_per_sec=default_config.rate_limit_qps,
    per_tool=default_config.per_tool_rate_limits,
)
broker = SessionBroker(default_config)
dispatcher = McpDispatcher(HederaToolExecutor(default_client))

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


@asynccontextmanager
async def lifespan(_app: FastAPI):
    # Startup
    mode = await broker.initialize()
    logger.info("Session broker ready mode=%s", mode)
    try:
        await default_client.connect()
    except HederaApiError as exc:
        logger.warning("Mirror node check failed: %s", exc, extra={"error": str(exc)})
    yield
    # Shutdown
    await broker.shutdown()
    await default_client.aclose()


app = FastAPI(
    title="Taurus AI",
    description="Chat sessions with an AI assistant plus Hedera tools over JSON-RPC.",
    version=__version__,
    lifespan=lifespan,
)


@app.middleware("http")
async def add_request_context(request: Request, call_next):
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id
    start = time.time()
    default_metrics.incr_request()
    response = await call_next(request)
    duration_ms = (time.time() - start) * 1000
    default_metrics.record_duration(request_id, duration_ms)
    response.headers["X-Request-ID"] = request_id
    return response


def _status_for(exc: BrokerError) -> int:
    if isinstance(exc, SessionNotFoundError):
        return 404
    if isinstance(exc, PromptRejectedError):
        return 400
    if isinstance(exc, (BackendUnavailableError, BrokerNotInitializedError)):
        return 503
    return 500


@app.exception_handler(BrokerError)
async def broker_error_handler(request: Request, exc: BrokerError) -> JSONResponse:
    status_code = _status_for(exc)
    request_id = getattr(request.state, "request_id", None)
    log = logger.error if status_code >= 500 else logger.info
    log(
        "broker outcome=error status=%s error=%s request_id=%s",
        status_code,
        exc,
        request_id,
        extra={"request_id": request_id, "error": str(exc)},
    )
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


async def _enforce_rate_limit(key: str) -> Optional[JSONResponse]:
    allowed = await rate_limiter.allow(key)
    if not allowed:
        logger.warning("tool=%s outcome=rate_limited", key, extra={"tool": key})
        default_metrics.incr_rate_limited()
        return JSONResponse(
            status_code=429,
            content={"jsonrpc": "2.0", "error": {"code": 429, "message": "Rate limit exceeded"}},
        )
    return None


class CreateSessionBody(BaseModel):
    title: Optional[str] = None


class PromptBody(BaseModel):
    parts: List[Dict[str, Any]] = Field(default_factory=list)
    model: Optional[Dict[str, str]] = None
    agent: Optional[str] = None
    noReply: bool = False

    def options(self) -> PromptOptions:
        return PromptOptions(model=ModelRef.from_dict(self.model), agent=self.agent, no_reply=self.noReply)


@app.get("/health")
async def health() -> JSONResponse:
    """Lightweight health endpoint for monitoring."""
    return JSONResponse(content={"status": "ok", "timestamp": now_ms(), "broker": broker.initialized})


@app.get("/status")
async def status() -> JSONResponse:
    return JSONResponse(
        content={
            "mode": broker.mode,
            "backendUrl": default_config.backend_url,
            "hedera": {
                "network": default_config.hedera_network,
                "mirrorNodeUrl": default_client.mirror_node_url,
                "operatorAccountId": default_config.operator_account_id,
                "connected": default_client.is_connected,
            },
        }
    )


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Return in-process metrics snapshot."""
    return JSONResponse(content=default_metrics.snapshot())


# Sessions


@app.get("/api/session")
async def list_sessions() -> Dict[str, Any]:
    sessions = await broker.list_sessions()
    return {"sessions": [session.to_dict() for session in sessions]}


@app.post("/api/session")
async def create_session(body: Optional[CreateSessionBody] = None) -> Dict[str, Any]:
    session = await broker.create_session(body.title if body else None)
    return {"session": session.to_dict()}


# Registered before /api/session/{session_id} so "events" is not taken as an id.
@app.get("/api/session/events")
async def all_session_events() -> StreamingResponse:
    subscription = broker.events()
    return _sse_response(subscription, {"type": "connected"})


@app.get("/api/session/{session_id}")
async def get_session(session_id: str) -> Dict[str, Any]:
    session = await broker.get_session(session_id)
    return {"session": session.to_dict()}


@app.delete("/api/session/{session_id}")
async def delete_session(session_id: str) -> Dict[str, Any]:
    await broker.delete_session(session_id)
    return {"success": True}


@app.get("/api/session/{session_id}/messages")
async def get_messages(session_id: str) -> Dict[str, Any]:
    messages = await broker.get_messages(session_id)
    return {"messages": [message.to_dict() for message in messages]}


@app.post("/api/session/{session_id}/prompt")
async def prompt(session_id: str, body: PromptBody) -> Any:
    limited = await _enforce_rate_limit("prompt")
    if limited:
        return limited
    message = await broker.prompt(session_id, parts_from_payload(body.parts), body.options())
    return message.to_dict()


@app.post("/api/session/{session_id}/prompt/async")
async def prompt_async(session_id: str, body: PromptBody) -> Any:
    limited = await _enforce_rate_limit("prompt")
    if limited:
        return limited
    await broker.prompt_async(session_id, parts_from_payload(body.parts), body.options())
    return {"success": True}


@app.post("/api/session/{session_id}/abort")
async def abort_session(session_id: str) -> Dict[str, Any]:
    await broker.abort_session(session_id)
    return {"success": True}


@app.get("/api/session/{session_id}/events")
async def session_events(session_id: str) -> StreamingResponse:
    subscription = broker.events(session_id)
    return _sse_response(subscription, {"type": "connected", "sessionId": session_id})


def _sse_frame(payload: Dict[str, Any]) -> str:
    return f"data: {json.dumps(payload)}\n\n"


def _sse_response(subscription: EventSubscription, initial: Dict[str, Any]) -> StreamingResponse:
    return StreamingResponse(
        _event_stream(subscription, initial),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
    )


async def _event_stream(subscription: EventSubscription, initial: Dict[str, Any]) -> AsyncIterator[str]:
    try:
        yield _sse_frame(initial)
        async for event in subscription:
            yield _sse_frame(event)
        if subscription.error is not None:
            yield _sse_frame({"type": "error", "message": "Stream error"})
        elif subscription.dropped:
            yield _sse_frame({"type": "error", "message": "Subscriber fell behind"})
    finally:
        await subscription.aclose()


# Tool gateway


@app.post("/mcp")
async def mcp_gateway(request: Request) -> Response:
    """
    JSON-RPC gateway for the Hedera tools.

    Supported methods:
      - initialize
      - tools/list (alias list_tools)
      - tools/call (alias call_tool)
    """
    request_id = getattr(request.state, "request_id", None)
    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content=jsonrpc_error_payload(None, PARSE_ERROR, "Parse error"))
    if not isinstance(body, dict):
        return JSONResponse(
            status_code=400, content=jsonrpc_error_payload(None, INVALID_REQUEST, "Invalid request")
        )

    method = body.get("method")
    params = body.get("params")
    if method in CALL_METHODS and isinstance(params, dict):
        tool_name, _ = extract_tool_call(params)
        limited = await _enforce_rate_limit(tool_name if isinstance(tool_name, str) and tool_name else "call_tool")
        if limited:
            return limited
    elif method in LIST_METHODS:
        limited = await _enforce_rate_limit("list_tools")
        if limited:
            return limited

    payload = await dispatcher.handle_request(body)
    logger.debug(
        "mcp method=%s id=%s outcome=%s",
        method,
        body.get("id"),
        "notification" if payload is None else ("error" if "error" in payload else "success"),
        extra={"request_id": request_id},
    )
    if payload is None:
        return Response(status_code=204)
    return JSONResponse(content=payload)


# Run with: uvicorn taurus_ai.server:app --reload


def main() -> None:
    import uvicorn

    uvicorn.run("taurus_ai.server:app", host=default_config.server_host, port=default_config.server_port)
