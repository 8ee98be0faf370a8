import json

import httpx
import pytest

from taurus_ai.broker import (
    PROXIED,
    STANDALONE,
    BackendUnavailableError,
    BrokerNotInitializedError,
    PromptRejectedError,
    SessionBroker,
    SessionNotFoundError,
    StandaloneBackend,
)
from taurus_ai.broker.models import Part, PromptOptions
from taurus_ai.config import TaurusConfig
from taurus_ai.metrics import default_metrics

BACKEND_URL = "http://opencode.test"


def _config(**overrides):
    values = {"backend_url": BACKEND_URL, "anthropic_api_key": None}
    values.update(overrides)
    return TaurusConfig(**values)


def _mock_client(handler):
    return httpx.AsyncClient(base_url=BACKEND_URL, transport=httpx.MockTransport(handler))


def _unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


class FakeOpencode:
    """In-memory stand-in for the external chat backend's HTTP API."""

    def __init__(self):
        self.requests = []
        self.sessions = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        path = request.url.path
        if path == "/api/v1/config":
            return httpx.Response(200, json={})
        if path == "/session" and request.method == "POST":
            body = json.loads(request.content)
            session = {"id": "ses_1", "title": body["title"], "time": {"created": 1, "updated": 2}, "version": "x"}
            self.sessions["ses_1"] = session
            return httpx.Response(200, json=session)
        if path == "/session" and request.method == "GET":
            return httpx.Response(200, json=list(self.sessions.values()))
        if path == "/session/missing":
            return httpx.Response(404, json={"name": "NotFoundError"})
        if path == "/session/ses_1/message" and request.method == "POST":
            body = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "info": {"id": "msg_2", "role": "assistant", "sessionID": "ses_1"},
                    "parts": [{"type": "text", "text": "echo:" + body["parts"][0]["text"], "id": "prt_1"}],
                },
            )
        if path == "/session/ses_1/abort":
            return httpx.Response(200, json=True)
        if path == "/session/ses_1/prompt_async":
            return httpx.Response(204)
        return httpx.Response(500, json={})


@pytest.mark.asyncio
async def test_operations_before_initialize_fail():
    broker = SessionBroker(_config())
    assert not broker.initialized
    with pytest.raises(BrokerNotInitializedError):
        await broker.list_sessions()
    with pytest.raises(BrokerNotInitializedError):
        broker.events()


@pytest.mark.asyncio
async def test_unreachable_backend_selects_standalone():
    broker = SessionBroker(_config(), async_client=_mock_client(_unreachable))
    assert await broker.initialize() == STANDALONE
    assert broker.is_standalone
    session = await broker.create_session()
    assert await broker.get_messages(session.id) == []
    with pytest.raises(PromptRejectedError):
        await broker.prompt(session.id, [Part(text="hi")])
    assert default_metrics.snapshot()["prompts"] == {"error": 1}
    await broker.shutdown()


@pytest.mark.asyncio
async def test_probe_error_status_selects_standalone():
    broker = SessionBroker(_config(), async_client=_mock_client(lambda request: httpx.Response(503)))
    assert await broker.initialize() == STANDALONE


@pytest.mark.asyncio
async def test_reachable_backend_selects_proxied_once():
    fake = FakeOpencode()
    broker = SessionBroker(_config(), async_client=_mock_client(fake))
    assert await broker.initialize() == PROXIED
    assert await broker.initialize() == PROXIED
    assert fake.requests.count(("GET", "/api/v1/config")) == 1
    assert not broker.is_standalone


@pytest.mark.asyncio
async def test_proxied_session_round_trip():
    fake = FakeOpencode()
    broker = SessionBroker(_config(), async_client=_mock_client(fake))
    await broker.initialize()

    session = await broker.create_session()
    assert session.id == "ses_1"
    assert session.title == "New Chat"
    assert session.to_dict()["version"] == "x"
    assert [s.id for s in await broker.list_sessions()] == ["ses_1"]

    reply = await broker.prompt("ses_1", [Part(text="hi")], PromptOptions(agent="build"))
    assert reply.text == "echo:hi"
    assert reply.to_dict()["parts"][0]["id"] == "prt_1"
    assert await broker.prompt_async("ses_1", [Part(text="later")]) is None
    assert await broker.abort_session("ses_1") is True

    with pytest.raises(SessionNotFoundError):
        await broker.get_session("missing")


@pytest.mark.asyncio
async def test_proxied_transport_failure_is_backend_unavailable():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] == 1:
            return httpx.Response(200, json={})
        raise httpx.ConnectError("gone", request=request)

    broker = SessionBroker(_config(), async_client=_mock_client(handler))
    assert await broker.initialize() == PROXIED
    with pytest.raises(BackendUnavailableError):
        await broker.list_sessions()
    # No fail-over after startup.
    assert broker.mode == PROXIED


@pytest.mark.asyncio
async def test_injected_backend_skips_probe():
    broker = SessionBroker(_config(), backend=StandaloneBackend())
    assert broker.initialized
    assert await broker.initialize() == STANDALONE
    subscription = broker.events()
    assert [event async for event in subscription] == []
