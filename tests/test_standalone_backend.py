import pytest

from taurus_ai.broker.backends import StandaloneBackend
from taurus_ai.broker.errors import CompletionFailedError, PromptRejectedError, SessionNotFoundError
from taurus_ai.broker.models import ModelRef, Part, PromptOptions


class StubCompletion:
    def __init__(self, segments=None, error=None):
        self.segments = segments or ["Hello", " there"]
        self.error = error
        self.calls = []

    async def complete(self, turns, model=None):
        self.calls.append((list(turns), model))
        if self.error:
            raise self.error
        return self.segments

    async def aclose(self):
        return None


@pytest.mark.asyncio
async def test_prompt_builds_history_and_appends_reply():
    completion = StubCompletion()
    backend = StandaloneBackend(completion=completion)
    session = await backend.create_session("chat")
    before = session.updated

    reply = await backend.prompt(
        session.id,
        [Part(type="text", text="Hi "), Part(type="text", text="bot"), Part(type="file")],
        PromptOptions(model=ModelRef(provider_id="anthropic", model_id="claude-test")),
    )

    assert reply.role == "assistant"
    assert reply.text == "Hello there"
    turns, model = completion.calls[0]
    assert turns == [("user", "Hi bot")]
    assert model == "claude-test"
    messages = await backend.get_messages(session.id)
    assert [m.role for m in messages] == ["user", "assistant"]
    assert (await backend.get_session(session.id)).updated >= before


@pytest.mark.asyncio
async def test_second_prompt_sends_full_history():
    completion = StubCompletion(segments=["ok"])
    backend = StandaloneBackend(completion=completion)
    session = await backend.create_session()
    await backend.prompt(session.id, [Part(text="one")], PromptOptions())
    await backend.prompt(session.id, [Part(text="two")], PromptOptions())
    turns, model = completion.calls[1]
    assert turns == [("user", "one"), ("assistant", "ok"), ("user", "two")]
    assert model is None


@pytest.mark.asyncio
async def test_no_reply_appends_only_user_message():
    completion = StubCompletion()
    backend = StandaloneBackend(completion=completion)
    session = await backend.create_session()
    message = await backend.prompt(session.id, [Part(text="remember this")], PromptOptions(no_reply=True))
    assert message.role == "user"
    assert len(await backend.get_messages(session.id)) == 1
    assert completion.calls == []


@pytest.mark.asyncio
async def test_missing_credential_rejects_without_mutation():
    backend = StandaloneBackend(completion=None)
    session = await backend.create_session()
    with pytest.raises(PromptRejectedError):
        await backend.prompt(session.id, [Part(text="hi")], PromptOptions())
    with pytest.raises(PromptRejectedError):
        await backend.prompt(session.id, [Part(text="hi")], PromptOptions(no_reply=True))
    assert await backend.get_messages(session.id) == []


@pytest.mark.asyncio
async def test_prompt_unknown_session():
    backend = StandaloneBackend(completion=StubCompletion())
    with pytest.raises(SessionNotFoundError):
        await backend.prompt("missing", [Part(text="hi")], PromptOptions())


@pytest.mark.asyncio
async def test_completion_failure_keeps_user_message():
    backend = StandaloneBackend(completion=StubCompletion(error=CompletionFailedError("overloaded")))
    session = await backend.create_session()
    with pytest.raises(CompletionFailedError, match="overloaded"):
        await backend.prompt(session.id, [Part(text="hi")], PromptOptions())
    assert [m.role for m in await backend.get_messages(session.id)] == ["user"]


@pytest.mark.asyncio
async def test_prompt_async_completes_before_returning():
    completion = StubCompletion()
    backend = StandaloneBackend(completion=completion)
    session = await backend.create_session()
    assert await backend.prompt_async(session.id, [Part(text="hi")], PromptOptions()) is None
    assert len(await backend.get_messages(session.id)) == 2


@pytest.mark.asyncio
async def test_abort_delete_and_events():
    backend = StandaloneBackend()
    session = await backend.create_session()
    assert await backend.abort_session(session.id) is True
    assert await backend.abort_session("unknown") is True
    assert await backend.delete_session("unknown") is True
    assert await backend.get_messages("unknown") == []
    assert [event async for event in backend.subscribe()] == []
