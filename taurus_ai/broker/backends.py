"""
Session backends.

``ProxiedBackend`` forwards every operation to the external chat backend;
``StandaloneBackend`` keeps sessions in memory and runs completions itself.
The broker holds exactly one of them, chosen at startup.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from taurus_ai.broker.completion import AnthropicCompletionClient
from taurus_ai.broker.errors import PromptRejectedError
from taurus_ai.broker.models import (
    DEFAULT_SESSION_TITLE,
    Message,
    Part,
    PromptOptions,
    Session,
    new_id,
)
from taurus_ai.broker.opencode_client import OpencodeClient
from taurus_ai.broker.store import SessionStore

logger = logging.getLogger(__name__)

PROXIED = "proxied"
STANDALONE = "standalone"


class SessionBackend:
    """Operations shared by both modes."""

    mode: str = ""

    async def list_sessions(self) -> List[Session]:
        raise NotImplementedError

    async def create_session(self, title: Optional[str] = None) -> Session:
        raise NotImplementedError

    async def get_session(self, session_id: str) -> Session:
        raise NotImplementedError

    async def delete_session(self, session_id: str) -> bool:
        raise NotImplementedError

    async def get_messages(self, session_id: str) -> List[Message]:
        raise NotImplementedError

    async def prompt(self, session_id: str, parts: List[Part], options: PromptOptions) -> Message:
        raise NotImplementedError

    async def prompt_async(self, session_id: str, parts: List[Part], options: PromptOptions) -> None:
        raise NotImplementedError

    async def abort_session(self, session_id: str) -> bool:
        raise NotImplementedError

    def subscribe(self) -> AsyncIterator[Dict[str, Any]]:
        raise NotImplementedError

    async def aclose(self) -> None:
        return None


class ProxiedBackend(SessionBackend):
    mode = PROXIED

    def __init__(self, client: OpencodeClient) -> None:
        self.client = client

    async def list_sessions(self) -> List[Session]:
        return [Session.from_dict(item) for item in await self.client.list_sessions() if isinstance(item, dict)]

    async def create_session(self, title: Optional[str] = None) -> Session:
        return Session.from_dict(await self.client.create_session(title or DEFAULT_SESSION_TITLE))

    async def get_session(self, session_id: str) -> Session:
        return Session.from_dict(await self.client.get_session(session_id))

    async def delete_session(self, session_id: str) -> bool:
        return await self.client.delete_session(session_id)

    async def get_messages(self, session_id: str) -> List[Message]:
        return [Message.from_dict(item) for item in await self.client.get_messages(session_id) if isinstance(item, dict)]

    @staticmethod
    def _prompt_body(parts: List[Part], options: PromptOptions) -> Dict[str, Any]:
        body: Dict[str, Any] = {"parts": [part.to_dict() for part in parts]}
        body.update(options.to_body())
        return body

    async def prompt(self, session_id: str, parts: List[Part], options: PromptOptions) -> Message:
        return Message.from_dict(await self.client.prompt(session_id, self._prompt_body(parts, options)))

    async def prompt_async(self, session_id: str, parts: List[Part], options: PromptOptions) -> None:
        await self.client.prompt_async(session_id, self._prompt_body(parts, options))

    async def abort_session(self, session_id: str) -> bool:
        return await self.client.abort(session_id)

    def subscribe(self) -> AsyncIterator[Dict[str, Any]]:
        return self.client.events()

    async def aclose(self) -> None:
        await self.client.aclose()


class StandaloneBackend(SessionBackend):
    """
    In-process sessions with direct model completions.

    ``prompt_async`` runs the turn to completion before returning, and
    ``abort_session`` has nothing to cancel; both are part of this mode's
    observable contract.
    """

    mode = STANDALONE

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        completion: Optional[AnthropicCompletionClient] = None,
    ) -> None:
        self.store = store if store is not None else SessionStore()
        self.completion = completion

    async def list_sessions(self) -> List[Session]:
        return self.store.list_sessions()

    async def create_session(self, title: Optional[str] = None) -> Session:
        return self.store.create_session(title)

    async def get_session(self, session_id: str) -> Session:
        return self.store.get_session(session_id)

    async def delete_session(self, session_id: str) -> bool:
        return self.store.delete_session(session_id)

    async def get_messages(self, session_id: str) -> List[Message]:
        return self.store.get_messages(session_id)

    async def prompt(self, session_id: str, parts: List[Part], options: PromptOptions) -> Message:
        if self.completion is None:
            raise PromptRejectedError(
                "Model provider not configured. Set ANTHROPIC_API_KEY to enable standalone prompts.",
                status_code=400,
            )
        self.store.get_session(session_id)

        user_message = Message(
            id=new_id(),
            role="user",
            session_id=session_id,
            parts=[Part(type=part.type, text=part.text, tool=part.tool) for part in parts],
        )
        history = self.store.append_message(session_id, user_message)
        if options.no_reply:
            return user_message

        turns = [(message.role, message.text) for message in history]
        model = options.model.model_id if options.model and options.model.model_id else None
        segments = await self.completion.complete(turns, model)
        assistant_text = "".join(segments)

        assistant_message = Message(
            id=new_id(),
            role="assistant",
            session_id=session_id,
            parts=[Part(type="text", text=assistant_text)],
            raw={"content": assistant_text},
        )
        self.store.append_message(session_id, assistant_message)
        self.store.touch(session_id)
        return assistant_message

    async def prompt_async(self, session_id: str, parts: List[Part], options: PromptOptions) -> None:
        await self.prompt(session_id, parts, options)

    async def abort_session(self, session_id: str) -> bool:
        return True

    async def subscribe(self) -> AsyncIterator[Dict[str, Any]]:
        # No live event source in this mode.
        return
        yield

    async def aclose(self) -> None:
        if self.completion is not None:
            await self.completion.aclose()
