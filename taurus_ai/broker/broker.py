"""Session broker: picks proxied or standalone mode once and exposes one session API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from taurus_ai.broker.backends import ProxiedBackend, SessionBackend, StandaloneBackend, STANDALONE
from taurus_ai.broker.completion import AnthropicCompletionClient, build_completion_client
from taurus_ai.broker.errors import BrokerNotInitializedError
from taurus_ai.broker.events import EventHub, EventSubscription
from taurus_ai.broker.models import Message, Part, PromptOptions, Session
from taurus_ai.broker.opencode_client import OpencodeClient
from taurus_ai.broker.store import SessionStore
from taurus_ai.config import TaurusConfig, default_config
from taurus_ai.metrics import MetricsRecorder, default_metrics

logger = logging.getLogger(__name__)


class SessionBroker:
    """
    Uniform session API over one backend chosen at ``initialize``.

    The backend probe runs once; there is no fail-over afterwards. Transport
    failures in proxied mode surface as ``BackendUnavailableError`` and are
    never retried here.
    """

    def __init__(
        self,
        config: TaurusConfig = default_config,
        *,
        backend: Optional[SessionBackend] = None,
        async_client: Optional[httpx.AsyncClient] = None,
        completion: Optional[AnthropicCompletionClient] = None,
        store: Optional[SessionStore] = None,
        metrics: MetricsRecorder = default_metrics,
    ) -> None:
        self.config = config
        self.metrics = metrics
        self._backend = backend
        self._async_client = async_client
        self._completion = completion
        self._store = store
        self._hub: Optional[EventHub] = None
        self._init_lock = asyncio.Lock()
        if backend is not None:
            self._hub = self._build_hub(backend)

    @property
    def initialized(self) -> bool:
        return self._backend is not None

    @property
    def mode(self) -> Optional[str]:
        return self._backend.mode if self._backend is not None else None

    @property
    def is_standalone(self) -> bool:
        return self.mode == STANDALONE

    @property
    def backend(self) -> SessionBackend:
        if self._backend is None:
            raise BrokerNotInitializedError("Session broker not initialized. Call initialize() first.")
        return self._backend

    def _build_hub(self, backend: SessionBackend) -> EventHub:
        return EventHub(backend.subscribe, queue_size=self.config.event_queue_size, metrics=self.metrics)

    async def initialize(self) -> str:
        """Probe the external backend and settle the mode. Safe to call more than once."""
        async with self._init_lock:
            if self._backend is not None:
                return self._backend.mode

            client = OpencodeClient(self.config, async_client=self._async_client)
            if await client.probe():
                backend: SessionBackend = ProxiedBackend(client)
                logger.info("Connected to chat backend at %s", client.base_url)
            else:
                await client.aclose()
                completion = self._completion or build_completion_client(self.config)
                backend = StandaloneBackend(self._store, completion)
                if completion is None:
                    logger.warning("Chat backend unavailable and no model credential set; prompts will be rejected")
                else:
                    logger.info("Chat backend unavailable, using standalone mode")

            self._backend = backend
            self._hub = self._build_hub(backend)
            return backend.mode

    async def shutdown(self) -> None:
        if self._hub is not None:
            await self._hub.aclose()
            self._hub = None
        if self._backend is not None:
            await self._backend.aclose()
            self._backend = None

    async def list_sessions(self) -> List[Session]:
        return await self.backend.list_sessions()

    async def create_session(self, title: Optional[str] = None) -> Session:
        return await self.backend.create_session(title)

    async def get_session(self, session_id: str) -> Session:
        return await self.backend.get_session(session_id)

    async def delete_session(self, session_id: str) -> bool:
        return await self.backend.delete_session(session_id)

    async def get_messages(self, session_id: str) -> List[Message]:
        return await self.backend.get_messages(session_id)

    async def prompt(
        self,
        session_id: str,
        parts: List[Part],
        options: Optional[PromptOptions] = None,
    ) -> Message:
        backend = self.backend
        try:
            message = await backend.prompt(session_id, parts, options or PromptOptions())
        except Exception:
            self.metrics.record_prompt("error")
            raise
        self.metrics.record_prompt("success")
        return message

    async def prompt_async(
        self,
        session_id: str,
        parts: List[Part],
        options: Optional[PromptOptions] = None,
    ) -> None:
        """Standalone mode completes the turn before returning."""
        backend = self.backend
        try:
            await backend.prompt_async(session_id, parts, options or PromptOptions())
        except Exception:
            self.metrics.record_prompt("error")
            raise
        self.metrics.record_prompt("accepted")

    async def abort_session(self, session_id: str) -> bool:
        return await self.backend.abort_session(session_id)

    def subscribe_to_events(self) -> AsyncIterator[Dict[str, Any]]:
        """Raw upstream sequence for a single consumer; empty in standalone mode."""
        return self.backend.subscribe()

    def events(self, session_id: Optional[str] = None) -> EventSubscription:
        """Subscribe through the shared fan-out, optionally filtered to one session."""
        if self._hub is None:
            raise BrokerNotInitializedError("Session broker not initialized. Call initialize() first.")
        return self._hub.subscribe(session_id)
