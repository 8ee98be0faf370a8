"""Thin async client for the external chat backend (opencode server)."""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional
from urllib.parse import quote

import httpx

from taurus_ai.broker.errors import BackendRequestError, BackendUnavailableError, SessionNotFoundError
from taurus_ai.config import TaurusConfig, default_config

logger = logging.getLogger(__name__)


class OpencodeClient:
    def __init__(
        self,
        config: TaurusConfig = default_config,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.base_url = config.backend_url.rstrip("/")
        self._client = async_client
        self._owns_client = async_client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(base_url=self.base_url, timeout=self.config.backend_timeout)
            self._owns_client = True
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def probe(self) -> bool:
        """Return True when the backend answers the config endpoint within the probe timeout."""
        client = self._get_client()
        try:
            response = await client.get(
                self.config.backend_probe_path, timeout=self.config.backend_probe_timeout
            )
        except httpx.RequestError as exc:
            logger.info("Backend probe failed url=%s error=%s", self.base_url, exc.__class__.__name__)
            return False
        return response.is_success

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        session_id: Optional[str] = None,
    ) -> Any:
        client = self._get_client()
        try:
            response = await client.request(method, path, json=json_body)
        except httpx.RequestError as exc:
            logger.warning("Backend unreachable for %s %s", method, path)
            raise BackendUnavailableError(f"Chat backend unreachable at {self.base_url}") from exc

        if response.status_code == 404 and session_id is not None:
            raise SessionNotFoundError(session_id)
        if response.status_code >= 400:
            raise BackendRequestError(
                f"Chat backend returned HTTP {response.status_code} for {method} {path}",
                status_code=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise BackendRequestError(
                f"Chat backend returned a non-JSON body for {method} {path}",
                status_code=response.status_code,
            ) from exc

    @staticmethod
    def _session_path(session_id: str, suffix: str = "") -> str:
        return f"/session/{quote(session_id, safe='')}{suffix}"

    async def list_sessions(self) -> List[Dict[str, Any]]:
        data = await self._request("GET", "/session")
        return data if isinstance(data, list) else []

    async def create_session(self, title: str) -> Dict[str, Any]:
        data = await self._request("POST", "/session", json_body={"title": title})
        if not isinstance(data, dict):
            raise BackendRequestError("Failed to create session")
        return data

    async def get_session(self, session_id: str) -> Dict[str, Any]:
        data = await self._request("GET", self._session_path(session_id), session_id=session_id)
        if not isinstance(data, dict):
            raise SessionNotFoundError(session_id)
        return data

    async def delete_session(self, session_id: str) -> bool:
        data = await self._request("DELETE", self._session_path(session_id), session_id=session_id)
        return bool(data)

    async def get_messages(self, session_id: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", self._session_path(session_id, "/message"), session_id=session_id)
        return data if isinstance(data, list) else []

    async def prompt(self, session_id: str, body: Dict[str, Any]) -> Dict[str, Any]:
        data = await self._request(
            "POST", self._session_path(session_id, "/message"), json_body=body, session_id=session_id
        )
        if not isinstance(data, dict):
            raise BackendRequestError("Failed to send prompt")
        return data

    async def prompt_async(self, session_id: str, body: Dict[str, Any]) -> None:
        await self._request(
            "POST", self._session_path(session_id, "/prompt_async"), json_body=body, session_id=session_id
        )

    async def abort(self, session_id: str) -> bool:
        data = await self._request("POST", self._session_path(session_id, "/abort"), session_id=session_id)
        return bool(data)

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded events from the backend's server-sent event stream until it closes."""
        client = self._get_client()
        timeout = httpx.Timeout(self.config.backend_timeout, read=None)
        try:
            async with client.stream("GET", "/event", timeout=timeout) as response:
                if response.status_code >= 400:
                    raise BackendRequestError(
                        f"Chat backend returned HTTP {response.status_code} for event stream",
                        status_code=response.status_code,
                    )
                async for line in response.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    payload = line[len("data:"):].strip()
                    if not payload:
                        continue
                    try:
                        event = json.loads(payload)
                    except ValueError:
                        logger.debug("Skipping undecodable event frame")
                        continue
                    if isinstance(event, dict):
                        yield event
        except httpx.RequestError as exc:
            raise BackendUnavailableError(f"Event stream from {self.base_url} failed") from exc
