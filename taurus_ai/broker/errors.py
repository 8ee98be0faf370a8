"""Error taxonomy for session broker operations."""

from __future__ import annotations

from typing import Optional


class BrokerError(Exception):
    """Base exception for broker errors."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class BrokerNotInitializedError(BrokerError):
    """Raised when a session operation runs before ``initialize``."""


class BackendUnavailableError(BrokerError):
    """Raised when the external chat backend cannot be reached or times out."""


class BackendRequestError(BrokerError):
    """Raised when the backend answers with an unexpected HTTP error."""


class SessionNotFoundError(BrokerError):
    """Raised when a session does not exist."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}", status_code=404)
        self.session_id = session_id


class PromptRejectedError(BrokerError):
    """Raised when a prompt cannot be run, e.g. no model credential is configured."""


class CompletionFailedError(BrokerError):
    """Raised when the model provider call fails; wraps the provider's message."""
