"""Session/event broker with proxied and standalone backends."""

from .backends import PROXIED, STANDALONE, ProxiedBackend, SessionBackend, StandaloneBackend
from .broker import SessionBroker
from .errors import (
    BackendRequestError,
    BackendUnavailableError,
    BrokerError,
    BrokerNotInitializedError,
    CompletionFailedError,
    PromptRejectedError,
    SessionNotFoundError,
)
from .events import EventHub, EventSubscription, event_session_id, filter_session_events
from .models import Event, Message, ModelRef, Part, PromptOptions, Session, parts_from_payload
from .store import SessionStore

__all__ = [
    "PROXIED",
    "STANDALONE",
    "ProxiedBackend",
    "SessionBackend",
    "StandaloneBackend",
    "SessionBroker",
    "BrokerError",
    "BrokerNotInitializedError",
    "BackendUnavailableError",
    "BackendRequestError",
    "SessionNotFoundError",
    "PromptRejectedError",
    "CompletionFailedError",
    "EventHub",
    "EventSubscription",
    "event_session_id",
    "filter_session_events",
    "Event",
    "Message",
    "ModelRef",
    "Part",
    "PromptOptions",
    "Session",
    "parts_from_payload",
    "SessionStore",
]
