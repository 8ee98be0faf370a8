"""Session, message and event records shared by both broker backends."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_SESSION_TITLE = "New Chat"
PART_TYPES = ("text", "tool", "file")
ROLES = ("user", "assistant")


def now_ms() -> int:
    return int(time.time() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass(slots=True)
class Session:
    id: str
    title: Optional[str] = None
    created: int = 0
    updated: int = 0
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def new(cls, title: Optional[str] = None) -> "Session":
        stamp = now_ms()
        return cls(id=new_id(), title=title or DEFAULT_SESSION_TITLE, created=stamp, updated=stamp)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        times = data.get("time") or {}
        return cls(
            id=str(data.get("id", "")),
            title=data.get("title"),
            created=int(times.get("created") or 0),
            updated=int(times.get("updated") or 0),
            raw=dict(data),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload.update(
            {
                "id": self.id,
                "title": self.title,
                "time": {"created": self.created, "updated": self.updated},
            }
        )
        return payload


@dataclass(slots=True)
class Part:
    type: str = "text"
    text: Optional[str] = None
    tool: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Part":
        part_type = data.get("type") or "text"
        return cls(type=str(part_type), text=data.get("text"), tool=data.get("tool"), raw=dict(data))

    def to_dict(self) -> Dict[str, Any]:
        payload = dict(self.raw)
        payload["type"] = self.type
        if self.text is not None:
            payload["text"] = self.text
        if self.tool is not None:
            payload["tool"] = self.tool
        return payload


@dataclass(slots=True)
class Message:
    id: str
    role: str
    session_id: str
    parts: List[Part] = field(default_factory=list)
    raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def text(self) -> str:
        """Concatenated text of all parts; non-text parts contribute nothing."""
        return "".join(part.text or "" for part in self.parts)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Message":
        info = data.get("info") or {}
        parts = [Part.from_dict(item) for item in data.get("parts") or [] if isinstance(item, dict)]
        return cls(
            id=str(info.get("id", "")),
            role=str(info.get("role", "assistant")),
            session_id=str(info.get("sessionID", "")),
            parts=parts,
            raw=dict(info),
        )

    def to_dict(self) -> Dict[str, Any]:
        info = dict(self.raw)
        info.update({"id": self.id, "role": self.role, "sessionID": self.session_id})
        return {"info": info, "parts": [part.to_dict() for part in self.parts]}


@dataclass(slots=True)
class ModelRef:
    provider_id: str
    model_id: str

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional["ModelRef"]:
        if not data:
            return None
        return cls(provider_id=str(data.get("providerID", "")), model_id=str(data.get("modelID", "")))

    def to_dict(self) -> Dict[str, str]:
        return {"providerID": self.provider_id, "modelID": self.model_id}


@dataclass(slots=True)
class PromptOptions:
    model: Optional[ModelRef] = None
    agent: Optional[str] = None
    no_reply: bool = False

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.model is not None:
            body["model"] = self.model.to_dict()
        if self.agent:
            body["agent"] = self.agent
        if self.no_reply:
            body["noReply"] = True
        return body


def _as_session_id(value: Any) -> Optional[str]:
    # Integer ids are stringified; any other non-string value means unscoped.
    if isinstance(value, str):
        return value or None
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return None


@dataclass(slots=True)
class Event:
    """Transient upstream event; only ``type`` and ``properties`` are interpreted."""

    type: str
    properties: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        properties = data.get("properties")
        return cls(
            type=str(data.get("type", "")),
            properties=properties if isinstance(properties, dict) else {},
        )

    @property
    def session_id(self) -> Optional[str]:
        direct = _as_session_id(self.properties.get("sessionID"))
        if direct:
            return direct
        part = self.properties.get("part")
        if isinstance(part, dict):
            return _as_session_id(part.get("sessionID"))
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "properties": self.properties}


def parts_from_payload(parts: Any) -> List[Part]:
    """Coerce request-body parts into ``Part`` records, dropping non-objects."""
    if not isinstance(parts, list):
        return []
    return [Part.from_dict(item) for item in parts if isinstance(item, dict)]
