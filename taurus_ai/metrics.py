"""Process-local counters for the HTTP app, the tool gateway, the broker and the event hub."""

from __future__ import annotations

from collections import Counter, deque
from threading import Lock
from typing import Deque, Dict, Tuple

RECENT_DURATIONS = 50


class MetricsRecorder:
    """
    Counters behind ``GET /metrics``.

    Values are per process and never aggregated across workers. Only the
    latest ``recent`` request timings are kept.
    """

    def __init__(self, recent: int = RECENT_DURATIONS) -> None:
        self._lock = Lock()
        self._recent = recent
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._requests = 0
            self._rate_limited = 0
            self._durations: Deque[Tuple[str, float]] = deque(maxlen=self._recent)
            self._tool_outcomes: Counter[Tuple[str, bool]] = Counter()
            self._prompts: Counter[str] = Counter()
            self._subscribers = 0
            self._dropped = 0

    def incr_request(self) -> None:
        with self._lock:
            self._requests += 1

    def record_duration(self, request_id: str, duration_ms: float) -> None:
        with self._lock:
            self._durations.append((request_id, round(duration_ms, 3)))

    def incr_rate_limited(self) -> None:
        with self._lock:
            self._rate_limited += 1

    def record_tool(self, tool: str, *, success: bool) -> None:
        with self._lock:
            self._tool_outcomes[(tool, success)] += 1

    def record_prompt(self, outcome: str) -> None:
        """``outcome`` is one of success, accepted (async prompt) or error."""
        with self._lock:
            self._prompts[outcome] += 1

    def subscriber_opened(self) -> None:
        with self._lock:
            self._subscribers += 1

    def subscriber_closed(self, *, dropped: bool = False) -> None:
        with self._lock:
            self._subscribers = max(0, self._subscribers - 1)
            if dropped:
                self._dropped += 1

    def _tools_by_outcome(self, success: bool) -> Dict[str, int]:
        return {tool: count for (tool, ok), count in self._tool_outcomes.items() if ok is success}

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "requests": self._requests,
                "rate_limited": self._rate_limited,
                "tool_success": self._tools_by_outcome(True),
                "tool_error": self._tools_by_outcome(False),
                "prompts": dict(self._prompts),
                "active_subscribers": self._subscribers,
                "dropped_subscribers": self._dropped,
                "recent_request_durations_ms": dict(self._durations),
            }


default_metrics = MetricsRecorder()
