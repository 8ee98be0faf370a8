"""
Configuration helpers for the Taurus AI services.

This module centralizes backend selection, credential loading, timeouts and
limits for both the session broker and the Hedera tool server. No secrets are
stored in the repository; keys are read from environment or a local file if
present.
"""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

# External chat backend
DEFAULT_BACKEND_URL = os.getenv("OPENCODE_URL", "http://127.0.0.1:4096")
BACKEND_PROBE_PATH = "/api/v1/config"


def _load_float(env_var: str, default: float) -> float:
    raw_value = os.getenv(env_var)
    if raw_value:
        try:
            return float(raw_value)
        except ValueError:
            return default
    return default


def _load_int(env_var: str, default: int) -> int:
    raw_value = os.getenv(env_var)
    if raw_value:
        try:
            parsed = int(raw_value)
        except ValueError:
            return default
        return parsed if parsed > 0 else default
    return default


def _load_rate_map(env_var: str) -> Dict[str, float]:
    """Parse ``name=qps,name=qps``; malformed or non-positive entries are skipped."""
    limits: Dict[str, float] = {}
    for entry in (os.getenv(env_var) or "").split(","):
        key, sep, raw_rate = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            continue
        try:
            rate = float(raw_rate)
        except ValueError:
            continue
        if math.isfinite(rate) and rate > 0:
            limits[key] = rate
    return limits


DEFAULT_PROBE_TIMEOUT = _load_float("OPENCODE_PROBE_TIMEOUT", 3.0)
DEFAULT_BACKEND_TIMEOUT = _load_float("OPENCODE_HTTP_TIMEOUT", 30.0)

# Model provider
API_KEY_ENV_VAR = "ANTHROPIC_API_KEY"
API_KEY_FILE_ENV_VAR = "ANTHROPIC_API_KEY_FILE"
DEFAULT_MODEL = os.getenv("TAURUS_DEFAULT_MODEL", "claude-sonnet-4-20250514")
DEFAULT_MAX_TOKENS = 4096

# Hedera network
MIRROR_NODES: Dict[str, str] = {
    "mainnet": "https://mainnet-public.mirrornode.hedera.com",
    "testnet": "https://testnet.mirrornode.hedera.com",
    "previewnet": "https://previewnet.mirrornode.hedera.com",
    "localnet": "http://localhost:5551",
}
DEFAULT_NETWORK = os.getenv("HEDERA_NETWORK", "testnet")
DEFAULT_HTTP_TIMEOUT = _load_float("HEDERA_HTTP_TIMEOUT", 10.0)

# Limits
DEFAULT_EVENT_QUEUE_SIZE = _load_int("TAURUS_EVENT_QUEUE_SIZE", 256)
DEFAULT_RATE_LIMIT_QPS = _load_float("TAURUS_RATE_LIMIT_QPS", 5.0)
PER_TOOL_RATE_LIMITS = _load_rate_map("TAURUS_TOOL_RATE_LIMITS")

# HTTP app
SERVER_HOST = os.getenv("HOST", "0.0.0.0")
SERVER_PORT = _load_int("PORT", 3001)

LOG_LEVEL = os.getenv("TAURUS_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("TAURUS_LOG_FORMAT", "json")  # json or plain


def load_api_key() -> Optional[str]:
    """
    Load the model provider API key from environment or a local file.

    Returns:
        The API key string if available, otherwise None. The key is never logged
        or returned to callers.
    """
    env_key = os.getenv(API_KEY_ENV_VAR)
    if env_key:
        return env_key.strip()

    key_path = os.getenv(API_KEY_FILE_ENV_VAR)
    if key_path:
        path = Path(key_path)
        if path.is_file():
            return path.read_text(encoding="utf-8").strip() or None

    return None


def resolve_mirror_node_url(network: str, override: Optional[str] = None) -> str:
    """Pick the mirror node for a network unless an explicit URL is configured."""
    if override:
        return override.rstrip("/")
    return MIRROR_NODES.get(network.lower(), MIRROR_NODES["testnet"])


def _optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    return value.strip() or None


@dataclass(slots=True)
class TaurusConfig:
    """Runtime configuration for the broker, the tool server and the HTTP app."""

    backend_url: str = DEFAULT_BACKEND_URL
    backend_probe_path: str = BACKEND_PROBE_PATH
    backend_probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    backend_timeout: float = DEFAULT_BACKEND_TIMEOUT
    anthropic_api_key: Optional[str] = load_api_key()
    default_model: str = DEFAULT_MODEL
    max_tokens: int = DEFAULT_MAX_TOKENS
    hedera_network: str = DEFAULT_NETWORK
    operator_account_id: Optional[str] = _optional_env("HEDERA_OPERATOR_ID")
    operator_private_key: Optional[str] = _optional_env("HEDERA_OPERATOR_KEY")
    mirror_node_url: Optional[str] = _optional_env("HEDERA_MIRROR_NODE")
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    event_queue_size: int = DEFAULT_EVENT_QUEUE_SIZE
    rate_limit_qps: float = DEFAULT_RATE_LIMIT_QPS
    server_host: str = SERVER_HOST
    server_port: int = SERVER_PORT
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    per_tool_rate_limits: Dict[str, float] = field(default_factory=lambda: dict(PER_TOOL_RATE_LIMITS))

    @property
    def has_operator(self) -> bool:
        return bool(self.operator_account_id and self.operator_private_key)

    @property
    def resolved_mirror_node_url(self) -> str:
        return resolve_mirror_node_url(self.hedera_network, self.mirror_node_url)


default_config = TaurusConfig()
