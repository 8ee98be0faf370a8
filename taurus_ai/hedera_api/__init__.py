"""HTTP client wrappers for the Hedera mirror node."""

from .client import (
    CapabilityUnavailableError,
    EntityNotFoundError,
    HederaApiError,
    HederaClient,
    MirrorNodeUnreachableError,
    OperatorNotConfiguredError,
    default_client,
)

__all__ = [
    "HederaClient",
    "HederaApiError",
    "EntityNotFoundError",
    "MirrorNodeUnreachableError",
    "OperatorNotConfiguredError",
    "CapabilityUnavailableError",
    "default_client",
]
