"""
Thin HTTP client for the Hedera mirror node.

Read operations go through the mirror node REST API. Ledger mutations need a
signing capability that is not wired in yet: they check operator credentials
first and then fail with ``CapabilityUnavailableError`` so callers can tell a
missing signer apart from a genuine network failure.
"""

from __future__ import annotations

import base64
import binascii
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from taurus_ai.config import TaurusConfig, default_config

logger = logging.getLogger(__name__)

TINYBARS_PER_HBAR = 100_000_000


class HederaApiError(Exception):
    """Base exception for Hedera client errors."""

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class EntityNotFoundError(HederaApiError):
    """Raised when an account, topic, file or token does not exist."""


class MirrorNodeUnreachableError(HederaApiError):
    """Raised when the mirror node cannot be reached."""


class OperatorNotConfiguredError(HederaApiError):
    """Raised when a mutation is requested without operator credentials."""


class CapabilityUnavailableError(HederaApiError):
    """Raised for operations that are not yet backed by a signing capability."""


def _hbar(tinybars: Any) -> str:
    try:
        return f"{int(tinybars) / TINYBARS_PER_HBAR:.8f}"
    except (TypeError, ValueError):
        return "0.00000000"


def _decode_message(raw: Any) -> str:
    if not isinstance(raw, str):
        return ""
    try:
        return base64.b64decode(raw).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError):
        return raw


class HederaClient:
    """Async client for the Hedera operations exposed as tools."""

    def __init__(
        self,
        config: TaurusConfig | None = None,
        *,
        async_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config or default_config
        self.mirror_node_url = self.config.resolved_mirror_node_url
        self._client: Optional[httpx.AsyncClient] = async_client
        self._owns_client = async_client is None
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.mirror_node_url, timeout=self.config.http_timeout
            )
            self._owns_client = True
        return self._client

    async def connect(self) -> None:
        """Check that the mirror node answers before serving tools."""
        await self._request("/api/v1/network/nodes", action="connect to mirror node")
        self._connected = True
        logger.info("Connected to Hedera %s via %s", self.config.hedera_network, self.mirror_node_url)

    async def aclose(self) -> None:
        self._connected = False
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        path: str,
        *,
        action: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        client = await self._get_client()
        try:
            response = await client.get(path, params=params)
        except httpx.RequestError as exc:
            logger.warning("Mirror node unreachable for path %s", path)
            raise MirrorNodeUnreachableError(f"Failed to {action}: mirror node unreachable") from exc

        if response.status_code == 404:
            raise EntityNotFoundError(
                f"Failed to {action}: not found", code="NOT_FOUND", status_code=404
            )
        if response.status_code >= 400:
            reason = getattr(response, "reason_phrase", "") or f"HTTP {response.status_code}"
            raise HederaApiError(f"Failed to {action}: {reason}", status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise HederaApiError(
                f"Failed to {action}: unexpected response from mirror node",
                status_code=response.status_code,
            ) from exc
        if not isinstance(data, dict):
            raise HederaApiError(
                f"Failed to {action}: unexpected response from mirror node",
                status_code=response.status_code,
            )
        return data

    def _require_operator(self) -> None:
        if not self.config.has_operator:
            raise OperatorNotConfiguredError(
                "Operator account ID and private key are required for transactions. "
                "Set HEDERA_OPERATOR_ID and HEDERA_OPERATOR_KEY environment variables.",
                code="OPERATOR_NOT_CONFIGURED",
            )

    @staticmethod
    def _unavailable(operation: str) -> CapabilityUnavailableError:
        return CapabilityUnavailableError(
            f"{operation} requires a Hedera signing client, which is not configured in this deployment.",
            code="CAPABILITY_UNAVAILABLE",
        )

    # Reads

    async def get_network_info(self) -> Dict[str, Any]:
        """Describe the configured network; no network call involved."""
        return {
            "network": self.config.hedera_network,
            "mirrorNodeUrl": self.mirror_node_url,
            "ledgerId": self.config.hedera_network,
            "operatorAccountId": self.config.operator_account_id,
        }

    async def get_account_balance(self, account_id: str) -> Dict[str, Any]:
        """Return HBAR and token balances for an account."""
        encoded = quote(account_id, safe="")
        data = await self._request(f"/api/v1/accounts/{encoded}", action="get account balance")
        tinybars = (data.get("balance") or {}).get("balance", 0)

        tokens: List[Dict[str, Any]] = []
        try:
            tokens_data = await self._request(
                f"/api/v1/accounts/{encoded}/tokens", action="get account tokens"
            )
        except HederaApiError:
            # Token list is optional for this view.
            logger.warning("Token balance lookup failed for %s", account_id)
            tokens_data = {}
        for entry in tokens_data.get("tokens") or []:
            if not isinstance(entry, dict):
                continue
            tokens.append(
                {
                    "tokenId": entry.get("token_id"),
                    "balance": str(entry.get("balance", 0)),
                    "decimals": entry.get("decimals") or 0,
                }
            )

        return {
            "accountId": account_id,
            "hbars": _hbar(tinybars),
            "hbarsTinybars": str(tinybars),
            "tokens": tokens,
        }

    async def get_account_info(self, account_id: str) -> Dict[str, Any]:
        """Return keys, memo, staking and NFT details for an account."""
        encoded = quote(account_id, safe="")
        data = await self._request(f"/api/v1/accounts/{encoded}", action="get account info")
        tinybars = (data.get("balance") or {}).get("balance", 0)
        staking = data.get("staking_info")
        info: Dict[str, Any] = {
            "accountId": account_id,
            "balance": _hbar(tinybars),
            "balanceTinybars": str(tinybars),
            "isDeleted": bool(data.get("deleted", False)),
            "key": (data.get("key") or {}).get("key", ""),
            "memo": data.get("memo") or "",
            "ownedNfts": data.get("owned_nfts") or 0,
            "maxAutomaticTokenAssociations": data.get("max_automatic_token_associations") or 0,
            "ethereumNonce": data.get("ethereum_nonce") or 0,
        }
        if isinstance(staking, dict):
            info["stakingInfo"] = {
                "declineStakingReward": staking.get("decline_staking_reward"),
                "stakePeriodStart": staking.get("stake_period_start"),
                "pendingReward": str(staking.get("pending_reward") or 0),
                "stakedToMe": str(staking.get("staked_to_me") or 0),
                "stakedAccountId": staking.get("staked_account_id"),
                "stakedNodeId": staking.get("staked_node_id"),
            }
        return info

    async def get_topic_messages(
        self,
        topic_id: str,
        *,
        limit: int = 10,
        sequence_number: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Retrieve consensus messages for a topic, oldest first."""
        encoded = quote(topic_id, safe="")
        params: Dict[str, Any] = {"limit": limit}
        if sequence_number is not None:
            params["sequencenumber"] = f"gte:{sequence_number}"
        data = await self._request(
            f"/api/v1/topics/{encoded}/messages", action="get topic messages", params=params
        )
        return [
            {
                "consensusTimestamp": item.get("consensus_timestamp"),
                "sequenceNumber": item.get("sequence_number"),
                "message": _decode_message(item.get("message")),
                "runningHash": item.get("running_hash"),
                "topicId": topic_id,
            }
            for item in data.get("messages") or []
            if isinstance(item, dict)
        ]

    async def get_file_contents(self, file_id: str) -> Dict[str, Any]:
        """
        Confirm a file exists. The mirror node does not serve file bodies, so
        the contents field only describes what was found.
        """
        encoded = quote(file_id, safe="")
        data = await self._request(f"/api/v1/network/files/{encoded}", action="get file contents")
        contents = ""
        if data.get("file_id"):
            contents = f"File {file_id} exists. Full contents require a Hedera signing client."
        return {"fileId": file_id, "contents": contents}

    # Mutations

    async def create_account(self, *, initial_balance: float = 0, memo: Optional[str] = None) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Account creation")

    async def transfer_hbar(
        self,
        *,
        from_account_id: str,
        to_account_id: str,
        amount: float,
        memo: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("HBAR transfer")

    async def create_token(
        self,
        *,
        name: str,
        symbol: str,
        decimals: int = 0,
        initial_supply: float = 0,
        token_type: str = "FUNGIBLE_COMMON",
        treasury_account_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Token creation")

    async def transfer_token(
        self,
        *,
        token_id: str,
        from_account_id: str,
        to_account_id: str,
        amount: float,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Token transfer")

    async def associate_token(self, *, account_id: str, token_id: str) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Token association")

    async def deploy_contract(
        self,
        *,
        bytecode: str,
        gas: int = 100000,
        constructor_parameters: Optional[str] = None,
        memo: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Contract deployment")

    async def call_contract(
        self,
        *,
        contract_id: str,
        function_name: str,
        function_parameters: Optional[str] = None,
        gas: int = 100000,
        payable_amount: float = 0,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Contract call")

    async def query_contract(
        self,
        *,
        contract_id: str,
        function_name: str,
        function_parameters: Optional[str] = None,
        gas: int = 100000,
    ) -> Dict[str, Any]:
        raise self._unavailable("Contract query")

    async def create_topic(
        self,
        *,
        memo: Optional[str] = None,
        admin_key: Optional[str] = None,
        submit_key: Optional[str] = None,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Topic creation")

    async def submit_message(self, *, topic_id: str, message: str) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("Message submission")

    async def create_file(
        self,
        *,
        contents: str,
        memo: Optional[str] = None,
        expiration_time: Optional[int] = None,
    ) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("File creation")

    async def append_file(self, *, file_id: str, contents: str) -> Dict[str, Any]:
        self._require_operator()
        raise self._unavailable("File append")


default_client = HederaClient()
