"""Static registry of the Hedera tools exposed over the tool-calling protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ENTITY_ID_PATTERN = r"^\d+\.\d+\.\d+$"


def _entity_id(description: str) -> Dict[str, Any]:
    return {"type": "string", "description": description, "pattern": ENTITY_ID_PATTERN}


def _string(description: str) -> Dict[str, Any]:
    return {"type": "string", "description": description}


def _number(description: str, default: Optional[float] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "number", "description": description}
    if default is not None:
        schema["default"] = default
    return schema


@dataclass(slots=True)
class ToolDefinition:
    name: str
    description: str
    properties: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    required: List[str] = field(default_factory=list)
    mutating: bool = False

    @property
    def input_schema(self) -> Dict[str, Any]:
        schema: Dict[str, Any] = {"type": "object", "properties": self.properties}
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


_DEFINITIONS = [
    # Accounts
    ToolDefinition(
        name="hedera_get_account_balance",
        description=(
            "Get the HBAR and token balances for a Hedera account. "
            "Returns balance in HBAR and all associated token balances."
        ),
        properties={"accountId": _entity_id("Hedera account ID in format 0.0.xxxxx (e.g., 0.0.12345)")},
        required=["accountId"],
    ),
    ToolDefinition(
        name="hedera_get_account_info",
        description=(
            "Get detailed information about a Hedera account including keys, memo, "
            "staking info, and owned NFTs."
        ),
        properties={"accountId": _entity_id("Hedera account ID in format 0.0.xxxxx")},
        required=["accountId"],
    ),
    ToolDefinition(
        name="hedera_create_account",
        description="Create a new Hedera account with optional initial HBAR balance. Returns the new account ID.",
        properties={
            "initialBalance": _number("Initial balance in HBAR (default: 0)", 0),
            "memo": _string("Optional memo for the account (max 100 bytes)"),
        },
        mutating=True,
    ),
    # Tokens
    ToolDefinition(
        name="hedera_create_token",
        description="Create a new fungible or non-fungible token (NFT) on Hedera Token Service.",
        properties={
            "name": _string('Token name (e.g., "My Token")'),
            "symbol": _string('Token symbol (3-100 characters, e.g., "MTK")'),
            "decimals": _number("Decimal places for fungible tokens (0 for NFT)", 0),
            "initialSupply": _number("Initial supply (for fungible tokens)", 0),
            "tokenType": {
                "type": "string",
                "description": "Token type: FUNGIBLE_COMMON or NON_FUNGIBLE_UNIQUE",
                "enum": ["FUNGIBLE_COMMON", "NON_FUNGIBLE_UNIQUE"],
                "default": "FUNGIBLE_COMMON",
            },
            "treasuryAccountId": _entity_id("Treasury account ID (defaults to operator account)"),
        },
        required=["name", "symbol"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_transfer_token",
        description=(
            "Transfer fungible tokens between Hedera accounts. "
            "The recipient must have the token associated."
        ),
        properties={
            "tokenId": _entity_id("Token ID in format 0.0.xxxxx"),
            "fromAccountId": _entity_id("Sender account ID"),
            "toAccountId": _entity_id("Recipient account ID"),
            "amount": _number("Amount to transfer (considering decimals)"),
        },
        required=["tokenId", "fromAccountId", "toAccountId", "amount"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_associate_token",
        description=(
            "Associate a token with a Hedera account. "
            "Required before the account can receive the token."
        ),
        properties={
            "accountId": _entity_id("Account ID to associate the token with"),
            "tokenId": _entity_id("Token ID to associate"),
        },
        required=["accountId", "tokenId"],
        mutating=True,
    ),
    # Smart contracts
    ToolDefinition(
        name="hedera_deploy_contract",
        description="Deploy a Solidity smart contract to Hedera. Returns the contract ID.",
        properties={
            "bytecode": _string("Compiled contract bytecode (hex string, without 0x prefix)"),
            "gas": _number("Gas limit for deployment transaction", 100000),
            "constructorParameters": _string("ABI-encoded constructor parameters (hex string)"),
            "memo": _string("Contract memo"),
        },
        required=["bytecode"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_call_contract",
        description="Call a smart contract function that modifies state. Creates a transaction.",
        properties={
            "contractId": _entity_id("Contract ID in format 0.0.xxxxx"),
            "functionName": _string("Function name to call"),
            "functionParameters": _string("ABI-encoded function parameters (hex string)"),
            "gas": _number("Gas limit for the call", 100000),
            "payableAmount": _number(
                "HBAR to send with call (in tinybars, 1 HBAR = 100,000,000 tinybars)", 0
            ),
        },
        required=["contractId", "functionName"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_query_contract",
        description="Query a smart contract function (read-only, no transaction). Does not modify state.",
        properties={
            "contractId": _entity_id("Contract ID in format 0.0.xxxxx"),
            "functionName": _string("Function name to query"),
            "functionParameters": _string("ABI-encoded function parameters (hex string)"),
            "gas": _number("Gas limit for query", 100000),
        },
        required=["contractId", "functionName"],
    ),
    # Consensus service
    ToolDefinition(
        name="hedera_create_topic",
        description="Create a new topic on Hedera Consensus Service (HCS) for ordered, timestamped messages.",
        properties={
            "memo": _string("Topic memo/description"),
            "adminKey": _string("Admin key for topic management (defaults to operator key)"),
            "submitKey": _string("Submit key required to post messages (if not set, anyone can submit)"),
        },
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_submit_message",
        description="Submit a message to a Hedera Consensus Service topic. Messages are ordered and timestamped.",
        properties={
            "topicId": _entity_id("Topic ID in format 0.0.xxxxx"),
            "message": _string("Message content (max 1024 bytes)"),
        },
        required=["topicId", "message"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_get_topic_messages",
        description="Retrieve messages from a Hedera Consensus Service topic via mirror node.",
        properties={
            "topicId": _entity_id("Topic ID in format 0.0.xxxxx"),
            "limit": _number("Maximum number of messages to retrieve", 10),
            "sequenceNumber": _number("Start from this sequence number (for pagination)"),
        },
        required=["topicId"],
    ),
    # File service
    ToolDefinition(
        name="hedera_create_file",
        description="Create a file on Hedera File Service. Files are immutable and have an expiration.",
        properties={
            "contents": _string("File contents (max 1024 bytes per transaction)"),
            "memo": _string("File memo"),
            "expirationTime": _number("Expiration timestamp in seconds since epoch"),
        },
        required=["contents"],
        mutating=True,
    ),
    ToolDefinition(
        name="hedera_get_file_contents",
        description="Get the contents of a file from Hedera File Service.",
        properties={"fileId": _entity_id("File ID in format 0.0.xxxxx")},
        required=["fileId"],
    ),
    ToolDefinition(
        name="hedera_append_file",
        description="Append content to an existing file on Hedera File Service.",
        properties={
            "fileId": _entity_id("File ID in format 0.0.xxxxx"),
            "contents": _string("Content to append (max 1024 bytes per transaction)"),
        },
        required=["fileId", "contents"],
        mutating=True,
    ),
    # HBAR
    ToolDefinition(
        name="hedera_transfer_hbar",
        description="Transfer HBAR cryptocurrency between Hedera accounts.",
        properties={
            "fromAccountId": _entity_id("Sender account ID"),
            "toAccountId": _entity_id("Recipient account ID"),
            "amount": _number("Amount in HBAR to transfer"),
            "memo": _string("Transfer memo (max 100 bytes)"),
        },
        required=["fromAccountId", "toAccountId", "amount"],
        mutating=True,
    ),
    # Network
    ToolDefinition(
        name="hedera_get_network_info",
        description=(
            "Get current Hedera network configuration and status including "
            "connected network and operator account."
        ),
    ),
]

TOOL_CATALOG: Dict[str, ToolDefinition] = {tool.name: tool for tool in _DEFINITIONS}


def get_tool(name: str) -> Optional[ToolDefinition]:
    return TOOL_CATALOG.get(name)


def list_tools() -> List[Dict[str, Any]]:
    """Return the catalog in the shape advertised by ``tools/list``."""
    return [tool.to_dict() for tool in TOOL_CATALOG.values()]
