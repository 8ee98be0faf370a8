"""Manual live checks against a Hedera mirror node and the chat backend."""

from __future__ import annotations

import asyncio
import json
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from taurus_ai.broker import Part, SessionBroker  # noqa: E402
from taurus_ai.config import default_config  # noqa: E402
from taurus_ai.hedera_api import HederaClient  # noqa: E402
from taurus_ai.mcp import McpDispatcher  # noqa: E402
from taurus_ai.tools import HederaToolExecutor  # noqa: E402

# Treasury account on testnet; override via env for other networks.
SAMPLE_ACCOUNT = os.getenv("HEDERA_SAMPLE_ACCOUNT", "0.0.2")
# Optional topic to read messages from.
SAMPLE_TOPIC = os.getenv("HEDERA_SAMPLE_TOPIC")
# Opt-in to a real model call in standalone mode (costs tokens).
RUN_PROMPT = os.getenv("RUN_PROMPT_SANITY", "false").lower() in {"1", "true", "yes"}


async def check_tools() -> None:
    client = HederaClient(default_config)
    await client.connect()
    dispatcher = McpDispatcher(HederaToolExecutor(client))
    try:
        print("Initialize:", await dispatcher.handle_request({"jsonrpc": "2.0", "id": 1, "method": "initialize"}))
        listed = await dispatcher.handle_request({"jsonrpc": "2.0", "id": 2, "method": "tools/list"})
        print("Tools:", [tool["name"] for tool in listed["result"]["tools"]])
        balance = await dispatcher.handle_request(
            {
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "hedera_get_account_balance", "arguments": {"accountId": SAMPLE_ACCOUNT}},
            }
        )
        print("Balance:", json.dumps(balance, indent=2))
        if SAMPLE_TOPIC:
            print("Topic messages:", await client.get_topic_messages(SAMPLE_TOPIC, limit=3))
    finally:
        await client.aclose()


async def check_broker() -> None:
    broker = SessionBroker(default_config)
    try:
        print("Broker mode:", await broker.initialize())
        session = await broker.create_session("Sanity check")
        print("Created session:", session.to_dict())
        print("Sessions:", len(await broker.list_sessions()))
        if RUN_PROMPT:
            reply = await broker.prompt(session.id, [Part(type="text", text="Say hello in five words.")])
            print("Reply:", reply.text)
        print("Deleted:", await broker.delete_session(session.id))
    finally:
        await broker.shutdown()


async def main() -> None:
    await check_tools()
    await check_broker()


if __name__ == "__main__":
    asyncio.run(main())
