"""Line-oriented stdio transport: one JSON request per stdin line, one response per stdout line."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from typing import IO, Optional, TextIO, Union

from taurus_ai.config import TaurusConfig, default_config
from taurus_ai.hedera_api import HederaApiError, HederaClient
from taurus_ai.logging_setup import configure_logging
from taurus_ai.mcp import INTERNAL_ERROR, PARSE_ERROR, McpDispatcher, jsonrpc_error_payload
from taurus_ai.tools import HederaToolExecutor

logger = logging.getLogger(__name__)


def _write(stdout: TextIO, payload: str) -> None:
    stdout.write(payload + "\n")
    stdout.flush()


def _decode(line: Union[str, bytes]) -> str:
    if isinstance(line, bytes):
        return line.decode("utf-8")
    return line


async def serve(dispatcher: McpDispatcher, stdin: IO, stdout: TextIO) -> int:
    """
    Pump lines until EOF. Returns the number of requests handled.

    ``stdin`` may be text or binary; binary lines are decoded as UTF-8 here so
    an undecodable line is answered with a parse error like any other bad
    line. A failing line never stops the loop.
    """
    handled = 0
    while True:
        raw = await asyncio.to_thread(stdin.readline)
        if not raw:
            break
        try:
            line = _decode(raw).strip()
        except UnicodeDecodeError:
            logger.warning("Undecodable stdin line skipped")
            handled += 1
            _write(stdout, json.dumps(jsonrpc_error_payload(None, PARSE_ERROR, "Parse error")))
            continue
        if not line:
            continue
        handled += 1
        try:
            response = await dispatcher.handle_line(line)
        except Exception:
            logger.exception("stdio request failed")
            response = json.dumps(jsonrpc_error_payload(None, INTERNAL_ERROR, "Internal error"))
        if response is not None:
            _write(stdout, response)
    return handled


async def run(
    config: TaurusConfig = default_config,
    *,
    stdin: Optional[IO] = None,
    stdout: Optional[TextIO] = None,
    client: Optional[HederaClient] = None,
) -> None:
    client = client or HederaClient(config)
    try:
        await client.connect()
    except HederaApiError as exc:
        logger.warning("Mirror node check failed: %s", exc, extra={"error": str(exc)})

    dispatcher = McpDispatcher(HederaToolExecutor(client))
    logger.info("Hedera tool server ready on stdio network=%s", config.hedera_network)
    try:
        await serve(dispatcher, stdin or sys.stdin.buffer, stdout or sys.stdout)
    finally:
        await client.aclose()
        logger.info("Hedera tool server stopped")


def main() -> None:
    configure_logging(default_config, stream=sys.stderr)
    try:
        asyncio.run(run(default_config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
