import base64

import httpx
import pytest

from taurus_ai.config import TaurusConfig
from taurus_ai.hedera_api.client import (
    CapabilityUnavailableError,
    EntityNotFoundError,
    HederaApiError,
    HederaClient,
    MirrorNodeUnreachableError,
    OperatorNotConfiguredError,
)


class MockResponse:
    def __init__(self, status_code: int, json_body):
        self.status_code = status_code
        self._json = json_body

    def json(self):
        return self._json


class MockAsyncClient:
    def __init__(self, responses):
        self.responses = responses
        self.calls = []

    async def get(self, path, params=None):
        self.calls.append({"path": path, "params": params})
        if not self.responses:
            raise RuntimeError("No mock responses")
        return self.responses.pop(0)

    async def aclose(self):
        return None


class FailingAsyncClient:
    def __init__(self, exc: Exception):
        self.exc = exc
        self.calls = 0

    async def get(self, *_args, **_kwargs):
        self.calls += 1
        raise self.exc

    async def aclose(self):
        return None


def _config(**overrides):
    values = {"hedera_network": "testnet", "mirror_node_url": None}
    values.update(overrides)
    return TaurusConfig(**values)


@pytest.mark.asyncio
async def test_mirror_node_unreachable_maps_error():
    client = HederaClient(_config(), async_client=FailingAsyncClient(httpx.ConnectError("boom")))
    with pytest.raises(MirrorNodeUnreachableError):
        await client.get_account_balance("0.0.1001")


@pytest.mark.asyncio
async def test_not_found_mapping():
    mock = MockAsyncClient([MockResponse(404, {"_status": {"messages": [{"message": "Not found"}]}})])
    client = HederaClient(_config(), async_client=mock)
    with pytest.raises(EntityNotFoundError) as excinfo:
        await client.get_account_info("0.0.404")
    assert excinfo.value.status_code == 404


@pytest.mark.asyncio
async def test_server_error_maps_to_generic():
    mock = MockAsyncClient([MockResponse(500, {})])
    client = HederaClient(_config(), async_client=mock)
    with pytest.raises(HederaApiError) as excinfo:
        await client.get_file_contents("0.0.150")
    assert excinfo.value.status_code == 500
    assert "get file contents" in str(excinfo.value)


@pytest.mark.asyncio
async def test_unexpected_response_shape():
    mock = MockAsyncClient([MockResponse(200, ["unexpected"])])
    client = HederaClient(_config(), async_client=mock)
    with pytest.raises(HederaApiError):
        await client.get_account_info("0.0.1001")


@pytest.mark.asyncio
async def test_account_balance_formats_hbar_and_tokens():
    mock = MockAsyncClient(
        [
            MockResponse(200, {"balance": {"balance": 250000000}}),
            MockResponse(200, {"tokens": [{"token_id": "0.0.5000", "balance": 42, "decimals": 2}]}),
        ]
    )
    client = HederaClient(_config(), async_client=mock)
    result = await client.get_account_balance("0.0.1001")
    assert result == {
        "accountId": "0.0.1001",
        "hbars": "2.50000000",
        "hbarsTinybars": "250000000",
        "tokens": [{"tokenId": "0.0.5000", "balance": "42", "decimals": 2}],
    }
    assert mock.calls[0]["path"] == "/api/v1/accounts/0.0.1001"
    assert mock.calls[1]["path"] == "/api/v1/accounts/0.0.1001/tokens"


@pytest.mark.asyncio
async def test_token_lookup_failure_degrades_to_empty_list():
    mock = MockAsyncClient(
        [
            MockResponse(200, {"balance": {"balance": 0}}),
            MockResponse(503, {}),
        ]
    )
    client = HederaClient(_config(), async_client=mock)
    result = await client.get_account_balance("0.0.1001")
    assert result["tokens"] == []
    assert result["hbars"] == "0.00000000"


@pytest.mark.asyncio
async def test_account_info_includes_staking():
    mock = MockAsyncClient(
        [
            MockResponse(
                200,
                {
                    "balance": {"balance": 100000000},
                    "deleted": False,
                    "key": {"_type": "ED25519", "key": "abc"},
                    "memo": "hello",
                    "owned_nfts": 3,
                    "staking_info": {"staked_node_id": 4, "pending_reward": 10},
                },
            )
        ]
    )
    client = HederaClient(_config(), async_client=mock)
    info = await client.get_account_info("0.0.1001")
    assert info["balance"] == "1.00000000"
    assert info["key"] == "abc"
    assert info["memo"] == "hello"
    assert info["ownedNfts"] == 3
    assert info["stakingInfo"]["stakedNodeId"] == 4
    assert info["stakingInfo"]["pendingReward"] == "10"


@pytest.mark.asyncio
async def test_topic_messages_decode_and_paginate():
    encoded = base64.b64encode("hello hedera".encode("utf-8")).decode("ascii")
    mock = MockAsyncClient(
        [
            MockResponse(
                200,
                {
                    "messages": [
                        {
                            "consensus_timestamp": "1700000000.000000001",
                            "sequence_number": 7,
                            "message": encoded,
                            "running_hash": "hash",
                        }
                    ]
                },
            )
        ]
    )
    client = HederaClient(_config(), async_client=mock)
    messages = await client.get_topic_messages("0.0.3000", limit=5, sequence_number=7)
    assert messages[0]["message"] == "hello hedera"
    assert messages[0]["sequenceNumber"] == 7
    assert messages[0]["topicId"] == "0.0.3000"
    assert mock.calls[0]["params"] == {"limit": 5, "sequencenumber": "gte:7"}


@pytest.mark.asyncio
async def test_network_info_makes_no_call():
    mock = MockAsyncClient([])
    cfg = _config(hedera_network="mainnet", operator_account_id="0.0.2")
    client = HederaClient(cfg, async_client=mock)
    info = await client.get_network_info()
    assert info["network"] == "mainnet"
    assert info["mirrorNodeUrl"] == "https://mainnet-public.mirrornode.hedera.com"
    assert info["operatorAccountId"] == "0.0.2"
    assert mock.calls == []


@pytest.mark.asyncio
async def test_mutation_without_operator_is_configuration_failure():
    mock = MockAsyncClient([])
    client = HederaClient(_config(operator_account_id=None, operator_private_key=None), async_client=mock)
    with pytest.raises(OperatorNotConfiguredError) as excinfo:
        await client.transfer_hbar(from_account_id="0.0.1", to_account_id="0.0.2", amount=1)
    assert "HEDERA_OPERATOR_ID" in str(excinfo.value)
    assert mock.calls == []


@pytest.mark.asyncio
async def test_mutation_with_operator_is_capability_unavailable():
    client = HederaClient(
        _config(operator_account_id="0.0.2", operator_private_key="302e..."),
        async_client=MockAsyncClient([]),
    )
    with pytest.raises(CapabilityUnavailableError):
        await client.submit_message(topic_id="0.0.3000", message="hi")


@pytest.mark.asyncio
async def test_query_contract_skips_operator_check():
    client = HederaClient(_config(operator_account_id=None, operator_private_key=None), async_client=MockAsyncClient([]))
    with pytest.raises(CapabilityUnavailableError):
        await client.query_contract(contract_id="0.0.4000", function_name="get")


@pytest.mark.asyncio
async def test_connect_sets_flag_and_aclose_clears_owned_client():
    client = HederaClient(_config(), async_client=MockAsyncClient([MockResponse(200, {"nodes": []})]))
    await client.connect()
    assert client.is_connected
    await client.aclose()
    assert not client.is_connected

    owned = HederaClient(_config())
    await owned._get_client()
    await owned.aclose()
    assert owned._client is None
