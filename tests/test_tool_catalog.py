from taurus_ai.tools.catalog import ENTITY_ID_PATTERN, TOOL_CATALOG, get_tool, list_tools
from taurus_ai.tools.executor import CLIENT_METHODS
from taurus_ai.tools.params import PARAMS_BY_TOOL


def test_catalog_has_seventeen_tools():
    assert len(TOOL_CATALOG) == 17
    assert set(TOOL_CATALOG) == set(CLIENT_METHODS) == set(PARAMS_BY_TOOL)


def test_list_tools_shape():
    tools = list_tools()
    assert [tool["name"] for tool in tools] == list(TOOL_CATALOG)
    for tool in tools:
        assert tool["description"]
        assert tool["inputSchema"]["type"] == "object"
        assert isinstance(tool["inputSchema"]["properties"], dict)


def test_required_sets_and_defaults():
    transfer = get_tool("hedera_transfer_hbar")
    assert transfer.input_schema["required"] == ["fromAccountId", "toAccountId", "amount"]
    assert transfer.mutating

    messages = get_tool("hedera_get_topic_messages")
    assert messages.properties["limit"]["default"] == 10
    assert not messages.mutating

    deploy = get_tool("hedera_deploy_contract")
    assert deploy.properties["gas"]["default"] == 100000

    token = get_tool("hedera_create_token")
    assert token.properties["tokenType"]["enum"] == ["FUNGIBLE_COMMON", "NON_FUNGIBLE_UNIQUE"]


def test_tools_without_required_omit_key():
    assert "required" not in get_tool("hedera_get_network_info").input_schema
    assert "required" not in get_tool("hedera_create_topic").input_schema


def test_entity_ids_carry_pattern():
    assert get_tool("hedera_get_account_balance").properties["accountId"]["pattern"] == ENTITY_ID_PATTERN
    assert "pattern" not in get_tool("hedera_submit_message").properties["message"]


def test_unknown_tool_lookup():
    assert get_tool("hedera_mint_nft") is None
