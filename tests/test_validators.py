import pytest

from taurus_ai.tools.catalog import TOOL_CATALOG
from taurus_ai.tools.validators import (
    ToolValidationError,
    is_valid_entity_id,
    to_keyword_arguments,
    to_snake_case,
    validate_arguments,
)


def test_entity_id_validation():
    assert is_valid_entity_id("0.0.12345")
    assert is_valid_entity_id(" 0.0.1 ")
    assert not is_valid_entity_id("0.0")
    assert not is_valid_entity_id("0.0.abc")
    assert not is_valid_entity_id("")
    assert not is_valid_entity_id(None)


def test_required_field_missing():
    tool = TOOL_CATALOG["hedera_transfer_hbar"]
    with pytest.raises(ToolValidationError) as excinfo:
        validate_arguments(tool, {"fromAccountId": "0.0.1", "amount": 5})
    assert str(excinfo.value) == "toAccountId is required"


def test_blank_string_counts_as_missing():
    tool = TOOL_CATALOG["hedera_get_account_balance"]
    with pytest.raises(ToolValidationError):
        validate_arguments(tool, {"accountId": "   "})


def test_zero_amount_is_present():
    tool = TOOL_CATALOG["hedera_transfer_hbar"]
    result = validate_arguments(tool, {"fromAccountId": "0.0.1", "toAccountId": "0.0.2", "amount": 0})
    assert result["amount"] == 0


def test_type_checks():
    tool = TOOL_CATALOG["hedera_transfer_hbar"]
    with pytest.raises(ToolValidationError, match="amount must be a number"):
        validate_arguments(tool, {"fromAccountId": "0.0.1", "toAccountId": "0.0.2", "amount": "5"})
    with pytest.raises(ToolValidationError, match="amount must be a number"):
        validate_arguments(tool, {"fromAccountId": "0.0.1", "toAccountId": "0.0.2", "amount": True})
    with pytest.raises(ToolValidationError, match="memo must be a string"):
        validate_arguments(tool, {"fromAccountId": "0.0.1", "toAccountId": "0.0.2", "amount": 1, "memo": 7})


def test_pattern_and_enum_checks():
    with pytest.raises(ToolValidationError, match="entity ID"):
        validate_arguments(TOOL_CATALOG["hedera_get_account_info"], {"accountId": "alice"})
    with pytest.raises(ToolValidationError, match="tokenType must be one of"):
        validate_arguments(
            TOOL_CATALOG["hedera_create_token"],
            {"name": "My Token", "symbol": "MTK", "tokenType": "SEMI_FUNGIBLE"},
        )


def test_defaults_applied_and_extras_dropped():
    tool = TOOL_CATALOG["hedera_create_token"]
    result = validate_arguments(tool, {"name": "My Token", "symbol": "MTK", "extra": "ignored"})
    assert result == {
        "name": "My Token",
        "symbol": "MTK",
        "decimals": 0,
        "initialSupply": 0,
        "tokenType": "FUNGIBLE_COMMON",
    }


def test_non_mapping_arguments_rejected():
    with pytest.raises(ToolValidationError):
        validate_arguments(TOOL_CATALOG["hedera_get_network_info"], ["not", "a", "dict"])


def test_snake_case_conversion():
    assert to_snake_case("fromAccountId") == "from_account_id"
    assert to_snake_case("gas") == "gas"
    assert to_keyword_arguments({"sequenceNumber": 1, "topicId": "0.0.1"}) == {
        "sequence_number": 1,
        "topic_id": "0.0.1",
    }


def test_non_finite_numbers_rejected():
    tool = TOOL_CATALOG["hedera_call_contract"]
    for value in (float("inf"), float("-inf"), float("nan")):
        with pytest.raises(ToolValidationError, match="gas must be a finite number"):
            validate_arguments(tool, {"contractId": "0.0.5", "functionName": "set", "gas": value})
