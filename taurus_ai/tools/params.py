"""Typed parameter records for each Hedera tool, built once from validated arguments."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Type

from taurus_ai.tools.validators import to_keyword_arguments


@dataclass(slots=True)
class AccountIdParams:
    account_id: str


@dataclass(slots=True)
class CreateAccountParams:
    initial_balance: float = 0
    memo: Optional[str] = None


@dataclass(slots=True)
class CreateTokenParams:
    name: str
    symbol: str
    decimals: int = 0
    initial_supply: float = 0
    token_type: str = "FUNGIBLE_COMMON"
    treasury_account_id: Optional[str] = None

    def __post_init__(self) -> None:
        self.decimals = int(self.decimals)


@dataclass(slots=True)
class TransferTokenParams:
    token_id: str
    from_account_id: str
    to_account_id: str
    amount: float


@dataclass(slots=True)
class AssociateTokenParams:
    account_id: str
    token_id: str


@dataclass(slots=True)
class DeployContractParams:
    bytecode: str
    gas: int = 100000
    constructor_parameters: Optional[str] = None
    memo: Optional[str] = None

    def __post_init__(self) -> None:
        self.gas = int(self.gas)


@dataclass(slots=True)
class CallContractParams:
    contract_id: str
    function_name: str
    function_parameters: Optional[str] = None
    gas: int = 100000
    payable_amount: float = 0

    def __post_init__(self) -> None:
        self.gas = int(self.gas)


@dataclass(slots=True)
class QueryContractParams:
    contract_id: str
    function_name: str
    function_parameters: Optional[str] = None
    gas: int = 100000

    def __post_init__(self) -> None:
        self.gas = int(self.gas)


@dataclass(slots=True)
class CreateTopicParams:
    memo: Optional[str] = None
    admin_key: Optional[str] = None
    submit_key: Optional[str] = None


@dataclass(slots=True)
class SubmitMessageParams:
    topic_id: str
    message: str


@dataclass(slots=True)
class TopicMessagesParams:
    topic_id: str
    limit: int = 10
    sequence_number: Optional[int] = None

    def __post_init__(self) -> None:
        self.limit = int(self.limit)
        if self.sequence_number is not None:
            self.sequence_number = int(self.sequence_number)


@dataclass(slots=True)
class CreateFileParams:
    contents: str
    memo: Optional[str] = None
    expiration_time: Optional[int] = None

    def __post_init__(self) -> None:
        if self.expiration_time is not None:
            self.expiration_time = int(self.expiration_time)


@dataclass(slots=True)
class FileIdParams:
    file_id: str


@dataclass(slots=True)
class AppendFileParams:
    file_id: str
    contents: str


@dataclass(slots=True)
class TransferHbarParams:
    from_account_id: str
    to_account_id: str
    amount: float
    memo: Optional[str] = None


@dataclass(slots=True)
class NoParams:
    pass


PARAMS_BY_TOOL: Dict[str, Type[Any]] = {
    "hedera_get_account_balance": AccountIdParams,
    "hedera_get_account_info": AccountIdParams,
    "hedera_create_account": CreateAccountParams,
    "hedera_create_token": CreateTokenParams,
    "hedera_transfer_token": TransferTokenParams,
    "hedera_associate_token": AssociateTokenParams,
    "hedera_deploy_contract": DeployContractParams,
    "hedera_call_contract": CallContractParams,
    "hedera_query_contract": QueryContractParams,
    "hedera_create_topic": CreateTopicParams,
    "hedera_submit_message": SubmitMessageParams,
    "hedera_get_topic_messages": TopicMessagesParams,
    "hedera_create_file": CreateFileParams,
    "hedera_get_file_contents": FileIdParams,
    "hedera_append_file": AppendFileParams,
    "hedera_transfer_hbar": TransferHbarParams,
    "hedera_get_network_info": NoParams,
}


def build_params(tool_name: str, arguments: Mapping[str, Any]) -> Any:
    """Instantiate the parameter record for ``tool_name`` from validated arguments."""
    params_cls = PARAMS_BY_TOOL[tool_name]
    return params_cls(**to_keyword_arguments(arguments))
