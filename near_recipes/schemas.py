"""
Result schemas for view calls, validated with Pydantic at the RPC boundary.

Contracts return loosely typed JSON; every value the engine computes with is
parsed through one of these models first so a malformed answer fails loudly
instead of leaking into amount arithmetic.
"""

from typing import Any, Dict, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .types import AccessKey, MetapoolInfo, Pool

ModelT = TypeVar("ModelT", bound=BaseModel)


def _check_amount(value: str) -> str:
    if not isinstance(value, str) or not value.isdigit():
        raise ValueError(f"not a non-negative integer string: {value!r}")
    return value


class ViewModel(BaseModel):
    """Base for view results: unknown fields are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)


class StorageBalance(ViewModel):
    """Result of `storage_balance_of` (NEP-145)."""

    total: str
    available: Optional[str] = None

    @field_validator("total")
    @classmethod
    def validate_total(cls, v):
        return _check_amount(v)

    @field_validator("available")
    @classmethod
    def validate_available(cls, v):
        return v if v is None else _check_amount(v)


class PoolView(ViewModel):
    """Result of the exchange's `get_pool`."""

    pool_kind: str = "SIMPLE_POOL"
    token_account_ids: List[str] = Field(default_factory=list)
    amounts: List[str]
    total_fee: int = Field(ge=0)
    shares_total_supply: str

    @field_validator("amounts")
    @classmethod
    def validate_amounts(cls, v):
        return [_check_amount(amount) for amount in v]

    @field_validator("shares_total_supply")
    @classmethod
    def validate_shares(cls, v):
        return _check_amount(v)

    def to_pool(self, pool_id: int) -> Pool:
        return Pool(
            id=pool_id,
            fee=self.total_fee,
            total_shares=self.shares_total_supply,
            token_amounts=list(self.amounts),
            token_ids=list(self.token_account_ids),
        )


class MetapoolState(ViewModel):
    """The subset of Meta Pool's `get_contract_state` the recipes use."""

    st_near_price: str
    min_deposit_amount: str

    @field_validator("st_near_price", "min_deposit_amount")
    @classmethod
    def validate_amounts(cls, v):
        return _check_amount(v)

    def to_info(self) -> MetapoolInfo:
        return MetapoolInfo(
            st_near_price=self.st_near_price,
            min_deposit_amount=self.min_deposit_amount,
        )


class FunctionCallPermission(ViewModel):
    allowance: Optional[str] = None
    receiver_id: str
    method_names: List[str] = Field(default_factory=list)


class FunctionCallPermissionView(ViewModel):
    FunctionCall: FunctionCallPermission


class AccessKeyView(ViewModel):
    nonce: int = Field(ge=0)
    permission: Union[str, FunctionCallPermissionView]

    @field_validator("permission")
    @classmethod
    def validate_permission(cls, v):
        if isinstance(v, str) and v != "FullAccess":
            raise ValueError(f"unknown access key permission: {v}")
        return v


class AccessKeyInfoView(ViewModel):
    public_key: str
    access_key: AccessKeyView

    def to_access_key(self) -> AccessKey:
        permission = self.access_key.permission
        if isinstance(permission, str):
            return AccessKey(public_key=self.public_key, nonce=self.access_key.nonce)
        call = permission.FunctionCall
        return AccessKey(
            public_key=self.public_key,
            nonce=self.access_key.nonce,
            receiver_id=call.receiver_id,
            method_names=tuple(call.method_names),
        )


class AccessKeyListView(ViewModel):
    """Result of `query/view_access_key_list`."""

    keys: List[AccessKeyInfoView]


class BlockHeaderView(ViewModel):
    height: int
    hash: str


class BlockView(ViewModel):
    """Result of `block` (only the header is used)."""

    header: BlockHeaderView


class AccountView(ViewModel):
    """Result of `query/view_account`."""

    amount: str
    locked: str
    storage_usage: int = Field(ge=0)

    @field_validator("amount", "locked")
    @classmethod
    def validate_amounts(cls, v):
        return _check_amount(v)

    def available_balance(self, storage_amount_per_byte: int) -> str:
        """Balance that is neither staked nor locked for storage."""
        state_staked = self.storage_usage * storage_amount_per_byte
        locked = int(self.locked)
        total = int(self.amount) + locked
        return str(total - max(locked, state_staked))


def parse_view(model: Type[ModelT], data: Any, source: str = "") -> ModelT:
    """
    Validate a raw view result against `model`.

    Raises:
        ValidationError: If the data does not match the schema
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(
            f"Unexpected {model.__name__} result{' from ' + source if source else ''}: {e}",
            details={"source": source, "data": data},
        ) from e


def parse_optional_view(
    model: Type[ModelT], data: Any, source: str = ""
) -> Optional[ModelT]:
    """Like parse_view, but a JSON null result maps to None."""
    if data is None:
        return None
    return parse_view(model, data, source)


def parse_amount(data: Any, source: str = "") -> str:
    """Validate a bare Amount result (e.g. `ft_balance_of`, `get_return`)."""
    try:
        return _check_amount(data)
    except ValueError as e:
        raise ValidationError(
            f"Unexpected amount result{' from ' + source if source else ''}: {data!r}",
            details={"source": source, "data": data},
        ) from e


def parse_amount_map(data: Any, source: str = "") -> Dict[str, str]:
    """Validate a {token: Amount} mapping (e.g. `get_deposits`, `list_user_seeds`)."""
    if not isinstance(data, dict):
        raise ValidationError(
            f"Unexpected mapping result{' from ' + source if source else ''}: {data!r}",
            details={"source": source, "data": data},
        )
    return {key: parse_amount(value, source) for key, value in data.items()}
