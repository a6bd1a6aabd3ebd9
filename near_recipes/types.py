"""
Core data types for recipe transaction construction.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .amounts import Amount


@dataclass(frozen=True)
class Action:
    """
    A single function call to be executed by the transaction's receiver.

    Attributes:
        method: Contract method name
        args: JSON payload passed to the method
        gas: Attached gas in gas units (1 Tgas = 10**12)
        deposit: Attached deposit in yoctoNEAR
    """

    method: str
    args: Dict[str, Any]
    gas: int
    deposit: Amount = "0"


@dataclass(frozen=True)
class AccessKey:
    """
    An access key of the signing account as reported by the node.

    Attributes:
        public_key: Key in "ed25519:<base58>" form
        nonce: Last nonce used on chain with this key
        receiver_id: Receiver a function-call key is limited to (None = full access)
        method_names: Methods a function-call key may call (empty = any)
    """

    public_key: str
    nonce: int
    receiver_id: Optional[str] = None
    method_names: Tuple[str, ...] = ()

    @property
    def is_full_access(self) -> bool:
        return self.receiver_id is None

    def allows(self, receiver_id: str, actions: List[Action]) -> bool:
        """Whether this key may sign `actions` sent to `receiver_id`."""
        if self.is_full_access:
            return True
        if receiver_id != self.receiver_id or len(actions) != 1:
            return False
        action = actions[0]
        if int(action.deposit) != 0:
            return False
        return not self.method_names or action.method in self.method_names


@dataclass(frozen=True)
class Transaction:
    """
    An unsigned transaction targeting exactly one receiver.

    Attributes:
        signer_id: Account that signs the transaction
        public_key: Access key the nonce was reserved for
        receiver_id: Contract every action is sent to
        nonce: Reserved nonce (strictly greater than any earlier one for the key)
        actions: Ordered actions, never empty
        block_hash: Hash of a recent final block (32 bytes)
    """

    signer_id: str
    public_key: str
    receiver_id: str
    nonce: int
    actions: Tuple[Action, ...]
    block_hash: bytes

    def __post_init__(self):
        if not self.actions:
            raise ValueError(f"Transaction to {self.receiver_id} has no actions")

    @property
    def methods(self) -> List[str]:
        return [action.method for action in self.actions]


@dataclass(frozen=True)
class SwapAction:
    """One swap hop executed by the exchange."""

    pool_id: int
    token_in: str
    token_out: str
    amount_in: Amount
    min_amount_out: Amount

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pool_id": self.pool_id,
            "token_in": self.token_in,
            "token_out": self.token_out,
            "amount_in": self.amount_in,
            "min_amount_out": self.min_amount_out,
        }


@dataclass(frozen=True)
class TokenDeposit:
    """A token amount moved between the wallet and the exchange."""

    token: str
    amount: Amount


@dataclass(frozen=True)
class LiquidityPosition:
    """Amounts supplied to a pool, aligned with the pool's token order."""

    pool_id: int
    amounts: List[Amount]


@dataclass(frozen=True)
class Pool:
    """
    A simple (constant-pool) liquidity pool on the exchange.

    Attributes:
        id: Pool index on the exchange
        fee: Total fee in basis points
        total_shares: LP shares in circulation
        token_amounts: Reserves, one per token, in pool order
        token_ids: Token contracts, aligned with token_amounts
    """

    id: int
    fee: int
    total_shares: Amount
    token_amounts: List[Amount]
    token_ids: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PoolInfo:
    """A pool together with the session account's LP shares in it."""

    pool: Pool
    user_shares: Amount

    @property
    def fee(self) -> int:
        return self.pool.fee

    @property
    def total_shares(self) -> Amount:
        return self.pool.total_shares

    @property
    def pool_amounts(self) -> List[Amount]:
        return self.pool.token_amounts


@dataclass(frozen=True)
class MetapoolInfo:
    """stNEAR price and minimum stake, both in yoctoNEAR."""

    st_near_price: Amount
    min_deposit_amount: Amount


@dataclass(frozen=True)
class FarmPosition:
    """
    LP shares of one pool held by the account, split between the exchange and
    the farm, with the minimum token amounts accepted when withdrawing them.
    """

    pool_id: int
    lp_shares: Amount
    farm_shares: Amount
    total_shares: Amount
    min_amounts: List[Amount]
    token_ids: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return int(self.lp_shares) == 0 and int(self.farm_shares) == 0
