"""
Interfaces of the external collaborators the engine consumes and feeds.

The view provider is the read-only side of a NEAR RPC/wallet client; the
signer is the wallet that receives the finished transaction batch.
"""

from typing import Any, Dict, List, Optional, Protocol, Sequence, runtime_checkable

from .amounts import Amount
from .types import AccessKey, Action, Transaction


@runtime_checkable
class ViewProvider(Protocol):
    """Read-only access to chain state."""

    async def view(self, contract: str, method: str, args: Dict[str, Any]) -> Any:
        """Call a side-effect-free contract method and return its JSON result."""
        ...

    async def resolve_access_key(
        self, account_id: str, receiver_id: str, actions: List[Action]
    ) -> Optional[AccessKey]:
        """Find a key of `account_id` entitled to sign `actions` for `receiver_id`."""
        ...

    async def latest_final_block_hash(self) -> bytes:
        """Hash of the latest final block."""
        ...

    async def native_balance(self, account_id: str) -> Amount:
        """Available (unstaked, unlocked) NEAR balance in yoctoNEAR."""
        ...


@runtime_checkable
class Signer(Protocol):
    """External wallet that signs and submits a batch of transactions."""

    def request_sign(
        self, transactions: Sequence[Transaction], callback_url: str
    ) -> None:
        """Hand over `transactions`; control returns through `callback_url`."""
        ...
