"""
Shared fixtures: an in-memory chain and a recording wallet.
"""

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import base58
import pytest

from near_recipes.config import get_config
from near_recipes.exceptions import ViewCallError
from near_recipes.session import Session
from near_recipes.types import AccessKey, Action, Transaction
from near_recipes.wallet import WalletHandoff

ACCOUNT_ID = "alice.near"
PUBLIC_KEY = "ed25519:" + base58.b58encode(bytes(range(1, 33))).decode("ascii")
BLOCK_HASH = bytes(range(100, 132))

ViewResult = Union[Any, Callable[[Dict[str, Any]], Any]]


class FakeProvider:
    """
    ViewProvider backed by a dict of canned view results.

    Unknown (contract, method) pairs fail like a missing contract method;
    `storage_balance_of` defaults to null (not registered).
    """

    def __init__(
        self,
        views: Optional[Dict[Tuple[str, str], ViewResult]] = None,
        keys: Optional[List[AccessKey]] = None,
        block_hash: bytes = BLOCK_HASH,
        balance: str = "0",
    ):
        self.views = dict(views or {})
        self.keys = keys if keys is not None else [AccessKey(PUBLIC_KEY, nonce=100)]
        self.block_hash = block_hash
        self.balance = balance
        self.calls: List[Tuple[str, str, Dict[str, Any]]] = []

    def set_view(self, contract: str, method: str, result: ViewResult):
        self.views[(contract, method)] = result

    def set_storage(
        self, contract: str, total: str, available: Optional[str] = None
    ):
        self.set_view(
            contract,
            "storage_balance_of",
            {"total": total, "available": available if available is not None else total},
        )

    async def view(self, contract: str, method: str, args: Dict[str, Any]) -> Any:
        self.calls.append((contract, method, args))
        key = (contract, method)
        if key not in self.views:
            if method == "storage_balance_of":
                return None
            raise ViewCallError(
                f"View call {contract}.{method} failed: MethodNotFound",
                contract=contract,
                method=method,
            )
        result = self.views[key]
        return result(args) if callable(result) else result

    async def resolve_access_key(
        self, account_id: str, receiver_id: str, actions: List[Action]
    ) -> Optional[AccessKey]:
        for key in self.keys:
            if key.allows(receiver_id, actions):
                return key
        return None

    async def latest_final_block_hash(self) -> bytes:
        return self.block_hash

    async def native_balance(self, account_id: str) -> str:
        return self.balance


class YieldingProvider(FakeProvider):
    """FakeProvider that suspends at every chain call like a network transport."""

    async def view(self, contract: str, method: str, args: Dict[str, Any]) -> Any:
        await asyncio.sleep(0)
        return await super().view(contract, method, args)

    async def resolve_access_key(
        self, account_id: str, receiver_id: str, actions: List[Action]
    ) -> Optional[AccessKey]:
        await asyncio.sleep(0)
        return await super().resolve_access_key(account_id, receiver_id, actions)

    async def latest_final_block_hash(self) -> bytes:
        await asyncio.sleep(0)
        return await super().latest_final_block_hash()


def nonces_by_key(transactions: Sequence[Transaction]) -> Dict[str, List[int]]:
    """Nonces of each public key in list order."""
    by_key: Dict[str, List[int]] = {}
    for tx in transactions:
        by_key.setdefault(tx.public_key, []).append(tx.nonce)
    return by_key


class RecordingSigner:
    """Signer that keeps every batch it is asked to sign."""

    def __init__(self):
        self.requests: List[Tuple[List[Transaction], str]] = []

    def request_sign(self, transactions: Sequence[Transaction], callback_url: str):
        self.requests.append((list(transactions), callback_url))


@pytest.fixture
def mainnet_config():
    return get_config("mainnet")


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def session(provider, mainnet_config):
    return Session(account_id=ACCOUNT_ID, provider=provider, config=mainnet_config)


@pytest.fixture
def signer():
    return RecordingSigner()


@pytest.fixture
def handoff(signer):
    return WalletHandoff(signer)
