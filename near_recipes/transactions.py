"""
Transaction builder: turns an action list for one receiver into an unsigned
transaction ready for the wallet.

Building never signs or submits anything.
"""

import asyncio
import logging
from typing import Any, Dict, List, Sequence, Tuple

from .amounts import Amount
from .exceptions import NoMatchingKeyError
from .session import Session
from .types import AccessKey, Action, Transaction

logger = logging.getLogger(__name__)

TGAS = 10**12


def function_call(
    method: str, args: Dict[str, Any], gas: int, deposit: Amount = "0"
) -> Action:
    """Create a function-call action."""
    return Action(method=method, args=args, gas=gas, deposit=deposit)


class TransactionBuilder:
    """Builds transactions for the session account."""

    def __init__(self, session: Session):
        self.session = session

    async def _resolve(
        self, receiver_id: str, actions: List[Action]
    ) -> Tuple[AccessKey, bytes]:
        if not actions:
            raise ValueError(f"Refusing to build an empty transaction to {receiver_id}")

        provider = self.session.provider
        account_id = self.session.account_id
        access_key, block_hash = await asyncio.gather(
            provider.resolve_access_key(account_id, receiver_id, actions),
            provider.latest_final_block_hash(),
        )

        if access_key is None:
            raise NoMatchingKeyError(
                f"Cannot find matching key for transaction sent to {receiver_id}",
                receiver_id=receiver_id,
                account_id=account_id,
                details={"methods": [a.method for a in actions]},
            )
        return access_key, block_hash

    def _assemble(
        self,
        receiver_id: str,
        actions: List[Action],
        access_key: AccessKey,
        block_hash: bytes,
    ) -> Transaction:
        nonce = self.session.sequencer.reserve(access_key)
        tx = Transaction(
            signer_id=self.session.account_id,
            public_key=access_key.public_key,
            receiver_id=receiver_id,
            nonce=nonce,
            actions=tuple(actions),
            block_hash=block_hash,
        )
        logger.info(
            f"Built tx -> {receiver_id}: {', '.join(tx.methods)} (nonce {nonce})"
        )
        return tx

    async def build(self, receiver_id: str, actions: Sequence[Action]) -> Transaction:
        """
        Build an unsigned transaction sending `actions` to `receiver_id`.

        The access key and the latest final block hash are fetched
        concurrently; the nonce is reserved from the session's sequencer.

        Args:
            receiver_id: Contract every action is sent to
            actions: Ordered, non-empty action list

        Returns:
            Unsigned Transaction

        Raises:
            NoMatchingKeyError: If no access key may sign these actions
            ValueError: If `actions` is empty
        """
        actions = list(actions)
        access_key, block_hash = await self._resolve(receiver_id, actions)
        return self._assemble(receiver_id, actions, access_key, block_hash)

    async def build_many(
        self, batches: Sequence[Tuple[str, Sequence[Action]]]
    ) -> List[Transaction]:
        """
        Build several transactions concurrently, preserving order.

        Keys and block hashes are resolved concurrently; nonces are reserved
        afterwards in batch order so a key's nonces rise along the list.

        Args:
            batches: (receiver_id, actions) pairs; pairs with no actions are
                skipped

        Returns:
            Transactions in the order of the non-empty batches
        """
        batches = [
            (receiver_id, list(actions)) for receiver_id, actions in batches if actions
        ]
        resolved = await asyncio.gather(
            *(self._resolve(receiver_id, actions) for receiver_id, actions in batches)
        )
        return [
            self._assemble(receiver_id, actions, access_key, block_hash)
            for (receiver_id, actions), (access_key, block_hash) in zip(
                batches, resolved
            )
        ]
