"""
Per-access-key nonce reservation.

Transactions of one recipe step are built concurrently and often share the
same access key. The chain only reports the last nonce it has seen, so every
transaction built in this process reserves its nonce here: the first
reservation for a key yields chain nonce + 1, later ones continue from the
highest nonce already handed out.
"""

import dataclasses
import logging
import threading
from typing import Dict, List, Sequence, Tuple

from .types import AccessKey, Transaction

logger = logging.getLogger(__name__)


def in_signing_order(transactions: Sequence[Transaction]) -> List[Transaction]:
    """
    Reassign the reserved nonces of each access key in list order.

    Producers gathered together reserve nonces in whatever order their chain
    reads finish, while the wallet signs the batch front to back. The
    nonces a key already holds are sorted and handed back along the list,
    so no new nonce is reserved and each key's nonces rise with position.

    Args:
        transactions: Batch in the order the wallet will sign it

    Returns:
        The batch with nonces strictly increasing per access key
    """
    slots: Dict[Tuple[str, str], List[int]] = {}
    for tx in transactions:
        slots.setdefault((tx.signer_id, tx.public_key), []).append(tx.nonce)
    for nonces in slots.values():
        nonces.sort(reverse=True)

    ordered = []
    for tx in transactions:
        nonce = slots[(tx.signer_id, tx.public_key)].pop()
        if nonce != tx.nonce:
            logger.debug(
                f"Nonce {tx.nonce} -> {nonce} for {tx.receiver_id} "
                f"({', '.join(tx.methods)})"
            )
            tx = dataclasses.replace(tx, nonce=nonce)
        ordered.append(tx)
    return ordered


class NonceSequencer:
    """Hands out strictly increasing nonces per public key."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last: Dict[str, int] = {}

    def reserve(self, access_key: AccessKey) -> int:
        """
        Reserve the next nonce for `access_key`.

        Args:
            access_key: Key as just read from the chain

        Returns:
            A nonce greater than both the chain nonce and every nonce
            previously reserved for the same public key
        """
        with self._lock:
            last = max(access_key.nonce, self._last.get(access_key.public_key, 0))
            nonce = last + 1
            self._last[access_key.public_key] = nonce

        logger.debug(
            f"Reserved nonce {nonce} for {access_key.public_key} "
            f"(chain nonce {access_key.nonce})"
        )
        return nonce

    def last_reserved(self, public_key: str) -> int:
        """Highest nonce reserved for `public_key`, 0 if none."""
        with self._lock:
            return self._last.get(public_key, 0)

    def reset(self, public_key: str) -> None:
        """Forget reservations for a key, e.g. after the wallet round-trip."""
        with self._lock:
            self._last.pop(public_key, None)
