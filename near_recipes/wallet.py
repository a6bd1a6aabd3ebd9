"""
Wallet hand-off.

The finished batch of unsigned transactions leaves the engine here. The
wallet signs and submits them on its own page and sends the user back to the
callback URL; the outcome is never observed from this side.
"""

import asyncio
import base64
import logging
import webbrowser
from typing import Awaitable, Callable, Iterable, List, Sequence
from urllib.parse import urlencode

from .borsh import serialize_transaction
from .interfaces import Signer
from .nonces import in_signing_order
from .types import Transaction

logger = logging.getLogger(__name__)


def encode_transaction(tx: Transaction) -> str:
    """Base64 of the Borsh-serialized transaction."""
    return base64.b64encode(serialize_transaction(tx)).decode("ascii")


class WalletRedirectSigner:
    """
    Signer that sends the user to the NEAR web wallet's sign page.

    Args:
        wallet_url: Base URL of the wallet, e.g. https://wallet.near.org
        redirect: Called with the finished sign URL (opens a browser by default)
    """

    def __init__(
        self,
        wallet_url: str,
        redirect: Callable[[str], object] = webbrowser.open,
    ):
        self.wallet_url = wallet_url.rstrip("/")
        self.redirect = redirect
        self.last_url = None

    def sign_url(self, transactions: Sequence[Transaction], callback_url: str) -> str:
        query = urlencode(
            {
                "transactions": ",".join(encode_transaction(tx) for tx in transactions),
                "callbackUrl": callback_url,
            }
        )
        return f"{self.wallet_url}/sign?{query}"

    def request_sign(
        self, transactions: Sequence[Transaction], callback_url: str
    ) -> None:
        url = self.sign_url(transactions, callback_url)
        self.last_url = url
        logger.info(
            f"Redirecting to wallet with {len(transactions)} transaction(s), "
            f"callback {callback_url}"
        )
        self.redirect(url)


class WalletHandoff:
    """Collects pending transaction producers and passes them to a signer."""

    def __init__(self, signer: Signer):
        self.signer = signer

    async def pass_to_wallet(
        self,
        pending: Iterable[Awaitable[List[Transaction]]],
        callback_url: str,
    ) -> List[Transaction]:
        """
        Await every producer concurrently and request one signature batch.

        Nonces are put in list order per access key after flattening, since
        the producers finish in no particular order.

        Args:
            pending: Awaitables each resolving to an ordered transaction list
            callback_url: Where the wallet sends the user afterwards

        Returns:
            The flattened transactions, in producer order
        """
        results = await asyncio.gather(*pending)
        transactions = in_signing_order([tx for batch in results for tx in batch])
        if not transactions:
            logger.warning("Nothing to sign, wallet hand-off skipped")
            return transactions

        receivers = ", ".join(tx.receiver_id for tx in transactions)
        logger.info(f"Passing {len(transactions)} transaction(s) to wallet: {receivers}")
        self.signer.request_sign(transactions, callback_url)
        return transactions
