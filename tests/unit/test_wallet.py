"""Tests for the wallet hand-off."""

import base64
from unittest.mock import Mock
from urllib.parse import parse_qs, urlparse

import pytest

from near_recipes.borsh import serialize_transaction
from near_recipes.types import Action, Transaction
from near_recipes.wallet import WalletHandoff, WalletRedirectSigner, encode_transaction

from conftest import BLOCK_HASH, PUBLIC_KEY, RecordingSigner


def make_tx(receiver_id, nonce):
    return Transaction(
        signer_id="alice.near",
        public_key=PUBLIC_KEY,
        receiver_id=receiver_id,
        nonce=nonce,
        actions=(Action("ping", {}, 10**12),),
        block_hash=BLOCK_HASH,
    )


async def produce(*transactions):
    return list(transactions)


class TestWalletRedirectSigner:
    def test_sign_url_format(self):
        redirect = Mock()
        signer = WalletRedirectSigner("https://wallet.near.org/", redirect=redirect)
        txs = [make_tx("a.near", 1), make_tx("b.near", 2)]

        signer.request_sign(txs, "https://app.example/recipe?step=2")

        url = redirect.call_args.args[0]
        assert url == signer.last_url
        parsed = urlparse(url)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://wallet.near.org/sign"
        query = parse_qs(parsed.query)
        assert query["callbackUrl"] == ["https://app.example/recipe?step=2"]
        encoded = query["transactions"][0].split(",")
        assert [base64.b64decode(e) for e in encoded] == [
            serialize_transaction(tx) for tx in txs
        ]

    def test_encode_transaction(self):
        tx = make_tx("a.near", 1)
        assert base64.b64decode(encode_transaction(tx)) == serialize_transaction(tx)


class TestWalletHandoff:
    @pytest.mark.asyncio
    async def test_flattens_in_producer_order(self):
        signer = RecordingSigner()
        handoff = WalletHandoff(signer)
        first = [make_tx("wrap.near", 1)]
        second = [make_tx("v2.ref-farming.near", 2), make_tx("v2.ref-finance.near", 3)]

        result = await handoff.pass_to_wallet(
            [produce(*first), produce(*second)], "https://app.example/"
        )

        assert result == first + second
        assert signer.requests == [(first + second, "https://app.example/")]

    @pytest.mark.asyncio
    async def test_nothing_to_sign(self):
        signer = RecordingSigner()

        result = await WalletHandoff(signer).pass_to_wallet([produce()], "https://app.example/")

        assert result == []
        assert signer.requests == []

    @pytest.mark.asyncio
    async def test_nonces_follow_signing_order(self):
        signer = RecordingSigner()
        # the first producer finished last and reserved the highest nonces
        first = [make_tx("meta-pool.near", 103), make_tx("wrap.near", 104)]
        second = [make_tx("v2.ref-finance.near", 101)]
        third = [make_tx("v2.ref-farming.near", 102)]

        result = await WalletHandoff(signer).pass_to_wallet(
            [produce(*first), produce(*second), produce(*third)], "https://app.example/"
        )

        assert [tx.receiver_id for tx in result] == [
            "meta-pool.near",
            "wrap.near",
            "v2.ref-finance.near",
            "v2.ref-farming.near",
        ]
        assert [tx.nonce for tx in result] == [101, 102, 103, 104]
        assert signer.requests[0][0] == result
