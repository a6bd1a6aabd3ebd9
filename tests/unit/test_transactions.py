"""Tests for the transaction builder, nonce sequencing and Borsh encoding."""

import asyncio
import struct

import base58
import pytest

from near_recipes.borsh import encode_public_key, serialize_transaction
from near_recipes.exceptions import NoMatchingKeyError
from near_recipes.nonces import NonceSequencer, in_signing_order
from near_recipes.transactions import TGAS, TransactionBuilder, function_call
from near_recipes.types import AccessKey, Action, Transaction

from conftest import BLOCK_HASH, PUBLIC_KEY

FUNCTION_CALL_KEY = "ed25519:" + base58.b58encode(bytes(32)).decode("ascii")


class TestAccessKeyMatching:
    def test_full_access_allows_anything(self):
        key = AccessKey(PUBLIC_KEY, nonce=1)
        actions = [function_call("a", {}, TGAS, "5"), function_call("b", {}, TGAS)]
        assert key.allows("anything.near", actions)

    def test_function_call_key_rules(self):
        key = AccessKey(
            FUNCTION_CALL_KEY, nonce=1, receiver_id="app.near", method_names=("go",)
        )
        go = function_call("go", {}, TGAS)
        assert key.allows("app.near", [go])
        assert not key.allows("other.near", [go])
        assert not key.allows("app.near", [function_call("stop", {}, TGAS)])
        assert not key.allows("app.near", [function_call("go", {}, TGAS, "1")])
        assert not key.allows("app.near", [go, go])

    def test_function_call_key_without_methods_allows_any_method(self):
        key = AccessKey(FUNCTION_CALL_KEY, nonce=1, receiver_id="app.near")
        assert key.allows("app.near", [function_call("whatever", {}, TGAS)])


class TestNonceSequencer:
    def test_first_reservation_is_chain_nonce_plus_one(self):
        sequencer = NonceSequencer()
        assert sequencer.reserve(AccessKey(PUBLIC_KEY, nonce=41)) == 42

    def test_reservations_strictly_increase(self):
        sequencer = NonceSequencer()
        key = AccessKey(PUBLIC_KEY, nonce=10)
        assert [sequencer.reserve(key) for _ in range(3)] == [11, 12, 13]
        assert sequencer.last_reserved(PUBLIC_KEY) == 13

    def test_chain_nonce_ahead_of_reservations_wins(self):
        sequencer = NonceSequencer()
        sequencer.reserve(AccessKey(PUBLIC_KEY, nonce=10))
        assert sequencer.reserve(AccessKey(PUBLIC_KEY, nonce=50)) == 51

    def test_keys_are_independent(self):
        sequencer = NonceSequencer()
        sequencer.reserve(AccessKey(PUBLIC_KEY, nonce=10))
        assert sequencer.reserve(AccessKey(FUNCTION_CALL_KEY, nonce=3)) == 4

    def test_reset(self):
        sequencer = NonceSequencer()
        key = AccessKey(PUBLIC_KEY, nonce=10)
        sequencer.reserve(key)
        sequencer.reserve(key)
        sequencer.reset(PUBLIC_KEY)
        assert sequencer.last_reserved(PUBLIC_KEY) == 0
        assert sequencer.reserve(key) == 11


def signed_tx(receiver_id, nonce, public_key=PUBLIC_KEY):
    return Transaction(
        signer_id="alice.near",
        public_key=public_key,
        receiver_id=receiver_id,
        nonce=nonce,
        actions=(function_call("ping", {}, 10 * TGAS),),
        block_hash=BLOCK_HASH,
    )


class TestSigningOrder:
    def test_reassigns_nonces_along_the_list(self):
        txs = [signed_tx("a.near", 7), signed_tx("b.near", 5), signed_tx("c.near", 6)]

        ordered = in_signing_order(txs)

        assert [tx.receiver_id for tx in ordered] == ["a.near", "b.near", "c.near"]
        assert [tx.nonce for tx in ordered] == [5, 6, 7]
        assert ordered[0].actions == txs[0].actions

    def test_each_key_keeps_its_own_nonces(self):
        txs = [
            signed_tx("a.near", 12),
            signed_tx("app.near", 4, FUNCTION_CALL_KEY),
            signed_tx("b.near", 11),
            signed_tx("app.near", 3, FUNCTION_CALL_KEY),
        ]

        ordered = in_signing_order(txs)

        assert [tx.nonce for tx in ordered] == [11, 3, 12, 4]

    def test_ordered_batch_is_unchanged(self):
        txs = [signed_tx("a.near", 1), signed_tx("b.near", 2)]
        assert in_signing_order(txs) == txs

    def test_empty(self):
        assert in_signing_order([]) == []


class TestTransactionBuilder:
    @pytest.mark.asyncio
    async def test_build(self, session):
        builder = TransactionBuilder(session)
        action = function_call("near_deposit", {}, 50 * TGAS, "1000")

        tx = await builder.build("wrap.near", [action])

        assert tx.signer_id == "alice.near"
        assert tx.public_key == PUBLIC_KEY
        assert tx.receiver_id == "wrap.near"
        assert tx.nonce == 101
        assert tx.actions == (action,)
        assert tx.block_hash == BLOCK_HASH

    @pytest.mark.asyncio
    async def test_concurrent_builds_never_share_a_nonce(self, session):
        builder = TransactionBuilder(session)
        action = function_call("ping", {}, TGAS)

        txs = await asyncio.gather(*(builder.build(f"c{i}.near", [action]) for i in range(5)))

        assert sorted(tx.nonce for tx in txs) == [101, 102, 103, 104, 105]

    @pytest.mark.asyncio
    async def test_build_many_preserves_order_and_skips_empty(self, session):
        builder = TransactionBuilder(session)
        action = function_call("ping", {}, TGAS)

        txs = await builder.build_many(
            [("a.near", []), ("b.near", [action]), ("c.near", [action, action])]
        )

        assert [tx.receiver_id for tx in txs] == ["b.near", "c.near"]
        assert [tx.nonce for tx in txs] == [101, 102]
        assert len(txs[1].actions) == 2

    @pytest.mark.asyncio
    async def test_no_matching_key(self, session, provider):
        provider.keys = [AccessKey(FUNCTION_CALL_KEY, nonce=1, receiver_id="app.near")]
        builder = TransactionBuilder(session)

        with pytest.raises(NoMatchingKeyError) as exc_info:
            await builder.build("wrap.near", [function_call("near_deposit", {}, TGAS)])

        assert exc_info.value.receiver_id == "wrap.near"
        assert exc_info.value.account_id == "alice.near"
        assert "Cannot find matching key for transaction sent to wrap.near" in str(
            exc_info.value
        )

    @pytest.mark.asyncio
    async def test_empty_actions_rejected(self, session):
        with pytest.raises(ValueError):
            await TransactionBuilder(session).build("wrap.near", [])

    def test_transaction_requires_actions(self):
        with pytest.raises(ValueError):
            Transaction("a.near", PUBLIC_KEY, "b.near", 1, (), BLOCK_HASH)


class TestBorsh:
    def test_public_key_encoding(self):
        encoded = encode_public_key(PUBLIC_KEY)
        assert encoded == b"\x00" + bytes(range(1, 33))

    def test_public_key_wrong_length(self):
        with pytest.raises(ValueError):
            encode_public_key("ed25519:" + base58.b58encode(b"short").decode("ascii"))

    def test_unsupported_key_type(self):
        with pytest.raises(ValueError):
            encode_public_key("secp256k1:abc")

    def test_transaction_layout(self):
        action = Action(method="go", args={"a": 1}, gas=7, deposit="9")
        tx = Transaction(
            signer_id="al.near",
            public_key=PUBLIC_KEY,
            receiver_id="b.near",
            nonce=5,
            actions=(action,),
            block_hash=BLOCK_HASH,
        )

        expected = (
            struct.pack("<I", 7) + b"al.near"
            + b"\x00" + bytes(range(1, 33))
            + struct.pack("<Q", 5)
            + struct.pack("<I", 6) + b"b.near"
            + BLOCK_HASH
            + struct.pack("<I", 1)
            + b"\x02"
            + struct.pack("<I", 2) + b"go"
            + struct.pack("<I", 7) + b'{"a":1}'
            + struct.pack("<Q", 7)
            + (9).to_bytes(16, "little")
        )
        assert serialize_transaction(tx) == expected

    def test_short_block_hash_rejected(self):
        tx = Transaction(
            "al.near", PUBLIC_KEY, "b.near", 5, (Action("go", {}, 1),), b"\x00" * 31
        )
        with pytest.raises(ValueError):
            serialize_transaction(tx)
