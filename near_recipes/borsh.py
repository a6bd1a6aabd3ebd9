"""
Borsh encoding of unsigned NEAR transactions, the format the wallet's
sign page expects (base64 of these bytes, one per transaction).

Only the FunctionCall action is needed by the recipes.
"""

import struct

import base58

from .types import Action, Transaction
from .utils import json_bytes

ED25519_KEY_TYPE = 0
FUNCTION_CALL_ACTION = 2

_KEY_TYPES = {"ed25519": ED25519_KEY_TYPE}


def _u8(value: int) -> bytes:
    return struct.pack("<B", value)


def _u32(value: int) -> bytes:
    return struct.pack("<I", value)


def _u64(value: int) -> bytes:
    return struct.pack("<Q", value)


def _u128(value: int) -> bytes:
    return value.to_bytes(16, "little")


def _bytes(data: bytes) -> bytes:
    return _u32(len(data)) + data


def _string(text: str) -> bytes:
    return _bytes(text.encode("utf-8"))


def encode_public_key(public_key: str) -> bytes:
    """Encode "ed25519:<base58>" as key type byte + 32 key bytes."""
    key_type, sep, data = public_key.partition(":")
    if not sep:
        key_type, data = "ed25519", public_key
    if key_type not in _KEY_TYPES:
        raise ValueError(f"Unsupported key type: {key_type}")
    raw = base58.b58decode(data)
    if len(raw) != 32:
        raise ValueError(f"Invalid {key_type} public key length: {len(raw)}")
    return _u8(_KEY_TYPES[key_type]) + raw


def encode_action(action: Action) -> bytes:
    return (
        _u8(FUNCTION_CALL_ACTION)
        + _string(action.method)
        + _bytes(json_bytes(action.args))
        + _u64(action.gas)
        + _u128(int(action.deposit))
    )


def serialize_transaction(tx: Transaction) -> bytes:
    """Borsh-serialize an unsigned transaction."""
    if len(tx.block_hash) != 32:
        raise ValueError(f"Block hash must be 32 bytes, got {len(tx.block_hash)}")

    out = bytearray()
    out += _string(tx.signer_id)
    out += encode_public_key(tx.public_key)
    out += _u64(tx.nonce)
    out += _string(tx.receiver_id)
    out += tx.block_hash
    out += _u32(len(tx.actions))
    for action in tx.actions:
        out += encode_action(action)
    return bytes(out)
