from __future__ import annotations

import os

import pytest

from counterparty_decoder.cipher import CipherError, keystream_xor

TXID_KEY = bytes.fromhex("e0b9b0b3a2b0d1bc4c2a7f1c0f3c8a6fd94ad7d5a2d6e04a5c9f7a6d0b0e3a11")


def test_known_keystream() -> None:
    # RFC 6229, 40-bit key 0x0102030405, keystream offset 0.
    key = bytes.fromhex("0102030405")

    assert keystream_xor(key, bytes(8)) == bytes.fromhex("b2396305f03dc027")


@pytest.mark.parametrize("size", [0, 1, 8, 80, 4096])
def test_round_trip(size: int) -> None:
    data = os.urandom(size)

    encrypted = keystream_xor(TXID_KEY, data)

    assert len(encrypted) == size
    assert keystream_xor(TXID_KEY, encrypted) == data


def test_different_keys_give_different_streams() -> None:
    data = b"CNTRPRTY" + bytes(24)

    assert keystream_xor(TXID_KEY, data) != keystream_xor(TXID_KEY[::-1], data)


def test_empty_key_is_rejected() -> None:
    with pytest.raises(CipherError):
        keystream_xor(b"", b"data")


@pytest.mark.parametrize("key_length", range(1, 257))
def test_round_trip_for_every_key_length(key_length: int) -> None:
    key = bytes((index * 7 + 1) % 256 for index in range(key_length))
    data = b"CNTRPRTY" + bytes(range(32))

    assert keystream_xor(key, keystream_xor(key, data)) == data


def test_oversized_key_is_rejected() -> None:
    with pytest.raises(CipherError):
        keystream_xor(bytes(257), b"data")
