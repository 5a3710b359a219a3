from __future__ import annotations

import cbor2
import pytest

from counterparty_decoder.addresses import TESTNET
from counterparty_decoder.cipher import keystream_xor
from counterparty_decoder.decoder import parse_transaction
from counterparty_decoder.script import push_data
from counterparty_decoder.transaction import Transaction, TxIn, TxOut, serialize_transaction

PREV_TXID = bytes.fromhex("9f2c45a12a6d3c8b7e1f0a4d5b6c7e8f90a1b2c3d4e5f60718293a4b5c6d7e8f")
P2WPKH_SHORT = b"\x03\x00" + bytes.fromhex("751e76e8199196d454941c45d1b3a323f1433bd6")
P2WPKH_OUTPUT = bytes.fromhex("0014") + bytes(20)


def _encrypted_op_return(message: bytes) -> bytes:
    return b"\x6a" + push_data(keystream_xor(PREV_TXID, b"CNTRPRTY" + message))


def _tx(outputs: list[TxOut], witness: list[bytes] | None = None) -> str:
    tx = Transaction(
        version=2,
        inputs=[
            TxIn(prev_txid=PREV_TXID, prev_vout=0, script_sig=b"", sequence=0xFFFFFFFF, witness=witness or [])
        ],
        outputs=outputs,
        locktime=0,
    )
    return serialize_transaction(tx).hex()


def test_op_return_keyed_by_first_input() -> None:
    message = b"\x02" + cbor2.dumps([1, 1000, P2WPKH_SHORT])
    raw = _tx([TxOut(546, P2WPKH_OUTPUT), TxOut(0, _encrypted_op_return(message))])

    messages = parse_transaction(raw)

    assert [m.message_name for m in messages] == ["enhanced_send"]
    assert messages[0].to_dict()["params"]["address"] == "bc1qw508d6qejxtdg4y5r3zarvary0c5xw7kv8f3t4"


def test_commit_and_reveal_in_one_transaction() -> None:
    envelope = b"\x00\x63" + push_data(b"\x0d\x00") + b"\x68"
    raw = _tx(
        [TxOut(0, b"\x6a\x08CNTRPRTY"), TxOut(546, P2WPKH_OUTPUT)],
        witness=[bytes(64), envelope, bytes(33)],
    )

    messages = parse_transaction(raw)

    assert [(m.message_name, m.message_id) for m in messages] == [
        ("taproot_commit", 0),
        ("dispense", 13),
    ]


def test_network_is_forwarded() -> None:
    message = b"\x02" + cbor2.dumps([1, 1000, P2WPKH_SHORT])
    raw = _tx([TxOut(0, _encrypted_op_return(message))])

    messages = parse_transaction(raw, TESTNET)

    assert messages[0].to_dict()["params"]["address"].startswith("tb1q")


def test_plain_transactions_yield_nothing() -> None:
    assert parse_transaction(_tx([TxOut(546, P2WPKH_OUTPUT), TxOut(0, b"\x6a\x04abcd")])) == []


def test_undecodable_hex_yields_nothing() -> None:
    assert parse_transaction("not hex") == []
    assert parse_transaction("02000000") == []


@pytest.mark.parametrize(
    "envelope",
    [
        b"\x00\x63ord\x07xcp\x01\x0atext/plain\x05\x02\x83\x02\x68",
        b"\x00\x63ord\x07xcp\x01\x0atext/plain\x05\x68",
    ],
)
def test_unreadable_envelope_metadata_yields_nothing(envelope: bytes) -> None:
    raw = _tx([TxOut(546, P2WPKH_OUTPUT)], witness=[bytes(64), envelope, bytes(33)])

    assert parse_transaction(raw) == []
