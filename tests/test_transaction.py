from __future__ import annotations

import pytest

from counterparty_decoder.transaction import (
    Transaction,
    TransactionDecodeError,
    TxIn,
    TxOut,
    deserialize_transaction,
    ser_compact_size,
    serialize_transaction,
)

PREV_TXID = bytes.fromhex("4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b")


def _tx(witness: list[bytes] | None = None) -> Transaction:
    return Transaction(
        version=2,
        inputs=[
            TxIn(
                prev_txid=PREV_TXID,
                prev_vout=1,
                script_sig=b"",
                sequence=0xFFFFFFFD,
                witness=list(witness or []),
            )
        ],
        outputs=[
            TxOut(value=546, script_pubkey=bytes.fromhex("0014") + bytes(20)),
            TxOut(value=0, script_pubkey=b"\x6a\x08CNTRPRTY"),
        ],
        locktime=0,
    )


def test_legacy_round_trip() -> None:
    raw = serialize_transaction(_tx())

    tx = deserialize_transaction(raw)

    assert tx.version == 2
    assert not tx.has_witness
    assert tx.inputs[0].prev_txid == PREV_TXID
    assert tx.inputs[0].prev_txid_hex == PREV_TXID.hex()
    assert tx.inputs[0].prev_vout == 1
    assert tx.inputs[0].sequence == 0xFFFFFFFD
    assert [out.value for out in tx.outputs] == [546, 0]
    assert tx.outputs[1].script_pubkey == b"\x6a\x08CNTRPRTY"


def test_prev_txid_is_serialized_in_internal_order() -> None:
    raw = serialize_transaction(_tx())

    assert raw[5:37] == PREV_TXID[::-1]


def test_segwit_round_trip() -> None:
    witness = [bytes(64), b"\x00\x63\x01\x02\x68", bytes(33)]
    raw = serialize_transaction(_tx(witness))

    assert raw[4:6] == b"\x00\x01"
    tx = deserialize_transaction(raw)

    assert tx.has_witness
    assert tx.inputs[0].witness == witness
    assert serialize_transaction(tx) == raw


def test_trailing_bytes_are_rejected() -> None:
    raw = serialize_transaction(_tx()) + b"\x00"

    with pytest.raises(TransactionDecodeError):
        deserialize_transaction(raw)


@pytest.mark.parametrize("cut", [3, 10, 45, 60])
def test_truncated_transactions_are_rejected(cut: int) -> None:
    raw = serialize_transaction(_tx([bytes(64)]))

    with pytest.raises(TransactionDecodeError):
        deserialize_transaction(raw[:cut])


def test_unknown_segwit_flag() -> None:
    raw = bytearray(serialize_transaction(_tx([bytes(64)])))
    raw[5] = 0x02

    with pytest.raises(TransactionDecodeError):
        deserialize_transaction(bytes(raw))


def test_compact_size() -> None:
    assert ser_compact_size(0) == b"\x00"
    assert ser_compact_size(252) == b"\xfc"
    assert ser_compact_size(253) == b"\xfd\xfd\x00"
    assert ser_compact_size(0x10000) == b"\xfe\x00\x00\x01\x00"
    assert ser_compact_size(1 << 32) == b"\xff" + (1 << 32).to_bytes(8, "little")
