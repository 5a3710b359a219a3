"""Minimal raw Bitcoin transaction deserializer.

Only the parts the carriers need are decoded: inputs (with their witness
stacks) and outputs. Segregated-witness serialization (BIP144) is detected by
the ``00 01`` marker/flag after the version field.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


class TransactionDecodeError(ValueError):
    """Raised when raw transaction bytes are malformed."""


@dataclass
class TxIn:
    """Transaction input; ``prev_txid`` is in display (RPC) byte order."""

    prev_txid: bytes
    prev_vout: int
    script_sig: bytes
    sequence: int
    witness: List[bytes] = field(default_factory=list)

    @property
    def prev_txid_hex(self) -> str:
        return self.prev_txid.hex()


@dataclass
class TxOut:
    value: int
    script_pubkey: bytes


@dataclass
class Transaction:
    version: int
    inputs: List[TxIn]
    outputs: List[TxOut]
    locktime: int
    has_witness: bool = False


class _Reader:
    def __init__(self, data: bytes) -> None:
        self.data = data
        self.offset = 0

    def remaining(self) -> int:
        return len(self.data) - self.offset

    def read(self, size: int, what: str) -> bytes:
        if size < 0 or self.offset + size > len(self.data):
            raise TransactionDecodeError(f"Transaction too short for {what}")
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def read_int(self, size: int, what: str, *, signed: bool = False) -> int:
        return int.from_bytes(self.read(size, what), "little", signed=signed)

    def read_compact_size(self, what: str) -> int:
        prefix = self.read(1, what)[0]
        if prefix < 0xFD:
            return prefix
        width = {0xFD: 2, 0xFE: 4, 0xFF: 8}[prefix]
        return self.read_int(width, what)

    def read_var_bytes(self, what: str) -> bytes:
        return self.read(self.read_compact_size(what), what)


def deserialize_transaction(raw: bytes) -> Transaction:
    """Deserialize a raw transaction.

    Raises:
        TransactionDecodeError: If the bytes are truncated, carry trailing
            data, or use an unknown segwit flag.
    """

    reader = _Reader(bytes(raw))
    version = reader.read_int(4, "version", signed=True)

    has_witness = False
    if reader.remaining() >= 2 and reader.data[reader.offset] == 0x00:
        flag = reader.data[reader.offset + 1]
        if flag != 0x01:
            raise TransactionDecodeError(f"Unsupported segwit flag: 0x{flag:02x}")
        has_witness = True
        reader.offset += 2

    inputs: List[TxIn] = []
    for index in range(reader.read_compact_size("input count")):
        prev_txid = reader.read(32, f"input {index} prevout hash")[::-1]
        prev_vout = reader.read_int(4, f"input {index} prevout index")
        script_sig = reader.read_var_bytes(f"input {index} script_sig")
        sequence = reader.read_int(4, f"input {index} sequence")
        inputs.append(
            TxIn(prev_txid=prev_txid, prev_vout=prev_vout, script_sig=script_sig, sequence=sequence)
        )

    outputs: List[TxOut] = []
    for index in range(reader.read_compact_size("output count")):
        value = reader.read_int(8, f"output {index} value", signed=True)
        script_pubkey = reader.read_var_bytes(f"output {index} script_pubkey")
        outputs.append(TxOut(value=value, script_pubkey=script_pubkey))

    if has_witness:
        for index, tx_in in enumerate(inputs):
            item_count = reader.read_compact_size(f"input {index} witness count")
            tx_in.witness = [
                reader.read_var_bytes(f"input {index} witness item") for _ in range(item_count)
            ]

    locktime = reader.read_int(4, "locktime")
    if reader.remaining():
        raise TransactionDecodeError(f"{reader.remaining()} trailing bytes after locktime")

    return Transaction(
        version=version,
        inputs=inputs,
        outputs=outputs,
        locktime=locktime,
        has_witness=has_witness and any(tx_in.witness for tx_in in inputs),
    )


def serialize_transaction(tx: Transaction) -> bytes:
    """Serialize *tx*, writing witness data when any input carries some.

    Decoding never needs this; it builds raw transactions for tests and tooling.
    """

    with_witness = any(tx_in.witness for tx_in in tx.inputs)
    parts = [tx.version.to_bytes(4, "little", signed=True)]
    if with_witness:
        parts.append(b"\x00\x01")

    parts.append(ser_compact_size(len(tx.inputs)))
    for tx_in in tx.inputs:
        parts.append(tx_in.prev_txid[::-1])
        parts.append(tx_in.prev_vout.to_bytes(4, "little"))
        parts.append(ser_compact_size(len(tx_in.script_sig)) + tx_in.script_sig)
        parts.append(tx_in.sequence.to_bytes(4, "little"))

    parts.append(ser_compact_size(len(tx.outputs)))
    for tx_out in tx.outputs:
        parts.append(tx_out.value.to_bytes(8, "little", signed=True))
        parts.append(ser_compact_size(len(tx_out.script_pubkey)) + tx_out.script_pubkey)

    if with_witness:
        for tx_in in tx.inputs:
            parts.append(ser_compact_size(len(tx_in.witness)))
            for item in tx_in.witness:
                parts.append(ser_compact_size(len(item)) + item)

    parts.append(tx.locktime.to_bytes(4, "little"))
    return b"".join(parts)


def ser_compact_size(n: int) -> bytes:
    """Serialize an integer as a Bitcoin compact size (used by the serializer)."""

    if n < 253:
        return bytes([n])
    elif n <= 0xFFFF:
        return b"\xfd" + n.to_bytes(2, "little")
    elif n <= 0xFFFFFFFF:
        return b"\xfe" + n.to_bytes(4, "little")
    else:
        return b"\xff" + n.to_bytes(8, "little")
