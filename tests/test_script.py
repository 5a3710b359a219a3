from __future__ import annotations

import pytest

from counterparty_decoder.script import (
    OP_ENDIF,
    OP_PUSHDATA1,
    OP_PUSHDATA2,
    OP_PUSHDATA4,
    ScriptError,
    push_data,
    read_push,
)


def test_push_data_small_literal() -> None:
    data = b"x" * 10

    assert push_data(data) == b"\x0a" + data


def test_push_data_op_pushdata1() -> None:
    data = b"x" * 100

    encoded = push_data(data)

    assert encoded.startswith(b"\x4c\x64")
    assert len(encoded) == 2 + len(data)


def test_push_data_op_pushdata2() -> None:
    data = b"x" * 300

    encoded = push_data(data)

    assert encoded.startswith(b"\x4d")
    assert encoded[1:3] == len(data).to_bytes(2, "little")
    assert len(encoded) == 1 + 2 + len(data)


def test_push_data_forced_widths() -> None:
    data = b"abc"

    assert push_data(data, opcode=OP_PUSHDATA1) == b"\x4c\x03abc"
    assert push_data(data, opcode=OP_PUSHDATA2) == b"\x4d\x03\x00abc"
    assert push_data(data, opcode=OP_PUSHDATA4) == b"\x4e\x03\x00\x00\x00abc"


def test_push_data_rejects_oversized_forced_width() -> None:
    with pytest.raises(ValueError):
        push_data(b"x" * 256, opcode=OP_PUSHDATA1)
    with pytest.raises(ValueError):
        push_data(b"x", opcode=OP_ENDIF)


@pytest.mark.parametrize("opcode", [None, OP_PUSHDATA1, OP_PUSHDATA2, OP_PUSHDATA4])
def test_read_push_round_trip(opcode: int | None) -> None:
    data = b"counterparty"
    script = push_data(data, opcode=opcode) + bytes([OP_ENDIF])

    pushed, offset = read_push(script, 0)

    assert pushed == data
    assert script[offset] == OP_ENDIF


def test_read_push_skips_non_push_opcodes() -> None:
    assert read_push(b"\x00\x63", 0) == (None, 1)
    assert read_push(b"\x00\x63", 1) == (None, 2)


@pytest.mark.parametrize(
    "script",
    [b"\x05abc", b"\x4c", b"\x4c\x10abc", b"\x4d\x01", b"\x4e\x05\x00\x00\x00ab"],
)
def test_read_push_truncation(script: bytes) -> None:
    with pytest.raises(ScriptError):
        read_push(script, 0)
