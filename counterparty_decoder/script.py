"""Bitcoin script push-opcode grammar shared by both carriers."""

from __future__ import annotations

OP_0 = 0x00
OP_FALSE = OP_0
OP_PUSHDATA1 = 0x4C
OP_PUSHDATA2 = 0x4D
OP_PUSHDATA4 = 0x4E
OP_IF = 0x63
OP_ENDIF = 0x68
OP_RETURN = 0x6A

MAX_DIRECT_PUSH = 0x4B

_LENGTH_WIDTHS = {OP_PUSHDATA1: 1, OP_PUSHDATA2: 2, OP_PUSHDATA4: 4}


class ScriptError(ValueError):
    """Raised when a push opcode runs past the end of the script."""


def read_push(script: bytes, offset: int) -> tuple[bytes | None, int]:
    """Decode the opcode at *offset*.

    Returns the pushed bytes and the offset of the next opcode. Opcodes that
    push nothing (including ``OP_0``) yield ``None`` and advance by one byte.
    """

    opcode = script[offset]
    cursor = offset + 1

    if 1 <= opcode <= MAX_DIRECT_PUSH:
        length = opcode
    elif opcode in _LENGTH_WIDTHS:
        width = _LENGTH_WIDTHS[opcode]
        if cursor + width > len(script):
            raise ScriptError(f"Truncated length for opcode 0x{opcode:02x} at offset {offset}")
        length = int.from_bytes(script[cursor:cursor + width], "little")
        cursor += width
    else:
        return None, cursor

    end = cursor + length
    if end > len(script):
        raise ScriptError(
            f"Push of {length} bytes at offset {offset} exceeds script length {len(script)}"
        )
    return bytes(script[cursor:end]), end


def push_data(data: bytes, *, opcode: int | None = None) -> bytes:
    """Serialize *data* as a script push.

    The smallest encoding is chosen unless *opcode* forces ``OP_PUSHDATA1``,
    ``OP_PUSHDATA2`` or ``OP_PUSHDATA4``. Decoding only reads pushes; this
    builds OP_RETURN and envelope scripts for tests and tooling.
    """

    length = len(data)
    if opcode is None:
        if 0 < length <= MAX_DIRECT_PUSH:
            return bytes([length]) + data
        if length <= 0xFF:
            opcode = OP_PUSHDATA1
        elif length <= 0xFFFF:
            opcode = OP_PUSHDATA2
        else:
            opcode = OP_PUSHDATA4

    if opcode not in _LENGTH_WIDTHS:
        raise ValueError(f"Unsupported push opcode: 0x{opcode:02x}")
    width = _LENGTH_WIDTHS[opcode]
    if length >= 1 << (8 * width):
        raise ValueError(f"{length} bytes do not fit opcode 0x{opcode:02x}")
    return bytes([opcode]) + length.to_bytes(width, "little") + data
