"""Message-type framing for decrypted Counterparty messages.

A message starts with its type id: a single non-zero byte for ids 1-255, or
a zero marker byte followed by the id as a 4-byte big-endian integer.
"""

from __future__ import annotations

import struct

LONG_ID_MARKER = 0x00
LONG_ID_SIZE = 5


class FramingError(ValueError):
    """Raised when a message is too short to carry its type id."""


def read_message_type_id(message: bytes) -> tuple[int, bytes]:
    """Split *message* into its type id and the remaining payload."""

    if not message:
        raise FramingError("Empty message")

    first_byte = message[0]
    if first_byte != LONG_ID_MARKER:
        return first_byte, bytes(message[1:])

    if len(message) < LONG_ID_SIZE:
        raise FramingError("Message too short for long ID")
    (message_id,) = struct.unpack_from(">I", message, 1)
    return message_id, bytes(message[LONG_ID_SIZE:])


def encode_message_type_id(message_id: int) -> bytes:
    """Return the framing prefix for *message_id*.

    Ids 1-255 use the one-byte form; every other 32-bit value uses the long
    form, including 0 which cannot be expressed as a short id.
    """

    if 0 < message_id < 256:
        return bytes([message_id])
    if not 0 <= message_id <= 0xFFFFFFFF:
        raise FramingError(f"Message type id out of range: {message_id}")
    return bytes([LONG_ID_MARKER]) + struct.pack(">I", message_id)
