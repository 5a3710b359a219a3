from __future__ import annotations

import pytest

from counterparty_decoder.framing import FramingError, encode_message_type_id, read_message_type_id


def test_short_id() -> None:
    assert read_message_type_id(b"\x02\xaa\xbb") == (2, b"\xaa\xbb")


def test_long_id() -> None:
    assert read_message_type_id(bytes([0x00, 0x00, 0x00, 0x04, 0xD2, 0xAA])) == (1234, b"\xaa")


def test_long_id_may_hold_small_values() -> None:
    assert read_message_type_id(b"\x00\x00\x00\x00\x02") == (2, b"")


def test_empty_message() -> None:
    with pytest.raises(FramingError, match="Empty message"):
        read_message_type_id(b"")


def test_long_id_too_short() -> None:
    with pytest.raises(FramingError, match="Message too short for long ID"):
        read_message_type_id(b"\x00\x01\x02")


def test_encode_message_type_id() -> None:
    assert encode_message_type_id(2) == b"\x02"
    assert encode_message_type_id(255) == b"\xff"
    assert encode_message_type_id(256) == b"\x00\x00\x00\x01\x00"
    assert encode_message_type_id(0) == b"\x00\x00\x00\x00\x00"
    with pytest.raises(FramingError):
        encode_message_type_id(-1)
    with pytest.raises(FramingError):
        encode_message_type_id(1 << 32)


@pytest.mark.parametrize("message_id", [1, 110, 255, 256, 1234, 0xFFFFFFFF])
def test_encoded_ids_read_back(message_id: int) -> None:
    assert read_message_type_id(encode_message_type_id(message_id) + b"rest") == (message_id, b"rest")
