"""Taproot witness envelope carrier.

A reveal transaction spends a Taproot output through a tapscript that holds
an ``OP_FALSE OP_IF ... OP_ENDIF`` envelope. Two envelope layouts exist:

* the generic envelope, whose pushes concatenate to a framed message;
* the inscription-style ``ord``/``xcp`` envelope, which carries a mime type
  and a CBOR array ``[message_type_id, *fields]``. It is re-framed into the
  same ``type id + CBOR`` shape as the generic envelope so both share the
  payload decoders.
"""

from __future__ import annotations

import logging
from typing import List

import cbor2

from .addresses import MAINNET, NetworkParams
from .constants import message_name
from .framing import encode_message_type_id, read_message_type_id
from .model import ParsedMessage
from .payloads import decode_payload
from .script import MAX_DIRECT_PUSH, OP_ENDIF, OP_FALSE, OP_IF, OP_PUSHDATA1, read_push
from .transaction import Transaction, deserialize_transaction

logger = logging.getLogger(__name__)

ENVELOPE_MARKER = bytes([OP_FALSE, OP_IF])
MIN_ENVELOPE_SIZE = 4

ORD_TAG = b"ord"
XCP_TAG = b"xcp"
# Bytes that may sit in front of the protocol tags depending on whether the
# envelope was written with push opcodes or as bare literals.
TAG_PUSH = 0x03
METAPROTOCOL_FIELD = 0x07
CONTENT_TYPE_FIELD = 0x01
METADATA_FIELD = 0x05


class EnvelopeError(ValueError):
    """Raised when an envelope is recognized but malformed."""


def _byte_at(script: bytes, offset: int) -> int | None:
    return script[offset] if offset < len(script) else None


def find_envelope_script(tx: Transaction) -> bytes | None:
    """Return the first witness tapscript that opens with the envelope marker.

    Only the second-from-last item of each witness stack (the tapscript in a
    script-path spend) is considered, in input order.
    """

    for tx_in in tx.inputs:
        if len(tx_in.witness) < 2:
            continue
        script = tx_in.witness[-2]
        if len(script) > len(ENVELOPE_MARKER) and script.startswith(ENVELOPE_MARKER):
            return script
    return None


def _match_tag(script: bytes, offset: int, tag: bytes) -> int | None:
    """Return the offset after *tag* at *offset*, tolerating its push byte."""

    if script[offset:offset + len(tag)] == tag:
        return offset + len(tag)
    if _byte_at(script, offset) == TAG_PUSH and script[offset + 1:offset + 1 + len(tag)] == tag:
        return offset + 1 + len(tag)
    return None


def _ord_xcp_start(script: bytes) -> int | None:
    """Return the offset just past ``xcp`` for an ord/xcp envelope."""

    cursor = _match_tag(script, len(ENVELOPE_MARKER), ORD_TAG)
    if cursor is None:
        return None

    if _byte_at(script, cursor) == METAPROTOCOL_FIELD:
        cursor += 1
    elif (_byte_at(script, cursor), _byte_at(script, cursor + 1)) == (0x01, METAPROTOCOL_FIELD):
        cursor += 2

    return _match_tag(script, cursor, XCP_TAG)


def scan_generic_envelope(script: bytes, offset: int = len(ENVELOPE_MARKER)) -> bytes:
    """Concatenate every push from *offset* up to ``OP_ENDIF``.

    Opcodes that push nothing are skipped. A push that runs past the end of
    the script raises :class:`~counterparty_decoder.script.ScriptError`.
    """

    chunks: List[bytes] = []
    cursor = offset
    while cursor < len(script):
        if script[cursor] == OP_ENDIF:
            break
        data, cursor = read_push(script, cursor)
        if data is not None:
            chunks.append(data)
    return b"".join(chunks)


def scan_ord_xcp_envelope(script: bytes, offset: int) -> bytes:
    """Re-frame an ord/xcp envelope whose ``xcp`` tag ends at *offset*."""

    cursor = offset
    if _byte_at(script, cursor) == CONTENT_TYPE_FIELD:
        cursor += 1

    mime_length = _byte_at(script, cursor)
    if mime_length is None:
        raise EnvelopeError("Envelope ends before the mime type")
    cursor += 1
    if cursor + mime_length > len(script):
        raise EnvelopeError("Truncated mime type")
    mime_type = script[cursor:cursor + mime_length].decode("utf-8", errors="replace")
    cursor += mime_length

    if _byte_at(script, cursor) == METADATA_FIELD:
        cursor += 1

    # Metadata ends at OP_ENDIF or at the OP_0 that introduces the content body.
    chunks: List[bytes] = []
    while cursor < len(script):
        opcode = script[cursor]
        if opcode in (OP_ENDIF, OP_FALSE):
            break
        if opcode <= MAX_DIRECT_PUSH or opcode == OP_PUSHDATA1:
            data, cursor = read_push(script, cursor)
            chunks.append(data)
        else:
            cursor += 1

    try:
        decoded = cbor2.loads(b"".join(chunks))
    except cbor2.CBORDecodeError as exc:
        raise EnvelopeError(f"Invalid CBOR metadata: {exc}") from exc
    if not isinstance(decoded, list) or not decoded:
        raise EnvelopeError("Envelope metadata is not a non-empty CBOR array")
    message_id = decoded[0]
    if isinstance(message_id, bool) or not isinstance(message_id, int):
        raise EnvelopeError(f"Message type id must be an integer, got {message_id!r}")

    fields = list(decoded[1:]) + [mime_type]
    try:
        body = cbor2.dumps(fields)
    except cbor2.CBOREncodeError as exc:
        raise EnvelopeError(f"Cannot re-encode envelope metadata: {exc}") from exc
    return encode_message_type_id(message_id) + body


def extract_from_envelope(script: bytes) -> bytes:
    """Return the framed message carried by an envelope script.

    Raises:
        EnvelopeError: If *script* does not open with ``OP_FALSE OP_IF`` or
            the envelope contents are malformed.
    """

    if len(script) < MIN_ENVELOPE_SIZE or not script.startswith(ENVELOPE_MARKER):
        raise EnvelopeError("Script does not open an envelope")

    xcp_end = _ord_xcp_start(script)
    if xcp_end is not None:
        return scan_ord_xcp_envelope(script, xcp_end)
    return scan_generic_envelope(script)


def parse_reveal_tx(raw_tx_hex: str, network: NetworkParams = MAINNET) -> ParsedMessage | None:
    """Decode the Counterparty message revealed by a Taproot transaction.

    Returns ``None`` when the transaction carries no envelope, or when the
    envelope or its framing cannot be parsed.
    """

    try:
        tx = deserialize_transaction(bytes.fromhex(raw_tx_hex))
        if not tx.has_witness:
            logger.debug("Transaction has no witness data")
            return None

        script = find_envelope_script(tx)
        if script is None:
            logger.debug("No witness item opens an envelope")
            return None

        message = extract_from_envelope(script)
        if not message:
            return None

        message_id, payload = read_message_type_id(message)
    except (ValueError, TypeError) as exc:
        logger.debug("Reveal transaction rejected: %s", exc)
        return None

    return ParsedMessage(
        message_name=message_name(message_id),
        message_id=message_id,
        params=decode_payload(message_id, payload, network),
    )
