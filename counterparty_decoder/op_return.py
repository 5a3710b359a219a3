"""Legacy OP_RETURN carrier.

Counterparty stores ``CNTRPRTY`` + message in a single OP_RETURN push,
ARC4-encrypted with the hex txid of the transaction's first input. The
unencrypted magic alone marks the commit transaction of a Taproot
commit/reveal pair.
"""

from __future__ import annotations

import logging

from .addresses import MAINNET, NetworkParams
from .cipher import keystream_xor
from .constants import PREFIX, PREFIX_BYTES, TAPROOT_COMMIT_ID, TAPROOT_COMMIT_NAME, message_name
from .framing import read_message_type_id
from .model import ParsedMessage, TaprootCommitPayload
from .payloads import decode_payload
from .script import OP_PUSHDATA1, OP_PUSHDATA2, OP_PUSHDATA4, OP_RETURN

logger = logging.getLogger(__name__)

# Offset of the pushed data for each push opcode following OP_RETURN.
_DATA_OFFSETS = {OP_PUSHDATA1: 3, OP_PUSHDATA2: 4, OP_PUSHDATA4: 6}


def extract_op_return_data(script: bytes) -> bytes | None:
    """Return the bytes pushed after ``OP_RETURN`` or ``None``.

    The push length field is skipped, not checked: everything after it is
    treated as data.
    """

    if not script or script[0] != OP_RETURN:
        return None

    start = 1
    if len(script) > 1:
        opcode = script[1]
        if opcode < OP_PUSHDATA1:
            start = 2
        else:
            start = _DATA_OFFSETS.get(opcode, 1)
    return bytes(script[start:])


def _parse(script: bytes, first_input_txid_hex: str, network: NetworkParams) -> ParsedMessage | None:
    data = extract_op_return_data(script)
    if data is None:
        logger.debug("Script is not an OP_RETURN output")
        return None

    if data == PREFIX_BYTES:
        return ParsedMessage(
            message_name=TAPROOT_COMMIT_NAME,
            message_id=TAPROOT_COMMIT_ID,
            params=TaprootCommitPayload(data=PREFIX),
        )

    # The txid is used as written, without reversing to internal byte order.
    decrypted = keystream_xor(bytes.fromhex(first_input_txid_hex), data)
    if decrypted[:len(PREFIX_BYTES)] != PREFIX_BYTES:
        logger.debug("Decrypted OP_RETURN data lacks the %s prefix", PREFIX)
        return None

    message = decrypted[len(PREFIX_BYTES):]
    if not message:
        return None

    message_id, payload = read_message_type_id(message)
    return ParsedMessage(
        message_name=message_name(message_id),
        message_id=message_id,
        params=decode_payload(message_id, payload, network),
    )


def parse_op_return(
    script_bytes: bytes,
    first_input_txid_hex: str,
    network: NetworkParams = MAINNET,
) -> ParsedMessage | None:
    """Decode a Counterparty message carried by an OP_RETURN output script.

    Args:
        script_bytes: Full output script, starting with ``OP_RETURN``.
        first_input_txid_hex: Hex txid of the transaction's first input,
            used as the ARC4 key.
        network: Address parameters for decoded short addresses.

    Returns:
        The parsed message, or ``None`` when the script does not carry one
        or cannot be decrypted and framed.
    """

    try:
        return _parse(bytes(script_bytes), first_input_txid_hex, network)
    except (ValueError, TypeError) as exc:
        logger.debug("OP_RETURN script rejected: %s", exc)
        return None
