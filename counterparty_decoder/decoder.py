"""Transaction-level entry point that tries every carrier."""

from __future__ import annotations

import logging
from typing import List

from .addresses import MAINNET, NetworkParams
from .envelope import parse_reveal_tx
from .model import ParsedMessage
from .op_return import parse_op_return
from .script import OP_RETURN
from .transaction import deserialize_transaction

logger = logging.getLogger(__name__)


def parse_transaction(raw_tx_hex: str, network: NetworkParams = MAINNET) -> List[ParsedMessage]:
    """Return every Counterparty message found in a raw transaction.

    Each OP_RETURN output is decrypted with the first input's txid, then the
    witness envelope (if any) is decoded. Messages are returned in that
    order; undecodable hex yields an empty list.
    """

    try:
        tx = deserialize_transaction(bytes.fromhex(raw_tx_hex))
    except ValueError as exc:
        logger.debug("Cannot decode transaction: %s", exc)
        return []

    messages: List[ParsedMessage] = []
    if tx.inputs:
        key = tx.inputs[0].prev_txid_hex
        for index, tx_out in enumerate(tx.outputs):
            if not tx_out.script_pubkey or tx_out.script_pubkey[0] != OP_RETURN:
                continue
            message = parse_op_return(tx_out.script_pubkey, key, network)
            if message is not None:
                logger.debug("Output %d carries %s", index, message.message_name)
                messages.append(message)

    if tx.has_witness:
        message = parse_reveal_tx(raw_tx_hex, network)
        if message is not None:
            messages.append(message)
    return messages
