"""Decoder for Counterparty messages embedded in Bitcoin transactions."""

from .addresses import MAINNET, REGTEST, TESTNET, NetworkParams, get_network, short_address_to_address
from .assets import asset_id_to_name
from .cipher import CipherError, keystream_xor
from .config import ConfigurationError, load_network_params
from .constants import MESSAGE_TYPES, PREFIX, message_name
from .decoder import parse_transaction
from .envelope import extract_from_envelope, parse_reveal_tx
from .framing import FramingError, read_message_type_id
from .model import ParsedMessage, Payload, UnknownPayload
from .op_return import parse_op_return
from .payloads import PayloadDecodeError, decode_payload

__all__ = [
    "MAINNET",
    "TESTNET",
    "REGTEST",
    "NetworkParams",
    "get_network",
    "short_address_to_address",
    "asset_id_to_name",
    "CipherError",
    "keystream_xor",
    "ConfigurationError",
    "load_network_params",
    "MESSAGE_TYPES",
    "PREFIX",
    "message_name",
    "parse_transaction",
    "extract_from_envelope",
    "parse_reveal_tx",
    "FramingError",
    "read_message_type_id",
    "ParsedMessage",
    "Payload",
    "UnknownPayload",
    "parse_op_return",
    "PayloadDecodeError",
    "decode_payload",
]
