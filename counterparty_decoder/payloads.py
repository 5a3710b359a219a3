"""Per-message-type payload decoders.

Each ``decode_*`` function turns the bytes that follow the message-type id
into a payload dataclass and raises :class:`PayloadDecodeError` (or lets a
``struct``/CBOR error propagate) when the payload is structurally invalid.
:func:`decode_payload` is the single entry point used by the carriers: it
picks the decoder for a message id and converts any failure into an
:class:`~counterparty_decoder.model.UnknownPayload`.

Payload layouts come in three families:

* fixed big-endian structs (order, btc_pay, dispenser, dividend, cancel,
  destroy), where optional trailing fields exist only if the buffer is long
  enough and extra bytes past the last known field are ignored;
* CBOR arrays (enhanced_send, sweep, issuance, issuance_subasset, broadcast,
  fairminter, fairmint);
* short text or literal encodings (attach, detach, dispense).
"""

from __future__ import annotations

import logging
import struct
from types import MappingProxyType
from typing import Any, Callable, List, Mapping

import cbor2

from .addresses import MAINNET, NetworkParams, short_address_to_address
from .assets import asset_id_to_name
from .model import (
    AttachPayload,
    BroadcastPayload,
    BtcPayPayload,
    CancelPayload,
    DestroyPayload,
    DetachPayload,
    DispensePayload,
    DispenserPayload,
    DividendPayload,
    EnhancedSendPayload,
    FairminterPayload,
    FairmintPayload,
    IssuancePayload,
    IssuanceSubassetPayload,
    OrderPayload,
    Payload,
    SweepPayload,
    UnknownPayload,
)

logger = logging.getLogger(__name__)

# RFC 8746 typed arrays that carry plain bytes (uint8 and uint8-clamped).
_BYTE_ARRAY_TAGS = frozenset({64, 68})

SHORT_ADDRESS_SIZE = 21
DESTROY_TAG_MAX_SIZE = 34
DETACH_SELF_MARKER = b"\x30"

_ORDER = struct.Struct(">QqQqH")
_ORDER_FEE = struct.Struct(">q")
_DISPENSER = struct.Struct(">QqqqB")
_DIVIDEND = struct.Struct(">qQ")
_DIVIDEND_ASSET = struct.Struct(">Q")
_DESTROY = struct.Struct(">Qq")


class PayloadDecodeError(ValueError):
    """Raised when a payload does not match its message type's layout."""


def _normalize_cbor_value(value: Any) -> Any:
    if isinstance(value, (bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, cbor2.CBORTag) and value.tag in _BYTE_ARRAY_TAGS:
        if isinstance(value.value, (bytes, bytearray, memoryview)):
            return bytes(value.value)
    return value


def _load_cbor_array(payload: bytes, min_length: int, error: str) -> List[Any]:
    """Decode a CBOR array of at least *min_length* items.

    Byte-string-like items are normalized to :class:`bytes` here so that the
    decoders never see typed arrays or other byte containers.
    """

    decoded = cbor2.loads(payload)
    if not isinstance(decoded, list) or len(decoded) < min_length:
        raise PayloadDecodeError(error)
    return [_normalize_cbor_value(item) for item in decoded]


def _item(values: List[Any], index: int) -> Any:
    return values[index] if index < len(values) else None


def _as_bytes(value: Any, field: str) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, list):
        return bytes(value)
    raise PayloadDecodeError(f"{field} must be a byte string, got {type(value).__name__}")


def _as_text(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _as_decimal(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _is_absent(value: Any) -> bool:
    # Falsy scalars (null, false, 0, "") mark an omitted field; empty byte strings do not.
    if isinstance(value, (bytes, list)):
        return False
    return not value


def _optional_hex(value: Any, field: str) -> str:
    if _is_absent(value):
        return ""
    return _as_bytes(value, field).hex()


def decode_text_or_hex(data: bytes, mime_type: str | None) -> str:
    """Render *data* as text when it is declared (or presumed) textual.

    UTF-8 is attempted only for an empty mime type or one starting with
    ``text``, and only kept when re-encoding reproduces the exact bytes.
    Everything else becomes lowercase hex.
    """

    normalized = (mime_type or "").strip().lower()
    if normalized == "" or normalized.startswith("text"):
        try:
            decoded = data.decode("utf-8")
        except UnicodeDecodeError:
            decoded = None
        if decoded is not None and decoded.encode("utf-8") == data:
            return decoded
    return data.hex()


def _optional_text_or_hex(value: Any, mime_type: str, field: str) -> str | None:
    if _is_absent(value):
        return None
    return decode_text_or_hex(_as_bytes(value, field), mime_type)


def decode_enhanced_send(payload: bytes, network: NetworkParams = MAINNET) -> EnhancedSendPayload:
    """Decode ``[asset_id, quantity, short_address, memo?]``."""

    values = _load_cbor_array(payload, 3, "Invalid enhanced send payload")
    return EnhancedSendPayload(
        asset=asset_id_to_name(values[0]),
        quantity=_as_decimal(values[1]),
        address=short_address_to_address(_as_bytes(values[2], "address"), network),
        memo=_optional_hex(_item(values, 3), "memo"),
    )


def decode_sweep(payload: bytes, network: NetworkParams = MAINNET) -> SweepPayload:
    """Decode ``[short_address, flags, memo?]``."""

    values = _load_cbor_array(payload, 2, "Invalid sweep payload")
    return SweepPayload(
        address=short_address_to_address(_as_bytes(values[0], "address"), network),
        flags=values[1],
        memo=_optional_hex(_item(values, 2), "memo"),
    )


def decode_issuance(payload: bytes) -> IssuancePayload:
    """Decode ``[asset_id, quantity, divisible, lock, reset, mime_type?, description?]``."""

    values = _load_cbor_array(payload, 5, "Invalid issuance payload")
    mime_type = _as_text(_item(values, 5))
    return IssuancePayload(
        asset=asset_id_to_name(values[0]),
        quantity=_as_decimal(values[1]),
        divisible=values[2],
        lock=values[3],
        reset=values[4],
        mime_type=mime_type,
        description=_optional_text_or_hex(_item(values, 6), mime_type, "description"),
    )


def decode_issuance_subasset(payload: bytes) -> IssuanceSubassetPayload:
    values = _load_cbor_array(payload, 7, "Invalid issuance subasset payload")
    mime_type = _as_text(_item(values, 7))
    return IssuanceSubassetPayload(
        asset=asset_id_to_name(values[0]),
        quantity=_as_decimal(values[1]),
        divisible=values[2],
        lock=values[3],
        reset=values[4],
        compacted_subasset_length=values[5],
        compacted_subasset_longname=_as_bytes(values[6], "compacted_subasset_longname").hex(),
        mime_type=mime_type,
        description=_optional_text_or_hex(_item(values, 8), mime_type, "description"),
    )


def decode_broadcast(payload: bytes) -> BroadcastPayload:
    """Decode ``[timestamp, value, fee_fraction_int, mime_type, text?]``."""

    values = _load_cbor_array(payload, 4, "Invalid broadcast payload")
    mime_type = _as_text(values[3])
    return BroadcastPayload(
        timestamp=values[0],
        value=values[1],
        fee_fraction_int=values[2],
        mime_type=mime_type,
        text=_optional_text_or_hex(_item(values, 4), mime_type, "text") or "",
    )


def decode_fairminter(payload: bytes) -> FairminterPayload:
    values = _load_cbor_array(payload, 17, "Invalid fairminter payload")
    mime_type = _as_text(_item(values, 17))
    return FairminterPayload(
        asset=asset_id_to_name(values[0]),
        asset_parent=asset_id_to_name(values[1]),
        price=_as_decimal(values[2]),
        quantity_by_price=_as_decimal(values[3]),
        max_mint_per_tx=_as_decimal(values[4]),
        max_mint_per_address=_as_decimal(values[5]),
        hard_cap=_as_decimal(values[6]),
        premint_quantity=_as_decimal(values[7]),
        start_block=values[8],
        end_block=values[9],
        soft_cap=_as_decimal(values[10]),
        soft_cap_deadline_block=values[11],
        minted_asset_commission_int=values[12],
        burn_payment=values[13],
        lock_description=values[14],
        lock_quantity=values[15],
        divisible=values[16],
        mime_type=mime_type,
        description=_optional_text_or_hex(_item(values, 18), mime_type, "description") or "",
    )


def decode_fairmint(payload: bytes) -> FairmintPayload:
    values = _load_cbor_array(payload, 2, "Invalid fairmint payload")
    return FairmintPayload(asset=asset_id_to_name(values[0]), quantity=_as_decimal(values[1]))


def decode_attach(payload: bytes) -> AttachPayload:
    """Decode the ``asset|quantity|destination_vout`` text form."""

    parts = payload.decode("utf-8", errors="replace").split("|")
    if len(parts) < 2:
        raise PayloadDecodeError("Invalid attach payload")
    return AttachPayload(
        asset=parts[0],
        quantity=parts[1],
        destination_vout=parts[2] if len(parts) > 2 else "",
    )


def decode_detach(payload: bytes) -> DetachPayload:
    # A lone "0" byte credits the assets back to the source address.
    if payload == DETACH_SELF_MARKER:
        return DetachPayload(destination="self")
    return DetachPayload(destination=payload.decode("utf-8", errors="replace"))


def decode_order(payload: bytes) -> OrderPayload:
    """Decode ``>QqQqH`` plus an optional ``>q`` fee_required."""

    if len(payload) < _ORDER.size:
        raise PayloadDecodeError("Invalid order payload")
    give_id, give_quantity, get_id, get_quantity, expiration = _ORDER.unpack_from(payload)
    fee_required = 0
    if len(payload) >= _ORDER.size + _ORDER_FEE.size:
        (fee_required,) = _ORDER_FEE.unpack_from(payload, _ORDER.size)
    return OrderPayload(
        give_asset=asset_id_to_name(give_id),
        give_quantity=str(give_quantity),
        get_asset=asset_id_to_name(get_id),
        get_quantity=str(get_quantity),
        expiration=expiration,
        fee_required=str(fee_required),
    )


def decode_btc_pay(payload: bytes) -> BtcPayPayload:
    if len(payload) < 64:
        raise PayloadDecodeError("Invalid btc_pay payload")
    return BtcPayPayload(tx0_hash=payload[:32].hex(), tx1_hash=payload[32:64].hex())


def decode_dispenser(payload: bytes, network: NetworkParams = MAINNET) -> DispenserPayload:
    """Decode ``>QqqqB`` followed by optional action and oracle short addresses."""

    if len(payload) < _DISPENSER.size:
        raise PayloadDecodeError("Invalid dispenser payload")
    asset_id, give_quantity, escrow_quantity, satoshirate, status = _DISPENSER.unpack_from(payload)

    addresses: List[str | None] = []
    offset = _DISPENSER.size
    for _ in range(2):
        end = offset + SHORT_ADDRESS_SIZE
        if len(payload) < end:
            addresses.append(None)
            continue
        addresses.append(short_address_to_address(payload[offset:end], network))
        offset = end

    return DispenserPayload(
        asset=asset_id_to_name(asset_id),
        give_quantity=str(give_quantity),
        escrow_quantity=str(escrow_quantity),
        satoshirate=str(satoshirate),
        status=status,
        action_address=addresses[0],
        oracle_address=addresses[1],
    )


def decode_dispense(payload: bytes) -> DispensePayload:
    if payload != b"\x00":
        raise PayloadDecodeError("Invalid dispense payload: expected 0x00")
    return DispensePayload(data="0x00")


def decode_dividend(payload: bytes) -> DividendPayload:
    """Decode ``>qQ`` with an optional ``>Q`` dividend asset (XCP when absent)."""

    if len(payload) < _DIVIDEND.size:
        raise PayloadDecodeError("Invalid dividend payload")
    quantity_per_unit, asset_id = _DIVIDEND.unpack_from(payload)
    dividend_asset = "XCP"
    if len(payload) >= _DIVIDEND.size + _DIVIDEND_ASSET.size:
        (dividend_asset_id,) = _DIVIDEND_ASSET.unpack_from(payload, _DIVIDEND.size)
        dividend_asset = asset_id_to_name(dividend_asset_id)
    return DividendPayload(
        quantity_per_unit=str(quantity_per_unit),
        asset=asset_id_to_name(asset_id),
        dividend_asset=dividend_asset,
    )


def decode_cancel(payload: bytes) -> CancelPayload:
    if len(payload) < 32:
        raise PayloadDecodeError("Invalid cancel payload")
    return CancelPayload(offer_hash=payload[:32].hex())


def decode_destroy(payload: bytes) -> DestroyPayload:
    """Decode ``>Qq`` plus an optional tag of up to 34 bytes."""

    if len(payload) < _DESTROY.size:
        raise PayloadDecodeError("Invalid destroy payload")
    asset_id, quantity = _DESTROY.unpack_from(payload)
    tag = None
    if len(payload) > _DESTROY.size:
        tag = payload[_DESTROY.size:_DESTROY.size + DESTROY_TAG_MAX_SIZE].hex()
    return DestroyPayload(asset=asset_id_to_name(asset_id), quantity=str(quantity), tag=tag)


Decoder = Callable[[bytes, NetworkParams], Payload]


def _without_network(decoder: Callable[[bytes], Payload]) -> Decoder:
    def wrapper(payload: bytes, _network: NetworkParams) -> Payload:
        return decoder(payload)

    wrapper.__name__ = decoder.__name__
    return wrapper


DECODERS: Mapping[int, Decoder] = MappingProxyType(
    {
        2: decode_enhanced_send,
        4: decode_sweep,
        10: _without_network(decode_order),
        11: _without_network(decode_btc_pay),
        12: decode_dispenser,
        13: _without_network(decode_dispense),
        20: _without_network(decode_issuance),
        21: _without_network(decode_issuance_subasset),
        22: _without_network(decode_issuance),
        23: _without_network(decode_issuance_subasset),
        30: _without_network(decode_broadcast),
        50: _without_network(decode_dividend),
        70: _without_network(decode_cancel),
        90: _without_network(decode_fairminter),
        91: _without_network(decode_fairmint),
        101: _without_network(decode_attach),
        102: _without_network(decode_detach),
        110: _without_network(decode_destroy),
    }
)


def decode_payload(message_id: int, payload: bytes, network: NetworkParams = MAINNET) -> Payload:
    """Decode *payload* for *message_id*; never raises.

    Ids without a decoder yield ``UnknownPayload(raw=...)``. A decoder
    failure yields ``UnknownPayload(raw=..., error=...)`` carrying the
    failure's message.
    """

    payload = bytes(payload)
    decoder = DECODERS.get(message_id)
    if decoder is None:
        return UnknownPayload(raw=payload.hex())

    try:
        return decoder(payload, network)
    except Exception as exc:
        logger.debug("Decoder %s rejected message %d: %s", decoder.__name__, message_id, exc)
        return UnknownPayload(raw=payload.hex(), error=str(exc) or "Unknown error")
