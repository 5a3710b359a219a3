"""Domain models for decoded Counterparty messages.

Every successful decode produces a :class:`ParsedMessage` whose ``params``
is one of the payload dataclasses below. Quantities are carried as decimal
strings so that 64-bit values survive JSON serialization untouched. Payloads
that could not be decoded are represented by :class:`UnknownPayload`, which
keeps the raw hex so callers can still inspect the envelope metadata.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, ClassVar, FrozenSet


@dataclass(frozen=True)
class Payload:
    """Base class for every decoded payload variant."""

    # Fields dropped from ``to_dict`` when they hold ``None``.
    optional_fields: ClassVar[FrozenSet[str]] = frozenset()

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for name in self.optional_fields:
            if data.get(name) is None:
                data.pop(name, None)
        return data


@dataclass(frozen=True)
class EnhancedSendPayload(Payload):
    asset: str
    quantity: str
    address: str
    memo: str


@dataclass(frozen=True)
class SweepPayload(Payload):
    address: str
    flags: Any
    memo: str


@dataclass(frozen=True)
class IssuancePayload(Payload):
    asset: str
    quantity: str
    divisible: Any
    lock: Any
    reset: Any
    mime_type: str
    description: str | None


@dataclass(frozen=True)
class IssuanceSubassetPayload(Payload):
    asset: str
    quantity: str
    divisible: Any
    lock: Any
    reset: Any
    compacted_subasset_length: Any
    compacted_subasset_longname: str
    mime_type: str
    description: str | None


@dataclass(frozen=True)
class BroadcastPayload(Payload):
    timestamp: Any
    value: Any
    fee_fraction_int: Any
    mime_type: str
    text: str


@dataclass(frozen=True)
class FairminterPayload(Payload):
    asset: str
    asset_parent: str
    price: str | None
    quantity_by_price: str | None
    max_mint_per_tx: str | None
    max_mint_per_address: str | None
    hard_cap: str | None
    premint_quantity: str | None
    start_block: Any
    end_block: Any
    soft_cap: str | None
    soft_cap_deadline_block: Any
    minted_asset_commission_int: Any
    burn_payment: Any
    lock_description: Any
    lock_quantity: Any
    divisible: Any
    mime_type: str
    description: str


@dataclass(frozen=True)
class FairmintPayload(Payload):
    asset: str
    quantity: str | None


@dataclass(frozen=True)
class AttachPayload(Payload):
    asset: str
    quantity: str
    destination_vout: str


@dataclass(frozen=True)
class DetachPayload(Payload):
    destination: str


@dataclass(frozen=True)
class OrderPayload(Payload):
    give_asset: str
    give_quantity: str
    get_asset: str
    get_quantity: str
    expiration: int
    fee_required: str


@dataclass(frozen=True)
class BtcPayPayload(Payload):
    tx0_hash: str
    tx1_hash: str


@dataclass(frozen=True)
class DispenserPayload(Payload):
    optional_fields: ClassVar[FrozenSet[str]] = frozenset({"action_address", "oracle_address"})

    asset: str
    give_quantity: str
    escrow_quantity: str
    satoshirate: str
    status: int
    action_address: str | None = None
    oracle_address: str | None = None


@dataclass(frozen=True)
class DispensePayload(Payload):
    data: str = "0x00"


@dataclass(frozen=True)
class DividendPayload(Payload):
    quantity_per_unit: str
    asset: str
    dividend_asset: str


@dataclass(frozen=True)
class CancelPayload(Payload):
    offer_hash: str


@dataclass(frozen=True)
class DestroyPayload(Payload):
    optional_fields: ClassVar[FrozenSet[str]] = frozenset({"tag"})

    asset: str
    quantity: str
    tag: str | None = None


@dataclass(frozen=True)
class TaprootCommitPayload(Payload):
    """Marker emitted for an unencrypted ``CNTRPRTY`` OP_RETURN."""

    data: str


@dataclass(frozen=True)
class UnknownPayload(Payload):
    """Raw payload for unrecognized message types or failed decodes.

    ``error`` is only set when a decoder rejected the payload; an id that
    simply has no decoder leaves it empty.
    """

    optional_fields: ClassVar[FrozenSet[str]] = frozenset({"error"})

    raw: str
    error: str | None = None


@dataclass(frozen=True)
class ParsedMessage:
    """High-level Counterparty message recovered from a transaction."""

    message_name: str
    message_id: int
    params: Payload

    def to_dict(self) -> dict[str, Any]:
        return {
            "message_name": self.message_name,
            "message_id": self.message_id,
            "params": self.params.to_dict(),
        }
