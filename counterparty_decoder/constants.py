"""Static protocol data shared by every decoder."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

PREFIX = "CNTRPRTY"
PREFIX_BYTES = PREFIX.encode("ascii")

UNKNOWN_MESSAGE_NAME = "unknown"
TAPROOT_COMMIT_NAME = "taproot_commit"
TAPROOT_COMMIT_ID = 0

MESSAGE_TYPES: Mapping[int, str] = MappingProxyType(
    {
        2: "enhanced_send",
        3: "mpma_send",
        4: "sweep",
        10: "order",
        11: "btc_pay",
        12: "dispenser",
        13: "dispense",
        20: "issuance",
        21: "issuance_subasset",
        22: "issuance",
        23: "issuance_subasset",
        30: "broadcast",
        50: "dividend",
        70: "cancel",
        90: "fairminter",
        91: "fairmint",
        101: "attach",
        102: "detach",
        110: "destroy",
    }
)


def message_name(message_id: int) -> str:
    """Return the registry name for *message_id* or ``"unknown"``."""

    return MESSAGE_TYPES.get(message_id, UNKNOWN_MESSAGE_NAME)
