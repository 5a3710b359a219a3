"""Address encoding for Counterparty short addresses.

Counterparty payloads carry destinations as a compact tag byte followed by a
hash or witness program instead of a full address string. This module turns
those bytes into Base58Check or bech32/bech32m addresses for the selected
network. Anything it cannot interpret is rendered as a ``0x``-prefixed hex
literal, so decoding a short address never fails.

References:
    BIP173 (bech32): https://github.com/bitcoin/bips/blob/master/bip-0173.mediawiki
    BIP350 (bech32m): https://github.com/bitcoin/bips/blob/master/bip-0350.mediawiki
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping

from cryptography.hazmat.primitives.asymmetric import ec

logger = logging.getLogger(__name__)

b58_digits = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
BECH32_CHARSET = "qpzry9x8gf2tvdw0s3jn54khce6mua7l"
BECH32M_CONST = 0x2BC830A3

SECP256K1_FIELD_SIZE = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEFFFFFC2F

TAG_P2PKH = 0x01
TAG_P2SH = 0x02
TAG_SEGWIT = 0x03
SEGWIT_MARKER_MIN = 0x80
SEGWIT_MARKER_MAX = 0x8F

HASH160_SIZE = 20


@dataclass(frozen=True)
class NetworkParams:
    """Address-encoding parameters of a Bitcoin network."""

    name: str
    pubkey_hash: int
    script_hash: int
    bech32_hrp: str


MAINNET = NetworkParams(name="mainnet", pubkey_hash=0x00, script_hash=0x05, bech32_hrp="bc")
TESTNET = NetworkParams(name="testnet", pubkey_hash=0x6F, script_hash=0xC4, bech32_hrp="tb")
REGTEST = NetworkParams(name="regtest", pubkey_hash=0x6F, script_hash=0xC4, bech32_hrp="bcrt")

NETWORKS: Mapping[str, NetworkParams] = MappingProxyType(
    {params.name: params for params in (MAINNET, TESTNET, REGTEST)}
)


def get_network(name: str) -> NetworkParams:
    """Return the built-in :class:`NetworkParams` called *name*."""

    try:
        return NETWORKS[name.strip().lower()]
    except KeyError as exc:
        raise ValueError(f"Unknown network: {name}") from exc


def _double_sha256(data: bytes) -> bytes:
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def base58_check_encode(payload: bytes, version: int) -> str:
    """Encode *payload* as Base58Check with a one-byte *version* prefix."""

    data = bytes([version]) + payload
    address_bytes = data + _double_sha256(data)[:4]

    value = int.from_bytes(address_bytes, "big")
    output: List[str] = []
    while value > 0:
        value, remainder = divmod(value, 58)
        output.append(b58_digits[remainder])
    encoded = "".join(output[::-1])

    leading_zero_count = 0
    for byte in address_bytes:
        if byte == 0:
            leading_zero_count += 1
        else:
            break

    return b58_digits[0] * leading_zero_count + encoded


def bech32_polymod(values: list[int]) -> int:
    """Compute bech32 checksum polymod."""
    GEN = [0x3B6A57B2, 0x26508E6D, 0x1EA119FA, 0x3D4233DD, 0x2A1462B3]
    chk = 1
    for value in values:
        b = chk >> 25
        chk = (chk & 0x1FFFFFF) << 5 ^ value
        for i in range(5):
            chk ^= GEN[i] if ((b >> i) & 1) else 0
    return chk


def bech32_hrp_expand(hrp: str) -> list[int]:
    """Expand HRP for bech32 checksum."""
    return [ord(x) >> 5 for x in hrp] + [0] + [ord(x) & 31 for x in hrp]


def bech32_create_checksum(hrp: str, data: list[int], spec: str) -> list[int]:
    values = bech32_hrp_expand(hrp) + data
    const = BECH32M_CONST if spec == "bech32m" else 1
    polymod = bech32_polymod(values + [0, 0, 0, 0, 0, 0]) ^ const
    return [(polymod >> 5 * (5 - i)) & 31 for i in range(6)]


def _convertbits(data: bytes, frombits: int, tobits: int, pad: bool = True) -> list[int] | None:
    acc = 0
    bits = 0
    ret = []
    maxv = (1 << tobits) - 1
    max_acc = (1 << (frombits + tobits - 1)) - 1

    for value in data:
        acc = ((acc << frombits) | value) & max_acc
        bits += frombits
        while bits >= tobits:
            bits -= tobits
            ret.append((acc >> bits) & maxv)

    if pad:
        if bits:
            ret.append((acc << (tobits - bits)) & maxv)
    elif bits >= frombits or ((acc << (tobits - bits)) & maxv):
        return None

    return ret


def bech32_encode(hrp: str, witver: int, witprog: bytes) -> str:
    """Encode a segwit address, bech32 for witness v0 and bech32m for v1+.

    Args:
        hrp: Human-readable part (``bc`` for mainnet, ``tb`` for testnet)
        witver: Witness version (0-16)
        witprog: Witness program bytes

    Returns:
        Bech32/bech32m encoded address
    """
    if not 0 <= witver <= 16:
        raise ValueError(f"Invalid witness version: {witver}")
    if not 2 <= len(witprog) <= 40:
        raise ValueError(f"Invalid witness program length: {len(witprog)}")

    spec = "bech32m" if witver >= 1 else "bech32"
    data = _convertbits(witprog, 8, 5)
    if data is None:
        raise ValueError("Failed to convert witness program to 5-bit")

    combined = [witver] + data
    checksum = bech32_create_checksum(hrp, combined, spec)
    return hrp + "1" + "".join(BECH32_CHARSET[d] for d in combined + checksum)


def is_valid_xonly_pubkey(x_bytes: bytes) -> bool:
    """Return True if *x_bytes* is the x-coordinate of a secp256k1 point."""

    if len(x_bytes) != 32:
        return False
    x = int.from_bytes(x_bytes, "big")
    if x >= SECP256K1_FIELD_SIZE:
        return False

    # y^2 = x^3 + 7 (mod p); p = 3 mod 4 so the square root is a power.
    y_squared = (pow(x, 3, SECP256K1_FIELD_SIZE) + 7) % SECP256K1_FIELD_SIZE
    y = pow(y_squared, (SECP256K1_FIELD_SIZE + 1) // 4, SECP256K1_FIELD_SIZE)
    if pow(y, 2, SECP256K1_FIELD_SIZE) != y_squared:
        return False
    if y % 2 != 0:
        y = SECP256K1_FIELD_SIZE - y

    try:
        ec.EllipticCurvePublicNumbers(x, y, ec.SECP256K1()).public_key()
    except ValueError:
        return False
    return True


def _segwit_address(version: int, program: bytes, network: NetworkParams) -> str | None:
    if version == 0 and len(program) in (20, 32):
        return bech32_encode(network.bech32_hrp, 0, program)
    if version == 1 and len(program) == 32 and is_valid_xonly_pubkey(program):
        return bech32_encode(network.bech32_hrp, 1, program)
    return None


def _legacy_address(version: int, hash_bytes: bytes) -> str | None:
    if len(hash_bytes) != HASH160_SIZE:
        return None
    return base58_check_encode(hash_bytes, version)


def _encode_short_address(data: bytes, network: NetworkParams) -> str | None:
    tag = data[0]
    body = data[1:]

    if tag == TAG_P2PKH:
        return _legacy_address(network.pubkey_hash, body)
    if tag == TAG_P2SH:
        return _legacy_address(network.script_hash, body)
    if tag == TAG_SEGWIT:
        if len(body) < 2:
            return None
        return _segwit_address(body[0], body[1:], network)

    if SEGWIT_MARKER_MIN <= tag <= SEGWIT_MARKER_MAX:
        address = _segwit_address(tag - SEGWIT_MARKER_MIN, body, network)
        if address is not None:
            return address

    if tag == network.pubkey_hash:
        return _legacy_address(network.pubkey_hash, body)
    if tag == network.script_hash:
        return _legacy_address(network.script_hash, body)
    return None


def short_address_to_address(data: bytes, network: NetworkParams = MAINNET) -> str:
    """Convert Counterparty short address bytes into an address string.

    Supported layouts:

    * ``0x01`` + 20-byte hash: P2PKH
    * ``0x02`` + 20-byte hash: P2SH
    * ``0x03`` + witness version + program: P2WPKH, P2WSH or P2TR
    * ``0x80``-``0x8F`` + program: legacy segwit marker, version ``tag - 0x80``
    * the network's own pubkey-hash / script-hash byte + 20-byte hash

    Everything else is returned as ``"0x" + data.hex()``.
    """

    fallback = f"0x{bytes(data).hex()}"
    if len(data) < 2:
        return fallback

    try:
        address = _encode_short_address(bytes(data), network)
    except ValueError as exc:
        logger.debug("Short address %s could not be encoded: %s", fallback, exc)
        return fallback
    return address if address is not None else fallback
