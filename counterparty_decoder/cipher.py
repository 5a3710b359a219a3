"""ARC4 keystream used to obfuscate Counterparty OP_RETURN payloads.

Counterparty encrypts OP_RETURN data with RC4 keyed by the txid of the
transaction's first input. Encryption and decryption are the same operation.
The cipher comes from pycryptodome's ``Crypto.Cipher.ARC4``, which accepts
keys of 1 to 256 bytes; it offers no confidentiality and is only used here
for wire compatibility.
"""

from __future__ import annotations

from Crypto.Cipher import ARC4


class CipherError(ValueError):
    """Raised when the keystream cannot be initialized."""


def keystream_xor(key: bytes, data: bytes) -> bytes:
    """XOR *data* with the ARC4 keystream derived from *key*.

    The output has the same length as *data*; applying the function twice
    with the same key returns the original bytes.
    """

    if not key:
        raise CipherError("ARC4 key must not be empty")
    try:
        cipher = ARC4.new(bytes(key))
    except ValueError as exc:
        raise CipherError(f"Unsupported ARC4 key length: {len(key)} bytes") from exc

    return cipher.encrypt(bytes(data))
