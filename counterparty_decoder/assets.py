"""Mapping between numeric Counterparty asset ids and asset names."""

from __future__ import annotations

import string

ALPHABETIC_THRESHOLD = 26**3
NUMERIC_THRESHOLD = 26**12 + 1

_SPECIAL_ASSETS = {0: "BTC", 1: "XCP"}


def asset_id_to_name(asset_id: int | str) -> str:
    """Return the human-readable name for *asset_id*.

    Ids below ``26**3`` and from ``26**12 + 1`` upwards are numeric assets
    rendered as ``"A<id>"``. Ids in between use bijective base-26 over
    ``A``-``Z`` (``A`` = 1), the same scheme as spreadsheet column names.
    """

    value = int(asset_id)
    if value < 0:
        raise ValueError(f"asset id must be non-negative, got {value}")
    if value in _SPECIAL_ASSETS:
        return _SPECIAL_ASSETS[value]
    if value >= NUMERIC_THRESHOLD or value < ALPHABETIC_THRESHOLD:
        return f"A{value}"

    letters: list[str] = []
    remaining = value
    while remaining > 0:
        remaining, digit = divmod(remaining - 1, 26)
        letters.append(string.ascii_uppercase[digit])
    return "".join(reversed(letters))
