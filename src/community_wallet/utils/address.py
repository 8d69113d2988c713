"""Address utilities — Idena account address validation and normalisation.

Idena shares the Ethereum account format: ``0x`` followed by 40 hex
characters. Addresses are stored lowercase so that equality checks are
plain string comparisons.
"""

from __future__ import annotations

import re

from community_wallet.errors.definitions import ErrInvalidAddress

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def validate_address(address: str) -> bool:
    """Check if *address* is a well-formed account address (any case)."""
    if not isinstance(address, str):
        return False
    return _ADDRESS_RE.match(address.strip().lower()) is not None


def normalize_address(address: str) -> str:
    """Trim and lowercase an address, rejecting malformed input.

    Raises:
        BadRequestError: If the address is not a valid account address.
    """
    if not validate_address(address):
        raise ErrInvalidAddress
    return address.strip().lower()


def same_address(a: str | None, b: str | None) -> bool:
    """Case-insensitive address comparison; ``None`` never matches."""
    if a is None or b is None:
        return False
    return a.strip().lower() == b.strip().lower()


def same_address_set(a: list[str] | None, b: list[str] | None) -> bool:
    """Check two address lists hold the same members with the same count.

    Order is ignored.
    """
    a = a or []
    b = b or []
    return len(a) == len(b) and set(a) == set(b)
