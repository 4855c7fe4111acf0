"""Wallet address utilities"""

import re

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")


def normalize_address(address: str | None) -> str:
    """Trim and lower-case an address; all state is keyed by this form"""
    return (address or "").strip().lower()


def is_valid_address(address: str) -> bool:
    """Check for a 0x-prefixed 20-byte hex address (any case)"""
    return bool(ADDRESS_PATTERN.match(normalize_address(address)))
