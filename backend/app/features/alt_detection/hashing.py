"""Keyed hashing of network addresses."""

import hashlib
import hmac
from typing import Optional

UNKNOWN_ADDRESS = "unknown"
HASH_LENGTH = 16


def hash_address(raw_address: Optional[str], key: str) -> str:
    """HMAC-SHA256 of the address, truncated to 16 hex characters.

    A missing address hashes as the literal ``"unknown"`` so every connection
    still carries a join key.
    """
    value = raw_address or UNKNOWN_ADDRESS
    digest = hmac.new(key.encode(), value.encode(), hashlib.sha256).hexdigest()
    return digest[:HASH_LENGTH]
