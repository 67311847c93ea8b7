"""
Utility helpers for addresses and fixed-size ABI words.
"""

from __future__ import annotations

from typing import Optional, Union

from eth_utils import is_address, to_bytes, to_checksum_address

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
ZERO_BYTES32 = b"\x00" * 32


def checksum(address: Optional[str]) -> str:
    """Checksum an address; ``None`` and empty strings map to the zero address."""
    if not address:
        return ZERO_ADDRESS
    return to_checksum_address(address)


def is_zero_address(address: Optional[str]) -> bool:
    if not address:
        return True
    return int(address, 16) == 0


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.lower() == b.lower()


def is_valid_address(value: Optional[str]) -> bool:
    return bool(value) and is_address(value)


def to_bytes32(value: Union[int, str, bytes, None]) -> bytes:
    """Left-pad an integer, hex string or byte string into a 32-byte word."""
    if value is None:
        return ZERO_BYTES32
    if isinstance(value, int):
        if value < 0:
            raise ValueError(f"negative value cannot be packed into bytes32: {value}")
        return value.to_bytes(32, "big")
    raw = to_bytes(hexstr=value) if isinstance(value, str) else bytes(value)
    if len(raw) > 32:
        raise ValueError(f"value longer than 32 bytes: {len(raw)}")
    return raw.rjust(32, b"\x00")


def bytes32_to_int(value: bytes) -> int:
    return int.from_bytes(value, "big")

