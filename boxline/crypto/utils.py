"""
Cryptographic utilities for secure memory handling and random bytes.
"""

from typing import Union

from nacl.utils import random as nacl_random


def secure_zero(data: Union[bytearray, memoryview]) -> None:
    """
    Overwrite sensitive data in place with zeros.

    Args:
        data: Mutable buffer to zero

    Raises:
        TypeError: If data is immutable
    """
    if isinstance(data, (bytearray, memoryview)):
        for i in range(len(data)):
            data[i] = 0
    else:
        raise TypeError("Data must be bytearray or memoryview")


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        Random bytes from the operating system CSPRNG
    """
    return nacl_random(length)


class SecureBytes:
    """
    A container for sensitive byte data that zeros itself when cleared.

    Python cannot scrub the temporary ``bytes`` copies handed to the NaCl
    bindings; only this buffer is zeroed.
    """

    def __init__(self, data: bytes):
        self._data = bytearray(data)
        self._is_valid = True

    def __len__(self) -> int:
        if not self._is_valid:
            raise ValueError("SecureBytes has been cleared")
        return len(self._data)

    def __bytes__(self) -> bytes:
        """Get a copy of the stored data as bytes."""
        if not self._is_valid:
            raise ValueError("SecureBytes has been cleared")
        return bytes(self._data)

    def __del__(self):
        self.clear()

    def clear(self) -> None:
        """Explicitly zero the stored data."""
        if getattr(self, "_is_valid", False):
            secure_zero(self._data)
            self._is_valid = False

    def is_cleared(self) -> bool:
        """Check if the data has been cleared."""
        return not self._is_valid


def format_hex(data: bytes, separator: str = "") -> str:
    """
    Format bytes as hexadecimal string.

    Args:
        data: Bytes to format
        separator: Separator between hex bytes

    Returns:
        Formatted hex string
    """
    return separator.join(f"{b:02x}" for b in data)
