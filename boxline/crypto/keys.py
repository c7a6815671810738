"""
Ephemeral Curve25519 key pairs.

A fresh pair is generated for every channel immediately before the
handshake and cleared when the channel closes. Public keys are exchanged
in the clear and trusted on first use; peers are identified in logs only
by a short fingerprint.
"""

from cryptography.hazmat.primitives import hashes
from nacl.public import PrivateKey

from .utils import SecureBytes, format_hex

KEY_SIZE = 32
FINGERPRINT_SIZE = 8


class KeyPair:
    """
    Ephemeral key pair owned by one channel.

    The private key never leaves the local process.
    """

    def __init__(self, public_key: bytes, private_key: bytes):
        check_public_key(public_key)
        if len(private_key) != KEY_SIZE:
            raise ValueError(f"Private key must be {KEY_SIZE} bytes")
        self._public_key = bytes(public_key)
        self._private_key = SecureBytes(private_key)

    @classmethod
    def generate(cls) -> 'KeyPair':
        """Generate a new key pair from the OS random source."""
        private = PrivateKey.generate()
        return cls(bytes(private.public_key), bytes(private))

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def private_key(self) -> bytes:
        """Copy of the private key. Raises ValueError once cleared."""
        return bytes(self._private_key)

    def clear(self) -> None:
        """Zero the private key."""
        self._private_key.clear()

    def is_cleared(self) -> bool:
        return self._private_key.is_cleared()

    def __repr__(self):
        return f"KeyPair(public={fingerprint(self._public_key)})"


def check_public_key(public_key: bytes) -> None:
    """
    Check the size of a public key. No other validation is done.

    Raises:
        ValueError: If the key is not 32 bytes
    """
    if public_key is None or len(public_key) != KEY_SIZE:
        raise ValueError(f"Public key must be {KEY_SIZE} bytes")


def fingerprint(public_key: bytes) -> str:
    """
    Short SHA-256 fingerprint of a public key for display and logs.

    Args:
        public_key: 32-byte public key

    Returns:
        First 8 digest bytes as colon-separated hex
    """
    digest = hashes.Hash(hashes.SHA256())
    digest.update(public_key)
    return format_hex(digest.finalize()[:FINGERPRINT_SIZE], ":")
