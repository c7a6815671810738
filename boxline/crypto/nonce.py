"""
Per-frame nonce generation.

Every frame gets 24 fresh bytes from the OS CSPRNG. No nonce state is
kept, within a channel or across channels.
"""

from .utils import generate_random_bytes

NONCE_SIZE = 24


def random_nonce() -> bytes:
    """Return a fresh 24-byte nonce."""
    return generate_random_bytes(NONCE_SIZE)
