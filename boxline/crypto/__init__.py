"""
Cryptographic primitives for the Boxline channel.

This module provides:
- Ephemeral Curve25519 key pairs
- Shared-secret precomputation and XSalsa20-Poly1305 sealing
- The per-frame random nonce policy
"""

from .keys import KeyPair, KEY_SIZE, fingerprint
from .box import SharedSecret, TAG_SIZE
from .nonce import random_nonce, NONCE_SIZE

__all__ = [
    'KeyPair',
    'KEY_SIZE',
    'fingerprint',
    'SharedSecret',
    'TAG_SIZE',
    'random_nonce',
    'NONCE_SIZE',
]
