"""
Shared-secret precomputation and authenticated encryption.

The Curve25519 key agreement runs once per channel. Every frame is then
sealed with XSalsa20-Poly1305 under the precomputed secret, so the
expensive asymmetric step is never repeated per message.
"""

from nacl.bindings import (
    crypto_box_afternm,
    crypto_box_beforenm,
    crypto_box_open_afternm,
)
from nacl.exceptions import CryptoError

from ..errors import AuthenticationFailed, ChannelClosed
from .keys import KEY_SIZE, check_public_key
from .nonce import NONCE_SIZE
from .utils import SecureBytes

TAG_SIZE = 16


class SharedSecret:
    """
    Symmetric key derived from a local private key and a peer public key.

    Immutable once computed; both pipelines read it concurrently without
    locking.
    """

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Shared secret must be {KEY_SIZE} bytes")
        self._key = SecureBytes(key)

    @classmethod
    def precompute(cls, private_key: bytes, peer_public_key: bytes) -> 'SharedSecret':
        """
        Run the key agreement.

        Args:
            private_key: Local 32-byte private key
            peer_public_key: Peer's 32-byte public key

        Returns:
            SharedSecret usable for sealing and opening frames

        Raises:
            ValueError: If either key is missing or has the wrong size
        """
        if private_key is None or len(private_key) != KEY_SIZE:
            raise ValueError(f"Private key must be {KEY_SIZE} bytes")
        check_public_key(peer_public_key)
        return cls(crypto_box_beforenm(peer_public_key, private_key))

    def _key_bytes(self) -> bytes:
        if self._key.is_cleared():
            raise ChannelClosed("Shared secret has been cleared")
        return bytes(self._key)

    def seal(self, plaintext: bytes, nonce: bytes) -> bytes:
        """
        Encrypt and authenticate plaintext.

        Returns:
            Ciphertext with the 16-byte tag, ``len(plaintext) + 16`` bytes
        """
        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"Nonce must be {NONCE_SIZE} bytes")
        return crypto_box_afternm(bytes(plaintext), nonce, self._key_bytes())

    def open(self, ciphertext: bytes, nonce: bytes) -> bytes:
        """
        Verify and decrypt a ciphertext.

        Raises:
            AuthenticationFailed: If the tag does not verify
        """
        if len(nonce) != NONCE_SIZE:
            raise AuthenticationFailed(f"Nonce must be {NONCE_SIZE} bytes")
        if len(ciphertext) < TAG_SIZE:
            raise AuthenticationFailed("Ciphertext shorter than authentication tag")
        key = self._key_bytes()
        try:
            return crypto_box_open_afternm(bytes(ciphertext), nonce, key)
        except CryptoError as e:
            raise AuthenticationFailed("Frame failed authentication") from e

    def clear(self) -> None:
        """Zero the secret. Later seal/open calls raise ChannelClosed."""
        self._key.clear()

    def is_cleared(self) -> bool:
        return self._key.is_cleared()

    def __repr__(self):
        return "SharedSecret(<redacted>)"
