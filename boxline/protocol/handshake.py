"""
Public-key handshake for Boxline.

Each side sends its raw 32-byte ephemeral public key, in the clear, with
no length prefix or type tag. The connecting peer sends first:

client: send own key, then read 32 bytes
server: read 32 bytes, then send own key

There is no version negotiation and no peer authentication; the received
key is trusted on first use.
"""

import logging
from dataclasses import dataclass

from ..crypto.box import SharedSecret
from ..crypto.keys import KEY_SIZE, KeyPair, fingerprint
from ..errors import HandshakeIncomplete, TransportError

logger = logging.getLogger(__name__)


@dataclass
class HandshakeResult:
    """
    Outcome of a completed handshake.

    Fields:
        peer_public_key: 32-byte key received from the peer
        secret: Precomputed shared secret for both pipelines
    """
    peer_public_key: bytes
    secret: SharedSecret

    @property
    def peer_fingerprint(self) -> str:
        return fingerprint(self.peer_public_key)


def _receive_public_key(stream) -> bytes:
    peer_key = b""
    while len(peer_key) < KEY_SIZE:
        try:
            chunk = stream.read(KEY_SIZE - len(peer_key))
        except TransportError as e:
            raise HandshakeIncomplete(
                f"Handshake failed after {len(peer_key)} of {KEY_SIZE} key bytes: {e}",
                received=len(peer_key),
            ) from e
        if not chunk:
            break
        peer_key += chunk

    if len(peer_key) < KEY_SIZE:
        raise HandshakeIncomplete(
            f"Peer closed after {len(peer_key)} of {KEY_SIZE} key bytes",
            received=len(peer_key),
        )
    return peer_key


def _send_public_key(stream, keypair: KeyPair) -> None:
    written = stream.write(keypair.public_key)
    if written is not None and written < KEY_SIZE:
        raise TransportError(f"Short write sending public key: {written} of {KEY_SIZE} bytes")


def client_handshake(stream, keypair: KeyPair) -> HandshakeResult:
    """
    Run the handshake as the connecting peer.

    Args:
        stream: Connected raw stream
        keypair: Fresh local key pair

    Returns:
        HandshakeResult

    Raises:
        HandshakeIncomplete: Fewer than 32 key bytes before EOF or error
        TransportError: Sending the local key failed
    """
    _send_public_key(stream, keypair)
    peer_key = _receive_public_key(stream)
    return _complete(keypair, peer_key, "client")


def server_handshake(stream, keypair: KeyPair) -> HandshakeResult:
    """
    Run the handshake as the accepting peer.

    Raises:
        HandshakeIncomplete: Fewer than 32 key bytes before EOF or error
        TransportError: Sending the local key failed
    """
    peer_key = _receive_public_key(stream)
    _send_public_key(stream, keypair)
    return _complete(keypair, peer_key, "server")


def _complete(keypair: KeyPair, peer_key: bytes, role: str) -> HandshakeResult:
    secret = SharedSecret.precompute(keypair.private_key, peer_key)
    result = HandshakeResult(peer_public_key=peer_key, secret=secret)
    logger.info(f"Handshake complete as {role}, peer key {result.peer_fingerprint}")
    return result
