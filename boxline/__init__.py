"""
Boxline secure streaming channel.

Two peers exchange ephemeral Curve25519 public keys over a plain TCP
connection, precompute one shared secret, and then tunnel byte streams
through XSalsa20-Poly1305 frames. The encrypted channel behaves like an
ordinary blocking stream.

Key Features:
- Fresh key pair per channel, key agreement computed once
- A random 24-byte nonce for every frame
- Independent reader and writer pipelines with backpressure
- Authentication failures terminate the channel, never surface plaintext

Basic Usage:
    >>> from boxline import SecureServer, dial
    >>>
    >>> server = SecureServer(host="127.0.0.1")
    >>> host, port = server.start()
    >>>
    >>> with dial((host, port)) as channel:
    ...     _ = channel.write(b"hello")
    ...     print(channel.read())  # b"hello"
    >>>
    >>> server.stop()

Peers are not authenticated: public keys are exchanged in the clear and
trusted on first use.
"""

__version__ = "1.0.0"
__author__ = "Boxline Project"

# Errors
from .errors import (
    BoxlineError,
    TransportError,
    HandshakeIncomplete,
    AuthenticationFailed,
    FrameFormatError,
    ShortWrite,
    EndOfStream,
    ChannelClosed,
)

# Configuration
from .config import ChannelConfig, ConfigError

# Cryptographic primitives
from .crypto.keys import KeyPair, fingerprint
from .crypto.box import SharedSecret

# Protocol components
from .protocol.frame import Frame, encode_frame, decode_frame
from .protocol.handshake import client_handshake, server_handshake

# Channel communication
from .channel.secure import ChannelState, SecureChannel, dial
from .channel.server import SecureServer, echo, serve

__all__ = [
    # Version info
    '__version__',

    # Errors
    'BoxlineError',
    'TransportError',
    'HandshakeIncomplete',
    'AuthenticationFailed',
    'FrameFormatError',
    'ShortWrite',
    'EndOfStream',
    'ChannelClosed',

    # Configuration
    'ChannelConfig',
    'ConfigError',

    # Cryptographic primitives
    'KeyPair',
    'fingerprint',
    'SharedSecret',

    # Protocol components
    'Frame',
    'encode_frame',
    'decode_frame',
    'client_handshake',
    'server_handshake',

    # Channel communication
    'ChannelState',
    'SecureChannel',
    'dial',
    'SecureServer',
    'echo',
    'serve',
]
