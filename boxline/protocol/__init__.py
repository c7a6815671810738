"""
Protocol layer for Boxline.

This module provides:
- Frame structure, sealing, and wire framing
- The client-first public-key handshake
"""

from .frame import (
    Frame,
    FrameReader,
    FrameWriter,
    encode_frame,
    decode_frame,
    FRAMING_RAW,
    FRAMING_LENGTH_PREFIXED,
)
from .handshake import HandshakeResult, client_handshake, server_handshake

__all__ = [
    'Frame',
    'FrameReader',
    'FrameWriter',
    'encode_frame',
    'decode_frame',
    'FRAMING_RAW',
    'FRAMING_LENGTH_PREFIXED',
    'HandshakeResult',
    'client_handshake',
    'server_handshake',
]
