"""
Frame structure, sealing, and wire framing for Boxline.

frame = nonce (24B) || ciphertext_with_tag (len(plaintext) + 16B)

One frame carries exactly one plaintext message. Two wire framings exist:

raw:             frame
length-prefixed: length (4B, big-endian) || frame

With raw framing one transport read is taken as one frame, which holds
only while the transport keeps write boundaries. The length-prefixed
framing is the default because TCP may coalesce or split writes.
"""

import struct
from dataclasses import dataclass
from typing import Optional

from ..crypto.box import SharedSecret, TAG_SIZE
from ..crypto.nonce import NONCE_SIZE, random_nonce
from ..errors import AuthenticationFailed, EndOfStream, FrameFormatError, ShortWrite, TransportError
from ..transport.tcp import read_fully

FRAMING_RAW = "raw"
FRAMING_LENGTH_PREFIXED = "length-prefixed"
FRAMINGS = (FRAMING_RAW, FRAMING_LENGTH_PREFIXED)

LENGTH_PREFIX_SIZE = 4
MIN_FRAME_SIZE = NONCE_SIZE + TAG_SIZE
FRAME_OVERHEAD = NONCE_SIZE + TAG_SIZE


@dataclass
class Frame:
    """
    One sealed message.

    Fields:
        nonce: 24-byte per-frame nonce
        ciphertext: Encrypted payload with the 16-byte tag
    """
    nonce: bytes
    ciphertext: bytes

    def __post_init__(self):
        if len(self.nonce) != NONCE_SIZE:
            raise ValueError(f"Nonce must be {NONCE_SIZE} bytes")

    @property
    def size(self) -> int:
        return NONCE_SIZE + len(self.ciphertext)

    def to_bytes(self) -> bytes:
        return self.nonce + self.ciphertext

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Frame':
        """
        Split raw frame bytes into nonce and ciphertext.

        Raises:
            AuthenticationFailed: If data cannot hold a nonce and a tag
        """
        if len(data) < MIN_FRAME_SIZE:
            raise AuthenticationFailed(f"Frame too short: {len(data)} bytes")
        return cls(nonce=bytes(data[:NONCE_SIZE]), ciphertext=bytes(data[NONCE_SIZE:]))

    def __len__(self) -> int:
        return self.size


def encode_frame(secret: SharedSecret, plaintext: bytes,
                 nonce: Optional[bytes] = None) -> Frame:
    """
    Seal one message into a frame.

    Args:
        secret: Channel shared secret
        plaintext: Message to seal
        nonce: Explicit nonce; a fresh random one is drawn when omitted

    Returns:
        Sealed Frame
    """
    if nonce is None:
        nonce = random_nonce()
    return Frame(nonce=nonce, ciphertext=secret.seal(plaintext, nonce))


def decode_frame(secret: SharedSecret, data: bytes) -> bytes:
    """
    Verify and open raw frame bytes.

    Raises:
        AuthenticationFailed: If the frame is malformed or fails verification
    """
    frame = Frame.from_bytes(data)
    return secret.open(frame.ciphertext, frame.nonce)


def max_frame_size(read_chunk_size: int) -> int:
    """Largest frame accepted from a peer reading with the given bound."""
    return read_chunk_size + FRAME_OVERHEAD


class FrameReader:
    """
    Reads whole frames from a raw stream.
    """

    def __init__(self, stream, framing: str = FRAMING_LENGTH_PREFIXED,
                 read_chunk_size: int = 32 * 1024):
        if framing not in FRAMINGS:
            raise ValueError(f"Unknown framing: {framing}")
        self.stream = stream
        self.framing = framing
        self.read_chunk_size = read_chunk_size
        self.max_frame_size = max_frame_size(read_chunk_size)

    def read_frame(self) -> bytes:
        """
        Read the next frame's bytes.

        Raises:
            EndOfStream: Peer closed cleanly between frames
            FrameFormatError: Length header out of range
            TransportError: I/O failure or EOF inside a frame
        """
        if self.framing == FRAMING_RAW:
            data = self.stream.read(self.read_chunk_size)
            if not data:
                raise EndOfStream("Peer closed the stream")
            return data

        header = read_fully(self.stream, LENGTH_PREFIX_SIZE)
        if not header:
            raise EndOfStream("Peer closed the stream")
        if len(header) < LENGTH_PREFIX_SIZE:
            raise TransportError("Stream ended inside a frame header")

        (length,) = struct.unpack('!I', header)
        if length < MIN_FRAME_SIZE or length > self.max_frame_size:
            raise FrameFormatError(f"Invalid frame length: {length}")

        data = read_fully(self.stream, length)
        if len(data) < length:
            raise TransportError(f"Stream ended inside a frame ({len(data)} of {length} bytes)")
        return data


class FrameWriter:
    """
    Writes whole frames to a raw stream, one logical write per frame.
    """

    def __init__(self, stream, framing: str = FRAMING_LENGTH_PREFIXED):
        if framing not in FRAMINGS:
            raise ValueError(f"Unknown framing: {framing}")
        self.stream = stream
        self.framing = framing

    def write_frame(self, frame: Frame) -> int:
        """
        Write one frame.

        Returns:
            Number of bytes put on the wire

        Raises:
            ShortWrite: The stream accepted fewer bytes than the frame
            TransportError: I/O failure
        """
        data = frame.to_bytes()
        if self.framing == FRAMING_LENGTH_PREFIXED:
            data = struct.pack('!I', len(data)) + data

        written = self.stream.write(data)
        if written is None or written < len(data):
            raise ShortWrite(written or 0, len(data))
        return written
