"""
Exception hierarchy for the Boxline secure channel.

Every failure surfaces as the closure reason of the read or write side of
a channel. Nothing is retried: a broken frame or an exhausted handshake
always terminates the channel.
"""


class BoxlineError(Exception):
    """Base class for all channel errors."""
    pass


class TransportError(BoxlineError):
    """Raised when an I/O operation on the raw stream fails."""
    pass


class HandshakeIncomplete(BoxlineError):
    """
    Raised when the peer's public key could not be read in full.

    Attributes:
        received: Number of key bytes read before EOF or error
    """

    def __init__(self, message: str, received: int = 0):
        super().__init__(message)
        self.received = received


class AuthenticationFailed(BoxlineError):
    """Raised when a frame does not verify under the shared secret."""
    pass


class FrameFormatError(BoxlineError):
    """Raised when a length-prefixed frame header is impossible."""
    pass


class ShortWrite(BoxlineError):
    """
    Raised when the raw stream accepted only part of a frame.

    Attributes:
        written: Bytes the stream reported as written
        expected: Size of the frame
    """

    def __init__(self, written: int, expected: int):
        super().__init__(f"Short write: {written} of {expected} bytes")
        self.written = written
        self.expected = expected


class EndOfStream(BoxlineError):
    """Clean close by the peer. Normal termination, not a failure."""
    pass


class ChannelClosed(BoxlineError):
    """Raised when using a channel or pipe that was closed locally."""
    pass
