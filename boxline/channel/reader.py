"""
Secure reader pipeline for Boxline.

A background thread runs the decrypt loop:
1. Read one frame from the raw stream
2. Verify and open it with the shared secret
3. Hand the plaintext to the application through a blocking pipe

Clean EOF from the peer closes the pipe without an error. Any other
failure becomes the pipe's close reason. Unverified bytes are never
handed on.
"""

import logging
import threading
from typing import Callable, Optional

from ..config import ChannelConfig
from ..crypto.box import SharedSecret
from ..errors import ChannelClosed, EndOfStream
from ..protocol.frame import FrameReader, decode_frame
from ..utils.events import emit
from .pipe import Pipe

logger = logging.getLogger(__name__)

ExitCallback = Callable[[str, Optional[BaseException]], None]


class SecureReader:
    """
    Pull-based plaintext reader over an encrypted stream.
    """

    direction = "read"

    def __init__(self, stream, secret: SharedSecret, config: Optional[ChannelConfig] = None,
                 on_exit: Optional[ExitCallback] = None):
        """
        Args:
            stream: Raw stream to read frames from
            secret: Channel shared secret
            config: Channel settings
            on_exit: Called once with (direction, error) when the loop ends
        """
        self.config = config or ChannelConfig()
        self._frames = FrameReader(stream, self.config.framing, self.config.read_chunk_size)
        self._secret = secret
        self._pipe = Pipe()
        self._on_exit = on_exit
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None
        self.frames_received = 0

    def start(self) -> 'SecureReader':
        """Start the decrypt loop thread."""
        self._thread = threading.Thread(target=self._run, daemon=True, name="boxline-reader")
        self._thread.start()
        return self

    def read(self, size: int = -1) -> bytes:
        """
        Read decrypted bytes, blocking until a frame arrives.

        Returns:
            Up to size bytes of one message, or b"" at clean end of stream

        Raises:
            AuthenticationFailed: A frame failed verification
            TransportError: The raw stream failed
            ChannelClosed: The reader was closed locally
        """
        return self._pipe.reader.read(size)

    def close(self, error: Optional[BaseException] = None) -> None:
        """Stop delivering plaintext. Later reads raise ChannelClosed."""
        self._pipe.reader.close(error or ChannelClosed("Reader closed"))

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        error = None
        try:
            self._loop()
        except EndOfStream:
            logger.debug("Peer closed stream, reader finished")
        except ChannelClosed:
            logger.debug("Reader closed locally")
        except Exception as e:
            error = e
            logger.debug(f"Reader pipeline failed: {type(e).__name__}: {e}")

        self.error = error
        self._pipe.writer.close(error)
        if self._on_exit is not None:
            self._on_exit(self.direction, error)

    def _loop(self) -> None:
        while True:
            data = self._frames.read_frame()
            plaintext = decode_frame(self._secret, data)
            self.frames_received += 1
            logger.debug(f"Opened frame #{self.frames_received}: {len(data)} bytes")
            emit(self.config.observer, "frame_received", size=len(data))

            if plaintext:
                self._pipe.writer.write(plaintext)
