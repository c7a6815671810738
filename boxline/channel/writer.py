"""
Secure writer pipeline for Boxline.

A background thread runs the encrypt loop:
1. Take up to write_chunk_size plaintext bytes from a blocking pipe
2. Draw a fresh random nonce
3. Seal the chunk with the shared secret
4. Write nonce || ciphertext to the raw stream as one frame

Each chunk becomes exactly one frame; larger application writes are
split across several frames. Any failure closes the pipe so the next
application write raises it.
"""

import logging
import threading
from typing import Optional

from ..config import ChannelConfig
from ..crypto.box import SharedSecret
from ..errors import ChannelClosed
from ..protocol.frame import FrameWriter, encode_frame
from ..utils.events import emit
from .pipe import Pipe
from .reader import ExitCallback

logger = logging.getLogger(__name__)


class SecureWriter:
    """
    Push-based plaintext writer over an encrypted stream.
    """

    direction = "write"

    def __init__(self, stream, secret: SharedSecret, config: Optional[ChannelConfig] = None,
                 on_exit: Optional[ExitCallback] = None):
        self.config = config or ChannelConfig()
        self._frames = FrameWriter(stream, self.config.framing)
        self._secret = secret
        self._pipe = Pipe()
        self._on_exit = on_exit
        self._thread: Optional[threading.Thread] = None
        self.error: Optional[BaseException] = None
        self.frames_sent = 0

    def start(self) -> 'SecureWriter':
        """Start the encrypt loop thread."""
        self._thread = threading.Thread(target=self._run, daemon=True, name="boxline-writer")
        self._thread.start()
        return self

    def write(self, data: bytes) -> int:
        """
        Queue plaintext for sealing, blocking while the previous chunk is pending.

        Returns:
            Number of bytes accepted

        Raises:
            ShortWrite: A previous frame was only partly written
            TransportError: The raw stream failed
            ChannelClosed: The writer was closed locally
        """
        return self._pipe.writer.write(data)

    def finish(self) -> None:
        """Signal that no more data follows. Queued data is still sent."""
        self._pipe.writer.close()

    def close(self, error: Optional[BaseException] = None) -> None:
        """Drop queued data and stop the loop. Later writes raise error."""
        self._pipe.reader.close(error or ChannelClosed("Writer closed"))

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        error = None
        try:
            self._loop()
        except ChannelClosed:
            logger.debug("Writer closed locally")
        except Exception as e:
            error = e
            logger.debug(f"Writer pipeline failed: {type(e).__name__}: {e}")

        self.error = error
        if error is not None:
            self._pipe.reader.close(error)
        if self._on_exit is not None:
            self._on_exit(self.direction, error)

    def _loop(self) -> None:
        while True:
            chunk = self._pipe.reader.read(self.config.write_chunk_size)
            if not chunk:
                logger.debug("Writer input finished")
                return

            frame = encode_frame(self._secret, chunk)
            written = self._frames.write_frame(frame)
            self.frames_sent += 1
            logger.debug(f"Sealed frame #{self.frames_sent}: {written} bytes")
            emit(self.config.observer, "frame_sent", size=written)
