"""
Bidirectional secure channel facade.

Combines a SecureReader, a SecureWriter, and the raw stream's lifecycle
into one object with blocking read, write, and close. Application code
(such as an echo loop) uses it like any other stream.

State machine:
    CONNECTING -> HANDSHAKING -> OPEN -> CLOSING -> CLOSED
    HANDSHAKING -> CLOSED on handshake failure
"""

import logging
import threading
from enum import Enum
from typing import Optional

from ..config import ChannelConfig
from ..crypto.box import SharedSecret
from ..crypto.keys import KeyPair, fingerprint
from ..errors import ChannelClosed
from ..protocol.handshake import client_handshake, server_handshake
from ..transport.tcp import Address, connect
from ..utils.events import emit
from .reader import SecureReader
from .writer import SecureWriter

logger = logging.getLogger(__name__)


class ChannelState(Enum):
    """Lifecycle states of a SecureChannel."""
    CONNECTING = "connecting"
    HANDSHAKING = "handshaking"
    OPEN = "open"
    CLOSING = "closing"
    CLOSED = "closed"


class SecureChannel:
    """
    Encrypted, authenticated byte stream over a raw stream.

    The channel owns the raw stream. Closing the channel, or the first
    failure in either pipeline, closes the stream and stops both
    pipelines.
    """

    def __init__(self, stream, initiator: bool, config: Optional[ChannelConfig] = None):
        """
        Args:
            stream: Connected raw stream with read, write, and close
            initiator: True for the connecting side (sends its key first)
            config: Channel settings
        """
        self.config = (config or ChannelConfig()).validate()
        self.stream = stream
        self.initiator = initiator
        self.peer_public_key: Optional[bytes] = None

        self._state = ChannelState.CONNECTING
        self._lock = threading.RLock()
        self._keypair: Optional[KeyPair] = None
        self._secret: Optional[SharedSecret] = None
        self._reader: Optional[SecureReader] = None
        self._writer: Optional[SecureWriter] = None
        self._running = 0
        self._closing = False
        self._close_done = False
        self._error: Optional[BaseException] = None

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def error(self) -> Optional[BaseException]:
        """First pipeline or handshake failure, if any."""
        return self._error

    @property
    def closed(self) -> bool:
        """True once close() has been called locally."""
        return self._closing

    @property
    def role(self) -> str:
        return "client" if self.initiator else "server"

    @property
    def peer_fingerprint(self) -> Optional[str]:
        if self.peer_public_key is None:
            return None
        return fingerprint(self.peer_public_key)

    def _set_state(self, new_state: ChannelState) -> None:
        with self._lock:
            old_state = self._state
            if old_state == new_state:
                return
            self._state = new_state
        logger.debug(f"Channel {self.role}: {old_state.value} -> {new_state.value}")
        emit(self.config.observer, "state", old=old_state.value, new=new_state.value)

    def open(self) -> 'SecureChannel':
        """
        Run the handshake and start both pipelines.

        Returns:
            self, now OPEN

        Raises:
            HandshakeIncomplete: The peer key could not be read in full
            TransportError: The raw stream failed
            ChannelClosed: The channel was already opened or closed
        """
        with self._lock:
            if self._state != ChannelState.CONNECTING:
                raise ChannelClosed(f"Cannot open channel in state {self._state.value}")
            self._set_state(ChannelState.HANDSHAKING)

        try:
            if self.config.io_timeout is not None and hasattr(self.stream, "settimeout"):
                self.stream.settimeout(self.config.io_timeout)

            self._keypair = KeyPair.generate()
            handshake = client_handshake if self.initiator else server_handshake
            result = handshake(self.stream, self._keypair)
        except Exception as e:
            self._error = e
            logger.warning(f"Handshake failed as {self.role}: {e}")
            self._release()
            self._set_state(ChannelState.CLOSED)
            raise

        self._secret = result.secret
        self.peer_public_key = result.peer_public_key
        emit(self.config.observer, "handshake", role=self.role,
             peer_fingerprint=result.peer_fingerprint)

        self._reader = SecureReader(self.stream, self._secret, self.config,
                                    on_exit=self._pipeline_exited)
        self._writer = SecureWriter(self.stream, self._secret, self.config,
                                    on_exit=self._pipeline_exited)
        with self._lock:
            self._running = 2
            self._set_state(ChannelState.OPEN)
        self._reader.start()
        self._writer.start()
        return self

    def read(self, size: int = -1) -> bytes:
        """
        Read decrypted bytes, blocking until data is available.

        Args:
            size: Maximum bytes to return; -1 returns one whole message

        Returns:
            Plaintext bytes, or b"" once the peer closed cleanly

        Raises:
            AuthenticationFailed: A frame failed verification
            TransportError: The raw stream failed
            ChannelClosed: The channel is not open or was closed locally
        """
        if self._reader is None or self._closing:
            raise ChannelClosed(f"Channel is {self._state.value}")
        return self._reader.read(size)

    def write(self, data: bytes) -> int:
        """
        Queue plaintext for encryption, blocking on backpressure.

        Returns:
            Number of bytes accepted

        Raises:
            ShortWrite: A previous frame was only partly written
            TransportError: The raw stream failed
            ChannelClosed: The channel is not open or was closed locally
        """
        if self._writer is None or self._closing:
            raise ChannelClosed(f"Channel is {self._state.value}")
        return self._writer.write(data)

    def close(self) -> None:
        """
        Close the channel. Idempotent and safe to call from any thread.

        Data already accepted by write() gets up to close_timeout seconds
        to reach the stream before it is shut down.
        """
        with self._lock:
            if self._closing:
                return
            self._closing = True
            if self._state == ChannelState.OPEN:
                self._set_state(ChannelState.CLOSING)

        timeout = self.config.close_timeout
        if self._writer is not None:
            self._writer.finish()
            self._writer.join(timeout)
        if self._reader is not None:
            self._reader.close()
        if self._writer is not None:
            self._writer.close()

        self.stream.close()

        if self._reader is not None:
            self._reader.join(timeout)
        if self._writer is not None:
            self._writer.join(timeout)

        self._release()
        with self._lock:
            self._close_done = True
            finished = self._running == 0
        if finished:
            self._set_state(ChannelState.CLOSED)
            logger.debug(f"Channel {self.role} closed")
        else:
            # CLOSED is set by the last pipeline to exit
            logger.warning(f"Channel {self.role} pipelines still running after {timeout}s close timeout")

    def _pipeline_exited(self, direction: str, error: Optional[BaseException]) -> None:
        with self._lock:
            self._running -= 1
            finished = self._running == 0
            failed = error is not None and not self._closing
            closing, close_done = self._closing, self._close_done
            if failed:
                if self._error is None:
                    self._error = error
                if self._state == ChannelState.OPEN:
                    self._set_state(ChannelState.CLOSING)

        if failed:
            logger.warning(f"Channel {self.role} {direction} pipeline failed: {error}")
            emit(self.config.observer, "pipeline_error", direction=direction,
                 error=type(error).__name__)
            if direction == SecureReader.direction:
                self._writer.close(error)
            self.stream.close()

        if finished and self._state == ChannelState.CLOSING and not closing:
            self.stream.close()
            self._release()
            self._set_state(ChannelState.CLOSED)
        elif finished and close_done:
            self._set_state(ChannelState.CLOSED)
            logger.debug(f"Channel {self.role} closed")

    def _release(self) -> None:
        """Close the stream and zero key material."""
        self.stream.close()
        if self._keypair is not None:
            self._keypair.clear()
        if self._secret is not None:
            self._secret.clear()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"SecureChannel({self.role}, {self._state.value})"


def dial(address: Address, config: Optional[ChannelConfig] = None) -> SecureChannel:
    """
    Connect to a Boxline server and open a channel as the client.

    Args:
        address: "host:port" or (host, port)
        config: Channel settings

    Returns:
        Open SecureChannel

    Raises:
        TransportError: The connection could not be made
        HandshakeIncomplete: The server's key could not be read in full
    """
    config = (config or ChannelConfig()).validate()
    logger.info(f"Dialing {address}")
    stream = connect(address, timeout=config.connect_timeout)
    return SecureChannel(stream, initiator=True, config=config).open()
