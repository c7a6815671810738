"""
Service loop for Boxline.

Accepts raw TCP connections, runs the server side of the handshake on
each, and hands the resulting channel to an application handler (an
authenticated echo by default). A failing connection only ends its own
handler thread; the accept loop stops on listener errors or stop().
"""

import logging
import socket
import threading
from typing import Callable, Optional, Set, Tuple

from ..config import ChannelConfig
from ..errors import ChannelClosed, EndOfStream, TransportError
from ..transport.tcp import SocketStream, listen
from .secure import SecureChannel

logger = logging.getLogger(__name__)

Handler = Callable[[SecureChannel], None]
ErrorHandler = Callable[[BaseException, Optional[Tuple[str, int]]], None]

ACCEPT_POLL_INTERVAL = 0.5


def echo(channel: SecureChannel) -> None:
    """Copy everything read from the channel back to it until EOF."""
    while True:
        data = channel.read(channel.config.read_chunk_size)
        if not data:
            return
        channel.write(data)


def log_connection_error(error: BaseException, peer: Optional[Tuple[str, int]]) -> None:
    """Default per-connection error handler."""
    logger.warning(f"Connection from {peer} failed: {type(error).__name__}: {error}")


def handle_connection(stream, handler: Handler = echo,
                      config: Optional[ChannelConfig] = None,
                      error_handler: Optional[ErrorHandler] = None,
                      peer: Optional[Tuple[str, int]] = None) -> None:
    """
    Serve one accepted stream: handshake, run handler, close.

    Errors are reported to error_handler and never raised. A local close,
    such as SecureServer.stop(), is not an error.
    """
    if error_handler is None:
        error_handler = log_connection_error

    channel = SecureChannel(stream, initiator=False, config=config)
    try:
        channel.open()
        logger.info(f"Channel open with {peer}, peer key {channel.peer_fingerprint}")
        handler(channel)
    except EndOfStream:
        logger.debug(f"Connection from {peer} ended")
    except ChannelClosed as e:
        if channel.closed:
            logger.debug(f"Connection from {peer} closed locally")
        else:
            error_handler(e, peer)
    except Exception as e:
        error_handler(e, peer)
    finally:
        channel.close()


def serve(listener: socket.socket, handler: Handler = echo,
          config: Optional[ChannelConfig] = None,
          error_handler: Optional[ErrorHandler] = None,
          stop_event: Optional[threading.Event] = None) -> None:
    """
    Accept connections forever, one handler thread per connection.

    Args:
        listener: Bound, listening TCP socket
        handler: Application behavior run on each open channel
        config: Channel settings
        error_handler: Receives (error, peer_address) for failed connections
        stop_event: Ends the loop without error once set

    Raises:
        TransportError: If accepting fails for any other reason
    """
    config = (config or ChannelConfig()).validate()
    if stop_event is not None:
        listener.settimeout(ACCEPT_POLL_INTERVAL)

    while True:
        if stop_event is not None and stop_event.is_set():
            logger.info("Accept loop stopped")
            return
        try:
            sock, addr = listener.accept()
        except socket.timeout:
            continue
        except OSError as e:
            if stop_event is not None and stop_event.is_set():
                logger.info("Accept loop stopped")
                return
            raise TransportError(f"Accept failed: {e}") from e

        logger.debug(f"Accepted connection from {addr}")
        sock.settimeout(None)
        threading.Thread(
            target=handle_connection,
            args=(SocketStream(sock), handler, config, error_handler, addr),
            daemon=True,
            name=f"boxline-conn-{addr[1]}",
        ).start()


class SecureServer:
    """
    Background echo (or custom handler) server.
    """

    def __init__(self, host: str = "0.0.0.0", port: int = 0, handler: Handler = echo,
                 config: Optional[ChannelConfig] = None,
                 error_handler: Optional[ErrorHandler] = None):
        self.host = host
        self.port = port
        self.handler = handler
        self.config = (config or ChannelConfig()).validate()
        self.error_handler = error_handler
        self._listener: Optional[socket.socket] = None
        self._thread: Optional[threading.Thread] = None
        self._stop = threading.Event()
        self._channels: Set[SecureChannel] = set()
        self._channels_lock = threading.Lock()
        self.error: Optional[BaseException] = None

    def start(self) -> Tuple[str, int]:
        """
        Bind and start accepting on a background thread.

        Returns:
            Actual (host, port) being listened on

        Raises:
            TransportError: If the socket cannot be bound
        """
        if self._thread is not None:
            return self.address

        self._listener = listen(self.host, self.port)
        self.port = self._listener.getsockname()[1]
        self._thread = threading.Thread(target=self._run, daemon=True, name="boxline-accept")
        self._thread.start()
        return self.address

    def stop(self) -> None:
        """Stop accepting and close every open channel."""
        self._stop.set()
        if self._listener is not None:
            self._listener.close()
        with self._channels_lock:
            channels = list(self._channels)
        for channel in channels:
            channel.close()
        if self._thread is not None:
            self._thread.join(timeout=1.0)
        logger.info("Server stopped")

    @property
    def address(self) -> Tuple[str, int]:
        return self.host, self.port

    @property
    def active_channels(self) -> int:
        with self._channels_lock:
            return len(self._channels)

    def _run(self) -> None:
        try:
            serve(self._listener, self._tracked_handler, self.config,
                  self.error_handler, self._stop)
        except TransportError as e:
            self.error = e
            logger.error(f"Server accept loop failed: {e}")

    def _tracked_handler(self, channel: SecureChannel) -> None:
        with self._channels_lock:
            self._channels.add(channel)
        try:
            self.handler(channel)
        finally:
            with self._channels_lock:
                self._channels.discard(channel)

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
