"""
TCP transport for Boxline.

Wraps a connected socket as a plain byte stream with observable EOF and a
close that is safe to call while other threads are blocked in I/O.
"""

import logging
import socket
import threading
from typing import Optional, Tuple, Union

from ..errors import TransportError

logger = logging.getLogger(__name__)

Address = Union[str, Tuple[str, int]]


class SocketStream:
    """
    Byte stream over a connected TCP socket.
    """

    def __init__(self, sock: socket.socket):
        self._socket = sock
        self._closed = False
        self._lock = threading.Lock()

    def read(self, size: int) -> bytes:
        """
        Read up to size bytes.

        Returns:
            Received bytes, or b"" at end of stream

        Raises:
            TransportError: If the receive fails
        """
        try:
            return self._socket.recv(size)
        except OSError as e:
            raise TransportError(f"Failed to read from stream: {e}") from e

    def write(self, data: bytes) -> int:
        """
        Write all of data.

        Returns:
            Number of bytes written

        Raises:
            TransportError: If the send fails
        """
        try:
            self._socket.sendall(data)
        except OSError as e:
            raise TransportError(f"Failed to write to stream: {e}") from e
        return len(data)

    def settimeout(self, timeout: Optional[float]) -> None:
        """Apply a transport-level deadline to every blocking call."""
        self._socket.settimeout(timeout)

    def close(self) -> None:
        """
        Shut down both directions and close the socket. Idempotent.

        Blocked reads and writes in other threads return promptly.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._socket.shutdown(socket.SHUT_RDWR)
        except OSError as e:
            # Peer may have reset the connection already
            logger.debug(f"Socket shutdown: {e}")
        self._socket.close()

    @property
    def closed(self) -> bool:
        return self._closed

    def get_peer_address(self) -> Optional[Tuple[str, int]]:
        """Remote (host, port), or None once closed."""
        try:
            return self._socket.getpeername()[:2]
        except OSError:
            return None

    def __repr__(self):
        status = "closed" if self._closed else "open"
        return f"SocketStream({status})"


def read_fully(stream, size: int) -> bytes:
    """
    Read exactly size bytes unless the stream ends first.

    Partial reads are joined. A shorter result means EOF was reached.

    Raises:
        TransportError: If a read fails
    """
    chunks = []
    remaining = size
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def parse_address(address: Address) -> Tuple[str, int]:
    """
    Parse "host:port" or (host, port).

    Raises:
        ValueError: If the port is missing or not a number
    """
    if isinstance(address, tuple):
        host, port = address
        return host, int(port)

    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"Invalid address: {address!r}")
    return host or "localhost", int(port)


def connect(address: Address, timeout: Optional[float] = None) -> SocketStream:
    """
    Open a TCP connection.

    Args:
        address: "host:port" or (host, port)
        timeout: Connect timeout in seconds

    Returns:
        SocketStream in blocking mode

    Raises:
        TransportError: If the connection cannot be made
    """
    host, port = parse_address(address)
    try:
        sock = socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        raise TransportError(f"Failed to connect to {host}:{port}: {e}") from e
    sock.settimeout(None)
    return SocketStream(sock)


def listen(host: str = "0.0.0.0", port: int = 0, backlog: int = 16) -> socket.socket:
    """
    Create a listening TCP socket.

    Raises:
        TransportError: If binding fails
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(backlog)
    except OSError as e:
        sock.close()
        raise TransportError(f"Failed to listen on {host}:{port}: {e}") from e
    logger.info(f"Listening on {sock.getsockname()[0]}:{sock.getsockname()[1]}")
    return sock
