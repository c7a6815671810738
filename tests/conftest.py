"""
Shared fixtures for Boxline tests.
"""

import socket
import threading

import pytest

from boxline.channel.secure import SecureChannel
from boxline.config import ChannelConfig
from boxline.crypto.box import SharedSecret
from boxline.crypto.keys import KeyPair
from boxline.transport.tcp import SocketStream


class MemoryStream:
    """
    In-memory raw stream.

    Reads come from a fixed buffer, optionally in pieces of at most
    max_read bytes. Writes are collected and can be made to fall short.
    """

    def __init__(self, data: bytes = b"", max_read: int = None, short_by: int = 0):
        self._buffer = bytearray(data)
        self.max_read = max_read
        self.short_by = short_by
        self.written = bytearray()
        self.closed = False

    def read(self, size: int) -> bytes:
        if self.max_read is not None:
            size = min(size, self.max_read)
        chunk = bytes(self._buffer[:size])
        del self._buffer[:size]
        return chunk

    def write(self, data: bytes) -> int:
        self.written.extend(data)
        return max(len(data) - self.short_by, 0)

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def secret_pair():
    """Two SharedSecrets computed from opposite sides of one key agreement."""
    alice, bob = KeyPair.generate(), KeyPair.generate()
    return (
        SharedSecret.precompute(alice.private_key, bob.public_key),
        SharedSecret.precompute(bob.private_key, alice.public_key),
    )


@pytest.fixture
def stream_pair():
    """Two connected SocketStreams."""
    left, right = socket.socketpair()
    streams = SocketStream(left), SocketStream(right)
    yield streams
    for stream in streams:
        stream.close()


def open_channel_pair(config: ChannelConfig = None):
    """
    Open a client and a server channel over a socket pair.

    Returns:
        (client, server) SecureChannels, both OPEN
    """
    left, right = socket.socketpair()
    client = SecureChannel(SocketStream(left), initiator=True, config=config)
    server = SecureChannel(SocketStream(right), initiator=False, config=config)

    errors = []

    def open_server():
        try:
            server.open()
        except Exception as e:
            errors.append(e)

    thread = threading.Thread(target=open_server)
    thread.start()
    client.open()
    thread.join(timeout=5)
    if errors:
        raise errors[0]
    return client, server


@pytest.fixture
def channel_pair():
    client, server = open_channel_pair()
    yield client, server
    client.close()
    server.close()
