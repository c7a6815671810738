"""
Blocking in-memory pipe connecting a pipeline thread to application code.

The pipe holds at most one pending chunk. A writer blocks while the slot
is occupied, which gives each direction natural backpressure; a reader
may drain a chunk in several smaller reads. Either end can be closed with
an error that becomes the other end's failure reason.

Built on a Condition rather than queue.Queue, which cannot close one end
with an error.
"""

import threading
from typing import Optional

from ..errors import ChannelClosed


class Pipe:
    """
    Synchronous pipe with a single-chunk buffer.
    """

    def __init__(self):
        self._cond = threading.Condition()
        self._pending: Optional[bytes] = None
        self._write_closed = False
        self._write_error: Optional[BaseException] = None
        self._read_closed = False
        self._read_error: Optional[BaseException] = None
        self.reader = PipeReader(self)
        self.writer = PipeWriter(self)

    def _read(self, size: int) -> bytes:
        with self._cond:
            while True:
                if self._read_closed:
                    raise ChannelClosed("Read from closed pipe")
                if self._pending:
                    if size is None or size < 0 or size >= len(self._pending):
                        data, self._pending = self._pending, None
                    else:
                        data = self._pending[:size]
                        self._pending = self._pending[size:]
                    self._cond.notify_all()
                    return data
                if self._write_closed:
                    if self._write_error is not None:
                        raise self._write_error
                    return b""
                self._cond.wait()

    def _write(self, data: bytes) -> int:
        data = bytes(data)
        with self._cond:
            while True:
                if self._write_closed:
                    raise ChannelClosed("Write to closed pipe")
                if self._read_closed:
                    raise self._read_error or ChannelClosed("Pipe reader closed")
                if not data:
                    return 0
                if self._pending is None:
                    self._pending = data
                    self._cond.notify_all()
                    return len(data)
                self._cond.wait()

    def _close_write(self, error: Optional[BaseException]) -> None:
        with self._cond:
            if not self._write_closed:
                self._write_closed = True
                self._write_error = error
            self._cond.notify_all()

    def _close_read(self, error: Optional[BaseException]) -> None:
        with self._cond:
            if not self._read_closed:
                self._read_closed = True
                self._read_error = error
            self._pending = None
            self._cond.notify_all()


class PipeReader:
    """Read end of a Pipe."""

    def __init__(self, pipe: Pipe):
        self._pipe = pipe

    def read(self, size: int = -1) -> bytes:
        """
        Read up to size bytes of the pending chunk, blocking until one exists.

        Returns:
            Data, or b"" once the write end closed without an error

        Raises:
            ChannelClosed: If this end was closed
            Exception: The error the write end was closed with
        """
        return self._pipe._read(size)

    def close(self, error: Optional[BaseException] = None) -> None:
        """Close the read end. Pending and later writes fail with error."""
        self._pipe._close_read(error)


class PipeWriter:
    """Write end of a Pipe."""

    def __init__(self, pipe: Pipe):
        self._pipe = pipe

    def write(self, data: bytes) -> int:
        """
        Hand a chunk to the reader, blocking while the previous one is unread.

        Returns:
            Number of bytes accepted

        Raises:
            ChannelClosed: If this end was closed
            Exception: The error the read end was closed with
        """
        return self._pipe._write(data)

    def close(self, error: Optional[BaseException] = None) -> None:
        """Close the write end. The reader sees EOF, or error if given."""
        self._pipe._close_write(error)
