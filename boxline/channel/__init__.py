"""
Channel layer components for Boxline.

This module provides:
- The blocking single-chunk pipe between pipelines and application code
- Secure reader and writer pipelines
- The SecureChannel facade, dial, and the echo service loop
"""

from .pipe import Pipe, PipeReader, PipeWriter
from .reader import SecureReader
from .writer import SecureWriter
from .secure import ChannelState, SecureChannel, dial
from .server import SecureServer, echo, handle_connection, serve

__all__ = [
    'Pipe',
    'PipeReader',
    'PipeWriter',
    'SecureReader',
    'SecureWriter',
    'ChannelState',
    'SecureChannel',
    'dial',
    'SecureServer',
    'echo',
    'handle_connection',
    'serve',
]
