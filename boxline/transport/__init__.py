"""
Transport layer for Boxline.
"""

from .tcp import SocketStream, connect, listen, parse_address, read_fully

__all__ = ['SocketStream', 'connect', 'listen', 'parse_address', 'read_fully']
