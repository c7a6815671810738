"""
Utility functions and helpers for Boxline.
"""

from .events import emit
from .logging_config import setup_logging

__all__ = [
    'emit',
    'setup_logging',
]
